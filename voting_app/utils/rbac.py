from functools import wraps
from flask import g, redirect, url_for, current_app
from flask_jwt_extended import verify_jwt_in_request, get_jwt
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from ..errors import Unauthenticated, Forbidden
from ..services.tokens import InvalidToken, identity_from_claims


def auth_required(fn):
    """
    Require a valid session token (Bearer header first, then the token cookie).
    Token failures are rendered as UNAUTHENTICATED by the JWT callbacks.
    The decoded identity is kept on ``g.identity``.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        verify_jwt_in_request()
        try:
            g.identity = identity_from_claims(get_jwt())
        except InvalidToken:
            raise Unauthenticated()
        return fn(*args, **kwargs)
    return wrapper


def current_identity():
    identity = getattr(g, "identity", None)
    if identity is None:
        raise Unauthenticated()
    return identity


def roles_required(*allowed_roles):
    """
    Restrict endpoint access to specific roles.
    Use with @auth_required above it; without it every call is rejected.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            identity = current_identity()
            if identity.role not in allowed_roles:
                raise Forbidden()
            return fn(*args, **kwargs)
        return wrapper
    return decorator


def optional_identity():
    """
    Returns the caller's identity, or None when there is no usable token.
    An expired or tampered token here just means "not logged in".
    """
    try:
        verify_jwt_in_request(optional=True)
        claims = get_jwt()
        if not claims:
            return None
        return identity_from_claims(claims)
    except (JWTExtendedException, PyJWTError, InvalidToken) as e:
        current_app.logger.debug("Optional token check failed: %s", e)
        return None


def redirect_if_authenticated(fn):
    """Send already logged-in users to their profile instead of login/signup."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if optional_identity() is not None:
            return redirect(url_for("users.profile"))
        return fn(*args, **kwargs)
    return wrapper
