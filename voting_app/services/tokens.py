"""
Session tokens.

A token is a JWT signed with ``JWT_SECRET_KEY`` that carries the user id as
``sub`` and the user's role as the ``role`` claim. Nothing is stored
server-side: a token is valid while its signature matches and it has not
expired.
"""
import uuid
from dataclasses import dataclass
from datetime import timedelta

from jwt.exceptions import PyJWTError
from flask_jwt_extended import create_access_token, decode_token
from flask_jwt_extended.exceptions import JWTExtendedException

from ..models.user import Role


class InvalidToken(Exception):
    """Raised for a bad signature, a malformed token or an expired one alike."""


@dataclass(frozen=True)
class Identity:
    id: uuid.UUID
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


def issue_token(user, expires_delta: timedelta | None = None) -> str:
    role = user.role.value if isinstance(user.role, Role) else str(user.role)
    return create_access_token(
        identity=str(user.id),
        additional_claims={"role": role},
        expires_delta=expires_delta,
    )


def identity_from_claims(claims: dict) -> Identity:
    try:
        return Identity(id=uuid.UUID(str(claims["sub"])), role=Role(claims["role"]))
    except (KeyError, ValueError, TypeError) as e:
        raise InvalidToken("Token does not carry a valid identity") from e


def validate_token(token: str) -> Identity:
    if not token:
        raise InvalidToken("Invalid or expired token")
    try:
        claims = decode_token(token)
    except (PyJWTError, JWTExtendedException) as e:
        raise InvalidToken("Invalid or expired token") from e
    return identity_from_claims(claims)
