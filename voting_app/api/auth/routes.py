from datetime import datetime
from flask import Blueprint, request, current_app, jsonify
from flasgger import swag_from
from flask_jwt_extended import set_access_cookies, unset_jwt_cookies, get_jwt
from sqlalchemy.exc import SQLAlchemyError

from ...errors import ServerError
from ...extensions import db
from ...models.token_blocklist import TokenBlocklist
from ...schemas.auth import SignupSchema, LoginSchema
from ...schemas.user import UserSchema
from ...services import accounts
from ...services.tokens import issue_token
from ...utils.audit import audit_log
from ...utils.rbac import redirect_if_authenticated, optional_identity
from ...utils.validation import validate_or_abort

auth_bp = Blueprint("auth", __name__)

signup_schema = SignupSchema()
login_req_schema = LoginSchema()
user_schema = UserSchema()


def login_response(user, message: str):
    token = issue_token(user)
    response = jsonify({
        "message": message,
        "access_token": token,
        "token_type": "bearer",
        "user": {
            "id": str(user.id),
            "name": user.name,
            "email": user.email,
            "role": user.role.value,
        },
    })
    # HTTP-only cookie named "token"
    set_access_cookies(response, token)
    return response, 200


@auth_bp.get("/signup")
@redirect_if_authenticated
@swag_from({
    "tags": ["Auth"],
    "summary": "Signup entry point (redirects to the profile when already logged in)",
    "responses": {200: {"description": "Not logged in"}, 302: {"description": "Already logged in"}},
})
def signup_entry():
    return {
        "authenticated": False,
        "required_fields": sorted(name for name, f in signup_schema.fields.items() if f.required),
    }, 200


@auth_bp.post("/signup")
@swag_from({
    "tags": ["Auth"],
    "summary": "Register a voter",
    "description": "Creates a voter account. Any role sent by the client is ignored.",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "example": "Asha Rao"},
                "age": {"type": "integer", "example": 34},
                "email": {"type": "string", "example": "asha@example.com"},
                "mobile": {"type": "string", "example": "9876543210"},
                "password": {"type": "string", "example": "StrongPass123"},
                "national_id": {"type": "string", "example": "123412341234"},
                "address": {"type": "string", "example": "12 Park Street"},
            },
            "required": ["name", "age", "email", "mobile", "password", "national_id", "address"],
        },
    }],
    "responses": {
        201: {"description": "Voter created"},
        400: {"description": "Validation error"},
        409: {"description": "Email, mobile or national ID already registered"},
    },
})
def signup():
    payload = validate_or_abort(signup_schema, request.get_json(silent=True))

    try:
        user = accounts.register_voter(payload)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during signup")
        raise ServerError("Failed to register user")

    return {"message": "User registered successfully", "user": user_schema.dump(user)}, 201


@auth_bp.get("/login")
@redirect_if_authenticated
@swag_from({
    "tags": ["Auth"],
    "summary": "Login entry point (redirects to the profile when already logged in)",
    "responses": {200: {"description": "Not logged in"}, 302: {"description": "Already logged in"}},
})
def login_entry():
    return {"authenticated": False, "message": "Please log in"}, 200


@auth_bp.post("/login")
@swag_from({
    "tags": ["Auth"],
    "summary": "Login with email and password",
    "description": "Returns a session token and sets it as the HTTP-only `token` cookie.",
    "responses": {
        200: {"description": "Login successful, token returned"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
        403: {"description": "Account blocked"},
    },
})
def login():
    payload = validate_or_abort(login_req_schema, request.get_json(silent=True))

    try:
        user = accounts.authenticate(payload["email"], payload["password"])
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during login")
        raise ServerError("Authentication service error. Please try again.")

    return login_response(user, "Login successful")


@auth_bp.post("/logout")
@swag_from({
    "tags": ["Auth"],
    "summary": "Logout",
    "description": (
        "Clears the token cookie. The token itself stays valid until it expires "
        "unless JWT_REVOCATION_ENABLED is set, in which case it is revoked."
    ),
    "responses": {200: {"description": "Logged out"}},
})
def logout():
    response = jsonify({"message": "Logged out successfully"})
    unset_jwt_cookies(response)

    if not current_app.config.get("JWT_REVOCATION_ENABLED"):
        return response, 200

    identity = optional_identity()
    if identity is None:
        return response, 200

    claims = get_jwt()
    jti = claims.get("jti")
    exp = claims.get("exp")
    try:
        TokenBlocklist.revoke(jti, expires_at=datetime.utcfromtimestamp(exp) if exp else None)
        audit_log(
            action="LOGOUT_REVOKED",
            entity_type="AUTH",
            entity_id=identity.id,
            details={"jti": jti},
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during logout")
        raise ServerError("Logout failed")

    return response, 200
