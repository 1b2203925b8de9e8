from flask import Blueprint, request, current_app
from flasgger import swag_from
from sqlalchemy.exc import SQLAlchemyError

from ...errors import ServerError
from ...extensions import db
from ...schemas.user import UserSchema, ProfileUpdateSchema
from ...services import accounts
from ...utils.rbac import auth_required, current_identity
from ...utils.validation import validate_or_abort

users_bp = Blueprint("users", __name__)

user_schema = UserSchema()
profile_update_schema = ProfileUpdateSchema()


@users_bp.get("/me")
@auth_required
@swag_from({
    "tags": ["Users"],
    "security": [{"BearerAuth": []}],
    "summary": "Get current user profile",
    "description": "Only the last four digits of the national ID are returned.",
    "responses": {
        200: {"description": "User profile"},
        401: {"description": "Unauthenticated"},
        404: {"description": "User not found"},
    },
})
def profile():
    user = accounts.get_user(current_identity().id)
    return {"profile": user_schema.dump(user)}, 200


@users_bp.patch("/me")
@auth_required
@swag_from({
    "tags": ["Users"],
    "security": [{"BearerAuth": []}],
    "summary": "Update name, age, mobile or address",
    "description": "Email, national ID and role cannot be changed and are ignored if sent.",
    "responses": {
        200: {"description": "Updated profile"},
        400: {"description": "No valid fields to update"},
        401: {"description": "Unauthenticated"},
        409: {"description": "Mobile number already in use"},
    },
})
def update_profile():
    payload = validate_or_abort(profile_update_schema, request.get_json(silent=True))

    try:
        user = accounts.update_profile(current_identity().id, payload)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error updating profile")
        raise ServerError("Failed to update profile")

    return {"message": "Profile updated", "profile": user_schema.dump(user)}, 200
