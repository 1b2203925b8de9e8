from marshmallow import Schema, fields, validate, EXCLUDE, ValidationError

from ..utils.security import MAX_PASSWORD_BYTES, password_fits


def _fits_bcrypt(value: str) -> None:
    if not password_fits(value):
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


class SignupSchema(Schema):
    """Any ``role`` the client sends is dropped: signup only ever creates voters."""

    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    age = fields.Int(required=True, validate=validate.Range(min=18, max=130))
    email = fields.Email(required=True)
    mobile = fields.Str(required=True, validate=validate.Regexp(r"^\+?\d{7,15}$", error="Invalid mobile number"))
    password = fields.Str(
        required=True,
        load_only=True,
        validate=[validate.Length(min=8, max=128), _fits_bcrypt],
    )
    national_id = fields.Str(required=True, validate=validate.Regexp(r"^\d{4,20}$", error="Invalid national ID number"))
    address = fields.Str(required=True, validate=validate.Length(min=1, max=255))


class LoginSchema(Schema):
    """Schema for login request"""

    class Meta:
        unknown = EXCLUDE

    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=validate.Length(min=1, max=128))
