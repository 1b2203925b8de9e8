from marshmallow import Schema, fields, validate, validates_schema, ValidationError, EXCLUDE

from ..extensions import ma
from ..models.user import Role
from ..utils.security import mask_national_id


class UserSchema(ma.Schema):
    id = fields.UUID()
    name = fields.Str()
    age = fields.Int()
    email = fields.Email()
    mobile = fields.Str()
    address = fields.Str()
    national_id_last4 = fields.Function(lambda u: mask_national_id(u.national_id))
    role = fields.Enum(Role, by_value=True)
    is_voted = fields.Bool()
    is_blocked = fields.Bool()
    created_at = fields.DateTime()


class ProfileUpdateSchema(Schema):
    """Identity fields (email, national ID) and role are silently dropped."""

    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1, max=120))
    age = fields.Int(validate=validate.Range(min=18, max=130))
    mobile = fields.Str(validate=validate.Regexp(r"^\+?\d{7,15}$", error="Invalid mobile number"))
    address = fields.Str(validate=validate.Length(min=1, max=255))

    @validates_schema
    def at_least_one_field(self, data, **kwargs):
        if not data:
            raise ValidationError("No valid fields to update")
