from marshmallow import Schema, fields, validate, validates_schema, ValidationError, EXCLUDE

from ..extensions import ma


class CandidateCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    party = fields.Str(required=True, validate=validate.Length(min=1, max=120))
    age = fields.Int(required=True, validate=validate.Range(min=18, max=130))


class CandidateUpdateSchema(Schema):
    """The ledger and counter are never editable."""

    class Meta:
        unknown = EXCLUDE

    name = fields.Str(validate=validate.Length(min=1, max=120))
    party = fields.Str(validate=validate.Length(min=1, max=120))
    age = fields.Int(validate=validate.Range(min=18, max=130))

    @validates_schema
    def at_least_one_field(self, data, **kwargs):
        if not data:
            raise ValidationError("At least one field must be provided")


class CandidateReadSchema(ma.Schema):
    id = fields.UUID()
    name = fields.Str()
    party = fields.Str()
    age = fields.Int()
    vote_count = fields.Int()
    created_at = fields.DateTime()
