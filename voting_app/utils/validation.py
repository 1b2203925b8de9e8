from marshmallow import ValidationError as SchemaValidationError

from ..errors import ValidationError


def validate_or_abort(schema, payload):
    """Load ``payload`` through ``schema``; unknown fields are dropped by the schemas."""
    try:
        return schema.load(payload or {})
    except SchemaValidationError as e:
        raise ValidationError(details=e.messages)
