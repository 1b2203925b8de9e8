from marshmallow import fields

from ..extensions import ma


class CandidateResultSchema(ma.Schema):
    id = fields.UUID(required=True)
    name = fields.Str(required=True)
    party = fields.Str(required=True)
    votes = fields.Int(required=True)
    percentage = fields.Float(required=True)


class ResultsSchema(ma.Schema):
    total_votes = fields.Int(required=True)
    candidates = fields.List(fields.Nested(CandidateResultSchema), required=True)
