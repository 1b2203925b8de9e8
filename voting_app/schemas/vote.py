from marshmallow import fields

from ..extensions import ma


class VoteReceiptSchema(ma.Schema):
    candidate_id = fields.UUID(required=True)
    voted_at = fields.DateTime(required=True)


class LedgerVoterSchema(ma.Schema):
    id = fields.UUID()
    name = fields.Str()
    email = fields.Email()
    mobile = fields.Str()


class LedgerEntrySchema(ma.Schema):
    voter = fields.Nested(LedgerVoterSchema)
    voted_at = fields.DateTime()


class CandidateLedgerSchema(ma.Schema):
    id = fields.UUID()
    name = fields.Str()
    party = fields.Str()
    vote_count = fields.Int()
    votes = fields.List(fields.Nested(LedgerEntrySchema))
