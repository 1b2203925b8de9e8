import uuid
from datetime import datetime
from sqlalchemy import Uuid
from ..extensions import db


class Vote(db.Model):
    """One row of a candidate's vote ledger. Never edited or removed in-band."""

    __tablename__ = "votes"

    id = db.Column(Uuid(), primary_key=True, default=uuid.uuid4)

    candidate_id = db.Column(Uuid(), db.ForeignKey("candidates.id", ondelete="CASCADE"), nullable=False, index=True)
    voter_id = db.Column(Uuid(), db.ForeignKey("users.id"), nullable=False)

    voted_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    voter = db.relationship("User", lazy="joined")

    __table_args__ = (
        # A voter appears in at most one ledger
        db.UniqueConstraint("voter_id", name="uq_votes_voter"),
    )
