import uuid
from datetime import datetime
from sqlalchemy import Uuid, update, func
from ..extensions import db
from .vote import Vote


class Candidate(db.Model):
    __tablename__ = "candidates"

    EDITABLE_FIELDS = ("name", "party", "age")

    id = db.Column(Uuid(), primary_key=True, default=uuid.uuid4)

    name = db.Column(db.String(120), nullable=False)
    party = db.Column(db.String(120), nullable=False)
    age = db.Column(db.Integer, nullable=False)

    # Always equal to len(votes)
    vote_count = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    votes = db.relationship(
        "Vote",
        backref="candidate",
        lazy=True,
        order_by="Vote.voted_at",
        cascade="all, delete-orphan",
    )

    @staticmethod
    def find_all(by_votes: bool = False):
        q = Candidate.query
        if by_votes:
            return q.order_by(Candidate.vote_count.desc(), Candidate.name.asc()).all()
        return q.order_by(Candidate.created_at.asc()).all()

    @staticmethod
    def find_by_id(candidate_id):
        return db.session.get(Candidate, candidate_id)

    @staticmethod
    def create(**fields) -> "Candidate":
        candidate = Candidate(vote_count=0, **fields)
        db.session.add(candidate)
        return candidate

    @staticmethod
    def delete(candidate: "Candidate") -> None:
        db.session.delete(candidate)

    @staticmethod
    def count_all() -> int:
        return db.session.query(func.count(Candidate.id)).scalar() or 0

    @staticmethod
    def total_votes() -> int:
        return db.session.query(func.coalesce(func.sum(Candidate.vote_count), 0)).scalar() or 0

    @staticmethod
    def append_vote_and_increment(candidate_id, voter_id, voted_at: datetime) -> Vote | None:
        """
        Increment the counter with a single UPDATE and append the ledger row in
        the caller's transaction. Returns None when the candidate no longer
        exists; the caller must roll back in that case.
        """
        result = db.session.execute(
            update(Candidate)
            .where(Candidate.id == candidate_id)
            .values(vote_count=Candidate.vote_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None

        vote = Vote(candidate_id=candidate_id, voter_id=voter_id, voted_at=voted_at)
        db.session.add(vote)
        db.session.flush()
        return vote

    def update_fields(self, **fields) -> list[str]:
        changed = []
        for name in self.EDITABLE_FIELDS:
            if name in fields:
                setattr(self, name, fields[name])
                changed.append(name)
        return changed
