"""
Casting votes and reading the tally.

A voter goes from "not voted" to "voted" exactly once. The transition is a
single conditional UPDATE on the users row, committed in the same transaction
as the candidate's counter increment and ledger row, so two concurrent
requests for the same voter can never both succeed.
"""
from dataclasses import dataclass, field
from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..errors import AlreadyVoted, CandidateNotFound, VoterNotFound
from ..models.candidate import Candidate
from ..models.user import User
from ..utils.audit import audit_log, safe_audit


@dataclass(frozen=True)
class VoteReceipt:
    candidate_id: object
    voted_at: datetime


@dataclass(frozen=True)
class CandidateResult:
    id: object
    name: str
    party: str
    votes: int
    percentage: float


@dataclass
class ResultsSummary:
    total_votes: int
    candidates: list = field(default_factory=list)


def _load_voter(voter_id):
    return User.find_by_id(voter_id)


def claim_ballot(voter_id) -> bool:
    """
    Flip is_voted from False to True in one statement.
    True only for the caller that performed the flip.
    """
    result = db.session.execute(
        update(User)
        .where(User.id == voter_id, User.is_voted.is_(False))
        .values(is_voted=True)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def cast_vote(voter_id, candidate_id) -> VoteReceipt:
    voter = _load_voter(voter_id)
    if voter is None:
        raise VoterNotFound()

    if voter.is_voted:
        safe_audit(
            action="VOTE_DUPLICATE_ATTEMPT",
            entity_type="VOTE",
            details={"candidate_id": str(candidate_id)},
        )
        raise AlreadyVoted()

    candidate = Candidate.find_by_id(candidate_id)
    if candidate is None:
        raise CandidateNotFound()

    voted_at = datetime.utcnow()
    try:
        if not claim_ballot(voter_id):
            # Another request for this voter got there first
            raise AlreadyVoted()

        vote = Candidate.append_vote_and_increment(candidate_id, voter_id, voted_at)
        if vote is None:
            # Candidate deleted between the read above and the update
            raise CandidateNotFound()

        audit_log(
            action="VOTE_CAST",
            entity_type="VOTE",
            entity_id=vote.id,
            details={"candidate_id": str(candidate_id)},
        )
        db.session.commit()

    except (AlreadyVoted, CandidateNotFound):
        db.session.rollback()
        raise
    except IntegrityError:
        # Unique ledger row per voter
        db.session.rollback()
        current_app.logger.info("Duplicate vote attempt voter_id=%s", voter_id)
        raise AlreadyVoted()

    current_app.logger.info("Vote recorded voter_id=%s candidate_id=%s", voter_id, candidate_id)
    return VoteReceipt(candidate_id=candidate_id, voted_at=voted_at)


def list_results() -> ResultsSummary:
    candidates = Candidate.find_all(by_votes=True)
    total_votes = sum(c.vote_count or 0 for c in candidates)

    results = []
    for c in candidates:
        v = c.vote_count or 0
        pct = v / total_votes * 100.0 if total_votes > 0 else 0.0
        results.append(CandidateResult(
            id=c.id,
            name=c.name,
            party=c.party,
            votes=v,
            percentage=pct,
        ))

    return ResultsSummary(total_votes=total_votes, candidates=results)


def vote_ledger():
    return Candidate.query.order_by(Candidate.name.asc()).all()


def dashboard_stats() -> dict:
    return {
        "total_users": User.count_all(),
        "total_candidates": Candidate.count_all(),
        "total_votes": int(Candidate.total_votes()),
    }
