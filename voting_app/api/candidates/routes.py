from flask import Blueprint, current_app
from flasgger import swag_from
from sqlalchemy.exc import SQLAlchemyError

from ...errors import ServerError
from ...extensions import db
from ...models.candidate import Candidate
from ...models.user import Role
from ...schemas.candidate import CandidateReadSchema
from ...schemas.results import ResultsSchema
from ...schemas.vote import VoteReceiptSchema
from ...services import accounts, voting
from ...utils.rbac import auth_required, roles_required, current_identity

candidates_bp = Blueprint("candidates", __name__)

candidate_read_many_schema = CandidateReadSchema(many=True)
results_schema = ResultsSchema()
receipt_schema = VoteReceiptSchema()


@candidates_bp.get("/")
@auth_required
@swag_from({
    "tags": ["Candidates"],
    "security": [{"BearerAuth": []}],
    "summary": "List candidates with the caller's voting status",
    "responses": {200: {"description": "OK"}, 401: {"description": "Unauthenticated"}},
})
def list_candidates():
    user = accounts.get_user(current_identity().id)
    candidates = Candidate.find_all()
    return {
        "is_voted": user.is_voted,
        "candidates": candidate_read_many_schema.dump(candidates),
    }, 200


@candidates_bp.post("/<uuid:candidate_id>/vote")
@auth_required
@roles_required(Role.VOTER)
@swag_from({
    "tags": ["Voting"],
    "security": [{"BearerAuth": []}],
    "summary": "Cast the caller's single vote",
    "responses": {
        201: {"description": "Vote recorded"},
        401: {"description": "Unauthenticated"},
        403: {"description": "Only voters can vote"},
        404: {"description": "Voter or candidate not found"},
        409: {"description": "Already voted"},
        500: {"description": "Server error"},
    },
})
def vote(candidate_id):
    try:
        receipt = voting.cast_vote(current_identity().id, candidate_id)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error while casting vote")
        raise ServerError("Failed to record vote")

    return {"message": "Vote recorded", "receipt": receipt_schema.dump(receipt)}, 201


@candidates_bp.get("/results")
@auth_required
@swag_from({
    "tags": ["Results"],
    "security": [{"BearerAuth": []}],
    "summary": "Vote tally",
    "description": (
        "Candidates ordered by votes (highest first), with total votes and each "
        "candidate's percentage of the total (0 when nobody has voted)."
    ),
    "responses": {200: {"description": "Results"}, 401: {"description": "Unauthenticated"}},
})
def results():
    return results_schema.dump(voting.list_results()), 200
