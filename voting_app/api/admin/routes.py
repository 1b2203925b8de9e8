from datetime import datetime, timezone
from flask import Blueprint, request, current_app
from flasgger import swag_from
from sqlalchemy.exc import SQLAlchemyError

from ...errors import CandidateNotFound, ServerError, ValidationError
from ...extensions import db
from ...models.audit_log import AuditLog
from ...models.candidate import Candidate
from ...models.user import Role
from ...schemas.auth import LoginSchema
from ...schemas.candidate import CandidateCreateSchema, CandidateUpdateSchema, CandidateReadSchema
from ...schemas.user import UserSchema
from ...schemas.vote import CandidateLedgerSchema
from ...services import accounts, voting
from ...utils.audit import audit_log, safe_audit
from ...utils.rbac import auth_required, roles_required
from ...utils.validation import validate_or_abort
from ..auth.routes import login_response

admin_bp = Blueprint("admin", __name__)

login_req_schema = LoginSchema()
candidate_create_schema = CandidateCreateSchema()
candidate_update_schema = CandidateUpdateSchema()
candidate_read_schema = CandidateReadSchema()
candidate_read_many_schema = CandidateReadSchema(many=True)
user_many_schema = UserSchema(many=True)
user_schema = UserSchema()
ledger_schema = CandidateLedgerSchema(many=True)


def _parse_iso(s: str) -> datetime:
    """
    Accepts:
      - 'YYYY-MM-DDTHH:MM:SS'
      - 'YYYY-MM-DDTHH:MM:SSZ'
      - 'YYYY-MM-DDTHH:MM:SS+00:00'
    Returns a naive UTC datetime.
    """
    s = (s or "").strip()
    if not s:
        raise ValueError("Empty datetime string")

    if s.endswith("Z"):
        s = s[:-1] + "+00:00"

    dt = datetime.fromisoformat(s)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def _get_candidate(candidate_id) -> Candidate:
    candidate = Candidate.find_by_id(candidate_id)
    if not candidate:
        raise CandidateNotFound()
    return candidate


@admin_bp.post("/login")
@swag_from({
    "tags": ["Admin"],
    "summary": "Admin login",
    "description": "Same as /api/auth/login but only accepts admin accounts.",
    "responses": {
        200: {"description": "Login successful, token returned"},
        400: {"description": "Validation error"},
        401: {"description": "Invalid credentials"},
    },
})
def admin_login():
    payload = validate_or_abort(login_req_schema, request.get_json(silent=True))

    try:
        user = accounts.authenticate(payload["email"], payload["password"], role=Role.ADMIN)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error during admin login")
        raise ServerError("Authentication service error. Please try again.")

    return login_response(user, "Admin login successful")


@admin_bp.get("/dashboard")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "User, candidate and vote totals",
    "responses": {200: {"description": "Stats"}, 403: {"description": "Forbidden"}},
})
def dashboard():
    return {"stats": voting.dashboard_stats()}, 200


@admin_bp.get("/candidates")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "List candidates",
    "responses": {200: {"description": "OK"}, 403: {"description": "Forbidden"}},
})
def list_candidates():
    return {"candidates": candidate_read_many_schema.dump(Candidate.find_all())}, 200


@admin_bp.post("/candidates")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Add a candidate",
    "parameters": [{
        "in": "body",
        "name": "body",
        "required": True,
        "schema": {
            "type": "object",
            "properties": {
                "name": {"type": "string", "example": "R. Mehta"},
                "party": {"type": "string", "example": "Independent"},
                "age": {"type": "integer", "example": 45},
            },
            "required": ["name", "party", "age"],
        },
    }],
    "responses": {201: {"description": "Created"}, 400: {"description": "Validation error"}, 403: {"description": "Forbidden"}},
})
def create_candidate():
    payload = validate_or_abort(candidate_create_schema, request.get_json(silent=True))

    try:
        candidate = Candidate.create(
            name=payload["name"].strip(),
            party=payload["party"].strip(),
            age=payload["age"],
        )
        db.session.flush()

        audit_log(
            action="CANDIDATE_CREATED",
            entity_type="CANDIDATE",
            entity_id=candidate.id,
            details={"name": candidate.name, "party": candidate.party},
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error creating candidate")
        raise ServerError("Failed to create candidate")

    return {"candidate": candidate_read_schema.dump(candidate)}, 201


@admin_bp.put("/candidates/<uuid:candidate_id>")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Edit a candidate's name, party or age",
    "responses": {200: {}, 400: {}, 403: {}, 404: {}},
})
def update_candidate(candidate_id):
    candidate = _get_candidate(candidate_id)
    payload = validate_or_abort(candidate_update_schema, request.get_json(silent=True))

    try:
        changed = candidate.update_fields(**payload)
        audit_log(
            action="CANDIDATE_UPDATED",
            entity_type="CANDIDATE",
            entity_id=candidate.id,
            details={"updated_fields": changed},
        )
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error updating candidate")
        raise ServerError("Failed to update candidate")

    return {"candidate": candidate_read_schema.dump(candidate)}, 200


@admin_bp.delete("/candidates/<uuid:candidate_id>")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Delete a candidate together with its vote ledger",
    "responses": {200: {}, 403: {}, 404: {}},
})
def delete_candidate(candidate_id):
    candidate = _get_candidate(candidate_id)

    try:
        audit_log(
            action="CANDIDATE_DELETED",
            entity_type="CANDIDATE",
            entity_id=candidate.id,
            details={"name": candidate.name, "vote_count": candidate.vote_count},
        )
        Candidate.delete(candidate)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error deleting candidate")
        raise ServerError("Failed to delete candidate")

    return {"message": "Candidate deleted successfully"}, 200


@admin_bp.get("/users")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "List every registered user",
    "responses": {200: {"description": "Users"}, 403: {"description": "Forbidden"}},
})
def list_users():
    users = accounts.list_users()
    return {"count": len(users), "users": user_many_schema.dump(users)}, 200


def _set_blocked(user_id, blocked: bool):
    try:
        user = accounts.set_blocked(user_id, blocked)
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("DB error changing block status")
        raise ServerError("Failed to update user")
    return {"user": user_schema.dump(user)}, 200


@admin_bp.post("/users/<uuid:user_id>/block")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Block a user from logging in",
    "responses": {200: {}, 403: {}, 404: {}},
})
def block_user(user_id):
    return _set_blocked(user_id, True)


@admin_bp.post("/users/<uuid:user_id>/unblock")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Unblock a user",
    "responses": {200: {}, 403: {}, 404: {}},
})
def unblock_user(user_id):
    return _set_blocked(user_id, False)


@admin_bp.get("/vote-logs")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Full vote ledger per candidate",
    "responses": {200: {"description": "Ledger"}, 403: {"description": "Forbidden"}},
})
def vote_logs():
    candidates = voting.vote_ledger()

    safe_audit(
        action="ADMIN_VOTE_LOGS_VIEWED",
        entity_type="ADMIN",
        details={"candidates": len(candidates)},
    )
    return {"candidates": ledger_schema.dump(candidates)}, 200


@admin_bp.get("/audit-logs")
@auth_required
@roles_required(Role.ADMIN)
@swag_from({
    "tags": ["Admin"],
    "security": [{"BearerAuth": []}],
    "summary": "Query audit logs",
    "parameters": [
        {"in": "query", "name": "action", "type": "string", "required": False},
        {"in": "query", "name": "entity_type", "type": "string", "required": False},
        {"in": "query", "name": "from", "type": "string", "required": False, "description": "ISO date-time"},
        {"in": "query", "name": "to", "type": "string", "required": False, "description": "ISO date-time"},
        {"in": "query", "name": "limit", "type": "integer", "required": False, "default": 50},
        {"in": "query", "name": "offset", "type": "integer", "required": False, "default": 0},
    ],
    "responses": {200: {"description": "Logs"}, 400: {"description": "Bad request"}, 403: {"description": "Forbidden"}},
})
def audit_logs():
    action = request.args.get("action")
    entity_type = request.args.get("entity_type")
    from_dt = request.args.get("from")
    to_dt = request.args.get("to")

    try:
        limit = min(int(request.args.get("limit", 50)), 200)
        offset = int(request.args.get("offset", 0))
    except ValueError:
        raise ValidationError("Invalid limit/offset")
    if limit < 0 or offset < 0:
        raise ValidationError("limit and offset must not be negative")

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if entity_type:
        q = q.filter(AuditLog.entity_type == entity_type)

    try:
        if from_dt:
            q = q.filter(AuditLog.created_at >= _parse_iso(from_dt))
        if to_dt:
            q = q.filter(AuditLog.created_at <= _parse_iso(to_dt))
    except ValueError:
        raise ValidationError("Invalid from/to datetime. Use ISO format.")

    try:
        total = q.count()
        logs = q.order_by(AuditLog.created_at.desc()).limit(limit).offset(offset).all()
    except SQLAlchemyError:
        current_app.logger.exception("DB error querying audit logs")
        raise ServerError("Failed to query audit logs")

    return {
        "total": total,
        "limit": limit,
        "offset": offset,
        "logs": [
            {
                "id": str(entry.id),
                "created_at": entry.created_at.isoformat() + "Z",
                "actor_user_id": str(entry.actor_user_id) if entry.actor_user_id else None,
                "actor_role": entry.actor_role,
                "action": entry.action,
                "entity_type": entry.entity_type,
                "entity_id": str(entry.entity_id) if entry.entity_id else None,
                "ip_address": entry.ip_address,
                "details": entry.details,
            }
            for entry in logs
        ],
    }, 200
