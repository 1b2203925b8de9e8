import uuid
from typing import Optional, Dict, Any
from flask import request, g, current_app, has_request_context

from ..extensions import db
from ..models.audit_log import AuditLog


def _actor():
    """(user_id, role) of the authenticated caller, or (None, None)."""
    identity = getattr(g, "identity", None)
    if identity is None:
        return None, None
    return identity.id, identity.role.value


def _as_uuid(value):
    if value is None or isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def audit_log(
    action: str,
    entity_type: Optional[str] = None,
    entity_id=None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    """Adds an audit row to the current session; the caller commits."""
    user_id, role = _actor()

    ip = ua = None
    if has_request_context():
        ip = request.headers.get("X-Forwarded-For", request.remote_addr)
        ua = request.headers.get("User-Agent")

    log = AuditLog(
        actor_user_id=user_id,
        actor_role=role,
        action=action,
        entity_type=entity_type,
        entity_id=_as_uuid(entity_id),
        ip_address=ip,
        user_agent=ua[:255] if ua else None,
        details=details or None,
    )
    db.session.add(log)


def safe_audit(action: str, entity_type: str, entity_id=None, details: dict | None = None):
    """
    Best-effort audit for read-only endpoints and rejected attempts.
    Does not break the endpoint if auditing fails.
    """
    try:
        audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details or {},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Audit logging failed: %s", action)
