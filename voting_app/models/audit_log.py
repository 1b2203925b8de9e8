import uuid
from datetime import datetime
from sqlalchemy import Uuid
from ..extensions import db


class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(Uuid(), primary_key=True, default=uuid.uuid4)

    # Nullable for anonymous requests (signup, failed logins)
    actor_user_id = db.Column(Uuid(), nullable=True, index=True)
    actor_role = db.Column(db.String(30), nullable=True)

    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. VOTE_CAST
    entity_type = db.Column(db.String(50), nullable=True, index=True)  # e.g. USER, CANDIDATE, VOTE, AUTH
    entity_id = db.Column(Uuid(), nullable=True, index=True)

    ip_address = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    details = db.Column(db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, index=True)
