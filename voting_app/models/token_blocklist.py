from datetime import datetime
from ..extensions import db


class TokenBlocklist(db.Model):
    """Revoked token ids, consulted only when JWT_REVOCATION_ENABLED is on."""

    __tablename__ = "token_blocklist"

    id = db.Column(db.Integer, primary_key=True)
    jti = db.Column(db.String(64), nullable=False, unique=True, index=True)
    expires_at = db.Column(db.DateTime, nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    @staticmethod
    def is_blocklisted(jti: str) -> bool:
        return db.session.query(TokenBlocklist.id).filter_by(jti=jti).scalar() is not None

    @staticmethod
    def revoke(jti: str, expires_at: datetime | None = None) -> None:
        if not TokenBlocklist.is_blocklisted(jti):
            db.session.add(TokenBlocklist(jti=jti, expires_at=expires_at))

    @staticmethod
    def purge_expired(now: datetime | None = None) -> int:
        """Drop entries whose token would have expired anyway."""
        now = now or datetime.utcnow()
        return (
            TokenBlocklist.query
            .filter(TokenBlocklist.expires_at.isnot(None), TokenBlocklist.expires_at < now)
            .delete(synchronize_session=False)
        )
