"""
SQLAlchemy ORM models.
Only operational state lives in the database: cached upstream responses
and the API audit trail. Drug and interaction data are never persisted.
"""

from datetime import datetime, timezone
from petcheck.database import db


def utcnow():
    """Naive UTC timestamp, matching the naive DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class CacheEntry(db.Model):
    __tablename__ = "cache_entries"

    key = db.Column(db.String(512), primary_key=True)
    payload = db.Column(db.Text, nullable=False)         # JSON-encoded value
    cached_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    expires_at = db.Column(db.DateTime, nullable=False)  # end of fresh window
    stale_until = db.Column(db.DateTime, nullable=False, index=True)

    def to_dict(self):
        return {
            "key": self.key,
            "cached_at": self.cached_at.isoformat() if self.cached_at else None,
            "expires_at": self.expires_at.isoformat() if self.expires_at else None,
            "stale_until": self.stale_until.isoformat() if self.stale_until else None,
        }


class AuditLog(db.Model):
    __tablename__ = "audit_log"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(255))
    endpoint = db.Column(db.String(255))
    method = db.Column(db.String(10))
    status_code = db.Column(db.Integer)
    request_body = db.Column(db.Text)
    response_summary = db.Column(db.Text)
    error_code = db.Column(db.String(10))
    created_at = db.Column(db.DateTime, default=utcnow)
