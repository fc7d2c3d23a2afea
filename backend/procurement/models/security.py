from __future__ import annotations

from ..extensions import db
from procurement.time_utils import to_utc_z


class SecurityEvent(db.Model):
    """
    Authorization audit log.

    WHY: Denied workflow actions (a non-creator editing a draft, a manager
    trying to reroute) are worth keeping for review.

    IMMUTABLE: Never update or delete. Append-only for audit integrity.
    """
    __tablename__ = "security_events"
    __table_args__ = (
        db.Index("ix_security_events_user_type", "user_id", "event_type"),
        db.Index("ix_security_events_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.String(36), nullable=True, index=True)  # Nullable for anonymous

    # Event classification
    event_type = db.Column(db.String(64), nullable=False, index=True)  # PERMISSION_DENIED, ...
    resource = db.Column(db.String(128), nullable=True)  # e.g., requisition id or request path
    action = db.Column(db.String(64), nullable=True)     # e.g., "REROUTE_REQUISITION"

    success = db.Column(db.Boolean, nullable=False, index=True)
    reason = db.Column(db.Text, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "event_type": self.event_type,
            "resource": self.resource,
            "action": self.action,
            "success": self.success,
            "reason": self.reason,
            "occurred_at": to_utc_z(self.occurred_at),
        }
