from __future__ import annotations

from ..extensions import db
from procurement.time_utils import to_utc_z


class Notification(db.Model):
    """
    In-app notification for a single user.

    Written by the workflow as fire-and-forget side effects of requisition
    transitions (requester on reject/clarify/approve, assignee on reroute).
    Delivery beyond the in-app inbox is out of scope.
    """
    __tablename__ = "notifications"
    __table_args__ = (
        db.Index("ix_notifications_user_read", "user_id", "is_read"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(32), nullable=False, default="requisition")  # requisition, reroute, system
    action_link = db.Column(db.String(512), nullable=True)

    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "category": self.category,
            "action_link": self.action_link,
            "is_read": self.is_read,
            "read_at": to_utc_z(self.read_at),
            "created_at": to_utc_z(self.created_at),
        }
