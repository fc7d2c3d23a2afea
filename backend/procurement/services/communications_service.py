# Overview: Service-layer operations for communications; in-app notifications for requisition events.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Notification
from ..validation import NotFoundError
from procurement.time_utils import utcnow


CATEGORY_REQUISITION = "requisition"
CATEGORY_REROUTE = "reroute"
CATEGORY_CLARIFICATION = "clarification"
CATEGORY_SYSTEM = "system"
VALID_CATEGORIES = {CATEGORY_REQUISITION, CATEGORY_REROUTE, CATEGORY_CLARIFICATION, CATEGORY_SYSTEM}


def notify_user(
    user_id: str | None,
    message: str,
    category: str = CATEGORY_REQUISITION,
    action_link: str | None = None,
    title: str | None = None,
) -> Notification | None:
    """
    Fire-and-forget notification to one user.

    Called AFTER the triggering transition has been committed. Any failure is
    logged and swallowed here so it can never undo or block that transition.
    Returns the notification, or None when nothing was stored.
    """
    if not user_id:
        return None
    if not current_app.config.get("NOTIFICATIONS_ENABLED", True):
        return None

    if category not in VALID_CATEGORIES:
        category = CATEGORY_SYSTEM

    try:
        notification = Notification(
            user_id=user_id,
            title=title or "Requisition update",
            message=message,
            category=category,
            action_link=action_link,
            is_read=False,
            created_at=utcnow(),
        )
        db.session.add(notification)
        db.session.commit()
        return notification
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to deliver notification to user %s", user_id)
        return None


def list_notifications(user_id: str, *, unread_only: bool = False, limit: int = 50) -> list[Notification]:
    q = db.session.query(Notification).filter_by(user_id=user_id)
    if unread_only:
        q = q.filter(Notification.is_read.is_(False))
    limit = max(1, min(limit, 200))
    return q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def mark_read(notification_id: int, user_id: str) -> Notification:
    notification = (
        db.session.query(Notification)
        .filter_by(id=notification_id, user_id=user_id)
        .first()
    )
    if notification is None:
        raise NotFoundError(f"Notification {notification_id} not found")

    if not notification.is_read:
        notification.is_read = True
        notification.read_at = utcnow()
        db.session.commit()
    return notification
