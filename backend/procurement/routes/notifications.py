from __future__ import annotations

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import require_auth
from ..extensions import db
from ..services import communications_service
from ..validation import NotFoundError

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    unread_only = request.args.get("unread") == "1"
    limit = request.args.get("limit", default=50, type=int)
    rows = communications_service.list_notifications(g.user_id, unread_only=unread_only, limit=limit)
    return jsonify({"notifications": [n.to_dict() for n in rows]})


@notifications_bp.route("/<int:notification_id>/read", methods=["POST"])
@require_auth
def mark_notification_read(notification_id: int):
    try:
        notification = communications_service.mark_read(notification_id, g.user_id)
        return jsonify({"notification": notification.to_dict()})
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Failed to mark notification %s read", notification_id)
        return jsonify({"error": "Internal server error"}), 500
