# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User
from .services import permission_service
from .services.permission_service import PermissionDeniedError


USER_HEADER = "X-User-Id"


def _is_authenticated() -> bool:
    return hasattr(g, 'current_user')


def require_auth(f):
    """
    Establish the calling user.

    Authentication happens at the upstream gateway, which forwards the
    verified user id in the X-User-Id header. This decorator only resolves
    that id to an active User row.

    Sets:
    - g.current_user: The User object
    - g.user_id: its id

    Returns 401 if the header is missing or names an unknown/inactive user.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user_id = (request.headers.get(USER_HEADER) or "").strip()
        if not user_id:
            return jsonify({"error": "Authentication required"}), 401

        user = db.session.get(User, user_id)
        if user is None or not user.is_active:
            return jsonify({"error": "Unknown or inactive user"}), 401

        g.current_user = user
        g.user_id = user.id

        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """
    Require a specific permission. Use after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(
                    user_id=g.user_id,
                    permission_code=permission_code,
                    resource=request.path,
                )
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
