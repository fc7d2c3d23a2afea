# Overview: Service-layer operations for permission; role resolution and the requisition authorization policy.

"""
Role Resolution, Permission Checks and Requisition Authorization Policy

WHY: Every mutating requisition action is gated by who the caller is. The
checks live here, in one policy function, instead of being scattered across
routes and services.

DESIGN PRINCIPLES:
- Fail closed: Deny by default, require explicit permission grant
- Log denials only: Granted checks are not logged
- One policy entry point: authorize_requisition_action()
- The lifecycle engine never looks up roles itself; it asks this module
"""

from __future__ import annotations

from ..extensions import db
from ..models import UserRole, SecurityEvent, RequisitionList, PropertyApprover
from ..models.requisitions import STATUS_ORDER, STATUS_MANAGER_APPROVED, STATUS_REJECTED
from ..permissions import SUPERVISOR_ROLES, get_role_permissions
from ..validation import AuthorizationError
from procurement.time_utils import utcnow


# Requisition actions understood by the policy
ACTION_EDIT_DRAFT = "EDIT_DRAFT"
ACTION_SUBMIT = "SUBMIT"
ACTION_CANCEL_SUBMISSION = "CANCEL_SUBMISSION"
ACTION_DELETE_DRAFT = "DELETE_DRAFT"
ACTION_APPROVE = "APPROVE"
ACTION_REJECT = "REJECT"
ACTION_CLARIFY = "CLARIFY"
ACTION_REROUTE = "REROUTE"
ACTION_ACCEPT = "ACCEPT"
ACTION_COMPLETE = "COMPLETE"

CREATOR_ACTIONS = {ACTION_EDIT_DRAFT, ACTION_SUBMIT, ACTION_CANCEL_SUBMISSION, ACTION_DELETE_DRAFT}
MANAGER_ACTIONS = {ACTION_APPROVE, ACTION_REJECT, ACTION_CLARIFY}


class PermissionDeniedError(AuthorizationError):
    """Raised when user lacks required permission."""
    pass


def log_security_event(
    user_id: str | None,
    event_type: str,
    success: bool,
    resource: str | None = None,
    action: str | None = None,
    reason: str | None = None,
) -> SecurityEvent:
    """
    Log security event to audit trail.

    event_type examples:
    - PERMISSION_DENIED
    - OWNERSHIP_DENIED
    - REROUTE_DENIED
    - APPROVER_DENIED
    """
    event = SecurityEvent(
        user_id=user_id,
        event_type=event_type,
        resource=resource,
        action=action,
        success=success,
        reason=reason,
        occurred_at=utcnow(),
    )

    db.session.add(event)
    db.session.commit()

    return event


def get_user_role_names(user_id: str | None) -> list[str]:
    """Get list of role names for a user."""
    if not user_id:
        return []
    rows = db.session.query(UserRole.role).filter_by(user_id=user_id).all()
    return sorted({r[0] for r in rows})


def get_user_permissions(user_id: str | None) -> set[str]:
    """
    Get all permission codes for a user.

    Returns set of permission codes (e.g., {"CREATE_REQUISITION"}), the union
    of the default grants of every role the user holds.
    """
    return get_role_permissions(get_user_role_names(user_id))


def user_has_permission(user_id: str | None, permission_code: str) -> bool:
    return permission_code in get_user_permissions(user_id)


def is_supervisor(user_id: str | None) -> bool:
    return bool(SUPERVISOR_ROLES.intersection(get_user_role_names(user_id)))


def is_creator(user_id: str | None, requisition: RequisitionList) -> bool:
    return bool(user_id) and requisition.created_by == user_id


def is_property_approver(user_id: str | None, property_id: str | None) -> bool:
    if not user_id or not property_id:
        return False
    return db.session.query(PropertyApprover.id).filter_by(
        property_id=property_id, approver_user_id=user_id, is_active=True,
    ).first() is not None


def approver_property_ids(user_id: str | None) -> list[str]:
    """Properties the user actively approves for, sorted."""
    if not user_id:
        return []
    rows = (
        db.session.query(PropertyApprover.property_id)
        .filter_by(approver_user_id=user_id, is_active=True)
        .all()
    )
    return sorted({r[0] for r in rows})


def require_permission(
    user_id: str | None,
    permission_code: str,
    resource: str | None = None,
) -> None:
    """
    Require user to have permission, raise PermissionDeniedError if not.

    Denials are written to security_events.
    """
    if not user_has_permission(user_id, permission_code):
        log_security_event(
            user_id=user_id,
            event_type="PERMISSION_DENIED",
            success=False,
            resource=resource,
            action=permission_code,
            reason=f"Missing permission: {permission_code}",
        )
        raise PermissionDeniedError(f"Permission denied: {permission_code}")


def _deny(user_id: str | None, requisition: RequisitionList, action: str, event_type: str, message: str):
    log_security_event(
        user_id=user_id,
        event_type=event_type,
        success=False,
        resource=f"requisition:{requisition.id}",
        action=action,
        reason=message,
    )
    raise AuthorizationError(message)


def authorize_requisition_action(user_id: str | None, action: str, requisition: RequisitionList) -> None:
    """
    Single authorization policy for requisition actions.

    Rules:
    - Creator actions (edit/submit/cancel/delete draft): caller must be the creator
    - approve / reject / clarify: APPROVE_REQUISITION and an active approver of
      the requisition's property (supervisors act on any property)
    - reroute: only once the requisition is at or past manager_approved
      (checked first, regardless of role), then a supervisor-class role
    - accept: PROCESS_REQUISITION, and the caller must be the assignee when
      one is already set
    - complete: PROCESS_REQUISITION and either the current assignee or a supervisor

    Raises:
        AuthorizationError: caller may not perform the action. Nothing has
        been written to the requisition when this is raised.
    """
    if not user_id:
        raise AuthorizationError("Authentication required")

    resource = f"requisition:{requisition.id}"

    if action in CREATOR_ACTIONS:
        if not is_creator(user_id, requisition):
            _deny(
                user_id, requisition, action, "OWNERSHIP_DENIED",
                f"Only the creator of requisition {requisition.order_number} may do this",
            )
        return

    if action in MANAGER_ACTIONS:
        require_permission(user_id, "APPROVE_REQUISITION", resource=resource)
        if not is_supervisor(user_id) and not is_property_approver(user_id, requisition.property_id):
            _deny(
                user_id, requisition, action, "APPROVER_DENIED",
                f"You are not an approver for the property of requisition {requisition.order_number}",
            )
        return

    if action == ACTION_REROUTE:
        if requisition.status == STATUS_REJECTED or (
            requisition.status in STATUS_ORDER
            and STATUS_ORDER.index(requisition.status) < STATUS_ORDER.index(STATUS_MANAGER_APPROVED)
        ):
            _deny(
                user_id, requisition, action, "REROUTE_DENIED",
                f"Requisition {requisition.order_number} cannot be rerouted while '{requisition.status}'",
            )
        if not is_supervisor(user_id):
            _deny(
                user_id, requisition, action, "REROUTE_DENIED",
                "Only supervisors can reroute requisitions",
            )
        return

    if action == ACTION_ACCEPT:
        require_permission(user_id, "PROCESS_REQUISITION", resource=resource)
        if requisition.assigned_to and requisition.assigned_to != user_id:
            _deny(
                user_id, requisition, action, "PERMISSION_DENIED",
                f"Requisition {requisition.order_number} is assigned to someone else",
            )
        return

    if action == ACTION_COMPLETE:
        require_permission(user_id, "PROCESS_REQUISITION", resource=resource)
        if requisition.assigned_to != user_id and not is_supervisor(user_id):
            _deny(
                user_id, requisition, action, "PERMISSION_DENIED",
                f"Requisition {requisition.order_number} is assigned to someone else",
            )
        return

    raise ValueError(f"Unknown requisition action '{action}'")
