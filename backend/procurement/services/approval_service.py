# Overview: Service-layer operations for requisition approval; manager and supervisor actions on submitted requisitions.

"""
Requisition Approval & Reroute Service

WHY: Once a requisition leaves draft, every change is made by someone other
than the requester: a manager approves, rejects or asks for clarification; a
supervisor reroutes; a purchase executive accepts and completes. Each action
here follows the same sequence:

    1. Validate input (empty reason/message fails before any read or write)
    2. Load the requisition with a row lock
    3. Ask permission_service.authorize_requisition_action()
    4. Mutate through lifecycle_service (state machine + history)
    5. Commit
    6. Notify the affected user (fire-and-forget, after commit)

A notification failure never rolls back the transition it follows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ..extensions import db
from ..models import RequisitionList, User
from ..models.requisitions import (
    STATUS_PENDING_MANAGER_APPROVAL,
    STATUS_MANAGER_APPROVED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_REJECTED,
)
from ..permissions import ROLE_PURCHASE_EXECUTIVE
from ..validation import ValidationError, NotFoundError, AuthorizationError, clean_text, require_text
from . import communications_service, lifecycle_service, permission_service
from .lifecycle_service import LifecycleError
from procurement.time_utils import utcnow


REQUISITION_LINK = "/procurement/requisitions/{id}"


@dataclass(frozen=True)
class BulkApprovalResult:
    approved: list[str]
    failed: list[tuple[str, str]]


def _link(requisition: RequisitionList) -> str:
    return REQUISITION_LINK.format(id=requisition.id)


def _require_pending(requisition: RequisitionList, verb: str) -> None:
    if requisition.status != STATUS_PENDING_MANAGER_APPROVAL:
        raise LifecycleError(
            f"Cannot {verb} requisition {requisition.order_number}: "
            f"current status is '{requisition.status}', must be '{STATUS_PENDING_MANAGER_APPROVAL}'"
        )


# =============================================================================
# MANAGER ACTIONS
# =============================================================================

def approve_requisition(
    requisition_id: str,
    *,
    actor_id: str,
    remarks: str | None = None,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Approve a pending requisition (pending_manager_approval -> manager_approved).

    Records manager_id, manager_approved_at and optional remarks.
    """
    remarks = clean_text(remarks)
    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_APPROVE, requisition)
    _require_pending(requisition, "approve")

    moment = now or utcnow()
    lifecycle_service.transition_status(
        requisition,
        STATUS_MANAGER_APPROVED,
        actor_id=actor_id,
        action=lifecycle_service.ACTION_APPROVE,
        remarks=remarks or "Approved by manager",
        now=moment,
    )
    requisition.manager_id = actor_id
    requisition.manager_approved_at = moment
    requisition.manager_remarks = remarks
    db.session.commit()

    communications_service.notify_user(
        requisition.created_by,
        f"Requisition {requisition.order_number} was approved"
        + (f": {remarks}" if remarks else ""),
        category=communications_service.CATEGORY_REQUISITION,
        action_link=_link(requisition),
        title="Requisition approved",
    )
    return requisition


def reject_requisition(
    requisition_id: str,
    *,
    actor_id: str,
    reason: str,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Reject a pending requisition (terminal).

    Raises:
        ValidationError: reason is empty (nothing is written)
    """
    reason = require_text(reason, "Rejection reason")
    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_REJECT, requisition)
    _require_pending(requisition, "reject")

    lifecycle_service.transition_status(
        requisition,
        STATUS_REJECTED,
        actor_id=actor_id,
        action=lifecycle_service.ACTION_REJECT,
        remarks=reason,
        now=now,
    )
    requisition.manager_id = actor_id
    requisition.rejection_reason = reason
    db.session.commit()

    communications_service.notify_user(
        requisition.created_by,
        f"Requisition {requisition.order_number} was rejected: {reason}",
        category=communications_service.CATEGORY_REQUISITION,
        action_link=_link(requisition),
        title="Requisition rejected",
    )
    return requisition


def request_clarification(
    requisition_id: str,
    *,
    actor_id: str,
    message: str,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Ask the requester for more information. Status does not change.

    The message is kept in the status history and sent to the requester.
    """
    message = require_text(message, "Clarification message")
    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_CLARIFY, requisition)
    _require_pending(requisition, "request clarification on")

    lifecycle_service.record_history(
        requisition,
        action=lifecycle_service.ACTION_CLARIFY,
        old_status=requisition.status,
        new_status=requisition.status,
        changed_by=actor_id,
        remarks=message,
        now=now,
    )
    db.session.commit()

    communications_service.notify_user(
        requisition.created_by,
        f"Clarification requested on {requisition.order_number}: {message}",
        category=communications_service.CATEGORY_CLARIFICATION,
        action_link=_link(requisition),
        title="Clarification requested",
    )
    return requisition


def list_pending_approvals(user_id: str, *, limit: int | None = None) -> list[RequisitionList]:
    """
    Approval queue for a user: pending requisitions of the properties they
    approve for. Supervisors see every property.
    """
    property_ids = None
    if not permission_service.is_supervisor(user_id):
        property_ids = permission_service.approver_property_ids(user_id)
    return lifecycle_service.list_requisitions(
        status=STATUS_PENDING_MANAGER_APPROVAL,
        property_ids=property_ids,
        limit=limit,
    )


def bulk_approve(requisition_ids: list[str], *, actor_id: str) -> BulkApprovalResult:
    """
    Approve several pending requisitions.

    Each requisition is approved in its own transaction; one failure does
    not stop the rest. Returns approved ids and (id, reason) failures.
    """
    approved: list[str] = []
    failed: list[tuple[str, str]] = []
    for requisition_id in dict.fromkeys(requisition_ids):
        try:
            approve_requisition(
                requisition_id,
                actor_id=actor_id,
                remarks="Bulk approved by manager",
            )
            approved.append(requisition_id)
        except (ValidationError, AuthorizationError, NotFoundError) as e:
            db.session.rollback()
            failed.append((requisition_id, str(e)))
    return BulkApprovalResult(approved=approved, failed=failed)


# =============================================================================
# SUPERVISOR ACTIONS
# =============================================================================

def _require_purchase_executive(user_id: str) -> User:
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        raise NotFoundError(f"User {user_id} not found")
    if ROLE_PURCHASE_EXECUTIVE not in permission_service.get_user_role_names(user_id):
        raise ValidationError(f"User {user.display_name} is not a purchase executive")
    return user


def reroute_requisition(
    requisition_id: str,
    *,
    actor_id: str,
    new_assignee_id: str | None = None,
    new_status: str | None = None,
    remarks: str | None = None,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Reassign a requisition and/or force its status (supervisor only).

    new_assignee_id and new_status are independent; values equal to the
    current ones count as "no change".

    Raises:
        AuthorizationError: status precedes manager_approved, or caller is
            not a supervisor
        ValidationError: nothing would change, or the new assignee is not a
            purchase executive
        LifecycleError: target status not reachable by reroute
    """
    remarks = clean_text(remarks)
    new_assignee_id = clean_text(new_assignee_id)
    new_status = clean_text(new_status)
    if new_status:
        lifecycle_service.validate_status(new_status)

    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_REROUTE, requisition)

    assignee_changes = new_assignee_id is not None and new_assignee_id != requisition.assigned_to
    status_changes = new_status is not None and new_status != requisition.status
    if not assignee_changes and not status_changes:
        raise ValidationError("Nothing to reroute: choose a different assignee or status")

    if assignee_changes:
        _require_purchase_executive(new_assignee_id)

    lifecycle_service.apply_reroute(
        requisition,
        actor_id=actor_id,
        new_assignee_id=new_assignee_id if assignee_changes else None,
        new_status=new_status if status_changes else None,
        remarks=remarks,
        now=now,
    )
    db.session.commit()

    if assignee_changes:
        communications_service.notify_user(
            new_assignee_id,
            f"Requisition {requisition.order_number} has been assigned to you"
            + (f": {remarks}" if remarks else ""),
            category=communications_service.CATEGORY_REROUTE,
            action_link=_link(requisition),
            title="Requisition assigned",
        )
    return requisition


# =============================================================================
# PURCHASING ACTIONS
# =============================================================================

def accept_requisition(
    requisition_id: str,
    *,
    actor_id: str,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Purchase executive takes an approved requisition (manager_approved -> in_progress).

    Unassigned requisitions are assigned to the accepting user.
    """
    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_ACCEPT, requisition)

    lifecycle_service.transition_status(
        requisition,
        STATUS_IN_PROGRESS,
        actor_id=actor_id,
        action=lifecycle_service.ACTION_ACCEPT,
        remarks="Accepted for purchasing",
        now=now,
    )
    if not requisition.assigned_to:
        requisition.assigned_to = actor_id
    db.session.commit()

    communications_service.notify_user(
        requisition.created_by,
        f"Requisition {requisition.order_number} is being processed",
        category=communications_service.CATEGORY_REQUISITION,
        action_link=_link(requisition),
        title="Requisition in progress",
    )
    return requisition


def complete_requisition(
    requisition_id: str,
    *,
    actor_id: str,
    remarks: str | None = None,
    now: datetime | None = None,
) -> RequisitionList:
    """External completion signal (in_progress -> completed)."""
    remarks = clean_text(remarks)
    requisition = lifecycle_service.get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_COMPLETE, requisition)

    lifecycle_service.transition_status(
        requisition,
        STATUS_COMPLETED,
        actor_id=actor_id,
        action=lifecycle_service.ACTION_COMPLETE,
        remarks=remarks,
        now=now,
    )
    db.session.commit()

    communications_service.notify_user(
        requisition.created_by,
        f"Requisition {requisition.order_number} has been completed",
        category=communications_service.CATEGORY_REQUISITION,
        action_link=_link(requisition),
        title="Requisition completed",
    )
    return requisition
