# Overview: Service-layer operations for the requisition lifecycle; validation, idempotent create/submit and status transitions.

"""
Requisition Lifecycle Service

================================================================================
PURPOSE: Validate, persist and transition requisitions through their lifecycle
================================================================================

STATE MACHINE:
    draft --submit--> pending_manager_approval
    pending_manager_approval --cancel--> draft
    pending_manager_approval --approve--> manager_approved
    pending_manager_approval --reject--> rejected            (terminal)
    manager_approved --accept--> in_progress
    in_progress --complete--> completed                      (terminal)
    {manager_approved, in_progress} --reroute--> {pending_manager_approval,
        manager_approved, in_progress, completed}

    Clarification requests leave the status unchanged (history row only).

RULES:
1. A requisition needs at least one item before it can leave draft
2. Every line quantity is within [1, unit_limit]
3. Only the creator edits a draft (checked through permission_service)
4. Items are replaced as a whole set on every edit
5. The idempotency key is derived before the insert; a duplicate key on
   insert resolves to the already-created requisition
6. Requisition row, item rows and history row of one action share one
   transaction

TRUST BOUNDARY:
    Apart from draft ownership, this module does not check roles. Callers
    (approval_service, routes) authorize first.
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import (
    ItemMaster,
    Property,
    RequisitionList,
    RequisitionListItem,
    RequisitionStatusHistory,
    User,
)
from ..models.requisitions import (
    STATUS_DRAFT,
    STATUS_PENDING_MANAGER_APPROVAL,
    STATUS_MANAGER_APPROVED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
    STATUS_REJECTED,
    VALID_STATUSES,
    TERMINAL_STATUSES,
    VALID_PRIORITIES,
)
from ..validation import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
    MAX_LINE_QUANTITY,
    clean_text,
    coerce_int,
)
from . import identifier_service, permission_service
from .concurrency import lock_for_update
from .document_service import generate_order_number
from procurement.time_utils import utcnow, parse_iso_date


OUTCOME_CREATED = "created"
OUTCOME_UPDATED = "updated"
OUTCOME_ALREADY_EXISTS = "already_exists"

# History actions
ACTION_CREATE = "create"
ACTION_SUBMIT = "submit"
ACTION_CANCEL = "cancel_submission"
ACTION_APPROVE = "approve"
ACTION_REJECT = "reject"
ACTION_CLARIFY = "clarify"
ACTION_REROUTE = "reroute"
ACTION_ACCEPT = "accept"
ACTION_COMPLETE = "complete"

ALLOWED_TRANSITIONS = {
    (STATUS_DRAFT, STATUS_PENDING_MANAGER_APPROVAL),
    (STATUS_PENDING_MANAGER_APPROVAL, STATUS_DRAFT),
    (STATUS_PENDING_MANAGER_APPROVAL, STATUS_MANAGER_APPROVED),
    (STATUS_PENDING_MANAGER_APPROVAL, STATUS_REJECTED),
    (STATUS_MANAGER_APPROVED, STATUS_IN_PROGRESS),
    (STATUS_IN_PROGRESS, STATUS_COMPLETED),
}

REROUTE_SOURCE_STATUSES = {STATUS_MANAGER_APPROVED, STATUS_IN_PROGRESS}
REROUTE_TARGET_STATUSES = {
    STATUS_PENDING_MANAGER_APPROVAL,
    STATUS_MANAGER_APPROVED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
}


class LifecycleError(ValidationError):
    """
    Raised when an invalid lifecycle transition is attempted.

    This is a domain error, not a technical error. It indicates
    that the user attempted an operation that violates business rules.
    """
    pass


@dataclass(frozen=True)
class RequisitionForm:
    property_id: str | None
    priority: str = "normal"
    expected_delivery_date: date | None = None
    notes: str | None = None


@dataclass(frozen=True)
class LineItemInput:
    item_master_id: str
    quantity: int
    item_name: str | None = None
    category_name: str | None = None
    unit: str | None = None
    unit_limit: int | None = None
    description: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    reasons: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class SaveOutcome:
    """
    Result of save_draft / submit_for_approval.

    outcome is "created", "updated" or "already_exists". The last one is the
    retry path: the same logical action had already been persisted and its
    id is returned instead of a second requisition.
    """
    requisition_id: str
    outcome: str

    @property
    def already_existed(self) -> bool:
        return self.outcome == OUTCOME_ALREADY_EXISTS


# ================================================================================
# PAYLOAD PARSING
# ================================================================================

def form_from_payload(data: dict) -> RequisitionForm:
    """Build a RequisitionForm from a JSON body; raises ValidationError on bad dates."""
    try:
        expected = parse_iso_date(data.get("expected_delivery_date"))
    except ValueError:
        raise ValidationError("expected_delivery_date must be an ISO-8601 date")

    return RequisitionForm(
        property_id=clean_text(data.get("property_id")),
        priority=(clean_text(data.get("priority")) or "normal").lower(),
        expected_delivery_date=expected,
        notes=clean_text(data.get("notes")),
    )


def items_from_payload(raw_items) -> list[LineItemInput]:
    if raw_items is None:
        return []
    if not isinstance(raw_items, list):
        raise ValidationError("items must be a list")

    items = []
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        item_master_id = clean_text(raw.get("item_master_id"))
        if not item_master_id:
            raise ValidationError(f"items[{index}].item_master_id is required")
        unit_limit = raw.get("unit_limit")
        items.append(
            LineItemInput(
                item_master_id=item_master_id,
                quantity=coerce_int(raw.get("quantity"), f"items[{index}].quantity"),
                item_name=clean_text(raw.get("item_name")),
                category_name=clean_text(raw.get("category_name")),
                unit=clean_text(raw.get("unit")),
                unit_limit=coerce_int(unit_limit, f"items[{index}].unit_limit") if unit_limit is not None else None,
                description=clean_text(raw.get("description")),
            )
        )
    return items


# ================================================================================
# VALIDATION
# ================================================================================

def validate_status(status: str) -> None:
    if status not in VALID_STATUSES:
        raise LifecycleError(
            f"Invalid status '{status}'. Must be one of: {', '.join(sorted(VALID_STATUSES))}"
        )


def validate_requisition(form: RequisitionForm, items: Iterable[LineItemInput]) -> ValidationResult:
    """
    Check a requisition form and its lines. Pure: no database access.

    Fails closed: any reason blocks both draft-save and submit.
    """
    items = list(items)
    reasons: list[str] = []

    if not form.property_id:
        reasons.append("Please select a property")
    if form.priority not in VALID_PRIORITIES:
        reasons.append(f"priority must be one of: {', '.join(VALID_PRIORITIES)}")
    if not items:
        reasons.append("Please add at least one item")

    seen: set[str] = set()
    for item in items:
        label = item.item_name or item.item_master_id
        if item.item_master_id in seen:
            reasons.append(f"{label}: item already added")
        seen.add(item.item_master_id)

        if item.quantity < 1:
            reasons.append(f"{label}: quantity must be at least 1")
        elif item.unit_limit is not None and item.quantity > item.unit_limit:
            reasons.append(f"{label}: quantity {item.quantity} exceeds limit of {item.unit_limit}")
        elif item.quantity > MAX_LINE_QUANTITY:
            reasons.append(f"{label}: quantity {item.quantity} is too large")

    return ValidationResult(ok=not reasons, reasons=tuple(reasons))


def ensure_valid(form: RequisitionForm, items: Iterable[LineItemInput]) -> None:
    result = validate_requisition(form, items)
    if not result.ok:
        raise ValidationError("; ".join(result.reasons), list(result.reasons))


def calculate_total_items(items: Iterable[LineItemInput]) -> int:
    return sum(item.quantity for item in items)


# ================================================================================
# STATE MACHINE
# ================================================================================

def can_transition(from_status: str, to_status: str, *, reroute: bool = False) -> bool:
    """
    Check if a state transition is valid according to the lifecycle rules.

    Terminal states never move. Reroutes may jump between any of the
    REROUTE_TARGET_STATUSES as long as the source is at or past
    manager_approved.
    """
    validate_status(from_status)
    validate_status(to_status)

    if from_status in TERMINAL_STATUSES:
        return False

    if reroute:
        return from_status in REROUTE_SOURCE_STATUSES and to_status in REROUTE_TARGET_STATUSES

    return (from_status, to_status) in ALLOWED_TRANSITIONS


def can_edit_requisition(requisition: RequisitionList) -> bool:
    return requisition.status == STATUS_DRAFT


def record_history(
    requisition: RequisitionList,
    *,
    action: str,
    old_status: str | None,
    new_status: str,
    changed_by: str,
    remarks: str | None = None,
    old_assigned_to: str | None = None,
    new_assigned_to: str | None = None,
    now: datetime | None = None,
) -> RequisitionStatusHistory:
    entry = RequisitionStatusHistory(
        requisition_list_id=requisition.id,
        action=action,
        old_status=old_status,
        new_status=new_status,
        changed_by=changed_by,
        remarks=remarks,
        old_assigned_to=old_assigned_to,
        new_assigned_to=new_assigned_to,
        created_at=now or utcnow(),
    )
    db.session.add(entry)
    return entry


def transition_status(
    requisition: RequisitionList,
    new_status: str,
    *,
    actor_id: str,
    action: str,
    remarks: str | None = None,
    reroute: bool = False,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Move a requisition to new_status and append a history row.

    Does NOT commit: the caller commits together with its other writes.

    Raises:
        LifecycleError: transition not allowed from the current status
    """
    old_status = requisition.status
    if not can_transition(old_status, new_status, reroute=reroute):
        raise LifecycleError(
            f"Cannot {action} requisition {requisition.order_number}: "
            f"transition '{old_status}' -> '{new_status}' is not allowed"
        )

    moment = now or utcnow()
    requisition.status = new_status

    if new_status == STATUS_PENDING_MANAGER_APPROVAL and old_status == STATUS_DRAFT:
        requisition.submitted_at = moment
    elif new_status == STATUS_COMPLETED:
        requisition.completed_at = moment
    elif new_status == STATUS_REJECTED:
        requisition.rejected_at = moment

    record_history(
        requisition,
        action=action,
        old_status=old_status,
        new_status=new_status,
        changed_by=actor_id,
        remarks=remarks,
        now=moment,
    )
    current_app.logger.info(
        "Requisition %s %s: %s -> %s by %s",
        requisition.order_number, action, old_status, new_status, actor_id,
    )
    return requisition


def apply_reroute(
    requisition: RequisitionList,
    *,
    actor_id: str,
    new_assignee_id: str | None,
    new_status: str | None,
    remarks: str | None = None,
    now: datetime | None = None,
) -> RequisitionList:
    """
    Change assignee and/or force a status, recorded as one 'reroute' history row.

    Either change may be None (meaning "keep"). Does NOT commit.
    """
    if requisition.status in TERMINAL_STATUSES:
        raise LifecycleError(
            f"Cannot reroute requisition {requisition.order_number}: status '{requisition.status}' is final"
        )

    old_status = requisition.status
    old_assignee = requisition.assigned_to
    target_status = new_status or old_status

    if target_status != old_status and not can_transition(old_status, target_status, reroute=True):
        raise LifecycleError(
            f"Cannot reroute requisition {requisition.order_number} from '{old_status}' to '{target_status}'"
        )

    moment = now or utcnow()
    requisition.status = target_status
    if new_assignee_id is not None:
        requisition.assigned_to = new_assignee_id
    if target_status == STATUS_COMPLETED and old_status != STATUS_COMPLETED:
        requisition.completed_at = moment

    record_history(
        requisition,
        action=ACTION_REROUTE,
        old_status=old_status,
        new_status=target_status,
        changed_by=actor_id,
        remarks=remarks,
        old_assigned_to=old_assignee,
        new_assigned_to=requisition.assigned_to,
        now=moment,
    )
    current_app.logger.info(
        "Requisition %s rerouted by %s: status %s -> %s, assignee %s -> %s",
        requisition.order_number, actor_id, old_status, target_status, old_assignee, requisition.assigned_to,
    )
    return requisition


# ================================================================================
# LOOKUPS
# ================================================================================

def get_requisition(requisition_id: str, *, for_update: bool = False) -> RequisitionList:
    q = db.session.query(RequisitionList).filter_by(id=requisition_id)
    if for_update:
        q = lock_for_update(q)
    requisition = q.first()
    if requisition is None:
        raise NotFoundError(f"Requisition {requisition_id} not found")
    return requisition


def find_by_idempotency_key(key: str) -> RequisitionList | None:
    return db.session.query(RequisitionList).filter_by(idempotency_key=key).first()


def _get_property(property_id: str) -> Property:
    prop = db.session.get(Property, property_id)
    if prop is None or not prop.is_active:
        raise NotFoundError(f"Property {property_id} not found")
    return prop


def _get_actor(actor_id: str | None) -> User:
    if not actor_id:
        raise AuthorizationError("Authentication required")
    user = db.session.get(User, actor_id)
    if user is None or not user.is_active:
        raise AuthorizationError("Unknown or inactive user")
    return user


def build_line_items(items: Iterable[LineItemInput]) -> list[LineItemInput]:
    """
    Resolve every line against the item catalog.

    The catalog is authoritative for name, category, unit and unit_limit;
    those values are snapshotted onto the line.

    Raises:
        NotFoundError: a referenced catalog item does not exist or is inactive
    """
    resolved = []
    for item in items:
        master = db.session.get(ItemMaster, item.item_master_id)
        if master is None or not master.is_active:
            raise NotFoundError(f"Catalog item {item.item_master_id} not found")
        resolved.append(
            LineItemInput(
                item_master_id=master.id,
                quantity=item.quantity,
                item_name=master.name,
                category_name=master.category_name,
                unit=master.unit,
                unit_limit=master.unit_limit,
                description=item.description,
            )
        )
    return resolved


def list_requisitions(
    *,
    status: str | None = None,
    property_id: str | None = None,
    property_ids: list[str] | None = None,
    created_by: str | None = None,
    assigned_to: str | None = None,
    limit: int | None = None,
) -> list[RequisitionList]:
    """
    Newest first. `property_ids` restricts to a set of properties; an empty
    list matches nothing.
    """
    if property_ids is not None and not property_ids:
        return []

    q = db.session.query(RequisitionList)
    if status:
        validate_status(status)
        q = q.filter_by(status=status)
    if property_id:
        q = q.filter_by(property_id=property_id)
    if property_ids is not None:
        q = q.filter(RequisitionList.property_id.in_(property_ids))
    if created_by:
        q = q.filter_by(created_by=created_by)
    if assigned_to:
        q = q.filter_by(assigned_to=assigned_to)

    max_limit = current_app.config.get("REQUISITION_LIST_LIMIT", 200)
    if limit is None or limit < 1 or limit > max_limit:
        limit = max_limit

    return (
        q.order_by(RequisitionList.created_at.desc(), RequisitionList.order_number.desc())
        .limit(limit)
        .all()
    )


def get_status_history(requisition_id: str) -> list[RequisitionStatusHistory]:
    get_requisition(requisition_id)
    return (
        db.session.query(RequisitionStatusHistory)
        .filter_by(requisition_list_id=requisition_id)
        .order_by(RequisitionStatusHistory.id.asc())
        .all()
    )


# ================================================================================
# CREATE / EDIT
# ================================================================================

def _insert_items(requisition: RequisitionList, items: list[LineItemInput]) -> None:
    for item in items:
        db.session.add(
            RequisitionListItem(
                requisition_list_id=requisition.id,
                item_master_id=item.item_master_id,
                item_name=item.item_name,
                category_name=item.category_name,
                unit=item.unit,
                unit_limit=item.unit_limit,
                quantity=item.quantity,
                description=item.description,
            )
        )


def replace_items(requisition: RequisitionList, items: list[LineItemInput]) -> None:
    """
    Delete every existing line, then insert the new set. Does NOT commit.

    Both steps run in the caller's transaction, so a failure between them
    leaves the previous lines in place.
    """
    db.session.query(RequisitionListItem).filter_by(
        requisition_list_id=requisition.id
    ).delete(synchronize_session=False)
    db.session.expire(requisition, ["items"])
    _insert_items(requisition, items)
    requisition.total_items = calculate_total_items(items)


def _resolve_existing(existing: RequisitionList, actor_id: str) -> SaveOutcome:
    if existing.created_by != actor_id:
        raise ConflictError(
            "Another requisition was created for this property at the same moment; please retry"
        )
    current_app.logger.info(
        "Duplicate create resolved to existing requisition %s (key %s)",
        existing.order_number, existing.idempotency_key,
    )
    return SaveOutcome(requisition_id=existing.id, outcome=OUTCOME_ALREADY_EXISTS)


def _create(
    form: RequisitionForm,
    items: list[LineItemInput],
    *,
    actor_id: str,
    status: str,
    now: datetime | None,
    idempotency_key: str | None,
) -> SaveOutcome:
    actor = _get_actor(actor_id)
    prop = _get_property(form.property_id)
    lines = build_line_items(items)
    ensure_valid(form, lines)

    moment = now or utcnow()

    # Key is fixed before the first insert attempt
    key = identifier_service.key_for_property(prop, moment, idempotency_key)
    existing = find_by_idempotency_key(key)
    if existing is not None:
        return _resolve_existing(existing, actor_id)

    try:
        requisition = RequisitionList(
            order_number=generate_order_number(moment),
            property_id=prop.id,
            created_by=actor.id,
            created_by_name=actor.display_name,
            status=STATUS_DRAFT,
            priority=form.priority,
            expected_delivery_date=form.expected_delivery_date,
            notes=form.notes,
            total_items=calculate_total_items(lines),
            idempotency_key=key,
            created_at=moment,
            updated_at=moment,
        )
        db.session.add(requisition)
        db.session.flush()  # requisition row before its items

        _insert_items(requisition, lines)
        record_history(
            requisition,
            action=ACTION_CREATE,
            old_status=None,
            new_status=STATUS_DRAFT,
            changed_by=actor.id,
            now=moment,
        )
        if status == STATUS_PENDING_MANAGER_APPROVAL:
            transition_status(requisition, status, actor_id=actor.id, action=ACTION_SUBMIT, now=moment)

        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = find_by_idempotency_key(key)
        if existing is None:
            raise
        return _resolve_existing(existing, actor_id)

    return SaveOutcome(requisition_id=requisition.id, outcome=OUTCOME_CREATED)


def _update(
    existing_id: str,
    form: RequisitionForm,
    items: list[LineItemInput],
    *,
    actor_id: str,
    status: str,
    now: datetime | None,
) -> SaveOutcome:
    requisition = get_requisition(existing_id, for_update=True)
    action = (
        permission_service.ACTION_SUBMIT
        if status == STATUS_PENDING_MANAGER_APPROVAL
        else permission_service.ACTION_EDIT_DRAFT
    )
    permission_service.authorize_requisition_action(actor_id, action, requisition)

    if not can_edit_requisition(requisition):
        raise LifecycleError(
            f"Cannot edit requisition {requisition.order_number}: "
            f"current status is '{requisition.status}', must be '{STATUS_DRAFT}'"
        )

    prop = _get_property(form.property_id)
    lines = build_line_items(items)
    ensure_valid(form, lines)

    moment = now or utcnow()
    requisition.property_id = prop.id
    requisition.priority = form.priority
    requisition.expected_delivery_date = form.expected_delivery_date
    requisition.notes = form.notes
    requisition.updated_at = moment
    replace_items(requisition, lines)

    if status == STATUS_PENDING_MANAGER_APPROVAL:
        transition_status(requisition, status, actor_id=actor_id, action=ACTION_SUBMIT, now=moment)

    db.session.commit()
    return SaveOutcome(requisition_id=requisition.id, outcome=OUTCOME_UPDATED)


def save_draft(
    form: RequisitionForm,
    items: Iterable[LineItemInput],
    *,
    actor_id: str,
    existing_id: str | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> SaveOutcome:
    """
    Save a requisition in draft status.

    existing_id given: caller must be the creator and the requisition must
    still be a draft; metadata is updated and the item set fully replaced.
    Otherwise a new draft is created with an order number and idempotency key.

    Raises:
        ValidationError: missing property, no items, quantity out of bounds
        AuthorizationError: caller is not the creator of existing_id
        LifecycleError: existing requisition is no longer a draft
        NotFoundError: requisition, property or catalog item missing
    """
    items = list(items)
    ensure_valid(form, items)
    if existing_id:
        return _update(existing_id, form, items, actor_id=actor_id, status=STATUS_DRAFT, now=now)
    return _create(
        form, items, actor_id=actor_id, status=STATUS_DRAFT, now=now, idempotency_key=idempotency_key,
    )


def submit_for_approval(
    form: RequisitionForm,
    items: Iterable[LineItemInput],
    *,
    actor_id: str,
    existing_id: str | None = None,
    now: datetime | None = None,
    idempotency_key: str | None = None,
) -> SaveOutcome:
    """
    Same as save_draft, but the requisition ends in pending_manager_approval.

    A retried submit (same property, same second, or same client key)
    returns SaveOutcome(outcome="already_exists") with the original id.
    """
    items = list(items)
    ensure_valid(form, items)
    if existing_id:
        return _update(
            existing_id, form, items, actor_id=actor_id, status=STATUS_PENDING_MANAGER_APPROVAL, now=now,
        )
    return _create(
        form, items,
        actor_id=actor_id,
        status=STATUS_PENDING_MANAGER_APPROVAL,
        now=now,
        idempotency_key=idempotency_key,
    )


def _stored_lines(requisition: RequisitionList) -> list[LineItemInput]:
    return [
        LineItemInput(
            item_master_id=line.item_master_id,
            quantity=line.quantity,
            item_name=line.item_name,
            category_name=line.category_name,
            unit=line.unit,
            unit_limit=line.unit_limit,
            description=line.description,
        )
        for line in requisition.items
    ]


def submit_existing(requisition_id: str, *, actor_id: str, now: datetime | None = None) -> RequisitionList:
    """
    Submit a stored draft as-is (draft -> pending_manager_approval).

    A draft left with zero items (e.g. by an interrupted edit) must be
    re-entered before it can be submitted.
    """
    requisition = get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(actor_id, permission_service.ACTION_SUBMIT, requisition)

    if requisition.status != STATUS_DRAFT:
        raise LifecycleError(
            f"Only draft requisitions can be submitted; {requisition.order_number} is '{requisition.status}'"
        )

    form = RequisitionForm(
        property_id=requisition.property_id,
        priority=requisition.priority,
        expected_delivery_date=requisition.expected_delivery_date,
        notes=requisition.notes,
    )
    lines = _stored_lines(requisition)
    ensure_valid(form, lines)

    requisition.total_items = calculate_total_items(lines)
    transition_status(
        requisition,
        STATUS_PENDING_MANAGER_APPROVAL,
        actor_id=actor_id,
        action=ACTION_SUBMIT,
        remarks="Submitted for approval",
        now=now,
    )
    db.session.commit()
    return requisition


def cancel_submission(requisition_id: str, *, actor_id: str, now: datetime | None = None) -> RequisitionList:
    """Creator pulls a pending requisition back to draft."""
    requisition = get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(
        actor_id, permission_service.ACTION_CANCEL_SUBMISSION, requisition,
    )

    if requisition.status != STATUS_PENDING_MANAGER_APPROVAL:
        raise LifecycleError(
            f"Only pending requisitions can be cancelled; {requisition.order_number} is '{requisition.status}'"
        )

    transition_status(
        requisition,
        STATUS_DRAFT,
        actor_id=actor_id,
        action=ACTION_CANCEL,
        remarks="Submission cancelled",
        now=now,
    )
    requisition.submitted_at = None
    db.session.commit()
    return requisition


def delete_draft(requisition_id: str, *, actor_id: str) -> None:
    """Creator deletes a draft; lines and history go with it."""
    requisition = get_requisition(requisition_id, for_update=True)
    permission_service.authorize_requisition_action(
        actor_id, permission_service.ACTION_DELETE_DRAFT, requisition,
    )

    if requisition.status != STATUS_DRAFT:
        raise LifecycleError(
            f"Only draft requisitions can be deleted; {requisition.order_number} is '{requisition.status}'"
        )

    db.session.delete(requisition)
    db.session.commit()
