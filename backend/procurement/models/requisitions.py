from __future__ import annotations

from uuid import uuid4

from ..extensions import db
from procurement.time_utils import to_utc_z, to_iso_date


def _new_id() -> str:
    return str(uuid4())


# Status values (lifecycle order; rejected sits outside the forward path)
STATUS_DRAFT = "draft"
STATUS_PENDING_MANAGER_APPROVAL = "pending_manager_approval"
STATUS_MANAGER_APPROVED = "manager_approved"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_REJECTED = "rejected"

STATUS_ORDER = (
    STATUS_DRAFT,
    STATUS_PENDING_MANAGER_APPROVAL,
    STATUS_MANAGER_APPROVED,
    STATUS_IN_PROGRESS,
    STATUS_COMPLETED,
)
VALID_STATUSES = set(STATUS_ORDER) | {STATUS_REJECTED}
TERMINAL_STATUSES = {STATUS_COMPLETED, STATUS_REJECTED}

VALID_PRIORITIES = ("low", "normal", "high", "urgent")


class RequisitionList(db.Model):
    """
    A requisition: a property's request for a set of catalog items.

    LIFECYCLE:
    1. draft: Being composed by the requester, freely editable by its creator
    2. pending_manager_approval: Submitted, items frozen, awaiting a manager
    3. manager_approved: Approved, waiting for a purchase executive
    4. in_progress: Being purchased by the assigned executive
    5. completed: Terminal
    6. rejected: Terminal (manager rejected with a reason)

    IDENTITY:
    - id is the row identity (opaque UUID)
    - order_number (REQ-YYYYMMDD-NNNN) is for humans and may collide under
      concurrent submission on the same day
    - idempotency_key is unique and set once, before the first insert
    """
    __tablename__ = "requisition_lists"
    __table_args__ = (
        db.UniqueConstraint("idempotency_key", name="uq_requisition_lists_idempotency_key"),
        db.Index("ix_requisition_lists_order_number", "order_number"),
        # Queue queries: pending approvals per property, my requisitions by status
        db.Index("ix_requisition_lists_property_status", "property_id", "status"),
        db.Index("ix_requisition_lists_created_by_status", "created_by", "status"),
    )

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    order_number = db.Column(db.String(32), nullable=False)

    property_id = db.Column(db.String(36), db.ForeignKey("properties.id"), nullable=False, index=True)

    # Requester attribution (immutable after creation)
    created_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    created_by_name = db.Column(db.String(255), nullable=False, default="")

    status = db.Column(db.String(32), nullable=False, default="draft", index=True)
    priority = db.Column(db.String(16), nullable=False, default="normal")  # low, normal, high, urgent

    expected_delivery_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    # Sum of line quantities, recomputed on every save
    total_items = db.Column(db.Integer, nullable=False, default=0)

    idempotency_key = db.Column(db.String(128), nullable=False)

    # Purchase executive handling the requisition (None = unassigned)
    assigned_to = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True, index=True)

    # Manager decision
    manager_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=True)
    manager_approved_at = db.Column(db.DateTime(timezone=True), nullable=True)
    manager_remarks = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    rejected_at = db.Column(db.DateTime(timezone=True), nullable=True)

    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)
    completed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    property = db.relationship("Property", backref=db.backref("requisitions", lazy=True))
    items = db.relationship(
        "RequisitionListItem",
        backref="requisition",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="RequisitionListItem.id",
    )
    history = db.relationship(
        "RequisitionStatusHistory",
        backref="requisition",
        lazy=True,
        cascade="all, delete-orphan",
        order_by="RequisitionStatusHistory.id",
    )

    def __repr__(self) -> str:
        return f"<RequisitionList id={self.id} order_number={self.order_number!r} status={self.status}>"

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "order_number": self.order_number,
            "property_id": self.property_id,
            "created_by": self.created_by,
            "created_by_name": self.created_by_name,
            "status": self.status,
            "priority": self.priority,
            "expected_delivery_date": to_iso_date(self.expected_delivery_date),
            "notes": self.notes,
            "total_items": self.total_items,
            "idempotency_key": self.idempotency_key,
            "assigned_to": self.assigned_to,
            "manager_id": self.manager_id,
            "manager_approved_at": to_utc_z(self.manager_approved_at),
            "manager_remarks": self.manager_remarks,
            "rejection_reason": self.rejection_reason,
            "rejected_at": to_utc_z(self.rejected_at),
            "submitted_at": to_utc_z(self.submitted_at),
            "completed_at": to_utc_z(self.completed_at),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class RequisitionListItem(db.Model):
    """
    One line of a requisition.

    Lines are exclusively owned by their requisition and are replaced as a
    whole set on every edit, never patched individually.
    """
    __tablename__ = "requisition_list_items"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_requisition_list_items_quantity_positive"),
        db.CheckConstraint("quantity <= unit_limit", name="ck_requisition_list_items_quantity_limit"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    requisition_list_id = db.Column(
        db.String(36),
        db.ForeignKey("requisition_lists.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    item_master_id = db.Column(db.String(36), db.ForeignKey("item_master.id"), nullable=False)

    # Catalog snapshot at time of add (not live-linked)
    item_name = db.Column(db.String(255), nullable=False)
    category_name = db.Column(db.String(128), nullable=True)
    unit = db.Column(db.String(32), nullable=False)
    unit_limit = db.Column(db.Integer, nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requisition_list_id": self.requisition_list_id,
            "item_master_id": self.item_master_id,
            "item_name": self.item_name,
            "category_name": self.category_name,
            "unit": self.unit,
            "unit_limit": self.unit_limit,
            "quantity": self.quantity,
            "description": self.description,
        }


class RequisitionStatusHistory(db.Model):
    """
    Append-only trail of requisition actions.

    One row per transition (submit, approve, reject, reroute, ...) and per
    clarification request, where old_status == new_status.
    """
    __tablename__ = "requisition_status_history"
    __table_args__ = (
        db.Index("ix_requisition_status_history_req_created", "requisition_list_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    requisition_list_id = db.Column(
        db.String(36),
        db.ForeignKey("requisition_lists.id", ondelete="CASCADE"),
        nullable=False,
    )

    action = db.Column(db.String(32), nullable=False)
    old_status = db.Column(db.String(32), nullable=True)
    new_status = db.Column(db.String(32), nullable=False)

    changed_by = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False)
    remarks = db.Column(db.Text, nullable=True)

    # Reroute bookkeeping
    old_assigned_to = db.Column(db.String(36), nullable=True)
    new_assigned_to = db.Column(db.String(36), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "requisition_list_id": self.requisition_list_id,
            "action": self.action,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "changed_by": self.changed_by,
            "remarks": self.remarks,
            "old_assigned_to": self.old_assigned_to,
            "new_assigned_to": self.new_assigned_to,
            "created_at": to_utc_z(self.created_at),
        }
