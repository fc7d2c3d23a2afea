from __future__ import annotations

from uuid import uuid4

from ..extensions import db
from procurement.time_utils import to_utc_z


def _new_id() -> str:
    return str(uuid4())


class Property(db.Model):
    """
    A managed property (building/site) that raises requisitions.

    Owned by the property subsystem; modelled here only with the fields the
    requisition workflow reads. `code` feeds idempotency keys.
    """
    __tablename__ = "properties"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(32), nullable=True, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Property id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }


class ItemMaster(db.Model):
    """
    Catalog entry a requisition line can reference.

    unit_limit is the maximum quantity of this item a single requisition may
    ask for. Requisition lines copy name/category/unit/unit_limit at the time
    they are added; later catalog edits do not rewrite existing lines.
    """
    __tablename__ = "item_master"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    name = db.Column(db.String(255), nullable=False)
    category_name = db.Column(db.String(128), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default="unit")
    unit_limit = db.Column(db.Integer, nullable=False, default=1)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category_name": self.category_name,
            "unit": self.unit,
            "unit_limit": self.unit_limit,
            "is_active": self.is_active,
        }


class PropertyApprover(db.Model):
    """
    Assignment of a manager as an approver for one property.

    Only active approvers of a requisition's property (or a supervisor) may
    approve, reject or ask for clarification. Deactivated rows are kept so
    the assignment history survives.
    """
    __tablename__ = "property_approvers"
    __table_args__ = (
        db.UniqueConstraint("property_id", "approver_user_id", name="uq_property_approvers_property_user"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.String(36), db.ForeignKey("properties.id"), nullable=False, index=True)
    approver_user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)
    assigned_by = db.Column(db.String(36), nullable=True)
    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "property_id": self.property_id,
            "approver_user_id": self.approver_user_id,
            "is_active": self.is_active,
            "assigned_by": self.assigned_by,
            "assigned_at": to_utc_z(self.assigned_at),
        }
