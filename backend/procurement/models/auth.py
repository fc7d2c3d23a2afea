from __future__ import annotations

from uuid import uuid4

from ..extensions import db
from procurement.time_utils import to_utc_z


def _new_id() -> str:
    return str(uuid4())


class User(db.Model):
    """
    Application user as mirrored from the upstream identity provider.

    WHY: Every requisition action must be attributable. Login itself happens
    upstream; this table only holds the identity and display data the
    workflow needs (requester name, assignee lookups, notification targets).
    """
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    email = db.Column(db.String(255), nullable=False, unique=True)
    full_name = db.Column(db.String(255), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    roles = db.relationship("UserRole", backref="user", lazy=True, cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.full_name or self.email

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "is_active": self.is_active,
            "roles": sorted(r.role for r in self.roles),
            "created_at": to_utc_z(self.created_at),
        }


class UserRole(db.Model):
    """
    Role grant for a user.

    Role names: staff, property_manager, procurement_manager,
    purchase_executive, ops_supervisor, admin.
    """
    __tablename__ = "user_roles"
    __table_args__ = (
        db.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(36), db.ForeignKey("users.id"), nullable=False, index=True)
    role = db.Column(db.String(32), nullable=False, index=True)

    assigned_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
