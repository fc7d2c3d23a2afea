"""Requisition workflow: users, properties, catalog, requisitions, notifications

Revision ID: 20261019_requisitions
Revises:
Create Date: 2026-10-19

This migration adds:
1. Users and role grants (identity mirrored from the upstream provider)
2. Properties and the item catalog (ItemMaster)
3. Requisitions, their lines and their status history
4. In-app notifications
5. Security events (authorization denials)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_requisitions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS
    # ==========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "role", name="uq_user_roles_user_role"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("user_roles", schema=None) as batch_op:
        batch_op.create_index("ix_user_roles_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_user_roles_role", ["role"], unique=False)

    # ==========================================================================
    # 2. PROPERTIES AND CATALOG
    # ==========================================================================
    op.create_table(
        "properties",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("code", sa.String(32), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("properties", schema=None) as batch_op:
        batch_op.create_index("ix_properties_code", ["code"], unique=False)
        batch_op.create_index("ix_properties_is_active", ["is_active"], unique=False)

    op.create_table(
        "item_master",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category_name", sa.String(128), nullable=True),
        sa.Column("unit", sa.String(32), nullable=False, server_default="unit"),
        sa.Column("unit_limit", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    with op.batch_alter_table("item_master", schema=None) as batch_op:
        batch_op.create_index("ix_item_master_is_active", ["is_active"], unique=False)

    # ==========================================================================
    # 3. REQUISITIONS
    # ==========================================================================
    op.create_table(
        "requisition_lists",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("order_number", sa.String(32), nullable=False),
        sa.Column("property_id", sa.String(36), nullable=False),
        sa.Column("created_by", sa.String(36), nullable=False),
        sa.Column("created_by_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        sa.Column("priority", sa.String(16), nullable=False, server_default="normal"),
        sa.Column("expected_delivery_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("total_items", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("idempotency_key", sa.String(128), nullable=False),
        sa.Column("assigned_to", sa.String(36), nullable=True),
        sa.Column("manager_id", sa.String(36), nullable=True),
        sa.Column("manager_approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("manager_remarks", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"]),
        sa.ForeignKeyConstraint(["manager_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key", name="uq_requisition_lists_idempotency_key"),
    )
    with op.batch_alter_table("requisition_lists", schema=None) as batch_op:
        # Display number only; concurrent same-day creates may share one
        batch_op.create_index("ix_requisition_lists_order_number", ["order_number"], unique=False)
        batch_op.create_index("ix_requisition_lists_property_id", ["property_id"], unique=False)
        batch_op.create_index("ix_requisition_lists_status", ["status"], unique=False)
        batch_op.create_index("ix_requisition_lists_assigned_to", ["assigned_to"], unique=False)
        batch_op.create_index("ix_requisition_lists_property_status", ["property_id", "status"], unique=False)
        batch_op.create_index("ix_requisition_lists_created_by_status", ["created_by", "status"], unique=False)

    op.create_table(
        "requisition_list_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("requisition_list_id", sa.String(36), nullable=False),
        sa.Column("item_master_id", sa.String(36), nullable=False),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("category_name", sa.String(128), nullable=True),
        sa.Column("unit", sa.String(32), nullable=False),
        sa.Column("unit_limit", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.CheckConstraint("quantity >= 1", name="ck_requisition_list_items_quantity_positive"),
        sa.CheckConstraint("quantity <= unit_limit", name="ck_requisition_list_items_quantity_limit"),
        sa.ForeignKeyConstraint(["requisition_list_id"], ["requisition_lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["item_master_id"], ["item_master.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("requisition_list_items", schema=None) as batch_op:
        batch_op.create_index("ix_requisition_list_items_requisition_list_id", ["requisition_list_id"], unique=False)

    op.create_table(
        "requisition_status_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("requisition_list_id", sa.String(36), nullable=False),
        sa.Column("action", sa.String(32), nullable=False),
        sa.Column("old_status", sa.String(32), nullable=True),
        sa.Column("new_status", sa.String(32), nullable=False),
        sa.Column("changed_by", sa.String(36), nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("old_assigned_to", sa.String(36), nullable=True),
        sa.Column("new_assigned_to", sa.String(36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["requisition_list_id"], ["requisition_lists.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["changed_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("requisition_status_history", schema=None) as batch_op:
        batch_op.create_index(
            "ix_requisition_status_history_req_created", ["requisition_list_id", "created_at"], unique=False
        )

    # ==========================================================================
    # 4. NOTIFICATIONS
    # ==========================================================================
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("category", sa.String(32), nullable=False, server_default="requisition"),
        sa.Column("action_link", sa.String(512), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("notifications", schema=None) as batch_op:
        batch_op.create_index("ix_notifications_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_notifications_user_read", ["user_id", "is_read"], unique=False)

    # ==========================================================================
    # 5. SECURITY EVENTS
    # ==========================================================================
    op.create_table(
        "security_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("resource", sa.String(128), nullable=True),
        sa.Column("action", sa.String(64), nullable=True),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("occurred_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("security_events", schema=None) as batch_op:
        batch_op.create_index("ix_security_events_user_id", ["user_id"], unique=False)
        batch_op.create_index("ix_security_events_event_type", ["event_type"], unique=False)
        batch_op.create_index("ix_security_events_success", ["success"], unique=False)
        batch_op.create_index("ix_security_events_user_type", ["user_id", "event_type"], unique=False)
        batch_op.create_index("ix_security_events_occurred", ["occurred_at"], unique=False)


def downgrade():
    op.drop_table("security_events")
    op.drop_table("notifications")
    op.drop_table("requisition_status_history")
    op.drop_table("requisition_list_items")
    op.drop_table("requisition_lists")
    op.drop_table("item_master")
    op.drop_table("properties")
    op.drop_table("user_roles")
    op.drop_table("users")
