"""Property approvers: per-property approval assignments

Revision ID: 20261020_property_approvers
Revises: 20261019_requisitions
Create Date: 2026-10-20

This migration adds:
1. property_approvers (which managers may approve a property's requisitions)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261020_property_approvers"
down_revision = "20261019_requisitions"
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "property_approvers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("property_id", sa.String(36), nullable=False),
        sa.Column("approver_user_id", sa.String(36), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("assigned_by", sa.String(36), nullable=True),
        sa.Column("assigned_at", sa.DateTime(timezone=True), server_default=sa.text("(CURRENT_TIMESTAMP)"), nullable=False),
        sa.ForeignKeyConstraint(["property_id"], ["properties.id"]),
        sa.ForeignKeyConstraint(["approver_user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("property_id", "approver_user_id", name="uq_property_approvers_property_user"),
        sqlite_autoincrement=True,
    )
    with op.batch_alter_table("property_approvers", schema=None) as batch_op:
        batch_op.create_index("ix_property_approvers_property_id", ["property_id"], unique=False)
        batch_op.create_index("ix_property_approvers_approver_user_id", ["approver_user_id"], unique=False)


def downgrade():
    with op.batch_alter_table("property_approvers", schema=None) as batch_op:
        batch_op.drop_index("ix_property_approvers_approver_user_id")
        batch_op.drop_index("ix_property_approvers_property_id")
    op.drop_table("property_approvers")
