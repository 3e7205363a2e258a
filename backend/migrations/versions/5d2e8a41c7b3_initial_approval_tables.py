"""Approvers, proposals, approvals and audit entries.

Revision ID: 5d2e8a41c7b3
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "5d2e8a41c7b3"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("approvers"):
        op.create_table(
            "approvers",
            sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
            sa.Column("email", sa.String(), nullable=False),
            sa.Column("name", sa.String(), nullable=False),
            sa.Column("role", sa.String(), nullable=False),
            sa.Column("approval_order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("department", sa.String(), nullable=True),
            sa.Column("phone", sa.String(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_approvers_email"), "approvers", ["email"], unique=True)
        op.create_index(op.f("ix_approvers_role"), "approvers", ["role"])
        op.create_index(op.f("ix_approvers_approval_order"), "approvers", ["approval_order"])
        op.create_index(op.f("ix_approvers_is_active"), "approvers", ["is_active"])

    if not inspector.has_table("proposals"):
        op.create_table(
            "proposals",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("proposal_type", sa.String(), nullable=False),
            sa.Column("title", sa.String(), nullable=False),
            sa.Column("proposer_name", sa.String(), nullable=False),
            sa.Column("proposer_email", sa.String(), nullable=False),
            sa.Column("payload", sa.JSON(), nullable=True),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("status_override", sa.String(), nullable=True),
            sa.Column("status_override_by", sa.String(), nullable=True),
            sa.Column("status_override_reason", sa.String(), nullable=True),
            sa.Column("status_override_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_proposals_proposal_type"), "proposals", ["proposal_type"])
        op.create_index(op.f("ix_proposals_proposer_email"), "proposals", ["proposer_email"])
        op.create_index(op.f("ix_proposals_status"), "proposals", ["status"])
        op.create_index(op.f("ix_proposals_created_at"), "proposals", ["created_at"])

    if not inspector.has_table("approvals"):
        op.create_table(
            "approvals",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("proposal_id", sa.Uuid(), nullable=False),
            sa.Column("admin_email", sa.String(), nullable=False),
            sa.Column("status", sa.String(), nullable=False, server_default="pending"),
            sa.Column("comments", sa.String(), nullable=True),
            sa.Column("decided_at", sa.DateTime(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.Column("updated_at", sa.DateTime(), nullable=False),
            sa.ForeignKeyConstraint(["proposal_id"], ["proposals.id"], ondelete="CASCADE"),
            sa.ForeignKeyConstraint(["admin_email"], ["approvers.email"]),
            sa.PrimaryKeyConstraint("id"),
            sa.UniqueConstraint("proposal_id", "admin_email", name="uq_approvals_proposal_admin"),
        )
        op.create_index(op.f("ix_approvals_proposal_id"), "approvals", ["proposal_id"])
        op.create_index(op.f("ix_approvals_admin_email"), "approvals", ["admin_email"])
        op.create_index(op.f("ix_approvals_status"), "approvals", ["status"])

    if not inspector.has_table("audit_entries"):
        op.create_table(
            "audit_entries",
            sa.Column("id", sa.Uuid(), nullable=False),
            sa.Column("proposal_id", sa.Uuid(), nullable=True),
            sa.Column("actor_email", sa.String(), nullable=False),
            sa.Column("action", sa.String(), nullable=False),
            sa.Column("payload", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.DateTime(), nullable=False),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(op.f("ix_audit_entries_proposal_id"), "audit_entries", ["proposal_id"])
        op.create_index(op.f("ix_audit_entries_action"), "audit_entries", ["action"])
        op.create_index(op.f("ix_audit_entries_created_at"), "audit_entries", ["created_at"])


def downgrade() -> None:
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if inspector.has_table("audit_entries"):
        op.drop_index(op.f("ix_audit_entries_created_at"), table_name="audit_entries")
        op.drop_index(op.f("ix_audit_entries_action"), table_name="audit_entries")
        op.drop_index(op.f("ix_audit_entries_proposal_id"), table_name="audit_entries")
        op.drop_table("audit_entries")

    if inspector.has_table("approvals"):
        op.drop_index(op.f("ix_approvals_status"), table_name="approvals")
        op.drop_index(op.f("ix_approvals_admin_email"), table_name="approvals")
        op.drop_index(op.f("ix_approvals_proposal_id"), table_name="approvals")
        op.drop_table("approvals")

    if inspector.has_table("proposals"):
        op.drop_index(op.f("ix_proposals_created_at"), table_name="proposals")
        op.drop_index(op.f("ix_proposals_status"), table_name="proposals")
        op.drop_index(op.f("ix_proposals_proposer_email"), table_name="proposals")
        op.drop_index(op.f("ix_proposals_proposal_type"), table_name="proposals")
        op.drop_table("proposals")

    if inspector.has_table("approvers"):
        op.drop_index(op.f("ix_approvers_is_active"), table_name="approvers")
        op.drop_index(op.f("ix_approvers_approval_order"), table_name="approvers")
        op.drop_index(op.f("ix_approvers_role"), table_name="approvers")
        op.drop_index(op.f("ix_approvers_email"), table_name="approvers")
        op.drop_table("approvers")
