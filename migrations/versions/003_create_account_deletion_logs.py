"""Create account_deletion_logs table.

Revision ID: 003_deletion_logs
Revises: 002_workspace
Create Date: 2026-10-19

Append-only journal of account deletion runs. Target identity is stored
as a snapshot, with no foreign key to users.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "003_deletion_logs"
down_revision: str | None = "002_workspace"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

INITIATORS = ("self", "admin")
OUTCOMES = ("completed", "failed")


def upgrade() -> None:
    postgresql.ENUM(*INITIATORS, name="deletioninitiator").create(op.get_bind())
    postgresql.ENUM(*OUTCOMES, name="deletionoutcome").create(op.get_bind())

    op.create_table(
        "account_deletion_logs",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("target_user_id", sa.String(length=64), nullable=False),
        sa.Column("target_external_id", sa.String(length=255), nullable=False),
        sa.Column("target_email", sa.String(length=255), nullable=False),
        sa.Column("target_display_name", sa.String(length=100), nullable=True),
        sa.Column("target_role", sa.String(length=20), nullable=True),
        sa.Column("initiated_by", sa.String(length=255), nullable=False),
        sa.Column(
            "initiator_role",
            postgresql.ENUM(*INITIATORS, name="deletioninitiator", create_type=False),
            nullable=False,
        ),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column(
            "status",
            postgresql.ENUM(*OUTCOMES, name="deletionoutcome", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "tables_processed", postgresql.JSONB(astext_type=sa.Text()), nullable=False
        ),
        sa.Column("table_counts", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("records_deleted", sa.Integer(), nullable=False),
        sa.Column("records_anonymized", sa.Integer(), nullable=False),
        sa.Column("files_deleted", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("batches_processed", sa.Integer(), nullable=False),
        sa.Column("duration_ms", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("account_deleted", sa.Boolean(), nullable=False),
        sa.Column("external_account_deleted", sa.Boolean(), nullable=False),
        sa.Column("external_deletion_error", sa.Text(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        op.f("ix_account_deletion_logs_target_user_id"),
        "account_deletion_logs",
        ["target_user_id"],
    )
    op.create_index(
        op.f("ix_account_deletion_logs_status"), "account_deletion_logs", ["status"]
    )
    op.create_index(
        op.f("ix_account_deletion_logs_created_at"),
        "account_deletion_logs",
        ["created_at"],
    )


def downgrade() -> None:
    op.drop_index(
        op.f("ix_account_deletion_logs_created_at"), table_name="account_deletion_logs"
    )
    op.drop_index(
        op.f("ix_account_deletion_logs_status"), table_name="account_deletion_logs"
    )
    op.drop_index(
        op.f("ix_account_deletion_logs_target_user_id"),
        table_name="account_deletion_logs",
    )
    op.drop_table("account_deletion_logs")

    postgresql.ENUM(*OUTCOMES, name="deletionoutcome").drop(op.get_bind())
    postgresql.ENUM(*INITIATORS, name="deletioninitiator").drop(op.get_bind())
