"""Create workspace tables.

Revision ID: 002_workspace
Revises: 001_users
Create Date: 2026-10-19

User reference columns (created_by, assigned_to) are plain strings, not
foreign keys, so anonymized rows can hold a placeholder value. Each table
gets an ``ix_<table>_by_user`` index covering them for the deletion cascade.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_workspace"
down_revision: str | None = "001_users"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUMS = {
    "clientstatus": ("active", "inactive", "prospect", "archived"),
    "projectstatus": ("active", "completed", "archived"),
    "financeentrytype": ("invoice", "payment", "expense"),
    "financeentrystatus": ("pending", "paid", "overdue"),
    "emailstatus": ("draft", "sent", "archived"),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(op.get_bind())

    op.create_table(
        "clients",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("company", sa.String(length=200), nullable=True),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        sa.Column("status", _enum("clientstatus"), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_by_user", "clients", ["created_by", "assigned_to"])
    op.create_index("ix_clients_org_status", "clients", ["org_id", "status"])

    op.create_table(
        "projects",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", _enum("projectstatus"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        sa.Column("assigned_to", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_projects_by_user", "projects", ["created_by", "assigned_to"])
    op.create_index("ix_projects_org_status", "projects", ["org_id", "status"])

    op.create_table(
        "finance_entries",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("entry_type", _enum("financeentrytype"), nullable=False),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("description", sa.String(length=500), nullable=False),
        sa.Column("status", _enum("financeentrystatus"), nullable=True),
        sa.Column("entry_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_finance_entries_by_user", "finance_entries", ["created_by"])
    op.create_index(
        "ix_finance_entries_org_date", "finance_entries", ["org_id", "entry_date"]
    )

    op.create_table(
        "email_messages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("sender", sa.String(length=255), nullable=False),
        sa.Column(
            "recipients",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column("status", _enum("emailstatus"), nullable=False),
        sa.Column(
            "attachment_keys",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_messages_by_user", "email_messages", ["created_by"])
    op.create_index(
        "ix_email_messages_org_status", "email_messages", ["org_id", "status"]
    )

    op.create_table(
        "calendar_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("org_id", sa.String(length=64), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "attendees",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column("created_by", sa.String(length=64), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_calendar_events_by_user", "calendar_events", ["created_by"])
    op.create_index(
        "ix_calendar_events_org_start", "calendar_events", ["org_id", "start_time"]
    )


def downgrade() -> None:
    for table in (
        "calendar_events",
        "email_messages",
        "finance_entries",
        "projects",
        "clients",
    ):
        op.drop_table(table)

    for name, values in reversed(ENUMS.items()):
        postgresql.ENUM(*values, name=name).drop(op.get_bind())
