"""Create users table.

Revision ID: 001_users
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_users"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

USER_ROLES = ("member", "admin")
DELETION_STATUSES = ("pending", "failed")


def upgrade() -> None:
    postgresql.ENUM(*USER_ROLES, name="userrole").create(op.get_bind())
    postgresql.ENUM(*DELETION_STATUSES, name="deletionstatus").create(op.get_bind())

    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("external_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column(
            "role",
            postgresql.ENUM(*USER_ROLES, name="userrole", create_type=False),
            nullable=False,
            server_default="member",
        ),
        sa.Column("avatar_key", sa.String(length=255), nullable=True),
        sa.Column("brand_logo_key", sa.String(length=255), nullable=True),
        sa.Column(
            "deletion_status",
            postgresql.ENUM(*DELETION_STATUSES, name="deletionstatus", create_type=False),
            nullable=True,
        ),
        sa.Column("deletion_started_at", sa.DateTime(timezone=True), nullable=True),
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
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_external_id"), "users", ["external_id"], unique=True)


def downgrade() -> None:
    op.drop_index(op.f("ix_users_external_id"), table_name="users")
    op.drop_table("users")

    postgresql.ENUM(*DELETION_STATUSES, name="deletionstatus").drop(op.get_bind())
    postgresql.ENUM(*USER_ROLES, name="userrole").drop(op.get_bind())
