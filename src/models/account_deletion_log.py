"""Account deletion journal model.

One row per cascade run, inserted once and never updated. The table is
listed as preserved in the deletion manifest so no cascade can touch it.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base


class DeletionInitiator(str, enum.Enum):
    """Who asked for the deletion."""

    SELF = "self"
    ADMIN = "admin"


class DeletionOutcome(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class AccountDeletionLog(Base):
    """Immutable record of one account deletion cascade."""

    __tablename__ = "account_deletion_logs"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # Target snapshot; stored as plain values because the account may be gone
    target_user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    target_external_id: Mapped[str] = mapped_column(String(255), nullable=False)
    target_email: Mapped[str] = mapped_column(String(255), nullable=False)
    target_display_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    target_role: Mapped[str | None] = mapped_column(String(20), nullable=True)

    initiated_by: Mapped[str] = mapped_column(String(255), nullable=False)
    initiator_role: Mapped[DeletionInitiator] = mapped_column(
        Enum(
            DeletionInitiator,
            name="deletioninitiator",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    reason: Mapped[str | None] = mapped_column(Text(), nullable=True)

    status: Mapped[DeletionOutcome] = mapped_column(
        Enum(
            DeletionOutcome,
            name="deletionoutcome",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        index=True,
    )
    tables_processed: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    table_counts: Mapped[dict] = mapped_column(JSONB, nullable=False)
    records_deleted: Mapped[int] = mapped_column(Integer, nullable=False)
    records_anonymized: Mapped[int] = mapped_column(Integer, nullable=False)
    files_deleted: Mapped[list[str]] = mapped_column(JSONB, nullable=False)
    batches_processed: Mapped[int] = mapped_column(Integer, nullable=False)
    duration_ms: Mapped[int] = mapped_column(Integer, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text(), nullable=True)

    account_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    external_account_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False)
    external_deletion_error: Mapped[str | None] = mapped_column(Text(), nullable=True)

    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AccountDeletionLog(target={self.target_user_id}, "
            f"status={self.status.value})>"
        )
