"""Finance entry model (invoices, payments, expenses).

Finance entries are retained for bookkeeping after their author's
account is deleted; only the author reference is anonymized.
"""

import enum
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Enum, Index, Numeric, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import LOOKUP_NAME, Base, TimestampMixin, user_reference_column


class FinanceEntryType(str, enum.Enum):
    INVOICE = "invoice"
    PAYMENT = "payment"
    EXPENSE = "expense"


class FinanceEntryStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


class FinanceEntry(Base, TimestampMixin):
    """A single financial transaction for an organization."""

    __tablename__ = "finance_entries"

    __table_args__ = (
        Index(
            "ix_finance_entries_by_user",
            "created_by",
            info={LOOKUP_NAME: "by_user"},
        ),
        Index("ix_finance_entries_org_date", "org_id", "entry_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[str] = mapped_column(String(64), nullable=False)

    entry_type: Mapped[FinanceEntryType] = mapped_column(
        Enum(
            FinanceEntryType,
            name="financeentrytype",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)  # ISO 4217
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    status: Mapped[FinanceEntryStatus | None] = mapped_column(
        Enum(
            FinanceEntryStatus,
            name="financeentrystatus",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=True,
    )
    entry_date: Mapped[date] = mapped_column(Date(), nullable=False)

    created_by: Mapped[str] = user_reference_column()

    def __repr__(self) -> str:
        return (
            f"<FinanceEntry {self.entry_type.value} {self.amount} {self.currency}>"
        )
