"""Client model (CRM contacts scoped to an organization)."""

import enum
import uuid

from sqlalchemy import Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import LOOKUP_NAME, Base, TimestampMixin, user_reference_column


class ClientStatus(str, enum.Enum):
    """Lifecycle status of a client."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    PROSPECT = "prospect"
    ARCHIVED = "archived"


class Client(Base, TimestampMixin):
    """A client record owned by an organization.

    ``created_by`` is the member who entered the client and ``assigned_to``
    the member currently responsible for it.
    """

    __tablename__ = "clients"

    __table_args__ = (
        Index(
            "ix_clients_by_user",
            "created_by",
            "assigned_to",
            info={LOOKUP_NAME: "by_user"},
        ),
        Index("ix_clients_org_status", "org_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[str] = mapped_column(String(64), nullable=False)

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    company: Mapped[str | None] = mapped_column(String(200), nullable=True)
    phone_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    status: Mapped[ClientStatus] = mapped_column(
        Enum(
            ClientStatus,
            name="clientstatus",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=ClientStatus.ACTIVE,
    )
    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    created_by: Mapped[str] = user_reference_column()
    assigned_to: Mapped[str | None] = user_reference_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Client {self.first_name} {self.last_name} org={self.org_id}>"
