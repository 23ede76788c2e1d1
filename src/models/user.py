"""User account model.

Accounts are created on first sign-in with the external identity
provider; ``external_id`` is the provider's subject claim.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, String
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin


class UserRole(str, enum.Enum):
    """User roles for role-based access control.

    - MEMBER: Regular workspace member
    - ADMIN: Can read the account deletion journal
    """

    MEMBER = "member"
    ADMIN = "admin"


class DeletionStatus(str, enum.Enum):
    """Tombstone state of an account whose deletion has started."""

    PENDING = "pending"
    FAILED = "failed"


class User(Base, TimestampMixin):
    """User account model.

    Attributes:
        id: Unique user identifier (UUID)
        external_id: Subject of the identity provider's tokens
        email: User's email address
        display_name: Optional display name
        role: User role (member, admin)
        avatar_key: Blob storage key of the uploaded avatar
        brand_logo_key: Blob storage key of the uploaded brand logo
        deletion_status: Set while a deletion is pending or after it failed
        deletion_started_at: When the most recent deletion attempt started
    """

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    external_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    display_name: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )
    role: Mapped[UserRole] = mapped_column(
        Enum(
            UserRole,
            name="userrole",
            create_type=False,  # Already created in migration
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=UserRole.MEMBER,
    )
    avatar_key: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    brand_logo_key: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    deletion_status: Mapped[DeletionStatus | None] = mapped_column(
        Enum(
            DeletionStatus,
            name="deletionstatus",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=True,
    )
    deletion_started_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
