"""Email message model (drafts and sent mail composed in the workspace)."""

import enum
import uuid

from sqlalchemy import Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import LOOKUP_NAME, Base, TimestampMixin, user_reference_column


class EmailStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ARCHIVED = "archived"


class EmailMessage(Base, TimestampMixin):
    """An email composed by a member.

    ``attachment_keys`` lists blob storage keys of uploaded attachments.
    """

    __tablename__ = "email_messages"

    __table_args__ = (
        Index(
            "ix_email_messages_by_user",
            "created_by",
            info={LOOKUP_NAME: "by_user"},
        ),
        Index("ix_email_messages_org_status", "org_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[str] = mapped_column(String(64), nullable=False)

    subject: Mapped[str] = mapped_column(String(500), nullable=False)
    body: Mapped[str] = mapped_column(Text(), nullable=False)
    sender: Mapped[str] = mapped_column(String(255), nullable=False)
    recipients: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    status: Mapped[EmailStatus] = mapped_column(
        Enum(
            EmailStatus,
            name="emailstatus",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=EmailStatus.DRAFT,
    )
    attachment_keys: Mapped[list[str]] = mapped_column(
        JSONB, nullable=False, default=list
    )

    created_by: Mapped[str] = user_reference_column()

    def __repr__(self) -> str:
        return f"<EmailMessage {self.subject!r} ({self.status.value})>"
