"""Calendar event model."""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import LOOKUP_NAME, Base, TimestampMixin, user_reference_column


class CalendarEvent(Base, TimestampMixin):
    """A calendar entry on a member's workspace calendar."""

    __tablename__ = "calendar_events"

    __table_args__ = (
        Index(
            "ix_calendar_events_by_user",
            "created_by",
            info={LOOKUP_NAME: "by_user"},
        ),
        Index("ix_calendar_events_org_start", "org_id", "start_time"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[str] = mapped_column(String(64), nullable=False)

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    attendees: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)

    created_by: Mapped[str] = user_reference_column()

    def __repr__(self) -> str:
        return f"<CalendarEvent {self.title!r} at {self.start_time}>"
