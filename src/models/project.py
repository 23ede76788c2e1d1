"""Project model."""

import enum
import uuid
from datetime import date

from sqlalchemy import Date, Enum, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import LOOKUP_NAME, Base, TimestampMixin, user_reference_column


class ProjectStatus(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Project(Base, TimestampMixin):
    """A project belonging to an organization, optionally assigned to a member."""

    __tablename__ = "projects"

    __table_args__ = (
        Index(
            "ix_projects_by_user",
            "created_by",
            "assigned_to",
            info={LOOKUP_NAME: "by_user"},
        ),
        Index("ix_projects_org_status", "org_id", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    org_id: Mapped[str] = mapped_column(String(64), nullable=False)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text(), nullable=True)
    status: Mapped[ProjectStatus] = mapped_column(
        Enum(
            ProjectStatus,
            name="projectstatus",
            create_type=False,
            values_callable=lambda e: [member.value for member in e],
        ),
        nullable=False,
        default=ProjectStatus.ACTIVE,
    )
    start_date: Mapped[date | None] = mapped_column(Date(), nullable=True)
    end_date: Mapped[date | None] = mapped_column(Date(), nullable=True)

    created_by: Mapped[str] = user_reference_column()
    assigned_to: Mapped[str | None] = user_reference_column(nullable=True)

    def __repr__(self) -> str:
        return f"<Project {self.name} ({self.status.value})>"
