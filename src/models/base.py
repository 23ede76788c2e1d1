"""Declarative base, shared mixins and column helpers for all models."""

from datetime import datetime

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Column ``info`` key marking a column that stores a user id.
# The manifest coverage check relies on it to find user-linked tables.
USER_REFERENCE = "user_reference"

# Index ``info`` key naming the logical lookup a deletion manifest refers to
# (``by_user``); physical index names must stay unique per schema.
LOOKUP_NAME = "lookup_name"


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by the database."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


def user_reference_column(nullable: bool = False) -> Mapped[str]:
    """A string column holding a user id (or the anonymized placeholder).

    User references are deliberately not foreign keys: an anonymized row
    keeps the placeholder value after the referenced account is gone.
    """
    return mapped_column(
        String(64),
        nullable=nullable,
        info={USER_REFERENCE: True},
    )
