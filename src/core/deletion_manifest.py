"""Account deletion manifest.

Declares, per table and per user-referencing field, what happens to a
row when the referenced account is deleted. Every table that stores a
user id must appear either under ``cascade`` or under ``preserve``;
``scripts/verify_cascade_coverage.py`` checks this against the models.

Strategies:

- ``delete``: remove the whole row. A single ``delete`` field on a row
  wins over every other field's strategy.
- ``anonymize``: overwrite the field with the anonymized placeholder.
- ``reassign``: hand the field to another user chosen by a
  reassignment policy.
- ``preserve``: leave the field untouched.
"""

from enum import StrEnum, auto
from pathlib import Path
from typing import Final, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

DEFAULT_BATCH_SIZE: Final[int] = 200
DEFAULT_INDEX_NAME: Final[str] = "by_user"


class DeletionStrategy(StrEnum):
    """What to do with a field that references the deleted user."""

    delete = auto()
    anonymize = auto()
    reassign = auto()
    preserve = auto()


class TableDeletionConfig(BaseModel):
    """Deletion settings for one cascade table."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: dict[str, DeletionStrategy] = Field(min_length=1)
    batch_size: int = Field(
        default=DEFAULT_BATCH_SIZE,
        gt=0,
        description="Rows fetched and processed per batch.",
    )
    index_name: str = Field(
        default=DEFAULT_INDEX_NAME,
        min_length=1,
        description="Lookup used to find rows referencing the user.",
    )


class DeletionManifest(BaseModel):
    """The complete, read-only deletion configuration.

    ``cascade`` keeps declaration order; that order is the order in which
    the cascade visits tables.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cascade: dict[str, TableDeletionConfig] = Field(default_factory=dict)
    preserve: frozenset[str] = Field(default_factory=frozenset)
    storage_fields: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_cascade_and_preserve_disjoint(self) -> Self:
        overlap = sorted(set(self.cascade) & self.preserve)
        if overlap:
            raise ValueError(
                "Tables cannot be both cascaded and preserved: " + ", ".join(overlap)
            )
        return self


# Canonical manifest for the workspace schema.
DELETION_MANIFEST: Final[DeletionManifest] = DeletionManifest(
    cascade={
        # Private mail drafts and sent items go with their author
        "email_messages": TableDeletionConfig(
            fields={"created_by": DeletionStrategy.delete},
        ),
        "calendar_events": TableDeletionConfig(
            fields={"created_by": DeletionStrategy.delete},
        ),
        # Shared organization records survive with an anonymized author
        "clients": TableDeletionConfig(
            fields={
                "created_by": DeletionStrategy.anonymize,
                "assigned_to": DeletionStrategy.reassign,
            },
        ),
        "projects": TableDeletionConfig(
            fields={
                "created_by": DeletionStrategy.anonymize,
                "assigned_to": DeletionStrategy.reassign,
            },
        ),
        "finance_entries": TableDeletionConfig(
            fields={"created_by": DeletionStrategy.anonymize},
            batch_size=500,
        ),
    },
    preserve=frozenset({"account_deletion_logs"}),
    storage_fields={
        "users": ("avatar_key", "brand_logo_key"),
        "email_messages": ("attachment_keys",),
    },
)


def load_manifest(path: str | None = None) -> DeletionManifest:
    """Return the manifest stored as JSON at ``path``, or the canonical one.

    Raises:
        OSError: If the file cannot be read.
        pydantic.ValidationError: If the JSON does not describe a valid manifest.
    """
    if not path:
        return DELETION_MANIFEST
    return DeletionManifest.model_validate_json(Path(path).read_text(encoding="utf-8"))
