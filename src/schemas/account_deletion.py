"""Account deletion request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from src.models.account_deletion_log import DeletionInitiator, DeletionOutcome


class AccountDeletionRequest(BaseModel):
    """Request schema for deleting the caller's own account.

    The account to delete is always the authenticated caller; there is
    deliberately no field naming a user, and unknown fields are rejected.
    ``confirmation_string`` must be exactly "DELETE" (case-sensitive);
    the endpoint, not the schema, checks the value.
    """

    model_config = ConfigDict(extra="forbid")

    confirmation_string: str = Field(
        ...,
        max_length=20,
        description="Must be exactly 'DELETE' to confirm account deletion.",
    )
    reason: str | None = Field(
        default=None,
        max_length=1000,
        description="Optional reason, stored in the deletion journal.",
    )
    defer_identity_deletion: bool = Field(
        default=False,
        description=(
            "Leave the identity provider account in place; it is then removed "
            "by the provider's webhook instead."
        ),
    )


class AccountDeletionDetails(BaseModel):
    tables_processed: list[str]
    records_deleted: int
    records_anonymized: int
    files_deleted: int
    duration: int = Field(description="Cascade duration in milliseconds.")


class AccountDeletionResponse(BaseModel):
    """Response schema for an account deletion attempt."""

    success: bool
    message: str
    details: AccountDeletionDetails


class DeletionLogResponse(BaseModel):
    """One entry of the account deletion journal."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    target_user_id: str
    target_external_id: str
    target_email: str
    target_display_name: str | None
    initiated_by: str
    initiator_role: DeletionInitiator
    reason: str | None
    status: DeletionOutcome
    tables_processed: list[str]
    table_counts: dict[str, dict[str, int]]
    records_deleted: int
    records_anonymized: int
    files_deleted: list[str]
    batches_processed: int
    duration_ms: int
    error_message: str | None
    account_deleted: bool
    external_account_deleted: bool
    external_deletion_error: str | None
    started_at: datetime
    completed_at: datetime


class DeletionLogListResponse(BaseModel):
    entries: list[DeletionLogResponse]
    total: int
