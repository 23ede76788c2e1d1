"""Self-service account deletion.

The only way for a user to delete an account. The target is always the
authenticated caller's own account: nothing in this flow accepts a user
id from the request.

Flow:
1. Check the caller is authenticated, the confirmation text matches, and
   an account exists for the identity (in that order, before any write).
2. Tombstone the account, then run the deletion cascade.
3. On success, remove the account row and its files, then (unless
   deferred) the identity provider account. On failure, mark the
   tombstone failed so a retry can pick it up.
4. Append the journal entry and build the response.
"""

import uuid
from datetime import UTC, datetime

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config import settings
from src.core.security import Identity
from src.core.strategy_resolver import StrategyResolver
from src.logging_config import deletion_run_id_ctx, get_logger
from src.models.account_deletion_log import DeletionInitiator
from src.models.user import DeletionStatus, User
from src.schemas.account_deletion import (
    AccountDeletionDetails,
    AccountDeletionRequest,
    AccountDeletionResponse,
)
from src.services.blob_storage import BlobStorage
from src.services.deletion_audit import write_deletion_log
from src.services.deletion_cascade import (
    CascadeExecutor,
    DeletionOptions,
    DeletionResult,
    ReassignmentPolicy,
    delete_stored_files,
)
from src.services.document_store import DocumentStore, SQLAlchemyDocumentStore
from src.services.identity_provider import IdentityProviderClient, IdentityProviderError

logger = get_logger(__name__)

ACCOUNT_TABLE = "users"


class AccountDeletionError(Exception):
    """A precondition of account deletion failed; nothing was changed."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthenticatedError(AccountDeletionError):
    status_code = status.HTTP_401_UNAUTHORIZED


class InvalidConfirmationError(AccountDeletionError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class UserNotFoundError(AccountDeletionError):
    status_code = status.HTTP_404_NOT_FOUND


def build_deletion_response(result: DeletionResult) -> AccountDeletionResponse:
    """Summarise a cascade result for the caller."""
    if result.success:
        message = (
            f"Account deleted successfully. {result.records_deleted} records removed, "
            f"{result.records_anonymized} anonymized, "
            f"{len(result.files_deleted)} files deleted "
            f"across {len(result.tables_processed)} tables in {result.duration_ms}ms."
        )
    else:
        message = f"Deletion failed: {result.error_message}"

    return AccountDeletionResponse(
        success=result.success,
        message=message,
        details=AccountDeletionDetails(
            tables_processed=list(result.tables_processed),
            records_deleted=result.records_deleted,
            records_anonymized=result.records_anonymized,
            files_deleted=len(result.files_deleted),
            duration=result.duration_ms,
        ),
    )


async def _mark_deletion_status(
    db: AsyncSession, user: User, deletion_status: DeletionStatus
) -> None:
    """Record the tombstone state; a failed write is logged, not raised."""
    user.deletion_status = deletion_status
    if deletion_status is DeletionStatus.PENDING:
        user.deletion_started_at = datetime.now(UTC)
    try:
        await db.commit()
    except SQLAlchemyError:
        await db.rollback()
        logger.exception(
            "Failed to record account deletion status",
            user_id=str(user.id),
            deletion_status=deletion_status.value,
        )


async def _remove_account_record(
    db: AsyncSession,
    user: User,
    resolver: StrategyResolver,
    storage: BlobStorage,
    options: DeletionOptions,
    result: DeletionResult,
) -> None:
    """Delete the account's own files, then the account row."""
    if options.delete_storage_files:
        fields = resolver.get_storage_fields(ACCOUNT_TABLE)
        await delete_stored_files(
            storage,
            ACCOUNT_TABLE,
            {name: getattr(user, name, None) for name in fields},
            result,
        )

    await db.delete(user)
    await db.commit()


async def delete_current_account(
    *,
    identity: Identity | None,
    body: AccountDeletionRequest,
    db: AsyncSession,
    resolver: StrategyResolver,
    storage: BlobStorage,
    identity_provider: IdentityProviderClient,
    store: DocumentStore | None = None,
    reassignment_policy: ReassignmentPolicy | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AccountDeletionResponse:
    """Delete the authenticated caller's account and everything it owns.

    Raises:
        UnauthenticatedError: No valid identity.
        InvalidConfirmationError: Confirmation text is not exactly "DELETE".
        UserNotFoundError: No account exists for the identity.

    Cascade failures are not raised; they come back as ``success=False``.
    """
    if identity is None:
        raise UnauthenticatedError("Must be signed in to delete an account")

    if body.confirmation_string != settings.deletion_confirmation_text:
        raise InvalidConfirmationError(
            f'confirmation_string must be exactly "{settings.deletion_confirmation_text}"'
        )

    db_result = await db.execute(select(User).where(User.external_id == identity.subject))
    user = db_result.scalar_one_or_none()
    if user is None:
        # An authenticated identity without an account points to a sync problem
        logger.error("No account for authenticated identity", external_id=identity.subject)
        raise UserNotFoundError("No account exists for the signed-in identity")

    options = DeletionOptions(
        delete_storage_files=True,
        skip_external_identity_deletion=body.defer_identity_deletion,
        reason=body.reason,
    )
    target_user_id = str(user.id)
    token = deletion_run_id_ctx.set(uuid.uuid4().hex)
    try:
        logger.warning(
            "Account self-deletion initiated",
            user_id=target_user_id,
            external_id=user.external_id,
            reason=body.reason,
        )
        started_at = datetime.now(UTC)
        await _mark_deletion_status(db, user, DeletionStatus.PENDING)

        executor = CascadeExecutor(
            resolver,
            store if store is not None else SQLAlchemyDocumentStore(db),
            storage,
            reassignment_policy=reassignment_policy,
        )
        result = await executor.execute(target_user_id, options)

        account_deleted = False
        external_deleted = False
        external_error = None
        if result.success:
            try:
                await _remove_account_record(db, user, resolver, storage, options, result)
                account_deleted = True
            except SQLAlchemyError as exc:
                await db.rollback()
                logger.exception("Failed to remove account record", user_id=target_user_id)
                result.success = False
                result.error_message = f"Failed to remove account record: {exc}"

        if result.success:
            if not options.skip_external_identity_deletion:
                try:
                    await identity_provider.delete_external_account(user.external_id)
                    external_deleted = True
                except IdentityProviderError as exc:
                    external_error = str(exc)
                    logger.error(
                        "External identity deletion failed",
                        external_id=user.external_id,
                        error=external_error,
                    )
        else:
            await _mark_deletion_status(db, user, DeletionStatus.FAILED)

        await write_deletion_log(
            db,
            target=user,
            initiated_by=identity.subject,
            initiator_role=DeletionInitiator.SELF,
            result=result,
            started_at=started_at,
            completed_at=datetime.now(UTC),
            reason=options.reason,
            account_deleted=account_deleted,
            external_account_deleted=external_deleted,
            external_deletion_error=external_error,
            ip_address=ip_address,
            user_agent=user_agent,
        )

        if result.success:
            logger.warning(
                "Account self-deletion completed",
                user_id=target_user_id,
                tables=result.tables_processed,
                records_deleted=result.records_deleted,
                records_anonymized=result.records_anonymized,
                files_deleted=len(result.files_deleted),
                duration_ms=result.duration_ms,
            )
        else:
            logger.error(
                "Account self-deletion failed",
                user_id=target_user_id,
                error=result.error_message,
            )
        return build_deletion_response(result)
    finally:
        deletion_run_id_ctx.reset(token)
