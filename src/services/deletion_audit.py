"""Account deletion journal writer.

Appends one AccountDeletionLog row per cascade run, successful or not.
Rows are never updated or deleted afterwards.
"""

from dataclasses import asdict
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.logging_config import get_logger
from src.models.account_deletion_log import (
    AccountDeletionLog,
    DeletionInitiator,
    DeletionOutcome,
)
from src.models.user import User
from src.services.deletion_cascade import DeletionResult

logger = get_logger(__name__)


async def write_deletion_log(
    db: AsyncSession,
    *,
    target: User,
    initiated_by: str,
    initiator_role: DeletionInitiator,
    result: DeletionResult,
    started_at: datetime,
    completed_at: datetime,
    reason: str | None = None,
    account_deleted: bool = False,
    external_account_deleted: bool = False,
    external_deletion_error: str | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AccountDeletionLog | None:
    """Insert and commit the journal entry for one cascade run.

    Returns the entry, or None if it could not be written. A failed write
    is logged with its traceback but never raised, so the caller can still
    report the deletion outcome.
    """
    entry = AccountDeletionLog(
        target_user_id=str(target.id),
        target_external_id=target.external_id,
        target_email=target.email,
        target_display_name=target.display_name,
        target_role=target.role.value if target.role else None,
        initiated_by=initiated_by,
        initiator_role=initiator_role,
        reason=reason,
        status=DeletionOutcome.COMPLETED if result.success else DeletionOutcome.FAILED,
        tables_processed=list(result.tables_processed),
        table_counts={
            table: asdict(counts) for table, counts in result.table_counts.items()
        },
        records_deleted=result.records_deleted,
        records_anonymized=result.records_anonymized,
        files_deleted=list(result.files_deleted),
        batches_processed=result.batches_processed,
        duration_ms=result.duration_ms,
        error_message=result.error_message,
        account_deleted=account_deleted,
        external_account_deleted=external_account_deleted,
        external_deletion_error=external_deletion_error,
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent else None,
        started_at=started_at,
        completed_at=completed_at,
    )
    try:
        db.add(entry)
        await db.commit()
    except Exception:
        await db.rollback()
        logger.exception(
            "Failed to write account deletion log",
            target_user_id=str(target.id),
            success=result.success,
        )
        return None

    logger.info(
        "Account deletion logged",
        log_id=str(entry.id),
        target_user_id=str(target.id),
        status=entry.status.value,
    )
    return entry


async def list_deletion_logs(
    db: AsyncSession, limit: int = 100
) -> list[AccountDeletionLog]:
    """Journal entries, newest first."""
    result = await db.execute(
        select(AccountDeletionLog)
        .order_by(AccountDeletionLog.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
