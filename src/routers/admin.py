"""Admin router: read-only access to the account deletion journal."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth import require_admin
from src.database import get_db
from src.schemas.account_deletion import DeletionLogListResponse, DeletionLogResponse
from src.services.deletion_audit import list_deletion_logs

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get(
    "/deletion-logs",
    response_model=DeletionLogListResponse,
    dependencies=[Depends(require_admin)],
)
async def get_deletion_logs(
    limit: int = Query(default=100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
) -> DeletionLogListResponse:
    """List account deletion journal entries, newest first.

    The journal is append-only; there is no endpoint to edit or remove entries.
    """
    entries = await list_deletion_logs(db, limit=limit)
    return DeletionLogListResponse(
        entries=[DeletionLogResponse.model_validate(e) for e in entries],
        total=len(entries),
    )
