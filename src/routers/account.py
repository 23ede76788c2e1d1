"""Account router: self-service account deletion."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.auth import OptionalIdentity
from src.core.strategy_resolver import StrategyResolver, get_strategy_resolver
from src.database import get_db
from src.schemas.account_deletion import AccountDeletionRequest, AccountDeletionResponse
from src.services.account_deletion import AccountDeletionError, delete_current_account
from src.services.blob_storage import BlobStorage, get_blob_storage
from src.services.deletion_cascade import ReassignmentPolicy
from src.services.document_store import DocumentStore, SQLAlchemyDocumentStore
from src.services.identity_provider import IdentityProviderClient, get_identity_provider

router = APIRouter(prefix="/api/account", tags=["account"])


def get_document_store(db: AsyncSession = Depends(get_db)) -> DocumentStore:
    return SQLAlchemyDocumentStore(db)


def get_reassignment_policy() -> ReassignmentPolicy | None:
    """No reassignment policy is wired; ``reassign`` fields are left unchanged.

    Override this dependency to plug one in.
    """
    return None


@router.post("/delete", response_model=AccountDeletionResponse)
async def delete_account(
    body: AccountDeletionRequest,
    request: Request,
    identity: OptionalIdentity,
    db: AsyncSession = Depends(get_db),
    store: DocumentStore = Depends(get_document_store),
    resolver: StrategyResolver = Depends(get_strategy_resolver),
    storage: BlobStorage = Depends(get_blob_storage),
    identity_provider: IdentityProviderClient = Depends(get_identity_provider),
    reassignment_policy: ReassignmentPolicy | None = Depends(get_reassignment_policy),
) -> AccountDeletionResponse:
    """Permanently delete the signed-in user's account.

    Requires confirmation_string to be exactly "DELETE" (case-sensitive).
    The account is always the caller's own, taken from the session token.
    Rows referencing the user are deleted, anonymized, reassigned or kept
    according to the deletion manifest; uploaded files are removed.

    A failure part-way through still returns 200 with ``success=false``;
    calling the endpoint again resumes safely.
    """
    try:
        return await delete_current_account(
            identity=identity,
            body=body,
            db=db,
            store=store,
            resolver=resolver,
            storage=storage,
            identity_provider=identity_provider,
            reassignment_policy=reassignment_policy,
            ip_address=request.client.host if request.client else None,
            user_agent=request.headers.get("User-Agent"),
        )
    except AccountDeletionError as exc:
        headers = (
            {"WWW-Authenticate": "Bearer"}
            if exc.status_code == status.HTTP_401_UNAUTHORIZED
            else None
        )
        raise HTTPException(
            status_code=exc.status_code, detail=str(exc), headers=headers
        ) from exc
