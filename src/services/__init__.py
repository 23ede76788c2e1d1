# Business Logic Services
from src.services.account_deletion import (
    AccountDeletionError,
    InvalidConfirmationError,
    UnauthenticatedError,
    UserNotFoundError,
    delete_current_account,
)
from src.services.blob_storage import BlobStorage, LocalBlobStorage, StorageDeleteError
from src.services.deletion_audit import list_deletion_logs, write_deletion_log
from src.services.deletion_cascade import (
    CascadeExecutor,
    CascadeTableError,
    DeletionOptions,
    DeletionResult,
    ReassignmentPolicy,
)
from src.services.document_store import (
    DocumentStore,
    DocumentStoreError,
    SQLAlchemyDocumentStore,
)
from src.services.identity_provider import IdentityProviderClient, IdentityProviderError

__all__ = [
    "AccountDeletionError",
    "BlobStorage",
    "CascadeExecutor",
    "CascadeTableError",
    "DeletionOptions",
    "DeletionResult",
    "DocumentStore",
    "DocumentStoreError",
    "IdentityProviderClient",
    "IdentityProviderError",
    "InvalidConfirmationError",
    "LocalBlobStorage",
    "ReassignmentPolicy",
    "SQLAlchemyDocumentStore",
    "StorageDeleteError",
    "UnauthenticatedError",
    "UserNotFoundError",
    "delete_current_account",
    "list_deletion_logs",
    "write_deletion_log",
]
