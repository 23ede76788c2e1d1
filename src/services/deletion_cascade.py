"""Account deletion cascade.

Walks every cascade table of the deletion manifest and applies the
configured strategy to each row that references the deleted user:

1. Tables are visited one at a time in manifest order.
2. Rows are fetched in batches through the table's lookup index, resuming
   after the last row id seen.
3. A row with any ``delete`` field is removed, after its blob files; any
   other row gets a single patch (anonymize / reassign, preserve untouched).

Re-running a completed cascade is a no-op: nothing references the user
any more, so every lookup comes back empty. The first failing table halts
the run; a retry simply starts again from the top.
"""

import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from src.config import settings
from src.core.deletion_manifest import DeletionStrategy
from src.core.strategy_resolver import StrategyResolver
from src.logging_config import get_logger
from src.services.blob_storage import BlobStorage, StorageDeleteError
from src.services.document_store import DOCUMENT_ID_FIELD, Document, DocumentStore

logger = get_logger(__name__)


class CascadeTableError(Exception):
    """Processing of one cascade table failed."""

    def __init__(self, table: str, cause: Exception):
        super().__init__(f"Cascade failed on table '{table}': {cause}")
        self.table = table
        self.cause = cause


class ReassignmentPolicy(Protocol):
    """Chooses the new owner of a field being reassigned."""

    async def resolve_target(
        self, table: str, field: str, document: Document, user_id: str
    ) -> str | None:
        """Return the user id to reassign to, or None to leave the field as is."""
        ...


@dataclass(frozen=True)
class DeletionOptions:
    delete_storage_files: bool = True
    skip_external_identity_deletion: bool = False
    reason: str | None = None


@dataclass
class TableCounts:
    deleted: int = 0
    anonymized: int = 0


@dataclass
class DeletionResult:
    """Outcome of one cascade run."""

    success: bool = True
    tables_processed: list[str] = field(default_factory=list)
    records_deleted: int = 0
    records_anonymized: int = 0
    files_deleted: list[str] = field(default_factory=list)
    duration_ms: int = 0
    error_message: str | None = None
    batches_processed: int = 0
    table_counts: dict[str, TableCounts] = field(default_factory=dict)

    def counts_for(self, table: str) -> TableCounts:
        return self.table_counts.setdefault(table, TableCounts())


def _references(value: Any, user_id: str) -> bool:
    return value is not None and str(value) == user_id


def storage_keys(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    if isinstance(value, Iterable):
        return [str(key) for key in value if key]
    return [str(value)]


async def delete_stored_files(
    storage: BlobStorage,
    table: str,
    values: Mapping[str, Any],
    result: DeletionResult,
) -> None:
    """Delete the blobs named by each storage field value of one row.

    Successfully deleted keys are appended to ``result.files_deleted``.
    """
    for field_name, value in values.items():
        for key in storage_keys(value):
            try:
                await storage.delete_file(key)
            except StorageDeleteError as exc:
                # Orphaned blobs are swept separately; never block the row delete
                logger.warning(
                    "Blob deletion failed",
                    table=table,
                    field=field_name,
                    storage_key=key,
                    error=str(exc),
                )
                continue
            result.files_deleted.append(key)


class CascadeExecutor:
    """Applies a deletion manifest to every row referencing one user."""

    def __init__(
        self,
        resolver: StrategyResolver,
        store: DocumentStore,
        storage: BlobStorage,
        reassignment_policy: ReassignmentPolicy | None = None,
        placeholder: str | None = None,
    ):
        self._resolver = resolver
        self._store = store
        self._storage = storage
        self._reassignment_policy = reassignment_policy
        self._placeholder = (
            placeholder if placeholder is not None else settings.anonymized_placeholder
        )

    async def execute(
        self, target_user_id: str, options: DeletionOptions | None = None
    ) -> DeletionResult:
        """Run the cascade for ``target_user_id``.

        Never raises for table-level failures: the first one stops the run
        and is reported through ``success`` / ``error_message``.
        """
        options = options or DeletionOptions()
        result = DeletionResult()
        started = time.perf_counter()

        for table in self._resolver.get_cascade_tables():
            if self._resolver.is_preserved_table(table):
                logger.warning("Skipping preserved table listed for cascade", table=table)
                continue

            try:
                await self._process_table(table, target_user_id, options, result)
            except Exception as exc:
                error = CascadeTableError(table, exc)
                logger.exception(
                    "Cascade halted",
                    table=table,
                    user_id=target_user_id,
                    tables_completed=list(result.tables_processed),
                )
                result.success = False
                result.error_message = str(error)
                break

            result.tables_processed.append(table)
            counts = result.counts_for(table)
            logger.info(
                "Cascade table processed",
                table=table,
                deleted=counts.deleted,
                anonymized=counts.anonymized,
            )

        result.duration_ms = int((time.perf_counter() - started) * 1000)
        return result

    async def _process_table(
        self,
        table: str,
        user_id: str,
        options: DeletionOptions,
        result: DeletionResult,
    ) -> None:
        batch_size = self._resolver.get_batch_size(table)
        index_name = self._resolver.get_index_name(table)
        result.counts_for(table)  # zero counts still show up in the audit entry
        cursor = None

        while True:
            batch = await self._store.fetch_batch(
                table, index_name, user_id, limit=batch_size, after=cursor
            )
            if not batch:
                break
            result.batches_processed += 1

            for document in batch:
                await self._process_document(table, document, user_id, options, result)

            cursor = batch[-1][DOCUMENT_ID_FIELD]

    async def _process_document(
        self,
        table: str,
        document: Document,
        user_id: str,
        options: DeletionOptions,
        result: DeletionResult,
    ) -> None:
        document_id = document[DOCUMENT_ID_FIELD]
        strategies = {
            name: self._resolver.get_field_strategy(table, name)
            or DeletionStrategy.preserve
            for name, value in document.items()
            if name != DOCUMENT_ID_FIELD and _references(value, user_id)
        }
        counts = result.counts_for(table)

        if DeletionStrategy.delete in strategies.values():
            if options.delete_storage_files:
                await self._delete_files(table, document, result)
            await self._store.delete_document(table, document_id)
            result.records_deleted += 1
            counts.deleted += 1
            return

        patch: dict[str, Any] = {}
        for name, strategy in strategies.items():
            if strategy is DeletionStrategy.anonymize:
                patch[name] = self._placeholder
            elif strategy is DeletionStrategy.reassign:
                target = await self._reassignment_target(table, name, document, user_id)
                if target is not None:
                    patch[name] = target

        if patch:
            await self._store.update_document(table, document_id, patch)
            result.records_anonymized += 1
            counts.anonymized += 1

    async def _reassignment_target(
        self, table: str, field_name: str, document: Document, user_id: str
    ) -> str | None:
        if self._reassignment_policy is None:
            logger.warning(
                "No reassignment policy configured; leaving field unchanged",
                table=table,
                field=field_name,
                document_id=str(document[DOCUMENT_ID_FIELD]),
            )
            return None

        target = await self._reassignment_policy.resolve_target(
            table, field_name, document, user_id
        )
        if target is None or target == user_id:
            logger.warning(
                "Reassignment policy returned no target; leaving field unchanged",
                table=table,
                field=field_name,
                document_id=str(document[DOCUMENT_ID_FIELD]),
            )
            return None
        return target

    async def _delete_files(
        self, table: str, document: Document, result: DeletionResult
    ) -> None:
        fields = self._resolver.get_storage_fields(table)
        await delete_stored_files(
            self._storage, table, {name: document.get(name) for name in fields}, result
        )
