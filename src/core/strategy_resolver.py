"""Read-only lookups over a deletion manifest.

None of these lookups raise: an unknown table or field falls back to a
safe default so a resolver lookup can never abort a cascade halfway.
"""

from functools import lru_cache

from src.config import settings
from src.core.deletion_manifest import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_INDEX_NAME,
    DeletionManifest,
    DeletionStrategy,
    load_manifest,
)


class StrategyResolver:
    """Answers per-table and per-field questions about a manifest."""

    def __init__(self, manifest: DeletionManifest):
        self._manifest = manifest

    @property
    def manifest(self) -> DeletionManifest:
        return self._manifest

    def get_cascade_tables(self) -> list[str]:
        """Cascade tables in declaration order."""
        return list(self._manifest.cascade)

    def get_field_strategy(self, table: str, field: str) -> DeletionStrategy | None:
        """Configured strategy for ``table.field``, or None if there is none.

        Callers treat None as ``preserve``: an unconfigured field is never
        deleted.
        """
        config = self._manifest.cascade.get(table)
        if config is None:
            return None
        return config.fields.get(field)

    def is_preserved_table(self, table: str) -> bool:
        return table in self._manifest.preserve

    def get_storage_fields(self, table: str) -> list[str]:
        return list(self._manifest.storage_fields.get(table, ()))

    def get_batch_size(self, table: str) -> int:
        config = self._manifest.cascade.get(table)
        return config.batch_size if config is not None else DEFAULT_BATCH_SIZE

    def get_index_name(self, table: str) -> str:
        config = self._manifest.cascade.get(table)
        return config.index_name if config is not None else DEFAULT_INDEX_NAME


@lru_cache
def get_strategy_resolver() -> StrategyResolver:
    """Process-wide resolver built from the configured manifest.

    Resolved once during application startup and handed to routes through
    FastAPI dependency injection.
    """
    return StrategyResolver(load_manifest(settings.deletion_manifest_path or None))
