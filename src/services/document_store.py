"""Generic row access used by the deletion cascade.

The cascade works on arbitrary tables, so rows travel as plain
``dict[str, Any]`` keyed by column name. Every row carries its primary
key under ``"id"``.
"""

from collections.abc import Mapping
from typing import Any, Protocol

from sqlalchemy import MetaData, Table, delete, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.manifest_coverage import find_lookup_index_columns
from src.models import Base

DOCUMENT_ID_FIELD = "id"

Document = dict[str, Any]


class DocumentStoreError(Exception):
    """A lookup or mutation against the underlying store failed."""


class DocumentStore(Protocol):
    """Row lookup and mutation primitives the cascade needs."""

    async def fetch_batch(
        self,
        table: str,
        index_name: str,
        user_id: str,
        limit: int,
        after: Any | None = None,
    ) -> list[Document]:
        """Up to ``limit`` rows referencing ``user_id``, ordered by id.

        Only rows whose id is greater than ``after`` are returned when it
        is given.
        """
        ...

    async def delete_document(self, table: str, document_id: Any) -> None: ...

    async def update_document(
        self, table: str, document_id: Any, patch: Mapping[str, Any]
    ) -> None: ...


class SQLAlchemyDocumentStore:
    """DocumentStore over an async SQLAlchemy session.

    Each mutation is committed on its own so every row change is atomic
    and durable before the cascade moves on.
    """

    def __init__(self, db: AsyncSession, metadata: MetaData | None = None):
        self._db = db
        self._metadata = metadata if metadata is not None else Base.metadata

    def _table(self, name: str) -> Table:
        table = self._metadata.tables.get(name)
        if table is None:
            raise DocumentStoreError(f"Unknown table '{name}'")
        return table

    async def fetch_batch(
        self,
        table: str,
        index_name: str,
        user_id: str,
        limit: int,
        after: Any | None = None,
    ) -> list[Document]:
        sa_table = self._table(table)
        columns = find_lookup_index_columns(sa_table, index_name)
        if not columns:
            raise DocumentStoreError(
                f"Lookup index '{index_name}' not found on table '{table}'"
            )

        pk = sa_table.c[DOCUMENT_ID_FIELD]
        stmt = (
            select(sa_table)
            .where(or_(*(sa_table.c[name] == user_id for name in columns)))
            .order_by(pk)
            .limit(limit)
        )
        if after is not None:
            stmt = stmt.where(pk > after)

        try:
            result = await self._db.execute(stmt)
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise DocumentStoreError(f"Failed to query '{table}': {exc}") from exc
        return [dict(row) for row in result.mappings().all()]

    async def delete_document(self, table: str, document_id: Any) -> None:
        sa_table = self._table(table)
        try:
            await self._db.execute(
                delete(sa_table).where(sa_table.c[DOCUMENT_ID_FIELD] == document_id)
            )
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise DocumentStoreError(
                f"Failed to delete {table}/{document_id}: {exc}"
            ) from exc

    async def update_document(
        self, table: str, document_id: Any, patch: Mapping[str, Any]
    ) -> None:
        sa_table = self._table(table)
        try:
            await self._db.execute(
                update(sa_table)
                .where(sa_table.c[DOCUMENT_ID_FIELD] == document_id)
                .values(**patch)
            )
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            raise DocumentStoreError(
                f"Failed to update {table}/{document_id}: {exc}"
            ) from exc
