"""Pytest configuration and shared fixtures.

Most deletion tests run against in-memory fakes of the document store and
blob storage; both append to one shared call log so tests can assert on
the order of side effects across them. Tests using ``db_session`` run
against the migrated database at DATABASE_URL and are skipped without one.
"""

import os
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

# Set testing mode BEFORE importing app to use NullPool
os.environ["TESTING"] = "true"

from src.config import settings

# Override settings for testing
settings.testing = True

from src.core.deletion_manifest import DELETION_MANIFEST
from src.core.migrations import run_migrations
from src.core.strategy_resolver import StrategyResolver
from src.database import close_database, get_session_maker
from src.main import app
from src.services.blob_storage import StorageDeleteError
from src.services.document_store import DOCUMENT_ID_FIELD, Document


class FakeDocumentStore:
    """In-memory DocumentStore keyed by table name.

    Rows match a lookup when any column listed in ``lookup_columns`` for
    their table equals the user id; by default every column is checked.
    """

    def __init__(
        self,
        tables: Mapping[str, list[Document]] | None = None,
        calls: list[tuple] | None = None,
        lookup_columns: Mapping[str, tuple[str, ...]] | None = None,
    ):
        self.tables: dict[str, list[Document]] = {
            name: [dict(row) for row in rows] for name, rows in (tables or {}).items()
        }
        self.calls = calls if calls is not None else []
        self.lookup_columns = dict(lookup_columns or {})
        self.fail_on: dict[tuple[str, str], Exception] = {}

    def fail(self, operation: str, table: str, exc: Exception | None = None) -> None:
        self.fail_on[(operation, table)] = exc or RuntimeError(f"{operation} failed")

    def _check(self, operation: str, table: str) -> None:
        exc = self.fail_on.get((operation, table))
        if exc is not None:
            raise exc

    def _matches(self, table: str, row: Document, user_id: str) -> bool:
        columns = self.lookup_columns.get(table)
        values = (
            [row.get(name) for name in columns]
            if columns
            else [v for k, v in row.items() if k != DOCUMENT_ID_FIELD]
        )
        return any(value is not None and str(value) == user_id for value in values)

    async def fetch_batch(
        self,
        table: str,
        index_name: str,
        user_id: str,
        limit: int,
        after: Any | None = None,
    ) -> list[Document]:
        self.calls.append(("fetch", table, after))
        self._check("fetch", table)
        rows = sorted(
            (
                row
                for row in self.tables.get(table, [])
                if self._matches(table, row, user_id)
                and (after is None or row[DOCUMENT_ID_FIELD] > after)
            ),
            key=lambda row: row[DOCUMENT_ID_FIELD],
        )
        return [dict(row) for row in rows[:limit]]

    async def delete_document(self, table: str, document_id: Any) -> None:
        self.calls.append(("delete", table, document_id))
        self._check("delete", table)
        self.tables[table] = [
            row for row in self.tables.get(table, [])
            if row[DOCUMENT_ID_FIELD] != document_id
        ]

    async def update_document(
        self, table: str, document_id: Any, patch: Mapping[str, Any]
    ) -> None:
        self.calls.append(("update", table, document_id, dict(patch)))
        self._check("update", table)
        for row in self.tables.get(table, []):
            if row[DOCUMENT_ID_FIELD] == document_id:
                row.update(patch)

    def row(self, table: str, document_id: Any) -> Document | None:
        for row in self.tables.get(table, []):
            if row[DOCUMENT_ID_FIELD] == document_id:
                return row
        return None

    def mutations(self) -> list[tuple]:
        return [call for call in self.calls if call[0] in ("delete", "update")]


class FakeBlobStorage:
    """In-memory BlobStorage; keys in ``failing`` raise StorageDeleteError."""

    def __init__(self, calls: list[tuple] | None = None, failing: set[str] | None = None):
        self.calls = calls if calls is not None else []
        self.failing = failing or set()
        self.deleted: list[str] = []

    async def delete_file(self, storage_key: str) -> None:
        self.calls.append(("delete_file", storage_key))
        if storage_key in self.failing:
            raise StorageDeleteError(f"Failed to delete {storage_key!r}")
        self.deleted.append(storage_key)


@pytest.fixture
def call_log() -> list[tuple]:
    return []


@pytest.fixture
def document_store(call_log) -> FakeDocumentStore:
    return FakeDocumentStore(calls=call_log)


@pytest.fixture
def blob_storage(call_log) -> FakeBlobStorage:
    return FakeBlobStorage(calls=call_log)


@pytest.fixture
def resolver() -> StrategyResolver:
    return StrategyResolver(DELETION_MANIFEST)


@pytest.fixture(scope="session")
def migrated_database() -> None:
    """Bring the test database to the latest revision.

    Tests that need a real database are skipped when none is reachable.
    """
    try:
        run_migrations()
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"Database not available: {exc}")


@pytest_asyncio.fixture
async def db_session(migrated_database) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for each test.

    The deletion flow commits as it goes, so tests remove their own rows.
    """
    async with get_session_maker()() as session:
        yield session
        await session.rollback()
    await close_database()


@pytest_asyncio.fixture
async def client() -> AsyncGenerator[AsyncClient, None]:
    """Provide an async HTTP client for testing the API."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def store_factory(call_log):
    """Build a FakeDocumentStore that records into the shared call log."""

    def _make(tables=None, lookup_columns=None) -> FakeDocumentStore:
        return FakeDocumentStore(tables, calls=call_log, lookup_columns=lookup_columns)

    return _make


@pytest.fixture
def storage_factory(call_log):
    """Build a FakeBlobStorage that records into the shared call log."""

    def _make(failing: set[str] | None = None) -> FakeBlobStorage:
        return FakeBlobStorage(calls=call_log, failing=failing)

    return _make
