"""Async database engine and session handling.

Nothing connects at import time: the engine is built on first use so it
binds to the event loop that is actually running the application.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from src.config import settings
from src.logging_config import get_logger

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def engine_options() -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine``.

    Tests get a NullPool so no connection outlives the event loop of the
    test that opened it.
    """
    if settings.testing:
        return {"poolclass": NullPool}
    return {
        "echo": settings.log_format == "text",
        "pool_size": 5,
        "max_overflow": 10,
        "pool_pre_ping": True,
    }


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(settings.database_url, **engine_options())
    return _engine


def get_session_maker() -> async_sessionmaker[AsyncSession]:
    # Row objects stay readable after commit; the deletion flow reads the
    # account snapshot after removing it.
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(get_engine(), expire_on_commit=False)
    return _session_factory


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding one session per request."""
    async with get_session_maker()() as session:
        yield session


async def check_database_connection() -> bool:
    """True when the database answers ``SELECT 1``."""
    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("Database connectivity check failed", error=str(exc))
        return False
    return True


async def close_database() -> None:
    """Dispose the engine; the next ``get_engine`` call builds a new one."""
    global _engine, _session_factory
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _session_factory = None
