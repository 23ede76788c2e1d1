"""Database migration utilities."""

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import text

from src.database import get_engine
from src.logging_config import get_logger

logger = get_logger(__name__)

APP_ROOT = Path(__file__).resolve().parent.parent.parent


def get_alembic_config() -> Config:
    """Alembic configuration from the project's alembic.ini."""
    alembic_ini = APP_ROOT / "alembic.ini"
    if not alembic_ini.exists():
        raise FileNotFoundError(f"alembic.ini not found at {alembic_ini}")

    config = Config(str(alembic_ini))
    config.set_main_option("script_location", str(APP_ROOT / "migrations"))
    return config


def run_migrations() -> None:
    """Upgrade the database to the latest revision."""
    logger.info("Running database migrations...")
    try:
        command.upgrade(get_alembic_config(), "head")
    except Exception:
        logger.exception("Database migration failed")
        raise
    logger.info("Database migrations completed successfully")


async def check_migrations_current() -> bool:
    """True if the database has an applied migration revision."""
    try:
        async with get_engine().connect() as conn:
            result = await conn.execute(
                text("SELECT version_num FROM alembic_version LIMIT 1")
            )
            return result.fetchone() is not None
    except Exception:
        return False
