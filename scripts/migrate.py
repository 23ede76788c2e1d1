#!/usr/bin/env python3
"""Apply pending database migrations before the API starts.

Usage:
    DATABASE_URL=postgresql+asyncpg://... python scripts/migrate.py
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import settings  # noqa: E402
from src.core.migrations import run_migrations  # noqa: E402
from src.logging_config import setup_logging  # noqa: E402


def main() -> int:
    setup_logging(
        log_format=settings.log_format,
        log_level=settings.log_level,
        service_name=settings.service_name,
    )
    run_migrations()
    return 0


if __name__ == "__main__":
    sys.exit(main())
