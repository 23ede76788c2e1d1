"""Workspace FastAPI application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import settings, validate_secret_key
from src.core.strategy_resolver import get_strategy_resolver
from src.database import close_database
from src.logging_config import get_logger, setup_logging
from src.middleware import CorrelationIdMiddleware
from src.routers import account, admin, health

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Migrations are applied by scripts/migrate.py before the server starts
    validate_secret_key()

    # Load and validate the deletion manifest once; a bad manifest stops startup
    resolver = get_strategy_resolver()
    logger.info(
        "Deletion manifest loaded",
        cascade_tables=resolver.get_cascade_tables(),
        preserved_tables=sorted(resolver.manifest.preserve),
    )
    logger.info("Workspace API started")

    yield

    logger.info("Shutting down Workspace API...")
    await close_database()
    logger.info("Workspace API shutdown complete")


app = FastAPI(
    title="Workspace API",
    description="Multi-tenant workspace API",
    version="0.1.0",
    lifespan=lifespan,
)

# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(account.router)
app.include_router(admin.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "Workspace API",
        "version": "0.1.0",
        "docs": "/docs",
    }
