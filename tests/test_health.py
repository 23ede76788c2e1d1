"""Tests for health check endpoints.

- GET /health reports database and migration status
- /health/live and /health/ready work as container liveness/readiness probes
"""

from unittest.mock import AsyncMock, patch

import pytest


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    @pytest.mark.parametrize(("migrated", "expected"), [(True, "applied"), (False, "pending")])
    async def test_returns_healthy_with_db_connected(self, client, migrated, expected):
        with (
            patch(
                "src.routers.health.check_database_connection", new_callable=AsyncMock
            ) as mock_db,
            patch(
                "src.routers.health.check_migrations_current", new_callable=AsyncMock
            ) as mock_migrations,
        ):
            mock_db.return_value = True
            mock_migrations.return_value = migrated

            response = await client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "database": "connected",
            "migrations": expected,
        }

    async def test_returns_degraded_when_db_disconnected(self, client):
        with patch(
            "src.routers.health.check_database_connection", new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = False

            response = await client.get("/health")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "degraded"
        assert data["database"] == "disconnected"
        assert data["migrations"] == "unknown"


class TestLivenessProbe:
    """Tests for /health/live endpoint."""

    async def test_returns_alive(self, client):
        """Liveness never checks external dependencies like the database."""
        response = await client.get("/health/live")

        assert response.status_code == 200
        assert response.json()["status"] == "alive"


class TestReadinessProbe:
    """Tests for /health/ready endpoint."""

    async def test_returns_ready_with_db_connected(self, client):
        with patch(
            "src.routers.health.check_database_connection", new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = True

            response = await client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {"status": "ready", "database": "connected"}

    async def test_returns_not_ready_when_db_disconnected(self, client):
        with patch(
            "src.routers.health.check_database_connection", new_callable=AsyncMock
        ) as mock_db:
            mock_db.return_value = False

            response = await client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"


class TestRootEndpoint:
    async def test_returns_api_info(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Workspace API"
        assert data["version"] == "0.1.0"
        assert data["docs"] == "/docs"
