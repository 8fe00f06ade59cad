"""Tests for health check API endpoints."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from glossa.database.core import DatabaseService
from glossa.system.path_resolver import PathResolver
from glossa.web.core.container import Container
from glossa.web.routers import health_api_routes


class TestHealthEndpoints:
    """Health endpoints served by the full application."""

    async def test_health(self, async_client):
        response = await async_client.get("/api/health/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "glossa"
        assert data["timestamp"].endswith("Z")
        assert isinstance(data["version"], str)

    async def test_liveness(self, async_client):
        response = await async_client.get("/api/health/live")

        assert response.status_code == 200
        assert response.json() == {"status": "alive"}

    async def test_readiness(self, async_client):
        response = await async_client.get("/api/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"]["database"] is True
        assert data["checks"]["screenshot_storage"] is True


def working_db_service() -> MagicMock:
    session = MagicMock()
    session.execute = AsyncMock()

    @asynccontextmanager
    async def get_async_db():
        yield session

    db_service = MagicMock(spec=DatabaseService)
    db_service.get_async_db.side_effect = get_async_db
    return db_service


def failing_db_service() -> MagicMock:
    db_service = MagicMock(spec=DatabaseService)
    db_service.get_async_db.side_effect = OperationalError(
        "SELECT 1", {}, Exception("database is locked")
    )
    return db_service


@pytest.fixture
def readiness_client(tmp_path):
    """Build a health-only app from a database service and a screenshot directory."""

    def build(db_service: MagicMock, screenshots_dir) -> TestClient:
        app = FastAPI()
        container = Container()

        mock_path_resolver = MagicMock(spec=PathResolver)
        mock_path_resolver.get_screenshots_dir.return_value = screenshots_dir
        container.database_service.override(db_service)
        container.path_resolver.override(mock_path_resolver)
        container.wire(modules=["glossa.web.routers.health_api_routes"])
        app.container = container  # type: ignore[attr-defined]
        app.include_router(health_api_routes.router, prefix="/api")
        return TestClient(app)

    return build


def test_readiness_reports_database_failure(readiness_client, tmp_path):
    client = readiness_client(failing_db_service(), tmp_path)

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"]["database"] is False
    assert data["checks"]["screenshot_storage"] is True


def test_readiness_reports_missing_screenshot_storage(readiness_client, tmp_path):
    client = readiness_client(working_db_service(), tmp_path / "missing")

    response = client.get("/api/health/ready")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "not_ready"
    assert data["checks"]["database"] is True
    assert data["checks"]["screenshot_storage"] is False


def test_version_when_not_installed(monkeypatch):
    def missing(name):
        raise health_api_routes.PackageNotFoundError(name)

    monkeypatch.setattr(health_api_routes, "version", missing)

    assert health_api_routes.get_version() == "unknown"
