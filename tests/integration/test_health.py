"""Integration tests for the health endpoint."""

import pytest

from filetoken.core.config import get_settings
from filetoken.db.session import get_db
from filetoken.main import app


@pytest.mark.asyncio
async def test_healthy(client):
    response = await client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["database"] == "connected"
    assert data["environment"] == "test"
    assert data["storage"]["private"]["healthy"] is True
    assert data["storage"]["public"]["healthy"] is True


@pytest.mark.asyncio
async def test_missing_storage_root_is_degraded(client, test_settings, tmp_path):
    settings = test_settings.model_copy(update={"PUBLIC_FILES_ROOT": str(tmp_path / "missing")})
    app.dependency_overrides[get_settings] = lambda: settings

    response = await client.get("/healthz")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "degraded"
    assert data["storage"]["public"]["healthy"] is False
    assert data["storage"]["private"]["healthy"] is True


@pytest.mark.asyncio
async def test_database_down_is_unhealthy(client, test_settings):
    class DeadSession:
        async def execute(self, *args, **kwargs):
            raise ConnectionRefusedError("could not connect to server")

    async def _override_get_db():
        yield DeadSession()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_settings] = lambda: test_settings.model_copy(
        update={"ENVIRONMENT": "production"}
    )

    response = await client.get("/healthz")

    assert response.status_code == 503
    data = response.json()
    assert data["status"] == "unhealthy"
    assert data["database"] == "error"
