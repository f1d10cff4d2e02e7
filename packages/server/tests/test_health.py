"""
Health check endpoint tests.
"""

from unittest.mock import AsyncMock, patch

import pytest
from httpx import AsyncClient
from structlog.testing import capture_logs

from conftest import auth_headers, seed_user


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient):
    """Health endpoint should return status ok."""
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


@pytest.mark.asyncio
async def test_ready_check(client: AsyncClient):
    """Ready endpoint should return status ready once the database answers."""
    response = await client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ready"}


@pytest.mark.asyncio
async def test_ready_check_database_down(client: AsyncClient):
    with patch("app.main.check_db", AsyncMock(return_value=False)):
        response = await client.get("/ready")
    assert response.status_code == 503
    assert response.json() == {"status": "unavailable"}


@pytest.mark.asyncio
async def test_api_root(client: AsyncClient):
    """API v1 root should return version and endpoint list."""
    response = await client.get("/api/v1/")
    assert response.status_code == 200
    data = response.json()
    assert data["api"] == "v1"
    assert "/orgs/{organizationId}/products" in data["endpoints"]


@pytest.mark.asyncio
async def test_trace_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Trace-Id": "abc123"})
    assert response.headers["X-Trace-Id"] == "abc123"


@pytest.mark.asyncio
async def test_trace_id_is_generated(client: AsyncClient):
    response = await client.get("/health")
    assert len(response.headers["X-Trace-Id"]) == 32


@pytest.mark.asyncio
async def test_access_log_carries_user(client: AsyncClient):
    user = await seed_user()
    with capture_logs() as logs:
        await client.get("/auth/me", headers=auth_headers(user))
    completed = [entry for entry in logs if entry["event"] == "request.completed"]
    assert completed[-1]["user_id"] == str(user.id)
    assert completed[-1]["status"] == 200


@pytest.mark.asyncio
async def test_access_log_anonymous(client: AsyncClient):
    with capture_logs() as logs:
        await client.get("/health")
    completed = [entry for entry in logs if entry["event"] == "request.completed"]
    assert completed[-1]["user_id"] is None
