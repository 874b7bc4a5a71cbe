"""
Tests for the /health and / endpoints.

The conftest leaves MongoDB disconnected, which is a valid state: the API
stays healthy and the Overview map serves demo data.
"""

from unittest.mock import AsyncMock, MagicMock


async def test_health_returns_200(client):
    """Health endpoint must always return 200 if the API process is alive."""
    response = await client.get("/health")
    assert response.status_code == 200


async def test_health_response_schema(client):
    data = (await client.get("/health")).json()

    assert data["status"] == "ok"
    assert data["version"] == "0.1.0"
    assert data["environment"] == "test"


async def test_health_disconnected_when_no_db(client):
    data = (await client.get("/health")).json()
    assert data["database"] == "disconnected"


async def test_health_connected_when_ping_succeeds(client):
    import app.core.database as db_module

    fake_client = MagicMock()
    fake_client.admin.command = AsyncMock(return_value={"ok": 1})
    db_module.db_client.client = fake_client

    data = (await client.get("/health")).json()
    assert data["database"] == "connected"
    fake_client.admin.command.assert_awaited_once_with("ping")


async def test_health_survives_ping_failure(client):
    import app.core.database as db_module

    fake_client = MagicMock()
    fake_client.admin.command = AsyncMock(side_effect=RuntimeError("timeout"))
    db_module.db_client.client = fake_client

    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json()["database"] == "disconnected"


async def test_root_endpoint(client):
    data = (await client.get("/")).json()

    assert data["name"] == "Nucigen Overview API"
    assert data["status"] == "running"
    assert data["docs"] == "/docs"


async def test_docs_available_in_test_env(client):
    response = await client.get("/docs")
    assert response.status_code == 200


async def test_unknown_route_returns_404(client):
    response = await client.get("/does-not-exist")
    assert response.status_code == 404
