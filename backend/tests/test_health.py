"""Tests for the health check and app wiring"""

import pytest
from httpx import ASGITransport, AsyncClient

from vent_ai.core.config import Settings
from vent_ai.main import create_app

FRONTEND = "https://vent.example"


@pytest.fixture
async def http(tmp_path):
    """Async client for an app that allows one frontend origin."""
    settings = Settings(
        _env_file=None,
        database_path=tmp_path / "health.db",
        cors_origins=[FRONTEND],
    )
    transport = ASGITransport(app=create_app(settings))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def test_health_check_returns_ok(http: AsyncClient):
    response = await http.get("/api/v1/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_configured_origin_is_allowed(http: AsyncClient):
    """Test the frontend origin from settings passes CORS."""
    response = await http.get("/api/v1/health", headers={"Origin": FRONTEND})
    assert response.headers["access-control-allow-origin"] == FRONTEND


async def test_preflight_for_chat_post(http: AsyncClient):
    """Test a browser preflight for POST /api/chat is accepted."""
    response = await http.options(
        "/api/chat",
        headers={"Origin": FRONTEND, "Access-Control-Request-Method": "POST"},
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == FRONTEND


async def test_unknown_origin_gets_no_cors_header(http: AsyncClient):
    response = await http.get(
        "/api/v1/health", headers={"Origin": "https://elsewhere.example"}
    )
    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_routes_are_mounted():
    """Test every public route is registered on the app."""
    paths = {route.path for route in create_app(Settings(_env_file=None)).routes}
    assert {
        "/api/v1/health",
        "/api/chat",
        "/api/v1/conversations/{conversation_id}/messages",
        "/api/v1/ws/chat",
    } <= paths
