"""Test health, root and diagnostics endpoints."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from relay.config import ConfigurationError
from relay.main import app


@asynccontextmanager
async def lifespan_wrapper(app):
    """Wrap app lifespan for testing."""
    async with app.router.lifespan_context(app):
        yield


@pytest.fixture
async def client():
    """Create async test client with lifespan."""
    async with lifespan_wrapper(app):
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


async def test_root(client: AsyncClient):
    """Test root endpoint returns API metadata."""
    response = await client.get("/")
    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "slack-ai-relay"
    assert "version" in data


async def test_liveness(client: AsyncClient):
    """Test liveness probe returns ok."""
    response = await client.get("/health/live")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_readiness(client: AsyncClient):
    """Test readiness probe returns ok once the router is built."""
    response = await client.get("/health/ready")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


async def test_session_stats(client: AsyncClient):
    """Test session stats reflect the live store."""
    app.state.session_store.record("C1", "1700.1", "abc")

    response = await client.get("/sessions/stats")

    assert response.status_code == 200
    data = response.json()
    assert data["active_sessions"] == 1
    assert data["expiry_hours"] == 24.0


async def test_lifespan_fails_without_credentials(monkeypatch):
    """Test start-up refuses to run without the AI API key."""
    from relay.config.settings import get_settings

    monkeypatch.delenv("AI_API_KEY", raising=False)
    monkeypatch.delenv("RELAY_AI_API_KEY", raising=False)
    get_settings.cache_clear()

    with pytest.raises(ConfigurationError):
        async with lifespan_wrapper(app):
            pass


def test_run_exits_without_credentials(monkeypatch):
    """Test the console entry point exits non-zero on missing configuration."""
    from relay.config.settings import get_settings
    from relay.main import run

    monkeypatch.delenv("SLACK_BOT_TOKEN", raising=False)
    monkeypatch.delenv("RELAY_SLACK_BOT_TOKEN", raising=False)
    get_settings.cache_clear()

    with pytest.raises(SystemExit) as exc_info:
        run()

    assert exc_info.value.code == 1


async def test_socket_mode_failure_releases_components(monkeypatch):
    """Test a failed Socket Mode connection stops the sweeper and closes the AI client."""
    from relay.ai import AIRelayClient
    from relay.config.settings import get_settings

    class UnreachableRunner:
        def __init__(self, **kwargs):
            pass

        async def start(self):
            raise ConnectionError("socket mode unreachable")

    close = AsyncMock()
    monkeypatch.setattr("relay.slack.socket_mode.SocketModeRunner", UnreachableRunner)
    monkeypatch.setattr(AIRelayClient, "close", close)
    monkeypatch.setenv("RELAY_SOCKET_MODE_ENABLED", "true")
    get_settings.cache_clear()

    with pytest.raises(ConnectionError):
        async with lifespan_wrapper(app):
            pass

    assert app.state.session_sweeper.is_running is False
    close.assert_awaited_once()
