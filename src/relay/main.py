"""FastAPI application entry point for the Slack AI relay."""

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from slack_sdk.web.async_client import AsyncWebClient

from relay import __version__
from relay.ai import AIRelayClient
from relay.config import ConfigurationError, get_settings, load_request_profile
from relay.observability import configure_audit_logging
from relay.session import SessionStore, SessionSweeper
from relay.slack import SlackEventRouter

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.value),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    current = get_settings()
    logger.info("Starting slack-ai-relay v%s", __version__)

    # Fails start-up before any traffic is served
    current.require_credentials()
    profile = load_request_profile(current.ai_profile_path)

    configure_audit_logging(current.audit_log_level)

    session_store = SessionStore(expiry=timedelta(hours=current.session_expiry_hours))
    sweeper = SessionSweeper(
        session_store,
        interval=timedelta(hours=current.session_sweep_interval_hours),
        audit_enabled=current.audit_enabled,
    )
    sweeper.start()
    app.state.session_store = session_store
    app.state.session_sweeper = sweeper

    relay_client = AIRelayClient(
        url=current.ai_url,
        api_key=current.ai_api_key,
        profile=profile,
        timeout=current.ai_timeout_seconds,
    )
    app.state.relay_client = relay_client
    logger.info("Connected to AI API at: %s", current.ai_base_url)
    logger.info("Agent name: %s", profile.agent_name)

    web_client = AsyncWebClient(token=current.slack_bot_token)
    app.state.event_router = SlackEventRouter(
        web_client=web_client,
        session_store=session_store,
        relay_client=relay_client,
        audit_enabled=current.audit_enabled,
    )

    app.state.socket_runner = None
    if current.socket_mode_enabled:
        # Import here so the HTTP surface works without a Socket Mode stack
        from relay.slack.socket_mode import SocketModeRunner

        try:
            socket_runner = SocketModeRunner(
                app_token=current.slack_app_token,
                web_client=web_client,
                router=app.state.event_router,
            )
            await socket_runner.start()
        except Exception:
            logger.error("Socket Mode start-up failed, releasing started components")
            await sweeper.stop()
            await relay_client.close()
            raise
        app.state.socket_runner = socket_runner
    else:
        logger.info("Socket Mode disabled")

    app.state.router_ready = True
    logger.info(
        "Session management enabled (expiry=%sh, sweep interval=%sh)",
        current.session_expiry_hours,
        current.session_sweep_interval_hours,
    )

    yield

    # Cleanup
    app.state.router_ready = False
    if app.state.socket_runner:
        await app.state.socket_runner.stop()
    await sweeper.stop()
    await relay_client.close()
    session_store.clear()
    logger.info("Shutting down slack-ai-relay")


app = FastAPI(
    title="Slack AI Relay",
    description="Relays Slack threads to a remote conversational AI with per-thread sessions",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/", response_class=JSONResponse)
async def root() -> dict:
    """API metadata endpoint."""
    return {
        "name": "slack-ai-relay",
        "version": __version__,
        "description": "Slack thread relay for a remote conversational AI",
    }


@app.get("/health/live", response_class=JSONResponse)
async def liveness() -> dict:
    """Liveness probe endpoint."""
    return {"status": "ok"}


@app.get("/health/ready", response_class=JSONResponse)
async def readiness() -> JSONResponse:
    """Readiness probe endpoint."""
    if not getattr(app.state, "router_ready", False):
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "reason": "event router not initialized"},
        )
    return JSONResponse(content={"status": "ok"})


@app.get("/sessions/stats", response_class=JSONResponse)
async def session_stats() -> JSONResponse:
    """Report the number of active thread sessions."""
    session_store = getattr(app.state, "session_store", None)
    if session_store is None:
        return JSONResponse(
            status_code=503,
            content={"status": "not ready", "reason": "session store not initialized"},
        )

    sweeper = getattr(app.state, "session_sweeper", None)
    return JSONResponse(
        content={
            "active_sessions": session_store.count(),
            "expiry_hours": session_store.expiry.total_seconds() / 3600,
            "sweeps": sweeper.sweep_count if sweeper else 0,
        }
    )


def run() -> None:
    """Console entry point: validate configuration, then serve."""
    import uvicorn

    current = get_settings()
    try:
        current.require_credentials()
    except ConfigurationError as e:
        logger.error("%s", e)
        logger.error("Please set these variables before starting the app.")
        sys.exit(1)

    uvicorn.run(
        "relay.main:app",
        host=current.host,
        port=current.port,
    )


if __name__ == "__main__":
    run()
