"""Socket Mode transport for receiving Slack events.

Slack expects every envelope to be acknowledged quickly, so each one is
acked immediately and the event itself is handled in a background task.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from slack_sdk.socket_mode.aiohttp import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse
from slack_sdk.web.async_client import AsyncWebClient

from relay.slack.router import SlackEventRouter

logger = logging.getLogger(__name__)

EVENTS_API_TYPE = "events_api"


class SocketModeRunner:
    """Connects to Slack over Socket Mode and feeds events to the router."""

    def __init__(
        self,
        app_token: str,
        web_client: AsyncWebClient,
        router: SlackEventRouter,
        client: SocketModeClient | None = None,
    ):
        """Initialize the runner.

        Args:
            app_token: App-level token (xapp-...) for Socket Mode.
            web_client: Bot Web API client shared with the router.
            router: The event router.
            client: Optional pre-built Socket Mode client.
        """
        self._router = router
        self._client = client or SocketModeClient(app_token=app_token, web_client=web_client)
        self._client.socket_mode_request_listeners.append(self._on_request)
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending_tasks(self) -> int:
        return len(self._tasks)

    async def start(self) -> None:
        """Open the Socket Mode connection."""
        await self._client.connect()
        logger.info("Socket Mode connection established")

    async def stop(self) -> None:
        """Close the connection and wait for in-flight events to finish."""
        await self._client.disconnect()
        await self._client.close()
        if self._tasks:
            logger.info("Waiting for %d in-flight events", len(self._tasks))
            await asyncio.gather(*self._tasks, return_exceptions=True)
        logger.info("Socket Mode connection closed")

    async def _on_request(self, client: SocketModeClient, req: SocketModeRequest) -> None:
        if req.type != EVENTS_API_TYPE:
            logger.debug("Ignoring Socket Mode request of type %s", req.type)
            return

        await client.send_socket_mode_response(SocketModeResponse(envelope_id=req.envelope_id))

        event = (req.payload or {}).get("event") or {}
        self.dispatch(event)

    def dispatch(self, event: dict[str, Any]) -> asyncio.Task | None:
        """Schedule handling of one Slack event.

        Returns:
            The scheduled task, or None if the event type is not handled.
        """
        event_type = event.get("type")
        if event_type == "app_mention":
            handler = self._router.handle_mention
        elif event_type == "message":
            handler = self._router.handle_message
        else:
            logger.debug("Ignoring Slack event of type %s", event_type)
            return None

        task = asyncio.create_task(self._run_handler(handler, event, event_type))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run_handler(
        self,
        handler: Callable[[dict[str, Any]], Awaitable[None]],
        event: dict[str, Any],
        event_type: str,
    ) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception("Unhandled error processing Slack %s event", event_type)
