"""Event router for Slack mentions, direct messages and utility commands.

This module turns inbound Slack events into AI relays: it resolves the
thread's session, posts a placeholder, calls the AI service, records the
session for new threads and replaces the placeholder with the reply.
Every failure is reported back into the same thread and never propagates.
"""

import logging
import uuid
from typing import Any

from slack_sdk.web.async_client import AsyncWebClient

from relay.ai.client import AIRelayClient, RelayError
from relay.observability import AuditLogger
from relay.session import SessionStore
from relay.slack import messages
from relay.slack.events import (
    Command,
    MalformedEventError,
    SlackMessageEvent,
    match_command,
    parse_event,
    strip_mentions,
)

logger = logging.getLogger(__name__)

# Slack rejects section blocks whose text exceeds this length
MAX_SECTION_TEXT = 3000
# Slack rejects messages with more blocks than this
MAX_BLOCKS = 50


def build_reply_blocks(text: str) -> list[dict[str, Any]]:
    """Build the mrkdwn section blocks used for AI replies.

    Long replies are split into consecutive sections so the whole text is
    shown. A reply too long for any block layout gets no blocks and is
    shown through the plain text field alone.
    """
    chunks = [text[i : i + MAX_SECTION_TEXT] for i in range(0, len(text), MAX_SECTION_TEXT)]
    if len(chunks) > MAX_BLOCKS:
        return []
    return [{"type": "section", "text": {"type": "mrkdwn", "text": chunk}} for chunk in chunks]


class SlackEventRouter:
    """Dispatches Slack events to the session store and the AI relay client."""

    def __init__(
        self,
        web_client: AsyncWebClient,
        session_store: SessionStore,
        relay_client: AIRelayClient,
        audit_enabled: bool = True,
    ):
        """Initialize the router.

        Args:
            web_client: Slack Web API client used for replies.
            session_store: Store of thread sessions.
            relay_client: Client for the AI service.
            audit_enabled: Whether to emit audit events.
        """
        self._client = web_client
        self._store = session_store
        self._relay = relay_client
        self._audit_enabled = audit_enabled

    def _audit(self, conversation_key: str | None = None) -> AuditLogger:
        return AuditLogger(
            request_id=str(uuid.uuid4()),
            conversation_key=conversation_key,
            enabled=self._audit_enabled,
        )

    async def handle_mention(self, payload: dict[str, Any]) -> None:
        """Handle an app_mention event.

        The mention markers are removed; an empty remainder gets a greeting
        instead of being relayed.
        """
        event = self._parse(payload, "app_mention")
        if event is None:
            return

        audit = self._audit(event.conversation_key)
        if event.is_from_bot:
            audit.log_event_ignored("app_mention", "bot message")
            return

        text = strip_mentions(event.text)
        audit.log_event_received("app_mention", text_preview=text)

        if not text:
            try:
                await self._say(event, messages.GREETING)
            except Exception:
                logger.exception("Failed to send greeting to %s", event.conversation_key)
            return

        await self._relay_message(event, text, audit)

    async def handle_message(self, payload: dict[str, Any]) -> None:
        """Handle a message event.

        Utility commands are answered in any channel the bot can see
        (ping only in DMs); everything else is relayed only from DMs.
        """
        event = self._parse(payload, "message")
        if event is None:
            return

        audit = self._audit(event.conversation_key)
        if event.is_from_bot:
            audit.log_event_ignored("message", "bot message")
            return
        if not event.is_relayable:
            audit.log_event_ignored("message", f"subtype {event.subtype}")
            return

        command = match_command(event.text)
        if command is not None:
            await self._handle_command(event, command, audit)
            return

        if not event.is_direct_message:
            return

        text = event.text.strip()
        if not text:
            audit.log_event_ignored("message", "empty text")
            return

        audit.log_event_received("message", text_preview=text)
        await self._relay_message(event, text, audit)

    def _parse(self, payload: dict[str, Any], kind: str) -> SlackMessageEvent | None:
        try:
            return parse_event(payload)
        except MalformedEventError as e:
            logger.warning("Ignoring malformed %s event: %s", kind, e)
            self._audit().log_event_ignored(kind, str(e))
            return None

    async def _relay_message(
        self,
        event: SlackMessageEvent,
        text: str,
        audit: AuditLogger,
    ) -> None:
        """Relay one message to the AI service and reply in its thread."""
        placeholder_ts: str | None = None

        try:
            session_id = self._store.resolve(event.channel, event.thread_ts)
            audit.log_session_resolved(session_id)

            placeholder_ts = await self._say(event, messages.THINKING)

            audit.log_relay_forwarded(prompt_length=len(text), has_session=session_id is not None)
            result = await self._relay.send(text, session_id)

            # Only the root of a new thread creates a session
            if event.thread_ts is None and result.session_id:
                self._store.record(event.channel, event.ts, result.session_id)
                audit.log_session_event("created", session_id=result.session_id)

            reply = result.reply_text or messages.EMPTY_REPLY
            await self._client.chat_update(
                channel=event.channel,
                ts=placeholder_ts,
                text=reply,
                blocks=build_reply_blocks(reply) or None,
            )
            audit.log_relay_completed(session_id=result.session_id, reply_length=len(reply))

            logger.info(
                "Response sent. Thread: %s, Session: %s",
                event.root_ts,
                result.session_id or "new",
            )

        except RelayError as e:
            logger.error("AI relay failed for thread %s: %s", event.conversation_key, e)
            audit.log_relay_error(str(e), status_code=e.status_code)
            await self._report_error(event, placeholder_ts, e)

        except Exception as e:
            logger.exception("Error handling event for thread %s", event.conversation_key)
            audit.log_relay_error(str(e) or type(e).__name__)
            await self._report_error(event, placeholder_ts, e)

    async def _report_error(
        self,
        event: SlackMessageEvent,
        placeholder_ts: str | None,
        error: Exception,
    ) -> None:
        """Show an error in the thread, replacing the placeholder if one was posted."""
        text = messages.ERROR_TEMPLATE.format(error=str(error) or type(error).__name__)
        try:
            if placeholder_ts:
                await self._client.chat_update(
                    channel=event.channel,
                    ts=placeholder_ts,
                    text=text,
                )
            else:
                await self._say(event, text)
        except Exception:
            logger.exception("Failed to deliver error message to %s", event.conversation_key)

    async def _handle_command(
        self,
        event: SlackMessageEvent,
        command: Command,
        audit: AuditLogger,
    ) -> None:
        if command is Command.PING:
            if not event.is_direct_message:
                return
            text = messages.PONG_TEMPLATE.format(count=self._store.count())
            outcome = "pong"

        elif command is Command.RESET_SESSION:
            removed = self._store.remove(event.channel, event.root_ts)
            if removed:
                audit.log_session_event("deleted")
                text = messages.RESET_DONE
                outcome = "removed"
            else:
                text = messages.RESET_NONE
                outcome = "no session"

        else:
            session = self._store.get(event.channel, event.root_ts)
            if session:
                text = messages.INFO_TEMPLATE.format(
                    session_id=session.session_id,
                    last_activity=session.last_activity.strftime(messages.LAST_ACTIVITY_FORMAT),
                    count=self._store.count(),
                )
                outcome = "found"
            else:
                text = messages.INFO_NONE_TEMPLATE.format(count=self._store.count())
                outcome = "no session"

        audit.log_command_handled(command.value, outcome)
        try:
            await self._say(event, text)
        except Exception:
            logger.exception("Failed to reply to %s command", command.value)

    async def _say(self, event: SlackMessageEvent, text: str) -> str:
        """Post a message in the event's thread and return its ts."""
        response = await self._client.chat_postMessage(
            channel=event.channel,
            thread_ts=event.root_ts,
            text=text,
        )
        return response["ts"]
