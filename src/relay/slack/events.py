"""Slack event parsing: message payloads, mention markers and commands."""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

# Slack renders user mentions as <@U0123ABC> (optionally <@U0123ABC|name>)
MENTION_PATTERN = re.compile(r"<@[A-Z0-9]+(?:\|[^>]*)?>")

# Message subtypes that still carry a user-authored message
RELAYABLE_SUBTYPES = frozenset({None, "file_share", "thread_broadcast"})

DIRECT_MESSAGE_CHANNEL_TYPE = "im"


class MalformedEventError(Exception):
    """Raised when an inbound event lacks the fields needed to handle it."""

    def __init__(self, message: str, payload: dict[str, Any] | None = None):
        super().__init__(message)
        self.payload = payload or {}


class Command(str, Enum):
    """Utility commands handled instead of relaying."""

    PING = "ping"
    RESET_SESSION = "reset_session"
    SESSION_INFO = "session_info"


COMMAND_PATTERNS: tuple[tuple[Command, re.Pattern[str]], ...] = (
    (Command.PING, re.compile(r"^ping$", re.IGNORECASE)),
    (Command.RESET_SESSION, re.compile(r"^!reset session$", re.IGNORECASE)),
    (Command.SESSION_INFO, re.compile(r"^!session info$", re.IGNORECASE)),
)


@dataclass(frozen=True)
class SlackMessageEvent:
    """The fields of a Slack message or app_mention event the relay uses."""

    channel: str
    ts: str
    text: str = ""
    thread_ts: str | None = None
    user: str | None = None
    bot_id: str | None = None
    subtype: str | None = None
    channel_type: str | None = None

    @property
    def root_ts(self) -> str:
        """Timestamp the reply is threaded under."""
        return self.thread_ts or self.ts

    @property
    def conversation_key(self) -> str:
        return f"{self.channel}:{self.root_ts}"

    @property
    def is_from_bot(self) -> bool:
        return bool(self.bot_id) or self.subtype == "bot_message"

    @property
    def is_direct_message(self) -> bool:
        return self.channel_type == DIRECT_MESSAGE_CHANNEL_TYPE

    @property
    def is_relayable(self) -> bool:
        return self.subtype in RELAYABLE_SUBTYPES


def parse_event(payload: dict[str, Any]) -> SlackMessageEvent:
    """Build a SlackMessageEvent from a raw Slack event payload.

    Args:
        payload: The "event" object of an Events API envelope.

    Returns:
        The parsed event.

    Raises:
        MalformedEventError: If the payload is not a dict or lacks channel/ts.
    """
    if not isinstance(payload, dict):
        raise MalformedEventError(f"Event payload must be an object, got {type(payload).__name__}")

    channel = payload.get("channel")
    ts = payload.get("ts")
    if not channel or not ts:
        raise MalformedEventError("Event is missing channel or ts", payload=payload)

    text = payload.get("text")
    return SlackMessageEvent(
        channel=channel,
        ts=ts,
        text=text if isinstance(text, str) else "",
        thread_ts=payload.get("thread_ts") or None,
        user=payload.get("user"),
        bot_id=payload.get("bot_id"),
        subtype=payload.get("subtype"),
        channel_type=payload.get("channel_type"),
    )


def strip_mentions(text: str) -> str:
    """Remove all user mention markers from a message.

    Examples:
        "<@U123ABC> what's new?" -> "what's new?"
        "<@U123ABC>" -> ""

    Args:
        text: The raw Slack message text.

    Returns:
        The text with mentions removed and surrounding whitespace trimmed.
    """
    if not text:
        return ""
    return MENTION_PATTERN.sub("", text).strip()


def match_command(text: str) -> Command | None:
    """Match a message against the utility commands.

    Args:
        text: The message text.

    Returns:
        The matched Command, or None for ordinary messages.
    """
    if not text:
        return None

    stripped = text.strip()
    for command, pattern in COMMAND_PATTERNS:
        if pattern.match(stripped):
            logger.debug("Matched command: %s", command.value)
            return command
    return None
