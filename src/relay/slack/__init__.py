"""Slack integration: event parsing, routing and Socket Mode transport."""

from relay.slack.events import (
    Command,
    MalformedEventError,
    SlackMessageEvent,
    match_command,
    parse_event,
    strip_mentions,
)
from relay.slack.router import SlackEventRouter

__all__ = [
    "Command",
    "MalformedEventError",
    "SlackEventRouter",
    "SlackMessageEvent",
    "match_command",
    "parse_event",
    "strip_mentions",
]
