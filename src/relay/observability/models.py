"""Data models for audit logging."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class AuditEventType(str, Enum):
    """Types of audit events logged by the relay."""

    EVENT_RECEIVED = "event_received"
    EVENT_IGNORED = "event_ignored"
    SESSION_RESOLVED = "session_resolved"
    RELAY_FORWARDED = "relay_forwarded"
    RELAY_COMPLETED = "relay_completed"
    RELAY_ERROR = "relay_error"
    SESSION_CREATED = "session_created"
    SESSION_DELETED = "session_deleted"
    SESSION_EXPIRED = "session_expired"
    COMMAND_HANDLED = "command_handled"


@dataclass
class AuditEvent:
    """A structured audit event for logging.

    Provides a consistent format for audit trail entries that can
    be serialized to JSON for structured logging.
    """

    event_type: AuditEventType
    """The type of audit event."""

    timestamp: datetime
    """When the event occurred."""

    request_id: str
    """Correlation ID for one inbound Slack event."""

    conversation_key: str | None
    """The "channel:thread_ts" key, if the event concerns one thread."""

    metadata: dict[str, Any] = field(default_factory=dict)
    """Event-specific metadata."""

    def to_dict(self) -> dict[str, Any]:
        """Convert the audit event to a dictionary for JSON serialization."""
        data: dict[str, Any] = {
            "event_type": self.event_type.value,
            "timestamp": self.timestamp.isoformat(),
            "request_id": self.request_id,
        }
        if self.conversation_key is not None:
            data["conversation_key"] = self.conversation_key
        data.update(self.metadata)
        return data
