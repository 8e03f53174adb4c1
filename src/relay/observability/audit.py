"""Structured audit logging for the relay.

This module provides the AuditLogger class that emits structured JSON
audit events describing how each Slack event was relayed.
"""

import json
import logging
from datetime import UTC, datetime
from typing import Any

from relay.observability.models import AuditEvent, AuditEventType

# Dedicated audit logger - separate from application logs
audit_logger = logging.getLogger("relay.audit")

MAX_PREVIEW_LENGTH = 100
MAX_ERROR_LENGTH = 200


class AuditLogger:
    """Structured audit logger bound to one inbound event.

    All audit events include:
    - event_type: The type of event
    - timestamp: ISO 8601 timestamp
    - request_id: Correlation ID for the inbound event
    - conversation_key: "channel:thread_ts" when the event concerns a thread

    Usage:
        audit = AuditLogger(request_id="req-123", conversation_key="C1:1700.1")
        audit.log_event_received(kind="message", text_preview="hello")
        audit.log_relay_completed(session_id="abc", reply_length=42)
    """

    def __init__(
        self,
        request_id: str,
        conversation_key: str | None = None,
        enabled: bool = True,
    ) -> None:
        self._request_id = request_id
        self._conversation_key = conversation_key
        self._enabled = enabled

    @property
    def request_id(self) -> str:
        return self._request_id

    def _emit(self, event: AuditEvent) -> None:
        if not self._enabled:
            return

        try:
            audit_logger.info(json.dumps(event.to_dict(), default=str, ensure_ascii=False))
        except Exception as e:
            # Audit failures must not affect event handling
            logging.getLogger(__name__).warning("Failed to emit audit event: %s", e)

    def _create_event(self, event_type: AuditEventType, **metadata: Any) -> AuditEvent:
        return AuditEvent(
            event_type=event_type,
            timestamp=datetime.now(UTC),
            request_id=self._request_id,
            conversation_key=self._conversation_key,
            metadata=metadata,
        )

    def log_event_received(self, kind: str, text_preview: str | None = None) -> None:
        """Log that a Slack event was accepted for handling.

        Args:
            kind: The Slack event type (app_mention, message).
            text_preview: The message text, truncated to 100 characters.
        """
        metadata: dict[str, Any] = {"kind": kind}
        if text_preview:
            metadata["text_preview"] = text_preview[:MAX_PREVIEW_LENGTH]

        self._emit(self._create_event(AuditEventType.EVENT_RECEIVED, **metadata))

    def log_event_ignored(self, kind: str, reason: str) -> None:
        self._emit(self._create_event(AuditEventType.EVENT_IGNORED, kind=kind, reason=reason))

    def log_session_resolved(self, session_id: str | None) -> None:
        """Log the outcome of the session lookup for this thread."""
        self._emit(
            self._create_event(
                AuditEventType.SESSION_RESOLVED,
                session_id=session_id,
                continuing=session_id is not None,
            )
        )

    def log_relay_forwarded(self, prompt_length: int, has_session: bool) -> None:
        self._emit(
            self._create_event(
                AuditEventType.RELAY_FORWARDED,
                prompt_length=prompt_length,
                has_session=has_session,
            )
        )

    def log_relay_completed(self, session_id: str | None, reply_length: int) -> None:
        self._emit(
            self._create_event(
                AuditEventType.RELAY_COMPLETED,
                session_id=session_id,
                reply_length=reply_length,
            )
        )

    def log_relay_error(self, error_message: str, status_code: int | None = None) -> None:
        """Log a failed relay.

        Args:
            error_message: The error message (truncated, no credentials).
            status_code: The HTTP status code if applicable.
        """
        metadata: dict[str, Any] = {
            "error_message": error_message[:MAX_ERROR_LENGTH] if error_message else "Unknown error",
        }
        if status_code is not None:
            metadata["status_code"] = status_code

        self._emit(self._create_event(AuditEventType.RELAY_ERROR, **metadata))

    def log_session_event(
        self,
        action: str,
        session_id: str | None = None,
        count: int | None = None,
    ) -> None:
        """Log a session lifecycle event.

        Args:
            action: The action (created, deleted, expired).
            session_id: The AI session id concerned.
            count: Number of sessions affected, for sweeps.
        """
        event_type_map = {
            "created": AuditEventType.SESSION_CREATED,
            "deleted": AuditEventType.SESSION_DELETED,
            "expired": AuditEventType.SESSION_EXPIRED,
        }
        event_type = event_type_map.get(action, AuditEventType.SESSION_CREATED)

        metadata: dict[str, Any] = {"action": action}
        if session_id:
            metadata["session_id"] = session_id
        if count is not None:
            metadata["count"] = count

        self._emit(self._create_event(event_type, **metadata))

    def log_command_handled(self, command: str, outcome: str) -> None:
        self._emit(
            self._create_event(AuditEventType.COMMAND_HANDLED, command=command, outcome=outcome)
        )


def configure_audit_logging(level: str = "INFO") -> None:
    """Configure the audit logger with its own handler.

    Audit lines are already JSON, so the handler only prefixes them with
    time, logger name and level. Propagation to the root logger is disabled
    to avoid duplicate output.

    Args:
        level: The logging level for audit events.
    """
    audit_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not audit_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(getattr(logging, level.upper(), logging.INFO))
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        handler.setFormatter(formatter)
        audit_logger.addHandler(handler)

    audit_logger.propagate = False
