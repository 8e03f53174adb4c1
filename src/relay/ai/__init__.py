"""AI service client module."""

from relay.ai.client import (
    AIRelayClient,
    RelayError,
    RelayResult,
    build_request_body,
    extract_reply_text,
    extract_session_id,
)

__all__ = [
    "AIRelayClient",
    "RelayError",
    "RelayResult",
    "build_request_body",
    "extract_reply_text",
    "extract_session_id",
]
