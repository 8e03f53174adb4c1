"""Client for the remote conversational AI chat endpoint.

This module sends one prompt per call to the AI service, optionally
continuing a server-side session, and normalizes the loosely-contracted
response body into reply text plus session id.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from relay.config.profile import AIRequestProfile

logger = logging.getLogger(__name__)

# Constants
DEFAULT_TIMEOUT = 60.0  # seconds

# Fields probed for the reply text, in priority order
REPLY_TEXT_FIELDS = ("response", "chatMessage", "content")
SESSION_ID_FIELD = "sessionId"


class RelayError(Exception):
    """Exception raised when a call to the AI service fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RelayResult:
    """Normalized result of one AI call."""

    reply_text: str
    session_id: str | None = None


def build_request_body(
    prompt: str,
    profile: AIRequestProfile,
    session_id: str | None = None,
) -> dict[str, Any]:
    """Merge the fixed request profile with the prompt.

    The session id is only included when present, which tells the AI
    service to continue an existing conversation.
    """
    body: dict[str, Any] = {"prompt": prompt, **profile.to_request_fields()}
    if session_id:
        body[SESSION_ID_FIELD] = session_id
    return body


def extract_reply_text(payload: Any) -> str:
    """Extract the reply text from an AI response payload.

    Examples:
        {"response": "x"} -> "x"
        {"chatMessage": "x"} -> "x"
        {"content": "x"} -> "x"
        "x" -> "x"
        {"other": 1} -> '{"other": 1}'

    Args:
        payload: The decoded JSON body, or the raw text if it was not JSON.

    Returns:
        The reply text, or the serialized payload if no known shape matched.
    """
    if isinstance(payload, dict):
        for field_name in REPLY_TEXT_FIELDS:
            value = payload.get(field_name)
            if value:
                return value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)

    if isinstance(payload, str):
        return payload

    return json.dumps(payload, ensure_ascii=False)


def extract_session_id(payload: Any, fallback: str | None = None) -> str | None:
    """Return the session id carried by the response, else the fallback."""
    if isinstance(payload, dict):
        session_id = payload.get(SESSION_ID_FIELD)
        if session_id:
            return str(session_id)
    return fallback


def _extract_error_detail(response: httpx.Response) -> str | None:
    """Get the remote "error" field from an error response, if any."""
    try:
        body = response.json()
    except ValueError:
        return None

    if isinstance(body, dict) and body.get("error"):
        error = body["error"]
        return error if isinstance(error, str) else json.dumps(error, ensure_ascii=False)
    return None


class AIRelayClient:
    """Async HTTP client for the AI chat endpoint.

    One request per call, no retries. The caller decides how to report a
    RelayError to the user.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        profile: AIRequestProfile | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize the relay client.

        Args:
            url: Full URL of the chat endpoint.
            api_key: Bearer token for the AI service.
            profile: Fixed request fields; defaults to AIRequestProfile().
            http_client: Optional shared HTTP client. If not provided,
                a new client will be created on first use.
            timeout: Request timeout in seconds.
        """
        self._url = url
        self._api_key = api_key
        self._profile = profile or AIRequestProfile()
        self._http_client = http_client
        self._owns_client = http_client is None
        self._timeout = timeout

    @property
    def profile(self) -> AIRequestProfile:
        return self._profile

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
            self._owns_client = True
        return self._http_client

    async def close(self) -> None:
        """Close the client and release resources."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    async def send(self, message: str, session_id: str | None = None) -> RelayResult:
        """Send a prompt to the AI service.

        Args:
            message: The user's message text.
            session_id: Session to continue, or None to start a new one.

        Returns:
            RelayResult with the reply text and the effective session id.

        Raises:
            RelayError: If the request fails or the service returns an error status.
        """
        client = self._ensure_client()
        body = build_request_body(message, self._profile, session_id)
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        if session_id:
            logger.info("Continuing session: %s", session_id)
        else:
            logger.info("Starting new conversation session")

        try:
            response = await client.post(
                self._url,
                json=body,
                headers=headers,
                timeout=self._timeout,
            )
            response.raise_for_status()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            detail = _extract_error_detail(e.response) or f"HTTP {status_code}"
            logger.error(
                "AI API returned error: status=%d, body=%s",
                status_code,
                e.response.text[:200] if e.response.text else "No response body",
            )
            raise RelayError(f"AI API error: {detail}", status_code=status_code) from e

        except httpx.TimeoutException as e:
            logger.error("AI API request timed out: %s", e)
            raise RelayError(f"AI API error: request timed out ({e})") from e

        except httpx.RequestError as e:
            logger.error("AI API request failed: %s", e)
            raise RelayError(f"AI API error: {e}") from e

        try:
            payload: Any = response.json()
        except ValueError:
            payload = response.text

        result = RelayResult(
            reply_text=extract_reply_text(payload),
            session_id=extract_session_id(payload, fallback=session_id),
        )

        if result.session_id and result.session_id != session_id:
            logger.info("Received session ID from API: %s", result.session_id)

        return result
