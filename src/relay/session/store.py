"""In-memory thread session store with inactivity expiry."""

import logging
import threading
from dataclasses import replace
from datetime import datetime, timedelta

from relay.session.state import SessionState

logger = logging.getLogger(__name__)

DEFAULT_EXPIRY = timedelta(hours=24)


class SessionStore:
    """Thread-safe in-memory map from conversation key to AI session.

    Keys are (channel, thread_ts) pairs. Entries are only removed by
    an explicit reset or by sweep_expired(); lookups never expire entries
    on their own, so the periodic sweep defines the expiry semantics.

    Note: This implementation is suitable for single-instance deployments.
    Sessions do not survive a process restart.
    """

    def __init__(self, expiry: timedelta = DEFAULT_EXPIRY) -> None:
        """Initialize the session store.

        Args:
            expiry: Inactivity period after which a session is swept.
        """
        self._sessions: dict[tuple[str, str], SessionState] = {}
        self._lock = threading.Lock()
        self._expiry = expiry

    @property
    def expiry(self) -> timedelta:
        """Get the inactivity expiry threshold."""
        return self._expiry

    def resolve(self, channel: str, thread_ts: str | None) -> str | None:
        """Look up the AI session id for a thread.

        A missing thread_ts means the message starts a new conversation.
        A thread with no stored session (never recorded, swept or reset)
        also starts fresh.

        Args:
            channel: The Slack channel ID.
            thread_ts: The thread root timestamp, or None for a new message.

        Returns:
            The stored session id, or None to start a fresh conversation.
        """
        if not thread_ts:
            return None

        with self._lock:
            session = self._sessions.get((channel, thread_ts))
            if session is None:
                logger.debug(
                    "No session for thread (channel=%s, thread_ts=%s)", channel, thread_ts
                )
                return None

            session.touch()
            return session.session_id

    def record(self, channel: str, root_ts: str, session_id: str) -> SessionState:
        """Create or replace the session for a thread root.

        Args:
            channel: The Slack channel ID.
            root_ts: Timestamp of the message that roots the thread.
            session_id: The session id issued by the AI service.

        Returns:
            The stored SessionState.
        """
        session = SessionState(channel=channel, thread_ts=root_ts, session_id=session_id)

        with self._lock:
            existing = self._sessions.get(session.key)
            if existing:
                logger.debug(
                    "Replacing session (channel=%s, thread_ts=%s, old=%s, new=%s)",
                    channel,
                    root_ts,
                    existing.session_id,
                    session_id,
                )
            else:
                logger.info(
                    "Stored session for new thread %s:%s: %s", channel, root_ts, session_id
                )

            self._sessions[session.key] = session

        return session

    def get(self, channel: str, thread_ts: str) -> SessionState | None:
        """Get a snapshot of a session without refreshing its activity.

        Returns:
            A copy of the SessionState, or None if not found.
        """
        with self._lock:
            session = self._sessions.get((channel, thread_ts))
            return replace(session) if session else None

    def remove(self, channel: str, thread_ts: str) -> bool:
        """Delete a session.

        Returns:
            True if a session was deleted, False if none existed.
        """
        with self._lock:
            if (channel, thread_ts) in self._sessions:
                logger.debug("Deleting session (channel=%s, thread_ts=%s)", channel, thread_ts)
                del self._sessions[(channel, thread_ts)]
                return True
            return False

    def sweep_expired(self, now: datetime | None = None) -> int:
        """Remove all sessions inactive for longer than the expiry threshold.

        Args:
            now: Reference time for the sweep, defaults to the current time.

        Returns:
            Number of sessions removed.
        """
        now = now or datetime.now()
        expired_keys: list[tuple[str, str]] = []

        with self._lock:
            for key, session in self._sessions.items():
                if session.is_expired(self._expiry, now):
                    expired_keys.append(key)

            for key in expired_keys:
                del self._sessions[key]

        if expired_keys:
            logger.info("Cleaned up %d expired sessions", len(expired_keys))

        return len(expired_keys)

    def count(self) -> int:
        """Get the number of stored sessions."""
        with self._lock:
            return len(self._sessions)

    def clear(self) -> None:
        """Remove all sessions."""
        with self._lock:
            count = len(self._sessions)
            self._sessions.clear()
            if count:
                logger.info("Cleared %d sessions", count)
