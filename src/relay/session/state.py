"""Session state dataclass for thread-scoped AI conversations."""

from dataclasses import dataclass, field
from datetime import datetime, timedelta


@dataclass
class SessionState:
    """Represents one ongoing AI conversation tied to a Slack thread.

    The conversation key is the (channel, thread_ts) pair; every user
    replying in the same thread shares the session.
    """

    channel: str
    thread_ts: str
    session_id: str
    created_at: datetime = field(default_factory=datetime.now)
    last_activity: datetime = field(default_factory=datetime.now)

    @property
    def key(self) -> tuple[str, str]:
        """The conversation key for this session."""
        return (self.channel, self.thread_ts)

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = datetime.now()

    def is_expired(self, expiry: timedelta, now: datetime | None = None) -> bool:
        """Check if the session has been inactive for longer than expiry.

        Args:
            expiry: Inactivity period after which the session expires.
            now: Reference time, defaults to the current time.

        Returns:
            True if last activity is strictly older than the threshold.
        """
        now = now or datetime.now()
        return now - self.last_activity > expiry
