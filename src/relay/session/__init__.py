"""Session management for thread-scoped AI conversations."""

from relay.session.state import SessionState
from relay.session.store import SessionStore
from relay.session.sweeper import SessionSweeper

__all__ = ["SessionState", "SessionStore", "SessionSweeper"]
