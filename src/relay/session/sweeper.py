"""Periodic sweep of expired thread sessions.

The sweeper is an asyncio task owned by the application lifespan. It wakes
up on a fixed interval, removes expired sessions from the store and is
cancelled cleanly on shutdown.
"""

import asyncio
import logging
import uuid
from datetime import timedelta

from relay.observability import AuditLogger
from relay.session.store import SessionStore

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = timedelta(hours=24)


class SessionSweeper:
    """Runs SessionStore.sweep_expired() on a fixed interval."""

    def __init__(
        self,
        store: SessionStore,
        interval: timedelta = DEFAULT_INTERVAL,
        audit_enabled: bool = True,
    ) -> None:
        """Initialize the sweeper.

        Args:
            store: The session store to sweep.
            interval: Time between sweeps.
            audit_enabled: Whether to emit an audit event per sweep.
        """
        self._store = store
        self._interval = interval
        self._audit_enabled = audit_enabled
        self._task: asyncio.Task | None = None
        self._sweep_count = 0

    @property
    def is_running(self) -> bool:
        """Check if the sweep loop is active."""
        return self._task is not None and not self._task.done()

    @property
    def sweep_count(self) -> int:
        """Number of sweeps performed so far."""
        return self._sweep_count

    def run_once(self) -> int:
        """Sweep expired sessions once.

        Returns:
            Number of sessions removed.
        """
        removed = self._store.sweep_expired()
        self._sweep_count += 1

        audit = AuditLogger(request_id=str(uuid.uuid4()), enabled=self._audit_enabled)
        audit.log_session_event("expired", count=removed)

        logger.debug(
            "Session sweep #%d removed %d sessions (%d remaining)",
            self._sweep_count,
            removed,
            self._store.count(),
        )
        return removed

    async def _run(self) -> None:
        interval_seconds = self._interval.total_seconds()
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                self.run_once()
            except Exception:
                logger.exception("Session sweep failed")

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.is_running:
            logger.warning("Session sweeper already running")
            return

        self._task = asyncio.create_task(self._run(), name="session-sweeper")
        logger.info("Session sweeper started (interval=%s)", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Session sweeper stopped")
