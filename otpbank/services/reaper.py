"""
Session reaper — the periodic sweep that expires stale sessions.

Sessions are not checked against their age when they're used; this job
deletes every session older than the TTL on a fixed interval instead.

Lifecycle:
  The application lifespan (main.py) builds one SessionReaper, calls
  start() after the tables exist and stop() on shutdown. stop() cancels
  the sleeping task, so shutdown never waits out a full interval.

Failure handling:
  A sweep that hits a store error is logged and skipped; the next one runs
  on schedule. Any other error is logged by the loop, which keeps going. The reaper opens its own short transaction per sweep and
  holds nothing between sweeps, so it never blocks user requests.
"""

import asyncio
import contextlib
import logging
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError

from otpbank.database import Database
from otpbank.services import session_service

logger = logging.getLogger(__name__)


class SessionReaper:
    """
    Deletes sessions older than `ttl` every `interval` seconds.

    Args:
        database: The application's Database.
        ttl: Maximum session age.
        interval: Seconds between sweeps.
    """

    def __init__(self, database: Database, ttl: timedelta, interval: float):
        self.database = database
        self.ttl = ttl
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def reap_once(self) -> int:
        """
        Run one sweep.

        Returns:
            The number of sessions cleared, or 0 if the sweep failed.
        """
        try:
            async with self.database.session() as db:
                cleared = await session_service.purge_expired(db, self.ttl)
                await db.commit()
        except SQLAlchemyError:
            logger.exception("Error while clearing sessions")
            return 0

        logger.info("Cleared sessions: %d", cleared)
        return cleared

    async def _run(self) -> None:
        while True:
            try:
                await self.reap_once()
            except Exception:
                logger.exception("Unexpected error in session reaper")
            await asyncio.sleep(self.interval)

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="session-reaper")
        logger.info(
            "Session reaper started (ttl=%s, interval=%ss)", self.ttl, self.interval
        )

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to exit."""
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Session reaper stopped")
