"""Periodic sweep of expired SQLite cache rows.

Reads remove expired rows they touch; this catches the ones nobody asks for
again. Not used with Redis, which expires keys natively.
"""
import asyncio
from typing import Optional, TYPE_CHECKING

from media_resolver.core.logging import get_logger

if TYPE_CHECKING:
    from media_resolver.core.config import Settings
    from media_resolver.core.database import Database

logger = get_logger(__name__)


class CleanupService:
    """Background task deleting expired cache entries at a fixed interval."""

    def __init__(self, database: "Database", settings: "Settings"):
        self.database = database
        self.settings = settings
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the cleanup service background task."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._cleanup_loop())
        logger.info("Cleanup service started", interval=self.settings.cleanup_interval)

    async def stop(self) -> None:
        """Stop the cleanup service gracefully."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Cleanup service stopped")

    async def _cleanup_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Cleanup failed", error=str(e))
            await asyncio.sleep(self.settings.cleanup_interval)

    async def run_once(self) -> int:
        """Run one sweep and return the number of rows removed."""
        return await self.database.cleanup_expired_cache()
