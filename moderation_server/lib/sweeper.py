"""Periodic sweep of expired mutes."""

import asyncio
import logging

from moderation_server.lib.store import ModerationStore

logger = logging.getLogger(__name__)


class MuteSweeper:
    """Runs ModerationStore.cleanup_expired on a fixed interval."""

    def __init__(self, store: ModerationStore, interval: float):
        self.store = store
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        try:
            while True:
                await asyncio.sleep(self.interval)
                try:
                    await self.store.cleanup_expired()
                except Exception as e:
                    logger.error(f"Mute sweep failed: {e}")
        except asyncio.CancelledError:
            pass

    def start(self) -> None:
        """Start the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())
        logger.info(f"Mute sweep started (every {self.interval}s)")

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("Mute sweep stopped")
