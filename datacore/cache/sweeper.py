"""
Periodic sweep of expired cache entries.

Lazy expiry alone never frees entries that are not read again; the sweeper
bounds memory by calling ``cleanup()`` on a fixed interval. It is an owned
task: whoever starts it is responsible for stopping it.
"""
import asyncio
import logging
from typing import Optional

logger = logging.getLogger("cache.sweeper")


class CacheSweeper:
    def __init__(self, cache, interval_seconds: float):
        """
        Args:
            cache: Anything with a ``cleanup() -> int`` method
            interval_seconds: Delay between sweeps
        """
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._cache = cache
        self._interval = float(interval_seconds)
        self._task: Optional[asyncio.Task] = None
        self.sweeps = 0
        self.removed_total = 0

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start sweeping on the running event loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.debug(f"Cache sweeper started (interval={self._interval}s)")

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cache sweeper stopped")

    def sweep_once(self) -> int:
        removed = self._cache.cleanup()
        self.sweeps += 1
        self.removed_total += removed
        if removed:
            logger.info(f"Swept {removed} expired cache entries")
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self.sweep_once()
