"""Periodic cache cleanup.

Runs ``cleanup()`` on the cache store at a fixed interval from an asyncio
task and publishes the entry counts as the ``cache_entries`` gauge.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from armory.services.cache_models import CacheStats
from armory.services.metrics import MetricsRegistry
from armory.shared.constants import Cache, MetricNames
from armory.shared.errors import ArmoryError
from armory.shared.protocols import CacheStore

logger = logging.getLogger(__name__)


class CacheSweeper:
    """Background task purging expired cache rows.

    Example:
        >>> sweeper = CacheSweeper(store, metrics, interval_seconds=60)
        >>> sweeper.start()
        >>> ...
        >>> await sweeper.stop()
    """

    def __init__(
        self,
        store: CacheStore,
        metrics: MetricsRegistry,
        interval_seconds: float = Cache.CLEANUP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the sweeper.

        Args:
            store: Cache store to sweep
            metrics: Registry receiving the ``cache_entries`` gauge
            interval_seconds: Pause between sweeps
        """
        self.store = store
        self.metrics = metrics
        self.interval_seconds = interval_seconds
        self._stopped = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep_once(self) -> int:
        """Run one cleanup pass and refresh the entry gauges.

        Returns:
            Number of purged rows
        """
        purged = self.store.cleanup()
        self.publish_counts()
        return purged

    def publish_counts(self) -> CacheStats:
        """Set the ``cache_entries`` gauges from the store's current counts."""
        stats = self.store.stats()
        self.metrics.set_gauge(MetricNames.CACHE_ENTRIES, stats.active, labels={"state": "active"})
        self.metrics.set_gauge(MetricNames.CACHE_ENTRIES, stats.expired, labels={"state": "expired"})
        return stats

    async def run(self) -> None:
        """Sweep until ``stop()`` is called."""
        while not self._stopped.is_set():
            try:
                self.sweep_once()
            except ArmoryError as e:
                # A failed sweep is retried on the next tick
                logger.warning("Cache sweep failed: %s", e.message)

            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=self.interval_seconds)

    def start(self) -> asyncio.Task[None]:
        """Start the sweep loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._stopped.clear()
        self._task = asyncio.create_task(self.run(), name="cache-sweeper")
        logger.debug("Cache sweeper started (every %ss)", self.interval_seconds)
        return self._task

    async def stop(self) -> None:
        """Stop the loop and wait for the current pass to finish."""
        self._stopped.set()
        if self._task is not None:
            await self._task
            self._task = None
        logger.debug("Cache sweeper stopped")
