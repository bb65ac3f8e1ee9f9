"""Fixed-interval fetch, cache and broadcast loop."""

from __future__ import annotations

import asyncio
import logging

from .cache import SnapshotCache
from .errors import FetchError
from .hub import BroadcastHub
from .interface import PriceSource

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class PollLoop:
    """Drives one PriceSource on a fixed period.

    Each cycle fetches a snapshot; on success it replaces the cached snapshot
    and publishes it to the hub, on failure it logs and waits for the next
    tick. The fixed interval is the only retry policy.

    Cycles never overlap: if a fetch is still in flight when another cycle is
    requested, that cycle is skipped.
    """

    def __init__(
        self,
        source: PriceSource,
        cache: SnapshotCache,
        hub: BroadcastHub,
        interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"poll interval must be positive, got {interval}")
        self._source = source
        self._cache = cache
        self._hub = hub
        self._interval = interval
        self._lock = asyncio.Lock()
        self._task: asyncio.Task | None = None

        self.cycles = 0
        self.failures = 0
        self.last_success: float | None = None

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Run one cycle immediately, then keep polling in the background."""
        if self._task is not None:
            raise RuntimeError("PollLoop already started")

        # Eager first cycle so the cache is warm before clients connect
        await self.poll_once()

        self._task = asyncio.create_task(self._poll_loop(), name=f"{self._source.name}-poller")
        logger.info(
            "Poller started: %s, %d assets, %.1fs interval",
            self._source.name,
            len(self._source.assets),
            self._interval,
        )

    async def stop(self) -> None:
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("Poller stopped")

    async def poll_once(self) -> bool:
        """Execute one cycle. Returns True if a snapshot was published."""
        if self._lock.locked():
            logger.warning("Previous %s fetch still in flight, skipping tick", self._source.name)
            return False

        async with self._lock:
            self.cycles += 1
            try:
                snapshot = await self._source.fetch()
            except FetchError as e:
                self.failures += 1
                logger.warning("Fetch from %s failed: %s", e.provider, e)
                return False
            except Exception:
                # Adapters should only raise FetchError; keep the loop alive regardless
                self.failures += 1
                logger.exception("Unexpected error fetching from %s", self._source.name)
                return False

            self._cache.set(snapshot)
            self.last_success = snapshot.fetched_at
            delivered = self._hub.publish(snapshot)
            logger.debug("Poll %d: published %s to %d clients", self.cycles, self._source.name, delivered)
            return True

    # --- Internal ---

    async def _poll_loop(self) -> None:
        """Poll on interval. First cycle already happened in start()."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            next_tick += self._interval
            if next_tick < loop.time():
                # Fell behind (slow fetch); realign instead of firing a burst
                next_tick = loop.time() + self._interval
            await self.poll_once()
