# src/storage/feed_cache.py

"""In-memory feed cache with stale-while-revalidate and single-flight refresh."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from src.config.settings import Settings
from src.models.feed import Feed

logger = logging.getLogger("dealfeed.cache")


@dataclass(frozen=True)
class CacheEntry:
    """The currently served Feed and when it was written."""

    feed: Feed
    written_at: float


class FeedCache:
    """Process-wide holder of the last aggregated Feed.

    Reads never observe a half-built Feed: a refresh builds the new
    Feed off to the side and then swaps the entry reference. At most
    one refresh runs per generation; callers asking for a refresh
    while one is in flight await that same task. :meth:`clear` starts
    a new generation, so a refresh that was already running when the
    cache was cleared still resolves for its own waiters but never
    writes into the new generation.

    Read policy by entry age:

    - younger than ``ttl``: served as is.
    - between ``ttl`` and the hard ceiling: served as is while a
      background refresh is scheduled.
    - empty, or older than the hard ceiling: the caller awaits the
      (coalesced) refresh.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[Feed]],
        on_failure: Callable[[], Feed],
        ttl: float = Settings.FEED_CACHE_TTL,
        ceiling: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._refresh = refresh
        self._on_failure = on_failure
        self._ttl = ttl
        self._ceiling = (
            ceiling
            if ceiling is not None
            else ttl * Settings.STALE_CEILING_MULTIPLIER
        )
        self._clock = clock
        self._entry: CacheEntry | None = None
        self._generation = 0
        self._inflight: asyncio.Task[Feed] | None = None
        self._periodic: asyncio.Task[None] | None = None
        self.refresh_count = 0

    # ── Introspection ────────────────────────────────────

    @property
    def entry(self) -> CacheEntry | None:
        return self._entry

    @property
    def is_populated(self) -> bool:
        return self._entry is not None

    @property
    def refreshing(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    def age(self) -> float | None:
        """Seconds since the current entry was written."""
        if self._entry is None:
            return None
        return self._clock() - self._entry.written_at

    # ── Reads ────────────────────────────────────────────

    async def get(self) -> Feed:
        """Return the Feed to serve for one request."""
        entry = self._entry
        if entry is None:
            logger.info("Cache empty, waiting for refresh")
            return await self.refresh()

        age = self._clock() - entry.written_at
        if age < self._ttl:
            logger.debug("Cache hit (age %.0fs)", age)
            return entry.feed

        if age >= self._ceiling:
            logger.warning(
                "Cached feed is %.0fs old (ceiling %.0fs), "
                "blocking on refresh",
                age,
                self._ceiling,
            )
            return await self.refresh()

        logger.info(
            "Cache stale (age %.0fs), serving it and refreshing "
            "in background",
            age,
        )
        self._ensure_refresh()
        return entry.feed

    def seed(self, feed: Feed) -> bool:
        """Serve *feed* until the first refresh lands.

        Only an empty cache is seeded. The entry is written already
        past the TTL, so the next read schedules a background refresh
        and keeps serving the seed meanwhile.
        """
        if self._entry is not None:
            return False
        self._entry = CacheEntry(
            feed=feed, written_at=self._clock() - self._ttl
        )
        logger.info("Cache seeded with %d records", feed.total_count)
        return True

    # ── Refresh ──────────────────────────────────────────

    def _ensure_refresh(self) -> asyncio.Task[Feed]:
        """Return the in-flight refresh task, starting one if needed."""
        task = self._inflight
        if task is not None and not task.done():
            return task
        task = asyncio.create_task(self._run_refresh(self._generation))
        self._inflight = task
        return task

    async def refresh(self) -> Feed:
        """Refresh now, or join the refresh already in flight."""
        task = self._ensure_refresh()
        return await asyncio.shield(task)

    async def _run_refresh(self, generation: int) -> Feed:
        self.refresh_count += 1
        started = self._clock()
        try:
            feed = await self._refresh()
        except Exception as exc:
            logger.error(
                "Feed refresh failed, using fallback catalog: %s",
                exc,
                exc_info=True,
            )
            feed = self._on_failure()

        if generation == self._generation:
            self._entry = CacheEntry(feed=feed, written_at=self._clock())
            logger.info(
                "Cache written: %d records, origin=%s (%.1fs)",
                feed.total_count,
                feed.origin.value,
                self._clock() - started,
            )
        else:
            logger.info(
                "Discarding refresh result from cleared generation %d",
                generation,
            )
        return feed

    # ── Invalidation ─────────────────────────────────────

    def clear(self) -> bool:
        """Drop the cached Feed and start a new generation.

        Returns whether a Feed was present.
        """
        had_entry = self._entry is not None
        self._entry = None
        self._generation += 1
        self._inflight = None
        logger.info(
            "Cache manually cleared (had entry: %s, generation %d)",
            had_entry,
            self._generation,
        )
        return had_entry

    # ── Periodic refresh ─────────────────────────────────

    async def _periodic_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            logger.info("Periodic refresh triggered")
            await self.refresh()

    def start_periodic(self, interval: float = Settings.REFRESH_INTERVAL) -> None:
        """Force a refresh every *interval* seconds regardless of traffic."""
        if self._periodic is not None and not self._periodic.done():
            return
        self._periodic = asyncio.create_task(self._periodic_loop(interval))
        logger.info("Periodic refresh scheduled every %.0fs", interval)

    async def stop(self) -> None:
        """Cancel the periodic task and wait for any in-flight refresh."""
        if self._periodic is not None:
            self._periodic.cancel()
            try:
                await self._periodic
            except asyncio.CancelledError:
                pass
            self._periodic = None
        if self._inflight is not None and not self._inflight.done():
            await asyncio.gather(self._inflight, return_exceptions=True)
