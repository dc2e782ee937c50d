# tests/test_feed_cache.py

"""Tests for the TTL feed cache and its refresh coordination."""

import asyncio
import unittest

from src.models.feed import Feed, FeedOrigin
from src.models.record import Record
from src.storage.feed_cache import FeedCache


class _FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class _CountingRefresh:
    """Refresh callback that counts calls and can be held open."""

    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail
        self.gate: asyncio.Event | None = None

    async def __call__(self) -> Feed:
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("every source exploded")
        return _feed(f"build {self.calls}")


def _feed(label: str, origin: FeedOrigin = FeedOrigin.LIVE) -> Feed:
    record = Record(
        title=f"Oferta {label}",
        price="R$ 1,00",
        url="https://shopee.com.br/x",
        source="shopee",
    )
    return Feed(records=(record,), origin=origin)


def _failure_feed() -> Feed:
    return _feed("catalog", FeedOrigin.FALLBACK_ERROR)


class TestFeedCacheReads(unittest.IsolatedAsyncioTestCase):
    """Read policy by entry age."""

    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.refresh = _CountingRefresh()
        self.cache = FeedCache(
            refresh=self.refresh,
            on_failure=_failure_feed,
            ttl=60.0,
            ceiling=240.0,
            clock=self.clock,
        )

    async def test_empty_cache_waits_for_refresh(self) -> None:
        self.assertFalse(self.cache.is_populated)
        self.assertIsNone(self.cache.age())
        feed = await self.cache.get()
        self.assertEqual(feed.records[0].title, "Oferta build 1")
        self.assertTrue(self.cache.is_populated)
        self.assertEqual(self.refresh.calls, 1)

    async def test_fresh_hits_never_touch_sources(self) -> None:
        """Reads within the TTL return the same Feed with no refresh."""
        first = await self.cache.get()
        self.refresh.calls = 0
        for _ in range(5):
            self.clock.advance(10)
            self.assertIs(await self.cache.get(), first)
        self.assertEqual(self.refresh.calls, 0)
        self.assertFalse(self.cache.refreshing)

    async def test_stale_entry_served_while_revalidating(self) -> None:
        first = await self.cache.get()
        self.refresh.gate = asyncio.Event()
        self.clock.advance(90)

        stale = await self.cache.get()
        self.assertIs(stale, first)
        self.assertTrue(self.cache.refreshing)

        self.refresh.gate.set()
        fresh = await self.cache.refresh()
        self.assertEqual(fresh.records[0].title, "Oferta build 2")
        self.assertIs(await self.cache.get(), fresh)
        self.assertEqual(self.refresh.calls, 2)

    async def test_repeated_stale_reads_start_one_refresh(self) -> None:
        await self.cache.get()
        self.refresh.gate = asyncio.Event()
        self.clock.advance(90)

        for _ in range(5):
            await self.cache.get()
        self.refresh.gate.set()
        await self.cache.refresh()
        self.assertEqual(self.refresh.calls, 2)

    async def test_past_ceiling_blocks_on_refresh(self) -> None:
        first = await self.cache.get()
        self.clock.advance(300)
        feed = await self.cache.get()
        self.assertIsNot(feed, first)
        self.assertEqual(feed.records[0].title, "Oferta build 2")

    async def test_age_tracks_clock(self) -> None:
        await self.cache.get()
        self.clock.advance(42)
        self.assertEqual(self.cache.age(), 42)

    async def test_default_ceiling_is_multiple_of_ttl(self) -> None:
        cache = FeedCache(
            refresh=self.refresh,
            on_failure=_failure_feed,
            ttl=60.0,
            clock=self.clock,
        )
        first = await cache.get()
        self.clock.advance(200)
        self.assertIs(await cache.get(), first)


class TestFeedCacheRefresh(unittest.IsolatedAsyncioTestCase):
    """Single-flight refresh, failure handling and invalidation."""

    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.refresh = _CountingRefresh()
        self.cache = FeedCache(
            refresh=self.refresh,
            on_failure=_failure_feed,
            ttl=60.0,
            clock=self.clock,
        )

    async def test_concurrent_refreshes_coalesce(self) -> None:
        """Simultaneous callers share one underlying refresh."""
        self.refresh.gate = asyncio.Event()
        waiters = asyncio.gather(
            self.cache.get(),
            self.cache.get(),
            self.cache.refresh(),
        )
        await asyncio.sleep(0)
        self.refresh.gate.set()
        feeds = await waiters

        self.assertEqual(self.refresh.calls, 1)
        self.assertIs(feeds[0], feeds[1])
        self.assertIs(feeds[1], feeds[2])

    async def test_failed_refresh_serves_error_fallback(self) -> None:
        self.refresh.fail = True
        with self.assertLogs("dealfeed.cache", level="ERROR"):
            feed = await self.cache.get()
        self.assertEqual(feed.origin, FeedOrigin.FALLBACK_ERROR)
        self.assertTrue(self.cache.is_populated)

    async def test_failure_does_not_break_later_refreshes(self) -> None:
        self.refresh.fail = True
        with self.assertLogs("dealfeed.cache", level="ERROR"):
            await self.cache.get()
        self.refresh.fail = False
        feed = await self.cache.refresh()
        self.assertEqual(feed.origin, FeedOrigin.LIVE)

    async def test_clear_empties_cache(self) -> None:
        await self.cache.get()
        self.assertTrue(self.cache.clear())
        self.assertFalse(self.cache.is_populated)
        self.assertFalse(self.cache.clear())

        await self.cache.get()
        self.assertEqual(self.refresh.calls, 2)

    async def test_clear_discards_inflight_result(self) -> None:
        """A refresh started before clear never writes afterwards."""
        self.refresh.gate = asyncio.Event()
        old = asyncio.ensure_future(self.cache.refresh())
        await asyncio.sleep(0)

        self.cache.clear()
        self.refresh.gate.set()
        await old
        self.assertFalse(self.cache.is_populated)

        feed = await self.cache.get()
        self.assertEqual(self.refresh.calls, 2)
        self.assertIs(self.cache.entry.feed, feed)

    async def test_refresh_count(self) -> None:
        await self.cache.refresh()
        await self.cache.refresh()
        self.assertEqual(self.cache.refresh_count, 2)


class TestFeedCacheSeed(unittest.IsolatedAsyncioTestCase):
    """Seeding an empty cache with a previously built Feed."""

    def setUp(self) -> None:
        self.clock = _FakeClock()
        self.refresh = _CountingRefresh()
        self.cache = FeedCache(
            refresh=self.refresh,
            on_failure=_failure_feed,
            ttl=60.0,
            clock=self.clock,
        )

    async def test_seed_served_while_first_refresh_runs(self) -> None:
        seed = _feed("seed", FeedOrigin.FALLBACK)
        self.refresh.gate = asyncio.Event()
        self.assertTrue(self.cache.seed(seed))

        self.assertIs(await self.cache.get(), seed)
        self.assertTrue(self.cache.refreshing)

        self.refresh.gate.set()
        fresh = await self.cache.refresh()
        self.assertEqual(fresh.records[0].title, "Oferta build 1")
        self.assertIs(await self.cache.get(), fresh)
        self.assertEqual(self.refresh.calls, 1)

    async def test_seed_never_replaces_an_entry(self) -> None:
        current = await self.cache.refresh()
        self.assertFalse(self.cache.seed(_feed("seed", FeedOrigin.FALLBACK)))
        self.assertIs(self.cache.entry.feed, current)



class TestFeedCachePeriodic(unittest.IsolatedAsyncioTestCase):
    """Forced background refresh."""

    async def test_periodic_refresh_runs_and_stops(self) -> None:
        refresh = _CountingRefresh()
        cache = FeedCache(refresh=refresh, on_failure=_failure_feed)
        await cache.refresh()

        cache.start_periodic(0.01)
        cache.start_periodic(0.01)
        for _ in range(100):
            if refresh.calls >= 3:
                break
            await asyncio.sleep(0.01)
        await cache.stop()

        self.assertGreaterEqual(refresh.calls, 3)
        calls = refresh.calls
        await asyncio.sleep(0.05)
        self.assertEqual(refresh.calls, calls)

    async def test_stop_without_start(self) -> None:
        cache = FeedCache(refresh=_CountingRefresh(), on_failure=_failure_feed)
        await cache.stop()
        self.assertFalse(cache.refreshing)


if __name__ == "__main__":
    unittest.main()
