# src/services/feed_service.py

"""Thin façade over the cached feed used by the HTTP layer and CLI."""

import logging
from datetime import datetime, timezone
from typing import Any

from src.config.settings import Settings
from src.filters.record_filter import RecordFilter
from src.models.feed import Feed, FeedOrigin
from src.scrapers.snapshot_scraper import parse_snapshot
from src.services.feed_pipeline import FeedPipeline
from src.storage.feed_cache import FeedCache
from src.storage.snapshot_writer import SnapshotWriter

logger = logging.getLogger("dealfeed.service")

MIN_QUERY_LENGTH = 2


class InvalidQueryError(ValueError):
    """Search query rejected before touching the feed."""


def _snapshot_time(data: dict[str, Any]) -> datetime:
    try:
        moment = datetime.fromisoformat(str(data.get("scrapedAt", "")))
    except ValueError:
        return datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


class FeedService:
    """Fetch, search and per-platform views of the cached Feed."""

    def __init__(
        self,
        cache: FeedCache | None = None,
        pipeline: FeedPipeline | None = None,
        snapshot_writer: SnapshotWriter | None = None,
    ) -> None:
        if cache is None:
            pipeline = pipeline or FeedPipeline()
            cache = FeedCache(
                refresh=self._pipeline_refresh,
                on_failure=pipeline.failure_feed,
            )
        self.pipeline = pipeline
        self.cache = cache
        self.snapshot_writer = snapshot_writer

    async def _pipeline_refresh(self) -> Feed:
        if self.pipeline is None:
            msg = "FeedService was built without a pipeline"
            raise RuntimeError(msg)
        feed = await self.pipeline.build_feed()
        if self.snapshot_writer is not None:
            try:
                self.snapshot_writer.write(feed)
            except OSError as exc:
                logger.error(
                    "Snapshot write failed: %s", exc, exc_info=True
                )
        return feed

    def _seed_from_snapshot(self) -> Feed | None:
        """Load the last written snapshot into an empty cache."""
        if self.snapshot_writer is None or self.cache.is_populated:
            return None
        data = self.snapshot_writer.read()
        if data is None:
            return None
        records = parse_snapshot(data)
        if not records:
            return None
        feed = Feed(
            records=tuple(records),
            origin=FeedOrigin.FALLBACK,
            generated=_snapshot_time(data),
        )
        self.cache.seed(feed)
        return feed

    async def warm_up(self) -> Feed:
        """Populate the cache before the first request is served.

        A snapshot left by an earlier run is served right away while
        the first live refresh runs in the background; without one,
        this waits for that refresh.
        """
        if self._seed_from_snapshot() is not None:
            logger.info("Serving previous snapshot while warming up")
            return await self.cache.get()
        logger.info("Warming feed cache")
        return await self.cache.refresh()

    async def get_feed(self) -> Feed:
        return await self.cache.get()

    async def search(self, query: str) -> Feed:
        """Records whose title or source contains *query*.

        Raises:
            InvalidQueryError: If the trimmed query is too short.
        """
        cleaned = (query or "").strip()
        if len(cleaned) < MIN_QUERY_LENGTH:
            msg = (
                f"Query must have at least {MIN_QUERY_LENGTH} characters"
            )
            raise InvalidQueryError(msg)
        return RecordFilter.by_query(await self.cache.get(), cleaned)

    async def by_platform(self, name: str) -> Feed:
        return RecordFilter.by_source(await self.cache.get(), name)

    def clear_cache(self) -> bool:
        return self.cache.clear()

    def start_background_refresh(
        self, interval: float = Settings.REFRESH_INTERVAL
    ) -> None:
        self.cache.start_periodic(interval)

    async def shutdown(self) -> None:
        await self.cache.stop()
