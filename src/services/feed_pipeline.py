# src/services/feed_pipeline.py

"""Runs every source concurrently and aggregates one Feed."""

import asyncio
import importlib
import logging
import time
from dataclasses import dataclass, field
from typing import Any

from src.config.settings import Settings
from src.filters.affiliate_rewriter import AffiliateRewriter
from src.models.feed import Feed, FeedOrigin
from src.models.record import Record
from src.services.aggregator import Aggregator
from src.services.fallback_catalog import FallbackCatalog

logger = logging.getLogger("dealfeed.pipeline")


@dataclass
class RefreshResult:
    """Outcome of one refresh cycle across all sources."""

    feed: Feed
    per_source: dict[str, int] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)


def _load_scraper_class(dotted_path: str) -> type[Any]:
    """Dynamically import a scraper class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class FeedPipeline:
    """Coordinates scraping, affiliate rewriting and aggregation."""

    def __init__(
        self,
        sources: list[dict[str, Any]] | None = None,
        aggregator: Aggregator | None = None,
        rewriter: AffiliateRewriter | None = None,
        source_timeout: float = Settings.SOURCE_TIMEOUT,
    ) -> None:
        self.sources = (
            sources if sources is not None else Settings.active_sources()
        )
        self.rewriter = rewriter or AffiliateRewriter()
        self.aggregator = aggregator or Aggregator(
            FallbackCatalog(rewriter=self.rewriter)
        )
        self.source_timeout = source_timeout

    # ── Private helpers ──────────────────────────────────

    def _scrape_budget(self) -> float:
        """Seconds a scraper may spend; shorter than the await timeout."""
        return max(
            self.source_timeout - Settings.SOURCE_DEADLINE_MARGIN,
            self.source_timeout / 2,
        )

    async def _run_one(self, source: dict[str, Any]) -> list[Record]:
        """Scrape one source in a worker thread under its own deadline."""
        scraper_cls = _load_scraper_class(source["scraper"])
        deadline = time.monotonic() + self._scrape_budget()
        scraper = scraper_cls(source, deadline=deadline)
        records: list[Record] = await asyncio.wait_for(
            asyncio.to_thread(scraper.scrape),
            timeout=self.source_timeout,
        )
        return records

    async def _run_scrapers(
        self,
    ) -> tuple[dict[str, list[Record]], list[str]]:
        """Dispatch every source concurrently and collect results.

        A source that raises or times out contributes nothing; the
        others are unaffected.
        """
        tasks = [self._run_one(src) for src in self.sources]
        batches = await asyncio.gather(*tasks, return_exceptions=True)

        per_source: dict[str, list[Record]] = {}
        errors: list[str] = []
        for src, batch in zip(self.sources, batches):
            source_id = src["id"]
            if isinstance(batch, list):
                per_source[source_id] = batch
            elif isinstance(batch, asyncio.TimeoutError):
                errors.append(
                    f"{source_id}: timed out after {self.source_timeout:.0f}s"
                )
                logger.warning(
                    "Source '%s' timed out after %.0fs",
                    source_id,
                    self.source_timeout,
                )
            elif isinstance(batch, BaseException):
                errors.append(f"{source_id}: {batch}")
                logger.error(
                    "Source '%s' failed: %s",
                    source_id,
                    batch,
                    exc_info=batch,
                )
        return per_source, errors

    # ── Refresh entry point ──────────────────────────────

    async def refresh(self) -> RefreshResult:
        """Run one full refresh cycle and return the built Feed."""
        per_source, errors = await self._run_scrapers()

        if self.sources and len(errors) == len(self.sources):
            logger.error(
                "All %d sources failed, serving fallback catalog",
                len(self.sources),
            )
            return RefreshResult(
                feed=self.aggregator.fallback_feed(
                    FeedOrigin.FALLBACK_ERROR
                ),
                per_source={},
                errors=errors,
            )

        rewritten = {
            source_id: self.rewriter.rewrite_all(records)
            for source_id, records in per_source.items()
        }
        feed = self.aggregator.aggregate(rewritten)
        return RefreshResult(
            feed=feed,
            per_source={k: len(v) for k, v in rewritten.items()},
            errors=errors,
        )

    async def build_feed(self) -> Feed:
        """Refresh and return only the Feed (cache refresh callback)."""
        result = await self.refresh()
        return result.feed

    def failure_feed(self) -> Feed:
        """Catalog-only Feed tagged ``fallback-error``."""
        return self.aggregator.fallback_feed(FeedOrigin.FALLBACK_ERROR)
