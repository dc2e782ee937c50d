# src/services/aggregator.py

"""Merge per-source results into a Feed, topping up from the catalog."""

import logging
import random
from collections.abc import Mapping, Sequence

from src.config.settings import Settings
from src.models.feed import Feed, FeedOrigin, count_by_source
from src.models.record import Record
from src.services.fallback_catalog import FallbackCatalog

logger = logging.getLogger("dealfeed.aggregator")


class Aggregator:
    """Build Feeds from live results, applying the fallback cascade.

    ``rng`` only decides display order; pass a seeded
    :class:`random.Random` in tests.
    """

    def __init__(
        self,
        catalog: FallbackCatalog | None = None,
        rng: random.Random | None = None,
        min_records: int = Settings.MIN_LIVE_RECORDS,
        max_records: int = Settings.MAX_FEED_RECORDS,
    ) -> None:
        self.catalog = catalog or FallbackCatalog()
        self.rng = rng or random.Random()
        self.min_records = min_records
        self.max_records = max_records

    def _supplement(
        self, live: list[Record], room: int
    ) -> list[Record]:
        """Pick up to *room* catalog records not already present."""
        seen = {r.url for r in live}
        pool = [r for r in self.catalog.records() if r.url not in seen]
        self.rng.shuffle(pool)
        return pool[: max(room, 0)]

    def aggregate(
        self, per_source: Mapping[str, Sequence[Record]]
    ) -> Feed:
        """Merge, shuffle and, when short of records, supplement."""
        live: list[Record] = [
            record
            for records in per_source.values()
            for record in records
        ]
        self.rng.shuffle(live)

        if not live:
            origin = FeedOrigin.FALLBACK
        elif len(live) < self.min_records:
            origin = FeedOrigin.LIVE_FALLBACK
        else:
            origin = FeedOrigin.LIVE

        merged = live
        if origin is not FeedOrigin.LIVE:
            extra = self._supplement(live, self.max_records - len(live))
            merged = live + extra
            logger.info(
                "Live records below threshold (%d < %d), "
                "added %d fallback records",
                len(live),
                self.min_records,
                len(extra),
            )

        merged = merged[: self.max_records]
        logger.info(
            "Aggregated %d records (origin=%s, by source=%s)",
            len(merged),
            origin.value,
            count_by_source(merged),
        )
        return Feed(records=tuple(merged), origin=origin)

    def fallback_feed(
        self, origin: FeedOrigin = FeedOrigin.FALLBACK_ERROR
    ) -> Feed:
        """Feed built purely from the catalog, e.g. after a total failure."""
        pool = list(self.catalog.records())
        self.rng.shuffle(pool)
        logger.info(
            "Serving %d of %d catalog records (origin=%s)",
            min(len(pool), self.max_records),
            len(self.catalog),
            origin.value,
        )
        return Feed(records=tuple(pool[: self.max_records]), origin=origin)
