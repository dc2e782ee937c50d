# src/models/feed.py

"""Aggregated feed model returned by the pipeline and the cache."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from src.config.settings import Settings
from src.models.record import Record


class FeedOrigin(str, Enum):
    """How a Feed was produced."""

    LIVE = "live"
    LIVE_FALLBACK = "live+fallback"
    FALLBACK = "fallback"
    FALLBACK_ERROR = "fallback-error"


def format_display_time(moment: datetime) -> str:
    """Render *moment* in the display timezone (dd/mm/yyyy HH:MM:SS)."""
    local = moment.astimezone(ZoneInfo(Settings.DISPLAY_TIMEZONE))
    return local.strftime("%d/%m/%Y %H:%M:%S")


def count_by_source(records: list[Record]) -> dict[str, int]:
    """Tally records per ``source`` tag."""
    return dict(Counter(r.source for r in records))


@dataclass(frozen=True)
class Feed:
    """An immutable, fully built aggregation result.

    Counts are derived from ``records`` so ``total_count`` and
    ``counts_by_source`` can never drift apart from the list itself.
    """

    records: tuple[Record, ...]
    origin: FeedOrigin
    generated: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def total_count(self) -> int:
        return len(self.records)

    @property
    def counts_by_source(self) -> dict[str, int]:
        return count_by_source(list(self.records))

    @property
    def generated_at(self) -> str:
        """Human-readable generation time in the display timezone."""
        return format_display_time(self.generated)

    @property
    def has_affiliate(self) -> bool:
        """True when any record belongs to the affiliate source."""
        return any(
            r.source == Settings.AFFILIATE_SOURCE for r in self.records
        )

    def filtered(self, predicate: Callable[[Record], bool]) -> "Feed":
        """Return a new Feed holding only records matching *predicate*."""
        return Feed(
            records=tuple(r for r in self.records if predicate(r)),
            origin=self.origin,
            generated=self.generated,
        )

    def to_response(self) -> dict[str, Any]:
        """JSON body served by the HTTP layer."""
        return {
            "products": [r.to_dict() for r in self.records],
            "lastUpdate": self.generated_at,
            "totalProducts": self.total_count,
            "platforms": self.counts_by_source,
            "hasAffiliateShopee": self.has_affiliate,
            "source": self.origin.value,
        }

    def to_snapshot(self) -> dict[str, Any]:
        """Flat snapshot document written to ``products.json``."""
        return {
            "lastUpdate": self.generated_at,
            "products": [r.to_dict() for r in self.records],
            "totalProducts": self.total_count,
            "scrapedAt": self.generated.isoformat(),
            "platforms": self.counts_by_source,
            "hasAffiliateShopee": self.has_affiliate,
        }
