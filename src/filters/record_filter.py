# src/filters/record_filter.py

"""Query and platform filtering over an already built Feed."""

import logging

from src.models.feed import Feed

logger = logging.getLogger("dealfeed.filters")


class RecordFilter:
    """Case-insensitive filters used by the search and platform routes."""

    @staticmethod
    def by_query(feed: Feed, query: str) -> Feed:
        """Keep records whose title or source contains *query*."""
        needle = query.strip().lower()
        result = feed.filtered(
            lambda r: needle in r.title.lower()
            or needle in r.source.lower()
        )
        logger.info(
            "Search '%s' matched %d of %d records",
            needle,
            result.total_count,
            feed.total_count,
        )
        return result

    @staticmethod
    def by_source(feed: Feed, source_id: str) -> Feed:
        """Keep records whose source equals *source_id*."""
        wanted = source_id.strip().lower()
        result = feed.filtered(lambda r: r.source.lower() == wanted)
        logger.info(
            "Platform '%s' has %d of %d records",
            wanted,
            result.total_count,
            feed.total_count,
        )
        return result
