# src/scrapers/platform_extractor.py

"""Container-level locator cascade for one source's search page."""

import logging
from datetime import datetime, timezone

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from src.config.settings import Settings
from src.filters.record_normalizer import RecordNormalizer
from src.models.record import Record
from src.scrapers.field_extractor import FieldExtractor
from src.scrapers.locators import SourceLocatorSet

logger = logging.getLogger("dealfeed.extractor")


class PlatformExtractor:
    """Turn a parsed search page into accepted Records.

    Container locators are tried in priority order and the first one
    that produces at least one accepted record wins; later locators
    are not consulted even if they would match more listings.
    """

    def __init__(
        self, normalizer: RecordNormalizer | None = None
    ) -> None:
        self.normalizer = normalizer or RecordNormalizer()

    def _candidate(
        self, block: Tag, locator_set: SourceLocatorSet
    ) -> dict[str, str]:
        """Run the field cascade over one container element."""
        return {
            "title": FieldExtractor.extract(
                block,
                locator_set.for_field("title"),
                min_length=Settings.TITLE_MIN_LENGTH,
            ),
            "price": FieldExtractor.extract(
                block, locator_set.for_field("price")
            ),
            "image": FieldExtractor.extract(
                block, locator_set.for_field("image")
            ),
            "url": FieldExtractor.extract(
                block, locator_set.for_field("url")
            ),
            "discount": FieldExtractor.extract(
                block, locator_set.for_field("discount")
            ),
        }

    def extract(
        self,
        document: BeautifulSoup,
        locator_set: SourceLocatorSet,
        limit: int = Settings.PER_SOURCE_LIMIT,
    ) -> list[Record]:
        """Extract up to *limit* records from *document*."""
        source_id = locator_set.source_id
        fetched_at = datetime.now(timezone.utc)

        for selector in locator_set.containers:
            try:
                blocks = document.select(selector)
            except SelectorSyntaxError:
                logger.warning(
                    "[%s] Invalid container selector skipped: %r",
                    source_id,
                    selector,
                )
                continue
            if not blocks:
                continue

            logger.info(
                "[%s] %d containers matched '%s'",
                source_id,
                len(blocks),
                selector,
            )
            records: list[Record] = []
            for block in blocks:
                if len(records) >= limit:
                    break
                record = self.normalizer.normalize(
                    self._candidate(block, locator_set),
                    source_id,
                    fetched_at=fetched_at,
                )
                if record is not None:
                    records.append(record)

            if records:
                return records
            logger.info(
                "[%s] '%s' matched but yielded no accepted records",
                source_id,
                selector,
            )

        logger.warning("[%s] No container locator produced records", source_id)
        return []
