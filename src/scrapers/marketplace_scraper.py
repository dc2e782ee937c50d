# src/scrapers/marketplace_scraper.py

"""Generic HTML deal scraper driven by the locator tables."""

from typing import Any

from src.models.record import Record
from src.scrapers.base_scraper import BaseScraper, SourceUnavailableError
from src.scrapers.locators import SourceLocatorSet, load_locator_sets
from src.scrapers.platform_extractor import PlatformExtractor


class MarketplaceScraper(BaseScraper):
    """Scraper for any marketplace listed in ``selectors.json``.

    Everything source-specific (search URL, base URL, currency,
    container and field locators) is configuration, so a new
    marketplace needs a registry entry and a locator block, not a
    new class.
    """

    def __init__(
        self,
        source: dict[str, Any],
        deadline: float | None = None,
        locator_set: SourceLocatorSet | None = None,
        extractor: PlatformExtractor | None = None,
    ) -> None:
        super().__init__(source, deadline=deadline)
        self.locator_set = (
            locator_set or load_locator_sets()[self.source_name]
        )
        self.extractor = extractor or PlatformExtractor()

    def _page_urls(self) -> list[str]:
        first = int(self.source.get("first_page", 1))
        template = str(self.source["search_url"])
        return [
            template.format(page=page)
            for page in range(first, first + self.settings.MAX_PAGES)
        ]

    def scrape(self) -> list[Record]:
        """Walk the search pages until the per-source limit is reached."""
        limit = self.settings.PER_SOURCE_LIMIT
        records: list[Record] = []
        fetched_any = False

        for page_no, url in enumerate(self._page_urls(), start=1):
            if len(records) >= limit:
                break
            if self._out_of_time():
                self.logger.warning(
                    "[%s] Deadline reached, stopping at page %d",
                    self.source_name,
                    page_no,
                )
                break
            if page_no > 1:
                self._wait()
            self.logger.info(
                "[%s] Fetching page %d (%d so far)",
                self.source_name,
                page_no,
                len(records),
            )
            soup = self._get_page(url)
            if soup is None:
                self.logger.warning(
                    "[%s] Failed to fetch page %d",
                    self.source_name,
                    page_no,
                )
                break
            fetched_any = True

            try:
                page_records = self.extractor.extract(
                    soup,
                    self.locator_set,
                    limit=limit - len(records),
                )
            except Exception as exc:
                self.logger.error(
                    "[%s] Extraction failed on page %d: %s",
                    self.source_name,
                    page_no,
                    exc,
                    exc_info=True,
                )
                continue
            if not page_records:
                break
            records.extend(page_records)

        if not fetched_any:
            msg = f"{self.source_name}: no page could be fetched"
            raise SourceUnavailableError(msg)

        self.logger.info(
            "[%s] Collected %d records", self.source_name, len(records)
        )
        return records
