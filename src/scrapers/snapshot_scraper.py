# src/scrapers/snapshot_scraper.py

"""Reads an externally hosted ``products.json`` snapshot as a source."""

import json
from typing import Any

from src.config.settings import Settings
from src.filters.record_normalizer import RecordNormalizer
from src.models.record import Record
from src.scrapers.base_scraper import BaseScraper, SourceUnavailableError


def parse_snapshot(
    data: dict[str, Any],
    normalizer: RecordNormalizer | None = None,
    own_id: str = Settings.SNAPSHOT_SOURCE["id"],
) -> list[Record]:
    """Normalise the ``products`` array of a snapshot document.

    The snapshot carries already-cleaned products, but they still pass
    through the normalizer so a hand-edited or stale document cannot
    smuggle malformed records into the feed. Products without a known
    ``source`` tag are attributed to the affiliate source, which is
    what single-platform snapshots contain.
    """
    normalizer = normalizer or RecordNormalizer()
    raw_items: Any = data.get("products", [])
    items: list[dict[str, Any]] = (
        [i for i in raw_items if isinstance(i, dict)]
        if isinstance(raw_items, list)
        else []
    )
    records: list[Record] = []
    for item in items:
        tag = str(item.get("source", "") or "")
        if not (tag and tag != own_id and normalizer.knows(tag)):
            tag = Settings.AFFILIATE_SOURCE
        candidate = {
            key: str(item.get(key, "") or "")
            for key in ("title", "price", "image", "url", "discount")
        }
        record = normalizer.normalize(candidate, tag)
        if record is not None:
            records.append(record)
        if len(records) >= Settings.MAX_FEED_RECORDS:
            break
    return records


class SnapshotScraper(BaseScraper):
    """Source backed by a published snapshot document."""

    def __init__(
        self,
        source: dict[str, Any],
        deadline: float | None = None,
        normalizer: RecordNormalizer | None = None,
    ) -> None:
        super().__init__(source, deadline=deadline)
        self.normalizer = normalizer or RecordNormalizer()

    def _get_homepage(self) -> str:
        return self.settings.SNAPSHOT_URL

    def parse(self, data: dict[str, Any]) -> list[Record]:
        return parse_snapshot(data, self.normalizer, self.source_name)

    def scrape(self) -> list[Record]:
        """Download and parse the snapshot document."""
        url = self.settings.SNAPSHOT_URL
        if not url:
            return []
        headers = {
            **self.settings.DEFAULT_HEADERS,
            "Accept": "application/json",
        }
        resp = self._fetch_get(url, headers)
        if resp is None:
            msg = f"snapshot unreachable: {url}"
            raise SourceUnavailableError(msg)
        try:
            data: Any = json.loads(resp.text)
        except json.JSONDecodeError as exc:
            msg = f"snapshot is not valid JSON: {exc}"
            raise SourceUnavailableError(msg) from exc
        if not isinstance(data, dict):
            msg = "snapshot root is not an object"
            raise SourceUnavailableError(msg)

        records = self.parse(data)
        self.logger.info(
            "[%s] Loaded %d records from %s",
            self.source_name,
            len(records),
            url,
        )
        return records
