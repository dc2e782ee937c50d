# src/filters/affiliate_rewriter.py

"""Affiliate tracking parameter injection for one designated source."""

import dataclasses
import logging
from urllib.parse import parse_qs, urlencode, urlsplit, urlunsplit

from src.config.settings import Settings
from src.models.record import Record

logger = logging.getLogger("dealfeed.filters")


class AffiliateRewriter:
    """Append ``param=affiliate_id`` to the designated source's URLs.

    The rewrite is idempotent: a URL that already carries the
    parameter is left untouched, so records may safely pass through
    more than once without growing duplicate query keys.
    """

    def __init__(
        self,
        source: str = Settings.AFFILIATE_SOURCE,
        param: str = Settings.AFFILIATE_PARAM,
        affiliate_id: str = Settings.AFFILIATE_ID,
    ) -> None:
        self.source = source
        self.param = param
        self.affiliate_id = affiliate_id

    def rewrite_url(self, url: str) -> str:
        """Return *url* with the affiliate parameter set.

        Raises:
            ValueError: If *url* cannot be parsed as an absolute URL.
        """
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            msg = f"not an absolute url: {url!r}"
            raise ValueError(msg)
        existing = parse_qs(parts.query, keep_blank_values=True)
        if self.param in existing:
            return url
        addition = urlencode({self.param: self.affiliate_id})
        query = f"{parts.query}&{addition}" if parts.query else addition
        return urlunsplit(
            (parts.scheme, parts.netloc, parts.path, query, parts.fragment)
        )

    def rewrite(self, record: Record) -> Record:
        """Rewrite *record*'s URL if it belongs to the affiliate source."""
        if record.source != self.source or not self.affiliate_id:
            return record
        try:
            new_url = self.rewrite_url(record.url)
        except ValueError as exc:
            logger.warning(
                "Affiliate rewrite skipped for '%s': %s",
                record.title,
                exc,
            )
            return record
        if new_url == record.url:
            return record
        return dataclasses.replace(record, url=new_url)

    def rewrite_all(self, records: list[Record]) -> list[Record]:
        return [self.rewrite(r) for r in records]
