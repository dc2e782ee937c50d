# src/filters/record_normalizer.py

"""Cleaning rules that turn raw scraped text into Records."""

import logging
import re
from datetime import datetime
from typing import Any
from urllib.parse import quote_plus, urlsplit

from src.config.settings import Settings
from src.models.record import Record

logger = logging.getLogger("dealfeed.filters")


class RecordNormalizer:
    """Normalise raw candidate fields and apply the acceptance gate.

    Source-dependent rules (base URL, default currency, placeholder
    label) are looked up in the source registry passed at
    construction, defaulting to every configured source.
    """

    _TITLE_NOISE_RE = re.compile(r"[^\w\s()\[\]/+&]")
    _CURRENCY_RE = re.compile(r"R\$|US\$|€|£|\$")
    _NUMBER_RE = re.compile(r"\d[\d.,]*")
    _DISCOUNT_TOKEN_RE = re.compile(r"OFF|[\d%\-\s]")
    _SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")

    def __init__(
        self, sources: list[dict[str, Any]] | None = None
    ) -> None:
        if sources is None:
            sources = [*Settings.AVAILABLE_SOURCES, Settings.SNAPSHOT_SOURCE]
        self._sources: dict[str, dict[str, Any]] = {
            s["id"]: s for s in sources
        }

    def knows(self, source_id: str) -> bool:
        return source_id in self._sources

    def _source(self, source_id: str) -> dict[str, Any]:
        return self._sources.get(source_id, {})

    # ── Field rules ──────────────────────────────────────

    def clean_title(self, value: str) -> str:
        """Strip noise characters, collapse whitespace, cap the length.

        Returns ``""`` when the cleaned title is too short to be a
        real product name.
        """
        cleaned = self._TITLE_NOISE_RE.sub("", value or "")
        cleaned = " ".join(cleaned.split())
        cleaned = cleaned[: Settings.TITLE_MAX_LENGTH].strip()
        if len(cleaned) < Settings.TITLE_MIN_LENGTH:
            return ""
        return cleaned

    def clean_price(self, value: str, source_id: str) -> str:
        """Reduce a price string to ``"<currency> <number>"``.

        Only the first numeric token survives, so instalment notes
        and trailing text are discarded. A missing currency marker
        is filled in from the source's default currency.
        """
        compact = "".join((value or "").split())
        number_match = self._NUMBER_RE.search(compact)
        if not number_match:
            return Settings.PRICE_INQUIRE
        number = number_match.group(0).rstrip(".,")
        marker_match = self._CURRENCY_RE.search(compact)
        marker = (
            marker_match.group(0)
            if marker_match
            else str(self._source(source_id).get("currency", "R$"))
        )
        return f"{marker} {number}"

    def clean_discount(self, value: str) -> str:
        """Keep digits, ``%``, ``-`` and the literal ``OFF``."""
        tokens = self._DISCOUNT_TOKEN_RE.findall((value or "").upper())
        cleaned = " ".join("".join(tokens).split())
        if not any(ch.isdigit() for ch in cleaned):
            return ""
        return cleaned

    def resolve_url(self, value: str, source_id: str) -> str:
        """Make *value* absolute against the source's base URL."""
        value = (value or "").strip()
        if not value:
            return ""
        if value.startswith("//"):
            return f"https:{value}"
        base = str(self._source(source_id).get("base_url", "")).rstrip("/")
        if value.startswith("/"):
            return f"{base}{value}"
        if not self._SCHEME_RE.match(value):
            return f"{base}/{value}"
        return value

    def resolve_image(self, value: str, source_id: str) -> str:
        """Resolve an image reference, or return the source placeholder."""
        value = (value or "").strip()
        if not value or value.startswith("data:"):
            return self.placeholder_image(source_id)
        return self.resolve_url(value, source_id)

    def placeholder_image(self, source_id: str) -> str:
        label = str(self._source(source_id).get("label", source_id))
        return Settings.PLACEHOLDER_IMAGE.format(label=quote_plus(label))

    @staticmethod
    def is_absolute(url: str) -> bool:
        try:
            parts = urlsplit(url)
        except ValueError:
            return False
        return parts.scheme in ("http", "https") and bool(parts.netloc)

    # ── Acceptance gate ──────────────────────────────────

    def normalize(
        self,
        candidate: dict[str, str],
        source_id: str,
        fetched_at: datetime | None = None,
    ) -> Record | None:
        """Clean *candidate* into a Record, or ``None`` if it fails the gate."""
        title = self.clean_title(candidate.get("title", ""))
        if not title:
            logger.debug(
                "Dropped candidate without usable title (source=%s)",
                source_id,
            )
            return None

        url = self.resolve_url(candidate.get("url", ""), source_id)
        if not self.is_absolute(url):
            logger.debug(
                "Dropped candidate without absolute url "
                "(source=%s, title=%s)",
                source_id,
                title,
            )
            return None

        extra: dict[str, Any] = {}
        if fetched_at is not None:
            extra["fetched_at"] = fetched_at
        return Record(
            title=title,
            price=self.clean_price(candidate.get("price", ""), source_id),
            url=url,
            source=source_id,
            image=self.resolve_image(candidate.get("image", ""), source_id),
            discount=self.clean_discount(candidate.get("discount", "")),
            **extra,
        )
