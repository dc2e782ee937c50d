# src/scrapers/field_extractor.py

"""First-plausible-value extraction over an ordered locator cascade."""

import logging
from collections.abc import Iterable

from bs4 import Tag
from soupsieve import SelectorSyntaxError

from src.scrapers.locators import Locator

logger = logging.getLogger("dealfeed.extractor")


class FieldExtractor:
    """Evaluate locators in order and return the first plausible value.

    Absence is an expected outcome here: every failure mode (no match,
    empty text, missing attribute, bad selector) yields ``""``.
    """

    @staticmethod
    def _matches(block: Tag, selector: str) -> list[Tag]:
        if not selector:
            return [block]
        try:
            return list(block.select(selector))
        except SelectorSyntaxError:
            logger.warning("Invalid selector skipped: %r", selector)
            return []

    @staticmethod
    def _read(element: Tag, locator: Locator) -> str:
        if locator.attr is None:
            return " ".join(element.get_text(" ", strip=True).split())
        value = element.get(locator.attr)
        if isinstance(value, list):
            value = " ".join(value)
        return (value or "").strip()

    @classmethod
    def extract(
        cls,
        block: Tag,
        locators: Iterable[Locator],
        min_length: int = 1,
    ) -> str:
        """Return the first value of at least *min_length* characters.

        Title extraction passes ``min_length=6`` so decorative
        fragments ("Novo", "-20%") are skipped in favour of the next
        locator.
        """
        for locator in locators:
            for element in cls._matches(block, locator.selector):
                value = cls._read(element, locator)
                if len(value) >= min_length:
                    return value
        return ""
