# src/scrapers/locators.py

"""Declarative locator tables loaded from ``selectors.json``."""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from src.config.settings import Settings

logger = logging.getLogger("dealfeed.locators")

FIELDS: tuple[str, ...] = ("title", "price", "image", "url", "discount")


@dataclass(frozen=True)
class Locator:
    """Where a value lives inside a block.

    ``selector`` is a CSS selector relative to the block (an empty
    selector means the block itself). With ``attr`` unset the element
    text is read, otherwise the named attribute.
    """

    selector: str
    attr: str | None = None

    @classmethod
    def parse(cls, raw: str | dict[str, Any]) -> "Locator":
        """Build a Locator from its JSON form (string or object)."""
        if isinstance(raw, str):
            return cls(selector=raw)
        return cls(
            selector=str(raw.get("selector", "")),
            attr=raw.get("attr") or None,
        )


@dataclass(frozen=True)
class SourceLocatorSet:
    """Container and per-field locators for one source."""

    source_id: str
    containers: tuple[str, ...]
    fields: dict[str, tuple[Locator, ...]]

    def for_field(self, name: str) -> tuple[Locator, ...]:
        return self.fields.get(name, ())


def parse_locator_set(
    source_id: str, raw: dict[str, Any]
) -> SourceLocatorSet:
    """Convert one source's JSON entry into a SourceLocatorSet."""
    raw_fields: dict[str, Any] = raw.get("fields", {}) or {}
    fields = {
        name: tuple(
            Locator.parse(item) for item in raw_fields.get(name, [])
        )
        for name in FIELDS
    }
    return SourceLocatorSet(
        source_id=source_id,
        containers=tuple(raw.get("containers", [])),
        fields=fields,
    )


@lru_cache(maxsize=4)
def load_locator_sets(
    path: Path = Settings.SELECTORS_PATH,
) -> dict[str, SourceLocatorSet]:
    """Load every source's locator set from *path* (cached per path)."""
    with open(path, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    sets = {
        source_id: parse_locator_set(source_id, raw)
        for source_id, raw in all_selectors.items()
    }
    logger.debug(
        "Loaded locator sets for %d sources from %s", len(sets), path
    )
    return sets
