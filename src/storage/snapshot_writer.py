# src/storage/snapshot_writer.py

"""Writes and reads the flat ``products.json`` feed snapshot."""

import json
import logging
from pathlib import Path
from typing import Any

from src.config.settings import Settings
from src.models.feed import Feed

logger = logging.getLogger("dealfeed.storage")


class SnapshotWriter:
    """Persist a Feed in the snapshot wire format."""

    def __init__(self, path: Path | None = None) -> None:
        self.path: Path = path or Settings.SNAPSHOT_PATH
        logger.debug("SnapshotWriter initialised, path=%s", self.path)

    def write(self, feed: Feed) -> Path:
        """Write *feed* atomically (temp file, then rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(feed.to_snapshot(), f, ensure_ascii=False, indent=2)
        tmp_path.replace(self.path)

        logger.info(
            "Saved snapshot with %d products (origin=%s) to %s",
            feed.total_count,
            feed.origin.value,
            self.path,
        )
        return self.path

    def read(self) -> dict[str, Any] | None:
        """Load the snapshot document, or ``None`` if absent/corrupt."""
        if not self.path.exists():
            return None
        try:
            with open(self.path, encoding="utf-8") as f:
                data: Any = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning(
                "Could not read snapshot %s: %s", self.path, exc
            )
            return None
        return data if isinstance(data, dict) else None
