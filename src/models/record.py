# src/models/record.py

"""Deal record model for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Record:
    """A single cleaned deal listing from any marketplace."""

    title: str
    price: str
    url: str
    source: str
    image: str = ""
    discount: str = ""
    fetched_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the wire shape shared by the API and snapshots."""
        return {
            "title": self.title,
            "price": self.price,
            "image": self.image,
            "url": self.url,
            "discount": self.discount,
            "source": self.source,
            "fetchedAt": self.fetched_at.isoformat(),
        }
