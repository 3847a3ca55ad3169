"""Data models for feed_normalizer.

This module defines the unified feed model that both RSS and Atom
documents are normalized into.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass
class Media:
    """A media URL attached to an item (enclosure or media:content)."""

    url: str
    size: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"url": self.url, "size": self.size}


@dataclass
class FeedItem:
    """Represents one RSS item or Atom entry."""

    id: str = ""
    title: str = ""
    description: str = ""
    link: str = ""
    image: str = ""
    image_source: str = ""
    when: datetime = field(default_factory=utc_now)
    enclosure: str = ""
    media: List[Media] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-ready primitives.

        ``image_source`` is only used to rank thumbnails while parsing and
        is left out.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "link": self.link,
            "image": self.image,
            "when": self.when.isoformat(),
            "enclosure": self.enclosure,
            "media": [m.to_dict() for m in self.media],
        }


@dataclass
class Feed:
    """Represents a parsed feed, whatever its source dialect."""

    title: str = ""
    subtitle: str = ""
    link: str = ""
    items: List[FeedItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "link": self.link,
            "items": [item.to_dict() for item in self.items],
        }
