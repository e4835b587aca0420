"""Shared data models for rss_reader."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, tzinfo
from typing import Any, Dict, Optional, Tuple, Union

from .dates import format_absolute, time_ago

DEFAULT_CATEGORY = "기타"


def new_feed_id() -> str:
    return uuid.uuid4().hex


def catalog_feed_id(url: str) -> str:
    """Stable identifier for a catalog feed, derived from its URL."""
    return uuid.uuid5(uuid.NAMESPACE_URL, url).hex


@dataclass(frozen=True)
class CatalogEntry:
    """A curated feed shipped with the application."""

    name: str
    url: str
    category: str

    def to_feed(self, is_favorite: bool = False) -> "Feed":
        return Feed(
            id=catalog_feed_id(self.url),
            name=self.name,
            url=self.url,
            category=self.category,
            is_favorite=is_favorite,
        )


@dataclass
class Feed:
    """A feed subscription. ``url`` is the dedup key within the user list."""

    name: str
    url: str
    category: str = DEFAULT_CATEGORY
    is_favorite: bool = False
    id: str = field(default_factory=new_feed_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "category": self.category,
            "isFavorite": self.is_favorite,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Feed":
        return cls(
            id=str(data["id"]),
            name=data["name"],
            url=data["url"],
            category=data.get("category") or DEFAULT_CATEGORY,
            is_favorite=bool(data.get("isFavorite", False)),
        )

    def copy(self, **changes: Any) -> "Feed":
        return replace(self, **changes)


@dataclass(frozen=True)
class Item:
    """A normalized entry from one parsed document."""

    title: str
    link: str
    description: str
    pub_date: str
    author: Optional[str] = None
    image_url: Optional[str] = None

    @property
    def formatted_date(self) -> str:
        return format_absolute(self.pub_date)

    def formatted_date_in(self, tz: Optional[tzinfo]) -> str:
        return format_absolute(self.pub_date, tz=tz)

    def time_ago(self, now: Optional[datetime] = None) -> str:
        return time_ago(self.pub_date, now=now)


@dataclass(frozen=True)
class Idle:
    status = "idle"


@dataclass(frozen=True)
class Loading:
    url: str
    status = "loading"


@dataclass(frozen=True)
class Success:
    url: str
    items: Tuple[Item, ...] = ()
    status = "success"

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class Failed:
    url: str
    code: str
    message: str
    status = "error"


SessionState = Union[Idle, Loading, Success, Failed]
