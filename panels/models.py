"""Dataclass models shared across the retrieval pipeline.

These are plain Python values – the REST and CLI layers serialise them with
the ``to_dict`` helpers, which keep the camelCase key names of the public API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Strip:
    """One normalised comic installment.

    ``identifier`` is either a calendar date (``YYYY-MM-DD``) or ``#<n>`` for
    sequentially numbered providers.
    """

    endpoint: str
    title: str
    identifier: str
    image_url: str
    source_url: str
    prev_identifier: str | None = None
    next_identifier: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "endpoint": self.endpoint,
            "title": self.title,
            "date": self.identifier,
            "imageUrl": self.image_url,
            "sourceUrl": self.source_url,
            "prevDate": self.prev_identifier,
            "nextDate": self.next_identifier,
        }


@dataclass(frozen=True)
class Comic:
    """Static series descriptor from ``comics.json``."""

    endpoint: str
    title: str
    author: str | None = None
    available: bool = True
    start_date: str | None = None
    source: str = "gocomics"

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Comic:
        return cls(
            endpoint=raw["endpoint"],
            title=raw["title"],
            author=raw.get("author"),
            available=bool(raw.get("available", True)),
            start_date=raw.get("startDate"),
            source=raw.get("source") or "gocomics",
        )

    def to_dict(self, tags: list[str] | None = None) -> dict[str, Any]:
        data: dict[str, Any] = {
            "endpoint": self.endpoint,
            "title": self.title,
            "author": self.author,
            "available": self.available,
            "startDate": self.start_date,
            "source": self.source,
        }
        if tags is not None:
            data["tags"] = tags
        return data


@dataclass(frozen=True)
class ArchiveEntry:
    """What the snapshot table stores for one archived date."""

    image_url: str
    title: str

    def to_dict(self) -> dict[str, str]:
        return {"image_url": self.image_url, "title": self.title}


@dataclass
class HarvestReport:
    already_cached: int = 0
    fetched: int = 0
    errors: int = 0
    total: int = 0
