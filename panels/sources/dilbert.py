"""Dilbert — a finished strip only reachable through the Wayback Machine.

Dates in ``[1989-04-16, 2023-03-12]`` are served from the harvested snapshot
table when present, otherwise resolved live through the CDX index.  Dates
outside the range never touch the network.
"""

from __future__ import annotations

import random
from datetime import date, timedelta
from pathlib import Path
from typing import Optional

import httpx

from panels.archive import fetch_archived_entry, load_snapshot_table, strip_url
from panels.cache import StripCache, strip_key
from panels.models import ArchiveEntry, Strip
from panels.scraper.fetcher import fetch_image
from panels.sources.base import ComicSource, format_date, parse_date

FIRST_COMIC = date(1989, 4, 16)
LAST_COMIC = date(2023, 3, 12)


def build_strip(entry: ArchiveEntry, day: date) -> Strip:
    """Attach identifiers and range-clipped neighbours to an archived entry."""
    prev_day = day - timedelta(days=1)
    next_day = day + timedelta(days=1)
    date_str = format_date(day)
    return Strip(
        endpoint="dilbert",
        title=entry.title,
        identifier=date_str,
        image_url=entry.image_url,
        source_url=strip_url(date_str),
        prev_identifier=format_date(prev_day) if prev_day >= FIRST_COMIC else None,
        next_identifier=format_date(next_day) if next_day <= LAST_COMIC else None,
    )


class DilbertSource(ComicSource):
    def __init__(
        self,
        client: httpx.Client,
        cache: StripCache,
        snapshot_table: Optional[Path] = None,
    ) -> None:
        self._client = client
        self._cache = cache
        self._table = load_snapshot_table(snapshot_table) if snapshot_table else {}
        if self._table:
            print(f"[dilbert] Loaded {len(self._table)} archived strips from {snapshot_table}")

    @property
    def name(self) -> str:
        return "dilbert"

    def handles(self, endpoint: str) -> bool:
        return endpoint == "dilbert"

    def _fetch_date(self, day: date) -> Optional[Strip]:
        if day < FIRST_COMIC or day > LAST_COMIC:
            return None

        date_str = format_date(day)
        key = strip_key("dilbert", date_str)

        def load() -> Optional[Strip]:
            entry = self._table.get(date_str) or fetch_archived_entry(self._client, date_str)
            if entry is None:
                return None
            strip = build_strip(entry, day)
            self._cache.put(key, strip)
            return strip

        return self._cache.load(key, load)

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        return self._fetch_date(parse_date(identifier))

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        return self._fetch_date(LAST_COMIC)

    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        span = (LAST_COMIC - FIRST_COMIC).days
        day = FIRST_COMIC + timedelta(days=random.randint(0, span))
        print(f"[dilbert] Fetching random strip {format_date(day)}")
        return self._fetch_date(day)

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        return fetch_image(self._client, image_url, default_content_type="image/gif")
