"""xkcd — numbered strips served by the site's own JSON endpoint."""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from panels.cache import StripCache, strip_key
from panels.models import Strip
from panels.scraper.fetcher import fetch_image, fetch_page
from panels.sources.numbered import NumberedSource, format_number

BASE_URL = "https://xkcd.com"
LATEST_KEY = "latest"


def to_strip(data: dict[str, Any]) -> Optional[Strip]:
    """Map an ``info.0.json`` payload to a :class:`Strip`."""
    try:
        num = int(data["num"])
        image_url = str(data["img"])
    except (KeyError, TypeError, ValueError):
        return None

    return Strip(
        endpoint="xkcd",
        title=str(data.get("title") or ""),
        identifier=format_number(num),
        image_url=image_url,
        source_url=f"{BASE_URL}/{num}/",
        prev_identifier=format_number(num - 1) if num > 1 else None,
        next_identifier=format_number(num + 1),
    )


class XkcdSource(NumberedSource):
    endpoint = "xkcd"
    display_name = "xkcd"
    # comic #404 doesn't exist, touché.
    excluded_ids = frozenset({404})

    def __init__(self, client: httpx.Client, cache: StripCache) -> None:
        self._client = client
        self._cache = cache

    @property
    def name(self) -> str:
        return "xkcd"

    def _fetch_json(self, url: str) -> Optional[Strip]:
        page = fetch_page(self._client, url, retries=1, timeout_ms=10_000)
        if page is None:
            return None
        try:
            data = json.loads(page.body)
        except ValueError:
            print(f"[xkcd] Could not decode JSON from {url}")
            return None
        return to_strip(data) if isinstance(data, dict) else None

    def fetch_by_number(self, num: int) -> Optional[Strip]:
        key = strip_key(self.endpoint, format_number(num))

        def load() -> Optional[Strip]:
            strip = self._fetch_json(f"{BASE_URL}/{num}/info.0.json")
            if strip is not None:
                self._cache.put(key, strip)
            return strip

        return self._cache.load(key, load)

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        key = strip_key(self.endpoint, LATEST_KEY)

        def load() -> Optional[Strip]:
            strip = self._fetch_json(f"{BASE_URL}/info.0.json")
            if strip is not None:
                self._cache.put(key, strip)
                self._cache.put(strip_key(self.endpoint, strip.identifier), strip)
            return strip

        return self._cache.load(key, load)

    def latest_number(self) -> Optional[int]:
        latest = self.fetch_latest(self.endpoint)
        if latest is None:
            return None
        return int(latest.identifier.lstrip("#"))

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        return fetch_image(self._client, image_url, default_content_type="image/png")
