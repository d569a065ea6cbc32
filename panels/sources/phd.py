"""PHD Comics — numbered strips scraped from ``archive.php?comicid=<n>``.

The site has no API.  The newest number is the highest ``comicid`` linked
from the index page, and a strip's neighbours are the nearest ids its own
navigation links point at.
"""

from __future__ import annotations

import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from panels.cache import StripCache, strip_key
from panels.models import Strip
from panels.scraper.fetcher import fetch_image, fetch_page
from panels.sources.numbered import NumberedSource, format_number

BASE_URL = "https://phdcomics.com/comics/archive.php"
REFERER = "https://phdcomics.com/"

_COMIC_ID = re.compile(r"comicid=(\d+)")
_TITLE_PREFIX = re.compile(r"^\s*PHD Comics:\s*", re.IGNORECASE)


def parse_comic_ids(html: str) -> list[int]:
    """Return every ``comicid`` referenced in *html*, sorted and deduplicated."""
    return sorted({int(m) for m in _COMIC_ID.findall(html)})


def parse_strip(html: str, num: int) -> Optional[Strip]:
    soup = BeautifulSoup(html, "html.parser")

    og = soup.find("meta", property="og:image")
    image_url = (og.get("content") or "") if og is not None else ""
    if "comics/archive/phd" not in image_url:
        return None

    title = ""
    if soup.title is not None:
        title = _TITLE_PREFIX.sub("", soup.title.get_text()).strip()

    ids = parse_comic_ids(html)
    earlier = [i for i in ids if i < num]
    later = [i for i in ids if i > num]

    return Strip(
        endpoint="phd",
        title=title,
        identifier=format_number(num),
        image_url=image_url,
        source_url=f"{BASE_URL}?comicid={num}",
        prev_identifier=format_number(max(earlier)) if earlier else None,
        next_identifier=format_number(min(later)) if later else None,
    )


class PhdSource(NumberedSource):
    endpoint = "phd"
    display_name = "PhD Comics"

    def __init__(self, client: httpx.Client, cache: StripCache) -> None:
        self._client = client
        self._cache = cache

    @property
    def name(self) -> str:
        return "phd"

    def _index_page(self) -> Optional[str]:
        page = fetch_page(self._client, BASE_URL, retries=2, timeout_ms=10_000)
        return page.body if page else None

    def fetch_by_number(self, num: int) -> Optional[Strip]:
        key = strip_key(self.endpoint, format_number(num))

        def load() -> Optional[Strip]:
            page = fetch_page(
                self._client, f"{BASE_URL}?comicid={num}", retries=2, timeout_ms=10_000
            )
            if page is None:
                return None
            strip = parse_strip(page.body, num)
            if strip is None:
                print(f"[phd] Failed to parse PhD comic page #{num}")
                return None
            self._cache.put(key, strip)
            return strip

        return self._cache.load(key, load)

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        key = strip_key(self.endpoint, "latest")

        def load() -> Optional[Strip]:
            html = self._index_page()
            if html is None:
                return None
            ids = parse_comic_ids(html)
            if not ids:
                print("[phd] Failed to find latest PhD comic ID")
                return None
            strip = parse_strip(html, ids[-1])
            if strip is None:
                print(f"[phd] Failed to parse latest PhD comic #{ids[-1]}")
                return None
            self._cache.put(key, strip)
            self._cache.put(strip_key(self.endpoint, strip.identifier), strip)
            return strip

        return self._cache.load(key, load)

    def latest_number(self) -> Optional[int]:
        html = self._index_page()
        if html is None:
            return None
        ids = parse_comic_ids(html)
        return ids[-1] if ids else None

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        return fetch_image(self._client, image_url, referer=REFERER, default_content_type="image/png")
