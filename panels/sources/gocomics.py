"""GoComics — the primary, date-addressed gallery provider.

Strip pages live at ``/<endpoint>/YYYY/MM/DD``.  The site corrects invalid or
missing dates by redirecting to a nearby strip, so the date actually served
is recovered from the final URL (or the canonical link) and used as the
strip's identifier.  The requested and returned dates may differ.
"""

from __future__ import annotations

import json
import random
import re
from datetime import date, timedelta
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from panels.cache import StripCache, strip_key
from panels.models import Comic, Strip
from panels.scraper.fetcher import fetch_image, fetch_page
from panels.sources.base import ComicSource, format_date, parse_date

BASE_URL = "https://www.gocomics.com"
ASSETS_HOST = "featureassets.gocomics.com"

RANDOM_WINDOW_DAYS = 365 * 5


# ---------------------------------------------------------------------------
# Page parsing
# ---------------------------------------------------------------------------

def extract_nav_date(href: str, endpoint: str) -> Optional[str]:
    """Pull ``YYYY-MM-DD`` out of a ``/<endpoint>/YYYY/MM/DD`` path or URL."""
    match = re.search(rf"/{re.escape(endpoint)}/(\d{{4}})/(\d{{2}})/(\d{{2}})", href)
    if not match:
        return None
    return "-".join(match.groups())


def extract_page_date(html: str, endpoint: str) -> Optional[str]:
    """Read the served date from ``<link rel="canonical">``."""
    soup = BeautifulSoup(html, "html.parser")
    link = soup.find("link", rel="canonical")
    if link is None or not link.get("href"):
        return None
    return extract_nav_date(link["href"], endpoint)


def _json_ld_image(soup: BeautifulSoup) -> Optional[str]:
    for script in soup.find_all("script", type="application/ld+json"):
        try:
            data = json.loads(script.string or "")
        except ValueError:
            continue
        candidates = data if isinstance(data, list) else [data]
        for item in candidates:
            if not isinstance(item, dict) or item.get("@type") != "ImageObject":
                continue
            url = item.get("contentUrl") or item.get("url") or ""
            if isinstance(url, str) and ASSETS_HOST in url:
                return url
    return None


def extract_image_url(html: str) -> Optional[str]:
    """Find the strip image: JSON-LD first, then ``og:image``, then any ``<img>``."""
    soup = BeautifulSoup(html, "html.parser")

    url = _json_ld_image(soup)
    if url:
        return url

    og = soup.find("meta", property="og:image")
    if og is not None and ASSETS_HOST in (og.get("content") or ""):
        return og["content"]

    for img in soup.find_all("img", src=True):
        if ASSETS_HOST in img["src"]:
            return img["src"]
    return None


def parse_comic_page(html: str, endpoint: str, identifier: str, title: str) -> Optional[Strip]:
    """Build a :class:`Strip` from a strip page, or ``None`` without an image."""
    image_url = extract_image_url(html)
    if image_url is None:
        return None

    return Strip(
        endpoint=endpoint,
        title=title,
        identifier=identifier,
        image_url=image_url.split("?", 1)[0],
        source_url=f"{BASE_URL}/{endpoint}",
    )


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class GoComicsSource(ComicSource):
    """Date-addressed strips scraped from GoComics gallery pages."""

    def __init__(self, client: httpx.Client, comics: list[Comic], cache: StripCache) -> None:
        self._client = client
        self._comics = {c.endpoint: c for c in comics if c.source == self.name}
        self._cache = cache

    @property
    def name(self) -> str:
        return "gocomics"

    def handles(self, endpoint: str) -> bool:
        return endpoint in self._comics

    def _title(self, endpoint: str) -> str:
        comic = self._comics.get(endpoint)
        return comic.title if comic else endpoint

    def _parse_and_store(
        self, html: str, final_url: str, endpoint: str, fallback_date: str
    ) -> Optional[Strip]:
        served = (
            extract_nav_date(final_url, endpoint)
            or extract_page_date(html, endpoint)
            or fallback_date
        )
        strip = parse_comic_page(html, endpoint, served, self._title(endpoint))
        if strip is None:
            print(f"[gocomics] No strip image found for {endpoint} {served}")
            return None
        self._cache.put(strip_key(endpoint, strip.identifier), strip)
        return strip

    def _fetch_date(
        self, endpoint: str, date_str: str, suppress_errors: bool = False
    ) -> Optional[Strip]:
        def load() -> Optional[Strip]:
            url = f"{BASE_URL}/{endpoint}/{date_str.replace('-', '/')}"
            page = fetch_page(
                self._client, url, retries=1, timeout_ms=12_000,
                suppress_errors=suppress_errors,
            )
            if page is None:
                return None
            return self._parse_and_store(page.body, page.final_url, endpoint, date_str)

        return self._cache.load(strip_key(endpoint, date_str), load)

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        parse_date(identifier)
        return self._fetch_date(endpoint, identifier)

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        page = fetch_page(self._client, f"{BASE_URL}/{endpoint}", retries=1, timeout_ms=12_000)
        if page is None:
            return None
        return self._parse_and_store(page.body, page.final_url, endpoint, format_date(date.today()))

    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        days_back = random.randrange(RANDOM_WINDOW_DAYS)
        date_str = format_date(date.today() - timedelta(days=days_back))
        print(f"[gocomics] Fetching random strip {endpoint} {date_str}")
        return self._fetch_date(endpoint, date_str, suppress_errors=True)

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        return fetch_image(self._client, image_url, referer=BASE_URL, default_content_type="image/jpeg")
