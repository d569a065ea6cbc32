"""comicsrss.com — date-addressed strips read from per-series RSS feeds.

A feed only carries the most recent handful of strips, so lookups work
within that batch: items are ordered by date and each item's neighbours are
the adjacent items in the same feed, not the series' global history.
"""

from __future__ import annotations

import random
import re
from email.utils import parsedate_to_datetime
from typing import Optional

import httpx

from panels.cache import StripCache, strip_key
from panels.errors import InvalidDateError
from panels.models import Comic, Strip
from panels.scraper.fetcher import fetch_image, fetch_page
from panels.sources.base import ComicSource, parse_date

FEED_URL = "https://www.comicsrss.com/rss/{slug}.rss"

_ITEM = re.compile(r"<item>(.*?)</item>", re.DOTALL)
_TITLE_CDATA = re.compile(r"<title><!\[CDATA\[(.*?)\]\]></title>", re.DOTALL)
_TITLE = re.compile(r"<title>(.*?)</title>", re.DOTALL)
_LINK = re.compile(r"<link>(.*?)</link>")
_GUID = re.compile(r"<guid[^>]*>(.*?)</guid>")
_IMG = re.compile(r'<img[^>]+src="([^"]+)"')
_PUB_DATE = re.compile(r"<pubDate>(.*?)</pubDate>")
_TRAILING_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})$")
_DAY_MON_YEAR = re.compile(r"(\d{1,2})\s+(\w{3})\s+(\d{4})")

_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


# ---------------------------------------------------------------------------
# Feed parsing
# ---------------------------------------------------------------------------

def extract_item_date(item_xml: str) -> Optional[str]:
    """Derive an item's date: guid suffix, then RFC 2822 pubDate, then ``D Mon YYYY``."""
    guid = _GUID.search(item_xml)
    if guid:
        trailing = _TRAILING_DATE.search(guid.group(1).strip())
        if trailing:
            try:
                parse_date(trailing.group(1))
            except InvalidDateError:
                pass
            else:
                return trailing.group(1)

    pub = _PUB_DATE.search(item_xml)
    if not pub:
        return None
    pub_date = pub.group(1).strip()

    try:
        return parsedate_to_datetime(pub_date).strftime("%Y-%m-%d")
    except (TypeError, ValueError):
        pass

    parts = _DAY_MON_YEAR.search(pub_date)
    if parts and parts.group(2) in _MONTHS:
        day, month, year = int(parts.group(1)), _MONTHS.index(parts.group(2)) + 1, int(parts.group(3))
        return f"{year:04d}-{month:02d}-{day:02d}"
    return None


def parse_rss_items(xml: str, endpoint: str) -> list[Strip]:
    """Parse feed items into strips sorted by date, linked to their neighbours."""
    parsed: list[tuple[str, str, str, str]] = []

    for item_xml in _ITEM.findall(xml):
        img = _IMG.search(item_xml)
        if not img:
            continue

        title_match = _TITLE_CDATA.search(item_xml) or _TITLE.search(item_xml)
        title = title_match.group(1) if title_match else ""
        title = title.split(" by ", 1)[0].strip()

        link = _LINK.search(item_xml)
        item_date = extract_item_date(item_xml)
        if item_date is None:
            continue

        parsed.append((item_date, title, img.group(1), link.group(1) if link else ""))

    parsed.sort(key=lambda item: item[0])

    strips: list[Strip] = []
    for i, (item_date, title, image_url, source_url) in enumerate(parsed):
        strips.append(Strip(
            endpoint=endpoint,
            title=title,
            identifier=item_date,
            image_url=image_url,
            source_url=source_url,
            prev_identifier=parsed[i - 1][0] if i > 0 else None,
            next_identifier=parsed[i + 1][0] if i + 1 < len(parsed) else None,
        ))
    return strips


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class ComicsRssSource(ComicSource):
    def __init__(self, client: httpx.Client, comics: list[Comic], cache: StripCache) -> None:
        self._client = client
        self._endpoints = {c.endpoint for c in comics if c.source == self.name}
        self._cache = cache

    @property
    def name(self) -> str:
        return "comicsrss"

    def handles(self, endpoint: str) -> bool:
        return endpoint in self._endpoints

    def fetch_feed(self, endpoint: str) -> list[Strip]:
        """Fetch and parse the feed, caching every item it carries."""
        page = fetch_page(self._client, FEED_URL.format(slug=endpoint), retries=1, timeout_ms=15_000)
        if page is None:
            return []

        items = parse_rss_items(page.body, endpoint)
        for item in items:
            self._cache.put(strip_key(endpoint, item.identifier), item)

        if not items:
            print(f"[comicsrss] No items found in RSS feed for {endpoint}")
        return items

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        parse_date(identifier)
        key = strip_key(endpoint, identifier)

        def load() -> Optional[Strip]:
            return next((s for s in self.fetch_feed(endpoint) if s.identifier == identifier), None)

        return self._cache.load(key, load)

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        items = self.fetch_feed(endpoint)
        return items[-1] if items else None

    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        items = self.fetch_feed(endpoint)
        if not items:
            return None
        choice = random.choice(items)
        print(f"[comicsrss] Fetching random strip {endpoint} {choice.identifier}")
        return choice

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        return fetch_image(self._client, image_url, default_content_type="image/gif")
