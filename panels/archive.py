"""Wayback Machine access for the defunct Dilbert site.

Two kinds of CDX query are used:

* per-date: "most recent successful snapshot of this strip URL up to the
  cutoff", answered with one timestamp or an empty body;
* bulk: every snapshot of ``dilbert.com/strip/*`` in one request, used by
  the harvester to build the snapshot table.

Snapshots are replayed from ``/web/<timestamp>/<original>`` and parsed with
the same rules in both the live and the offline path.
"""

from __future__ import annotations

import json
import os
import re
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from panels.models import ArchiveEntry
from panels.scraper.fetcher import fetch_page

WAYBACK = "https://web.archive.org"
CDX_ENDPOINT = f"{WAYBACK}/cdx/search/cdx"
CUTOFF = "20230312"
IMAGE_HOST = "assets.amuniversal.com"
DEFAULT_TITLE = "Dilbert"

_TIMESTAMP = re.compile(r"^\d+$")


def strip_url(date_str: str) -> str:
    return f"https://dilbert.com/strip/{date_str}"


def cdx_url(original_url: str) -> str:
    return (
        f"{CDX_ENDPOINT}?url={original_url}"
        f"&fl=timestamp&filter=statuscode:^2&limit=-1&to={CUTOFF}"
    )


def bulk_cdx_url() -> str:
    return (
        f"{CDX_ENDPOINT}?url=dilbert.com/strip/*"
        f"&fl=original,timestamp&filter=statuscode:200"
        f"&collapse=urlkey&to={CUTOFF}&limit=100000"
    )


def wayback_url(timestamp: str, original_url: str) -> str:
    return f"{WAYBACK}/web/{timestamp}/{original_url}"


def _normalize_url(src: str) -> str:
    return f"https:{src}" if src.startswith("//") else src


# ---------------------------------------------------------------------------
# Snapshot parsing
# ---------------------------------------------------------------------------

def parse_archive_page(html: str) -> Optional[ArchiveEntry]:
    """Extract the strip image and title from an archived strip page."""
    soup = BeautifulSoup(html, "html.parser")

    image_url: Optional[str] = None
    comic = soup.select_one(".img-comic")
    if comic is not None and comic.get("src"):
        image_url = _normalize_url(comic["src"])

    if image_url is None:
        for img in soup.find_all("img", src=True):
            if IMAGE_HOST in img["src"]:
                image_url = _normalize_url(img["src"])
                break

    if image_url is None:
        return None

    title_el = soup.select_one(".comic-title-name")
    title = title_el.get_text().strip() if title_el is not None else ""
    return ArchiveEntry(image_url=image_url, title=title or DEFAULT_TITLE)


# ---------------------------------------------------------------------------
# Live resolution (index query, then snapshot fetch)
# ---------------------------------------------------------------------------

def lookup_timestamp(client: httpx.Client, original_url: str) -> Optional[str]:
    """Return the best snapshot timestamp for *original_url*, or ``None``."""
    page = fetch_page(client, cdx_url(original_url), retries=1, timeout_ms=15_000)
    if page is None:
        return None
    timestamp = page.body.strip()
    if not _TIMESTAMP.match(timestamp):
        return None
    return timestamp


def fetch_archived_entry(client: httpx.Client, date_str: str) -> Optional[ArchiveEntry]:
    """Resolve *date_str* through the CDX index and parse the archived page."""
    original = strip_url(date_str)
    timestamp = lookup_timestamp(client, original)
    if timestamp is None:
        print(f"[archive] No CDX timestamp found for {date_str}")
        return None

    page = fetch_page(client, wayback_url(timestamp, original), retries=1, timeout_ms=15_000)
    if page is None:
        return None

    entry = parse_archive_page(page.body)
    if entry is None:
        print(f"[archive] No image found in archived page for {date_str}")
    return entry


# ---------------------------------------------------------------------------
# Bulk index
# ---------------------------------------------------------------------------

def _is_real_date(token: str) -> bool:
    if len(token) != 10 or token.count("-") != 2:
        return False
    try:
        datetime.strptime(token, "%Y-%m-%d")
    except ValueError:
        return False
    return True


def parse_bulk_rows(body: str) -> dict[str, str]:
    """Turn ``original timestamp`` rows into a date → timestamp mapping."""
    timestamps: dict[str, str] = {}
    for line in body.splitlines():
        parts = line.split()
        if len(parts) != 2:
            continue
        original, timestamp = parts
        date_str = original.rstrip("/").rsplit("/", 1)[-1]
        if _is_real_date(date_str):
            timestamps[date_str] = timestamp
    return timestamps


def fetch_bulk_timestamps(client: httpx.Client) -> dict[str, str]:
    """Enumerate every archived strip date in a single CDX request.

    Raises:
        RuntimeError: If the index query yields nothing at all.
    """
    print("[cdx] Fetching bulk timestamps from archive.org …")
    page = fetch_page(client, bulk_cdx_url(), retries=3, timeout_ms=60_000)
    if page is None:
        raise RuntimeError("CDX bulk fetch returned empty")
    timestamps = parse_bulk_rows(page.body)
    print(f"[cdx] Found timestamps for {len(timestamps)} dates")
    return timestamps


# ---------------------------------------------------------------------------
# Snapshot table persistence
# ---------------------------------------------------------------------------

def load_snapshot_table(path: Path) -> dict[str, ArchiveEntry]:
    """Read the persisted table.  Missing or unreadable files give an empty table."""
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        print(f"[archive] Ignoring unreadable snapshot table {path}: {exc}")
        return {}
    if not isinstance(raw, dict):
        print(f"[archive] Ignoring snapshot table {path}: expected a JSON object")
        return {}

    table: dict[str, ArchiveEntry] = {}
    for date_str, item in raw.items():
        if isinstance(item, dict) and item.get("image_url"):
            table[date_str] = ArchiveEntry(
                image_url=item["image_url"], title=item.get("title") or DEFAULT_TITLE
            )
    return table


def save_snapshot_table(path: Path, table: dict[str, ArchiveEntry]) -> None:
    """Write the whole table, replacing the file atomically."""
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = {d: table[d].to_dict() for d in sorted(table)}
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise
