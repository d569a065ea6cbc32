"""Offline harvester for the archived Dilbert strips.

Dilbert is discontinued and every live lookup costs two Wayback requests
(index query, then snapshot).  This tool does one bulk CDX query for all
snapshots, fetches each date that is not yet in the persisted table, and
writes ``{image_url, title}`` per date so the live source can answer from
the table instead.

Work is processed in fixed-size batches on a ``ThreadPoolExecutor``.  The
table is checkpointed as soon as every ``save_interval``-th new entry is
recorded and once more at the end, so a crash loses at most
``save_interval - 1`` fetched entries and a re-run resumes by skipping
everything already on disk.
"""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Optional

import httpx

from panels.archive import (
    fetch_bulk_timestamps,
    load_snapshot_table,
    parse_archive_page,
    save_snapshot_table,
    strip_url,
    wayback_url,
)
from panels.models import ArchiveEntry, HarvestReport
from panels.scraper.fetcher import fetch_page


class Harvester:
    """Fill the snapshot table at *table_path* from the Wayback Machine."""

    def __init__(
        self,
        client: httpx.Client,
        table_path: Path,
        concurrency: int = 8,
        save_interval: int = 100,
        batch_pause: float = 0.2,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._table_path = table_path
        self._concurrency = max(1, concurrency)
        self._save_interval = max(1, save_interval)
        self._batch_pause = batch_pause
        self._sleep = sleep

        self._table: dict[str, ArchiveEntry] = {}
        self._lock = threading.Lock()
        self._fetched = 0
        self._errors = 0

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------
    def _harvest_one(self, date_str: str, timestamp: str) -> Optional[ArchiveEntry]:
        page = fetch_page(
            self._client, wayback_url(timestamp, strip_url(date_str)),
            retries=2, timeout_ms=20_000,
        )
        if page is None:
            print(f"[skip] {date_str}: wayback page not found")
            return None
        entry = parse_archive_page(page.body)
        if entry is None:
            print(f"[skip] {date_str}: no image found in page")
        return entry

    def _record(self, date_str: str, entry: Optional[ArchiveEntry], total_all: int) -> bool:
        """Store one result; return ``True`` when a checkpoint is due."""
        with self._lock:
            if entry is None:
                self._errors += 1
                return False
            self._table[date_str] = entry
            self._fetched += 1
            print(f"[ok] {date_str} ({len(self._table)}/{total_all})")
            return self._fetched % self._save_interval == 0

    def _run_batch(self, batch: list[tuple[str, str]], total_all: int) -> None:
        with ThreadPoolExecutor(max_workers=self._concurrency) as pool:
            future_to_date = {
                pool.submit(self._harvest_one, date_str, timestamp): date_str
                for date_str, timestamp in batch
            }
            for future in as_completed(future_to_date):
                date_str = future_to_date[future]
                try:
                    entry = future.result()
                except Exception as exc:
                    print(f"[error] {date_str}: {exc}")
                    entry = None
                if self._record(date_str, entry, total_all):
                    self._checkpoint()

    def _checkpoint(self) -> None:
        with self._lock:
            snapshot = dict(self._table)
        save_snapshot_table(self._table_path, snapshot)
        print(f"[saved] {len(snapshot)} total entries")

    # ------------------------------------------------------------------
    # Entry-point
    # ------------------------------------------------------------------
    def run(self) -> HarvestReport:
        start = time.monotonic()
        self._fetched = 0
        self._errors = 0
        self._table = load_snapshot_table(self._table_path)
        already_cached = len(self._table)
        print(f"[harvest] Already cached: {already_cached}")

        timestamps = fetch_bulk_timestamps(self._client)
        to_fetch = sorted(
            (d, ts) for d, ts in timestamps.items() if d not in self._table
        )
        print(f"[harvest] Remaining to fetch: {len(to_fetch)}")

        if not to_fetch:
            print("[harvest] Cache is complete!")
            return HarvestReport(already_cached=already_cached, total=already_cached)

        total_all = already_cached + len(to_fetch)
        for i in range(0, len(to_fetch), self._concurrency):
            self._run_batch(to_fetch[i:i + self._concurrency], total_all)
            self._sleep(self._batch_pause)

        self._checkpoint()

        report = HarvestReport(
            already_cached=already_cached,
            fetched=self._fetched,
            errors=self._errors,
            total=len(self._table),
        )
        elapsed = time.monotonic() - start
        print(f"[harvest] Done in {elapsed / 60:.1f}m")
        print(
            f"[harvest] Fetched: {report.fetched}, errors: {report.errors}, "
            f"total cached: {report.total}"
        )
        return report
