"""Tests for the offline Dilbert harvester.

The Wayback Machine is faked with one ``respx`` route on ``web.archive.org``
that serves the bulk CDX index and replays snapshots by path.  Retry delays
in the fetch layer are patched out; the batch pause is injected.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
import respx

from panels.archive import save_snapshot_table, strip_url
from panels.harvest import Harvester
from panels.models import ArchiveEntry


def _page(n: int) -> str:
    return (
        f'<span class="comic-title-name">Strip {n}</span>'
        f'<img class="img-comic" src="https://assets.amuniversal.com/img{n}" />'
    )


class FakeWayback:
    """Bulk index plus snapshot replay for a fixed set of dates."""

    def __init__(self, pages: dict[str, str], bulk_status: int = 200) -> None:
        self.pages = pages
        self.bulk_status = bulk_status
        self.bulk_calls = 0
        self.page_calls = 0

    @staticmethod
    def timestamp(date_str: str) -> str:
        return date_str.replace("-", "") + "000000"

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/cdx/search/cdx":
            self.bulk_calls += 1
            if self.bulk_status != 200:
                return httpx.Response(self.bulk_status)
            rows = [f"{strip_url(d)} {self.timestamp(d)}" for d in self.pages]
            return httpx.Response(200, text="\n".join(rows))

        self.page_calls += 1
        for date_str, html in self.pages.items():
            if request.url.path == f"/web/{self.timestamp(date_str)}/{strip_url(date_str)}":
                if html is None:
                    return httpx.Response(404)
                return httpx.Response(200, text=html)
        return httpx.Response(404)


@pytest.fixture()
def client():
    with httpx.Client(follow_redirects=True) as c:
        yield c


@pytest.fixture(autouse=True)
def no_retry_delay():
    with patch("panels.scraper.fetcher.time.sleep"):
        yield


def _harvester(client, path, **kwargs):
    kwargs.setdefault("sleep", lambda seconds: None)
    return Harvester(client, path, **kwargs)


class TestHarvester:
    def test_fresh_run_records_successes_and_errors(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({
            "2000-01-01": _page(1),
            "2000-01-02": _page(2),
            "2000-01-03": None,
            "2000-01-04": "<html>no image</html>",
        })
        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            report = _harvester(client, path, concurrency=2).run()

        assert report.already_cached == 0
        assert report.fetched == 2
        assert report.errors == 2
        assert report.total == 2

        saved = json.loads(path.read_text(encoding="utf-8"))
        assert list(saved) == ["2000-01-01", "2000-01-02"]
        assert saved["2000-01-02"] == {
            "image_url": "https://assets.amuniversal.com/img2",
            "title": "Strip 2",
        }

    def test_complete_table_only_queries_the_index(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        save_snapshot_table(path, {
            "2000-01-01": ArchiveEntry("https://a/1", "One"),
            "2000-01-02": ArchiveEntry("https://a/2", "Two"),
        })
        before = path.read_bytes()
        wayback = FakeWayback({"2000-01-01": _page(1), "2000-01-02": _page(2)})

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            report = _harvester(client, path).run()

        assert wayback.bulk_calls == 1
        assert wayback.page_calls == 0
        assert path.read_bytes() == before
        assert report.already_cached == 2
        assert report.fetched == 0
        assert report.total == 2

    def test_resume_skips_dates_already_on_disk(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        save_snapshot_table(path, {"2000-01-01": ArchiveEntry("https://a/1", "Kept")})
        wayback = FakeWayback({"2000-01-01": _page(1), "2000-01-02": _page(2)})

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            report = _harvester(client, path).run()

        assert wayback.page_calls == 1
        assert report.already_cached == 1
        assert report.fetched == 1
        assert report.total == 2
        saved = json.loads(path.read_text(encoding="utf-8"))
        assert saved["2000-01-01"]["title"] == "Kept"

    def test_checkpoints_at_save_interval_and_at_end(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({f"2000-01-0{n}": _page(n) for n in range(1, 5)})

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            with patch("panels.harvest.save_snapshot_table") as save:
                _harvester(client, path, concurrency=1, save_interval=2).run()

        # after 2 and 4 new entries, then the final save
        assert save.call_count == 3
        sizes = [len(call.args[1]) for call in save.call_args_list]
        assert sizes == [2, 4, 4]

    def test_checkpoint_gap_never_exceeds_save_interval(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({f"2000-01-{n:02d}": _page(n) for n in range(1, 11)})

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            with patch("panels.harvest.save_snapshot_table") as save:
                _harvester(client, path, concurrency=2, save_interval=3).run()

        sizes = [len(call.args[1]) for call in save.call_args_list]
        assert sizes == [3, 6, 9, 10]
        gaps = [b - a for a, b in zip([0] + sizes, sizes)]
        assert max(gaps) <= 3

    def test_counters_reset_between_runs(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({"2000-01-01": _page(1), "2000-01-02": None})
        harvester = _harvester(client, path)

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            first = harvester.run()
            wayback.pages["2000-01-03"] = _page(3)
            second = harvester.run()

        assert (first.fetched, first.errors) == (1, 1)
        assert second.already_cached == 1
        assert second.fetched == 1
        assert second.errors == 1
        assert second.total == 2

    def test_pauses_after_every_batch(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({f"2000-01-0{n}": _page(n) for n in range(1, 6)})
        pauses = []

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            Harvester(
                client, path, concurrency=2, batch_pause=0.5, sleep=pauses.append
            ).run()

        # five dates in batches of two
        assert pauses == [0.5, 0.5, 0.5]

    def test_empty_index_is_fatal(self, client, tmp_path) -> None:
        path = tmp_path / "dilbert_cache.json"
        wayback = FakeWayback({}, bulk_status=503)

        with respx.mock:
            respx.route(host="web.archive.org").mock(side_effect=wayback)
            with pytest.raises(RuntimeError, match="CDX bulk fetch returned empty"):
                _harvester(client, path).run()

        assert not path.exists()
