"""Tests for the REST layer.

The TestClient runs the real lifespan against the bundled ``data/`` files,
then the registry on ``app.state`` is swapped for stub sources so no request
leaves the process.
"""

from __future__ import annotations

from typing import Optional

import pytest
from fastapi.testclient import TestClient

from panels.api.app import create_app
from panels.errors import NotFoundError, ScrapeFailedError
from panels.models import Strip
from panels.sources.base import ComicSource, SourceRegistry, parse_date
from panels.sources.numbered import parse_number

STRIP = Strip(
    endpoint="garfield",
    title="Garfield",
    identifier="2024-01-15",
    image_url="https://featureassets.gocomics.com/assets/abc",
    source_url="https://www.gocomics.com/garfield",
    prev_identifier="2024-01-14",
    next_identifier="2024-01-16",
)


class StubDateSource(ComicSource):
    """A date-addressed source that knows one strip."""

    def __init__(self) -> None:
        self.proxied: list[str] = []

    @property
    def name(self) -> str:
        return "stub"

    def handles(self, endpoint: str) -> bool:
        return endpoint == "garfield"

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        parse_date(identifier)
        return STRIP if identifier == STRIP.identifier else None

    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        return STRIP

    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        return STRIP

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        self.proxied.append(image_url)
        return b"GIF89a", "image/gif"


class StubNumberedSource(StubDateSource):
    """A numbered source whose upstream is down."""

    @property
    def name(self) -> str:
        return "broken"

    def handles(self, endpoint: str) -> bool:
        return endpoint == "xkcd"

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        parse_number(identifier, "xkcd")
        raise ScrapeFailedError("upstream connection reset")

    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        raise NotFoundError("image not found")


@pytest.fixture()
def source():
    return StubDateSource()


@pytest.fixture()
def client(source):
    with TestClient(create_app()) as c:
        # Lifespan has run by this point; swap in the stub registry.
        c.app.state.registry = SourceRegistry([source, StubNumberedSource()])
        yield c


# ---------------------------------------------------------------------------
# Health and wiring
# ---------------------------------------------------------------------------

class TestStartup:
    def test_health(self, client) -> None:
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_lifespan_builds_pipeline(self) -> None:
        with TestClient(create_app()) as c:
            state = c.app.state
            assert len(state.comics) > 0
            assert state.registry.find("garfield") is not None
            assert state.registry.find("xkcd").name == "xkcd"
            assert len(state.cache) == 0


# ---------------------------------------------------------------------------
# Strips
# ---------------------------------------------------------------------------

class TestGetStrip:
    def test_strip_json_shape(self, client) -> None:
        resp = client.get("/api/comics/garfield/2024-01-15")
        assert resp.status_code == 200
        assert resp.json() == {
            "endpoint": "garfield",
            "title": "Garfield",
            "date": "2024-01-15",
            "imageUrl": "https://featureassets.gocomics.com/assets/abc",
            "sourceUrl": "https://www.gocomics.com/garfield",
            "prevDate": "2024-01-14",
            "nextDate": "2024-01-16",
        }

    def test_latest(self, client) -> None:
        assert client.get("/api/comics/garfield/latest").json()["date"] == "2024-01-15"

    def test_unknown_endpoint_is_404(self, client) -> None:
        resp = client.get("/api/comics/nosuchcomic/latest")
        assert resp.status_code == 404
        assert resp.json() == {"error": "unknown comic: nosuchcomic"}

    def test_missing_strip_is_404(self, client) -> None:
        resp = client.get("/api/comics/garfield/1999-01-01")
        assert resp.status_code == 404
        assert "no strip found" in resp.json()["error"]

    def test_invalid_date_is_400(self, client) -> None:
        resp = client.get("/api/comics/garfield/2024-13-45")
        assert resp.status_code == 400
        assert resp.json() == {"error": "invalid date format: 2024-13-45"}

    def test_invalid_number_is_400(self, client) -> None:
        resp = client.get("/api/comics/xkcd/not-a-number")
        assert resp.status_code == 400
        assert "uses comic numbers" in resp.json()["error"]

    def test_scrape_failure_is_502(self, client) -> None:
        resp = client.get("/api/comics/xkcd/12")
        assert resp.status_code == 502
        assert resp.json() == {"error": "upstream connection reset"}


class TestGetStripImage:
    def test_dated_image_is_long_cached(self, client, source) -> None:
        resp = client.get("/api/comics/garfield/2024-01-15/image")
        assert resp.status_code == 200
        assert resp.content == b"GIF89a"
        assert resp.headers["content-type"] == "image/gif"
        assert resp.headers["cache-control"] == "public, max-age=86400, s-maxage=604800"
        assert source.proxied == [STRIP.image_url]

    def test_random_image_is_not_stored(self, client) -> None:
        resp = client.get("/api/comics/garfield/random/image")
        assert resp.status_code == 200
        assert resp.headers["cache-control"] == "no-store"

    def test_missing_strip_image_is_404(self, client, source) -> None:
        resp = client.get("/api/comics/garfield/1999-01-01/image")
        assert resp.status_code == 404
        assert source.proxied == []

    def test_upstream_image_refused_is_404(self, client) -> None:
        resp = client.get("/api/comics/xkcd/latest/image")
        assert resp.status_code == 404
        assert resp.json() == {"error": "image not found"}


# ---------------------------------------------------------------------------
# Directory
# ---------------------------------------------------------------------------

class TestComics:
    def test_lists_directory_with_tags(self, client) -> None:
        resp = client.get("/api/comics")
        assert resp.status_code == 200
        data = resp.json()
        endpoints = [c["endpoint"] for c in data]
        assert "garfield" in endpoints
        assert "dilbert" in endpoints
        garfield = next(c for c in data if c["endpoint"] == "garfield")
        assert garfield["source"] == "gocomics"
        assert isinstance(garfield["tags"], list)

    def test_search(self, client) -> None:
        data = client.get("/api/comics", params={"search": "GARF"}).json()
        assert {c["endpoint"] for c in data} == {"garfield", "garfield-en-espanol"}

    def test_tag_filter(self, client) -> None:
        data = client.get("/api/comics", params={"tag": "en-espanol"}).json()
        assert [c["endpoint"] for c in data] == ["garfield-en-espanol"]


class TestRecommendations:
    def test_empty_selection(self, client) -> None:
        assert client.get("/api/recommendations").json() == []

    def test_excludes_selection_and_respects_limit(self, client) -> None:
        data = client.get(
            "/api/recommendations", params={"selected": "garfield,peanuts", "limit": 3}
        ).json()
        endpoints = [c["endpoint"] for c in data]
        assert len(endpoints) <= 3
        assert "garfield" not in endpoints
        assert "peanuts" not in endpoints
        assert "garfield-en-espanol" not in endpoints
