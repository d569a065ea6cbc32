"""Comic sources and the registry that routes endpoints to them."""

from __future__ import annotations

import httpx

from panels.cache import StripCache
from panels.config import Settings
from panels.models import Comic
from panels.sources.base import ComicSource, SourceRegistry
from panels.sources.comicsrss import ComicsRssSource
from panels.sources.dilbert import DilbertSource
from panels.sources.gocomics import GoComicsSource
from panels.sources.phd import PhdSource
from panels.sources.xkcd import XkcdSource

__all__ = [
    "ComicSource",
    "SourceRegistry",
    "GoComicsSource",
    "DilbertSource",
    "XkcdSource",
    "PhdSource",
    "ComicsRssSource",
    "build_registry",
]


def build_registry(
    client: httpx.Client,
    comics: list[Comic],
    cache: StripCache,
    config: Settings,
) -> SourceRegistry:
    """GoComics → Dilbert → xkcd → PhD → comicsrss, first claim wins.

    Overlapping claims are reported at build time so a misconfigured
    ``comics.json`` shows up in the startup log.
    """
    registry = SourceRegistry([
        GoComicsSource(client, comics, cache),
        DilbertSource(client, cache, config.snapshot_table_path),
        XkcdSource(client, cache),
        PhdSource(client, cache),
        ComicsRssSource(client, comics, cache),
    ])
    for endpoint, claimants in registry.conflicts(c.endpoint for c in comics).items():
        print(f"[registry] {endpoint!r} claimed by {claimants}; using {claimants[0]}")
    return registry
