"""Comic source abstraction and the registry that routes endpoints to sources.

Every provider implements the same contract so the REST layer never
special-cases one:

    handles(endpoint) -> bool
    fetch_strip(endpoint, identifier) -> Strip | None
    fetch_latest(endpoint) -> Strip | None
    fetch_random(endpoint) -> Strip | None
    proxy_image(url) -> (bytes, content_type)

``None`` means "no such strip"; malformed upstream content degrades to
``None`` rather than raising.  Identifiers from the wrong addressing family
raise before any network call.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Iterable, Optional

from panels.errors import InvalidDateError, NotFoundError
from panels.models import Strip

DATE_FORMAT = "%Y-%m-%d"


def parse_date(identifier: str) -> date:
    """Parse a ``YYYY-MM-DD`` identifier or raise :class:`InvalidDateError`."""
    try:
        if len(identifier) != 10:
            raise ValueError(identifier)
        return datetime.strptime(identifier, DATE_FORMAT).date()
    except ValueError:
        raise InvalidDateError(f"invalid date format: {identifier}") from None


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------

class ComicSource(ABC):
    """Abstract base class for a single comic provider."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Short provider name, as used in ``comics.json``."""

    @abstractmethod
    def handles(self, endpoint: str) -> bool:
        """Return ``True`` if this source serves *endpoint*."""

    @abstractmethod
    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        """Return the strip addressed by *identifier*, or ``None``."""

    @abstractmethod
    def fetch_latest(self, endpoint: str) -> Optional[Strip]:
        """Return the most recent strip, or ``None``."""

    @abstractmethod
    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        """Return a randomly selected strip, or ``None``."""

    @abstractmethod
    def proxy_image(self, image_url: str) -> tuple[bytes, str]:
        """Fetch *image_url* on behalf of a browser.  Raises ``NotFoundError``."""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

class SourceRegistry:
    """Route endpoints to sources; the first source that claims one wins."""

    def __init__(self, sources: list[ComicSource]) -> None:
        self._sources = list(sources)

    @property
    def sources(self) -> list[ComicSource]:
        return list(self._sources)

    def find(self, endpoint: str) -> Optional[ComicSource]:
        for source in self._sources:
            if source.handles(endpoint):
                return source
        return None

    def conflicts(self, endpoints: Iterable[str]) -> dict[str, list[str]]:
        """Return endpoints claimed by more than one source, with the claimants in order."""
        clashes: dict[str, list[str]] = {}
        for endpoint in endpoints:
            claimants = [s.name for s in self._sources if s.handles(endpoint)]
            if len(claimants) > 1:
                clashes[endpoint] = claimants
        return clashes

    def source_for(self, endpoint: str) -> ComicSource:
        source = self.find(endpoint)
        if source is None:
            raise NotFoundError(f"unknown comic: {endpoint}")
        return source

    def resolve(self, endpoint: str, identifier: str) -> Strip:
        """Translate ``latest`` / ``random`` / anything else into a source call.

        Raises:
            NotFoundError: Unknown endpoint, or the source found nothing.
        """
        source = self.source_for(endpoint)
        if identifier == "latest":
            strip = source.fetch_latest(endpoint)
        elif identifier == "random":
            strip = source.fetch_random(endpoint)
        else:
            strip = source.fetch_strip(endpoint, identifier)

        if strip is None:
            raise NotFoundError(f"no strip found for {endpoint}/{identifier}")
        return strip
