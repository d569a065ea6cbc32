"""Shared behaviour for providers addressed by sequence number (``#<n>``)."""

from __future__ import annotations

import random
from abc import abstractmethod
from typing import Optional

from panels.errors import InvalidParamError
from panels.models import Strip
from panels.sources.base import ComicSource


def format_number(num: int) -> str:
    return f"#{num}"


def parse_number(identifier: str, provider: str) -> int:
    """Turn ``#123`` or ``123`` into ``123``.

    Raises:
        InvalidParamError: For anything that is not a positive integer.
    """
    raw = identifier[1:] if identifier.startswith("#") else identifier
    if not (raw.isascii() and raw.isdigit()) or int(raw) < 1:
        raise InvalidParamError(
            f"{provider} uses comic numbers (e.g. #123), not dates. Got: {identifier}"
        )
    return int(raw)


def pick_random_number(max_id: int, excluded: frozenset[int] = frozenset(), rng=random) -> Optional[int]:
    """Draw uniformly from ``[1, max_id]`` minus *excluded*; ``None`` if nothing is left."""
    available = max_id - len({n for n in excluded if 1 <= n <= max_id})
    if available <= 0:
        return None
    while True:
        num = rng.randint(1, max_id)
        if num not in excluded:
            return num


class NumberedSource(ComicSource):
    """A single-series provider whose strips are numbered from 1."""

    endpoint: str = ""
    display_name: str = ""
    excluded_ids: frozenset[int] = frozenset()

    def handles(self, endpoint: str) -> bool:
        return endpoint == self.endpoint

    @abstractmethod
    def fetch_by_number(self, num: int) -> Optional[Strip]:
        """Return strip *num*, or ``None`` if it does not exist."""

    @abstractmethod
    def latest_number(self) -> Optional[int]:
        """Return the highest published number, or ``None`` if unknown."""

    def fetch_strip(self, endpoint: str, identifier: str) -> Optional[Strip]:
        return self.fetch_by_number(parse_number(identifier, self.display_name))

    def fetch_random(self, endpoint: str) -> Optional[Strip]:
        max_id = self.latest_number()
        if max_id is None:
            return None
        num = pick_random_number(max_id, self.excluded_ids)
        if num is None:
            return None
        print(f"[{self.name}] Fetching random comic #{num}")
        return self.fetch_by_number(num)
