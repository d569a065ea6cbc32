"""Process-wide strip cache.

A capacity- and TTL-bounded table keyed by ``"<endpoint>:<identifier>"``.
One instance is created at startup and handed to every source; nothing
reaches for it as a global.

Entries are immutable :class:`~panels.models.Strip` values, so an insert is
a plain replace under the lock and readers never observe a partial write.
``load`` coalesces concurrent misses on the same key: the first caller runs
the loader, later callers wait for its result instead of fetching again.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Optional

from panels.models import Strip


def strip_key(endpoint: str, identifier: str) -> str:
    return f"{endpoint}:{identifier}"


class StripCache:
    """Thread-safe LRU table with a fixed time-to-live from insertion."""

    def __init__(
        self,
        max_entries: int = 500,
        ttl_seconds: float = 1800.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self._max_entries = max_entries
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, tuple[float, Strip]] = OrderedDict()
        self._inflight: dict[str, Future] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[Strip]:
        """Return the live entry for *key*, or ``None`` if absent or expired."""
        now = self._clock()
        with self._lock:
            item = self._entries.get(key)
            if item is None:
                return None
            expires_at, strip = item
            if expires_at <= now:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return strip

    def put(self, key: str, strip: Strip) -> None:
        """Insert or replace *key*; evicts the least recently used entry when full."""
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            if len(self._entries) >= self._max_entries:
                self._purge_expired(now)
            while len(self._entries) >= self._max_entries:
                self._entries.popitem(last=False)
            self._entries[key] = (now + self._ttl, strip)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def load(self, key: str, loader: Callable[[], Optional[Strip]]) -> Optional[Strip]:
        """Return the cached value for *key*, running *loader* at most once per miss.

        Concurrent callers that miss on the same key share one loader call and
        receive its result, or its exception.  The loader is responsible for
        populating the cache (it may store under a different, resolved key).
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        with self._lock:
            future = self._inflight.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._inflight[key] = future

        if not owner:
            return future.result()

        try:
            result = loader()
        except BaseException as exc:
            future.set_exception(exc)
            raise
        else:
            future.set_result(result)
            return result
        finally:
            with self._lock:
                self._inflight.pop(key, None)

    def _purge_expired(self, now: float) -> None:
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
