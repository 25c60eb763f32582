"""
Single-slot result cache for the school listing.

The slot holds the last fetched list together with the epoch-millisecond
stamp at which that fetch started. Unfiltered requests may reuse a fresh,
non-empty slot; filtered requests always go to the store and then overwrite
the slot with their own (filtered) result so the "last shown" list stays
consistent. An unfiltered request that follows within the TTL therefore sees
the filtered list.
"""
from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

T = TypeVar("T")

_DEFAULT_TTL = 300  # 5 minutes


def _now_ms() -> int:
    return int(time.time() * 1000)


class ResultCache(Generic[T]):
    def __init__(
        self,
        ttl_seconds: float = _DEFAULT_TTL,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self.ttl_ms = int(ttl_seconds * 1000)
        self._clock = clock
        self._lock = threading.Lock()
        self._items: list[T] = []
        self._fetched_at_ms: int = 0
        self._hits = 0
        self._misses = 0

    def now_ms(self) -> int:
        return self._clock()

    @property
    def fetched_at_ms(self) -> int:
        return self._fetched_at_ms

    def get(self) -> list[T] | None:
        """Return the cached list when it is non-empty and younger than the TTL."""
        with self._lock:
            if self._items and self._clock() - self._fetched_at_ms < self.ttl_ms:
                self._hits += 1
                return list(self._items)
            self._misses += 1
            return None

    def put(self, items: list[T], fetched_at_ms: int) -> bool:
        """
        Store ``items`` stamped with the time their fetch started.

        Compare-and-swap on the stamp: a fetch that began before the one
        currently in the slot is discarded. Returns whether the slot changed.
        """
        with self._lock:
            if fetched_at_ms < self._fetched_at_ms:
                return False
            self._items = list(items)
            self._fetched_at_ms = fetched_at_ms
            return True

    def clear(self) -> None:
        with self._lock:
            self._items = []
            self._fetched_at_ms = 0

    def stats(self) -> dict:
        with self._lock:
            total = self._hits + self._misses
            return {
                "size": len(self._items),
                "fetched_at_ms": self._fetched_at_ms,
                "ttl_ms": self.ttl_ms,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
            }
