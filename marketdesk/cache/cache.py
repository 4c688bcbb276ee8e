"""In-memory TTL cache for market data responses."""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Generic, Hashable, Optional, TypeVar

from marketdesk.core.logging import get_logger

logger = get_logger("cache")

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Cached payload and the wall-clock time it was fetched."""

    data: V
    fetched_at: float

    @property
    def fetched_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.fetched_at, tz=timezone.utc)


def cache_key(*parts: object) -> str:
    """
    Build a cache key from parts.

    Usage:
        cache_key("AAPL", "2024-01-01", "2024-06-30") -> "AAPL:2024-01-01:2024-06-30"
    """
    return ":".join(str(part).replace(":", "_") for part in parts)


class ResponseCache(Generic[K, V]):
    """
    Read-through memoization with lazy TTL expiry.

    One instance per data kind, each with its own key space. Expiry is checked
    on read only; there is no background eviction. The map is bounded by
    ``max_entries``; when full, the oldest insertion is dropped.
    """

    def __init__(
        self,
        name: str,
        ttl: float = 60.0,
        max_entries: int = 512,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[K, CacheEntry[V]] = OrderedDict()

    def get(self, key: K) -> Optional[CacheEntry[V]]:
        """Return the entry if still fresh, otherwise evict it and return None."""
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache miss: {self.name}:{key}")
            return None
        if self._clock() - entry.fetched_at > self.ttl:
            del self._entries[key]
            logger.debug(f"Cache expired: {self.name}:{key}")
            return None
        logger.debug(f"Cache hit: {self.name}:{key}")
        return entry

    def put(self, key: K, value: V) -> CacheEntry[V]:
        """Unconditionally store value, stamped with the current time."""
        entry = CacheEntry(data=value, fetched_at=self._clock())
        self._entries.pop(key, None)
        self._entries[key] = entry
        while len(self._entries) > self.max_entries:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug(f"Cache full, dropped: {self.name}:{evicted}")
        return entry

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
