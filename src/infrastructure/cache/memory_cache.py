"""
Bounded in-memory response cache.

Entries expire individually and the least recently used entry is evicted
when the cache is full. Expired entries are dropped lazily on access.

Example:
    >>> cache = MemoryCache(max_entries=100)
    >>> cache.set("document:detail:id=123", payload, ttl=3600)
    >>> cache.get("document:detail:id=123")
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from src.utils.logger import get_logger

logger = get_logger(__name__)

# Capacity used when the configured capacity is zero or invalid
FALLBACK_CAPACITY = 100


@dataclass
class CacheEntry:
    """
    Serialized payload with its creation time and lifetime.

    Attributes:
        payload: Serialized record (JSON text).
        created_at: Clock reading at insertion.
        ttl: Lifetime in seconds.
    """
    payload: str
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now >= self.created_at + self.ttl


class MemoryCache:
    """
    LRU cache of serialized payloads with per-entry TTL.

    Recency is tracked independently of expiry: ``get`` moves a live entry
    to the most-recently-used end, ``set`` evicts from the other end.

    Every operation runs under one lock. A hit reorders the LRU list, so
    reads mutate state too; each critical section is a few dict operations
    and never spans I/O.

    Attributes:
        max_entries: Capacity after fallback.
    """

    def __init__(
        self,
        max_entries: int = 500,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize the cache.

        Args:
            max_entries: Maximum number of entries; <= 0 falls back to 100.
            clock: Monotonic time source in seconds (injectable for tests).
        """
        if not isinstance(max_entries, int) or max_entries <= 0:
            logger.warning(
                f"Invalid cache capacity {max_entries!r}, falling back to {FALLBACK_CAPACITY}"
            )
            max_entries = FALLBACK_CAPACITY

        self.max_entries = max_entries
        self._clock = clock or time.monotonic
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Optional[str]:
        """
        Return the payload for ``key`` if present and not expired.

        An expired entry is removed and reported as a miss.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None

            if entry.is_expired(self._clock()):
                del self._entries[key]
                self.misses += 1
                logger.debug(f"Cache expired: {key}")
                return None

            self._entries.move_to_end(key)
            self.hits += 1
            return entry.payload

    def set(self, key: str, payload: str, ttl: float) -> None:
        """
        Insert or overwrite ``key``.

        When a new key would exceed capacity, the least recently used entry
        is evicted first, whether or not it has expired.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
            elif len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache evicted: {evicted}")

            self._entries[key] = CacheEntry(payload=payload, created_at=self._clock(), ttl=ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
