"""
Bounded TTL response cache.

Maps a request URL to a previously fetched body. Entries older than the
TTL are treated as misses and dropped lazily on read; when full, the
earliest-inserted entry is evicted (insertion order, not access order).
"""

from __future__ import annotations

import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

import structlog

if TYPE_CHECKING:
    from scrapely.config.config import CacheConfig

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class CacheEntry:
    """A cached body and the time it was stored."""

    value: str
    timestamp: float


class ResponseCache:
    """In-memory response cache. A ``None`` policy disables it entirely."""

    def __init__(self, policy: Optional[CacheConfig] = None, clock: Callable[[], float] = time.monotonic):
        self.policy = policy
        self._clock = clock
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self.policy is not None

    @property
    def size(self) -> int:
        """Number of stored entries, including stale ones not yet read."""
        return len(self._store)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def get(self, key: str) -> Optional[str]:
        if self.policy is None:
            return None

        entry = self._store.get(key)
        if entry is None:
            return None

        if self._clock() - entry.timestamp > self.policy.ttl:
            del self._store[key]
            logger.debug("Evicted expired cache entry", key=key)
            return None
        return entry.value

    def put(self, key: str, value: str) -> None:
        if self.policy is None:
            return

        if key in self._store:
            # Overwrite in place; the original insertion slot is kept.
            self._store[key] = CacheEntry(value=value, timestamp=self._clock())
            return

        while len(self._store) >= self.policy.max_size:
            oldest, _ = self._store.popitem(last=False)
            logger.debug("Evicted oldest cache entry", key=oldest, max_size=self.policy.max_size)

        self._store[key] = CacheEntry(value=value, timestamp=self._clock())

    def clear(self) -> None:
        self._store.clear()
