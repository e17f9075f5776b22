"""In-memory TTL cache with bounded size and substring invalidation.

Keys look like ``{prefix}:{name}:{value}|{name}:{value}`` (see cache_keys).
The store is shared by every request path, so all access goes through one lock.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

log = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 1000


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl_seconds: int

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.ttl_seconds


@dataclass
class CacheStats:
    size: int = 0
    hits: int = 0
    misses: int = 0
    expirations: int = 0
    evictions: int = 0


class CacheBackend(ABC):
    """Interface every cache backend implements.

    Only the in-process store exists today; an external backend would
    plug in here with the same four operations.
    """

    @abstractmethod
    def get(self, key: str) -> Any | None: ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int) -> None: ...

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def invalidate_pattern(self, pattern: str) -> int: ...


class CacheStore(CacheBackend):
    """Thread-safe in-memory cache with per-key TTL and a max entry count."""

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._clock = clock or time.monotonic
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._stats.misses += 1
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                return None
            self._stats.hits += 1
            return entry.value

    def set(self, key: str, value: Any, ttl: int) -> None:
        with self._lock:
            # Re-insert so dict order tracks creation order on overwrite.
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(value, self._clock(), ttl)
            if len(self._entries) > self.max_entries:
                self._evict()

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def invalidate_pattern(self, pattern: str) -> int:
        """Remove every entry whose key contains ``pattern`` literally.

        Returns the number of entries removed.
        """
        with self._lock:
            keys = [k for k in self._entries if pattern in k]
            for k in keys:
                del self._entries[k]
            return len(keys)

    def clear(self) -> int:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            return count

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._entries)

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._entries),
                hits=self._stats.hits,
                misses=self._stats.misses,
                expirations=self._stats.expirations,
                evictions=self._stats.evictions,
            )

    def _evict(self) -> None:
        # Caller holds the lock.
        now = self._clock()
        expired = [k for k, e in self._entries.items() if e.is_expired(now)]
        for k in expired:
            del self._entries[k]
        self._stats.expirations += len(expired)

        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return
        oldest = sorted(self._entries.items(), key=lambda item: item[1].created_at)
        for k, _ in oldest[:overflow]:
            del self._entries[k]
        self._stats.evictions += overflow


class FailSafeCache(CacheBackend):
    """Wraps a backend so that any backend fault reads as a miss."""

    def __init__(self, backend: CacheBackend) -> None:
        self.backend = backend

    def get(self, key: str) -> Any | None:
        try:
            return self.backend.get(key)
        except Exception:
            log.debug("Cache get failed for %s, treating as miss", key, exc_info=True)
            return None

    def set(self, key: str, value: Any, ttl: int) -> None:
        try:
            self.backend.set(key, value, ttl)
        except Exception:
            log.debug("Cache set failed for %s", key, exc_info=True)

    def delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception:
            log.debug("Cache delete failed for %s", key, exc_info=True)

    def invalidate_pattern(self, pattern: str) -> int:
        try:
            return self.backend.invalidate_pattern(pattern)
        except Exception:
            log.debug("Cache invalidation failed for %r", pattern, exc_info=True)
            return 0

    def stats(self) -> CacheStats | None:
        stats = getattr(self.backend, "stats", None)
        return stats() if stats is not None else None


def create_cache(
    cache_url: str | None = None,
    max_entries: int = DEFAULT_MAX_ENTRIES,
) -> FailSafeCache:
    """Build the process-wide cache.

    An external cache URL is accepted but has no client behind it yet, so
    the in-process store is always used. Startup never fails on the cache.
    """
    if cache_url:
        log.info("External cache URL configured but not supported; using in-process memory cache")
    return FailSafeCache(CacheStore(max_entries=max_entries))
