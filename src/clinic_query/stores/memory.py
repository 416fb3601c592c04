"""In-memory cache store."""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable

from clinic_query.types import CacheEntry

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class MemoryStore:
    """In-memory cache store with TTL checked at read time and optional LRU eviction."""

    def __init__(
        self,
        *,
        default_ttl: int = 120_000,
        max_items: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        if default_ttl < 0:
            raise ValueError("default_ttl must not be negative")
        if max_items is not None and max_items < 1:
            raise ValueError("max_items must be at least 1")
        self._cache: OrderedDict[str, CacheEntry[object]] = OrderedDict()
        self._default_ttl = default_ttl
        self._max_items = max_items
        self._clock = clock

    def _is_expired(self, entry: CacheEntry[object], ttl: int) -> bool:
        """Check if entry has reached its TTL."""
        return self._clock() - entry.created_at >= ttl

    def get(self, key: str, ttl: int | None = None) -> CacheEntry[object] | None:
        """Get a fresh cache entry by key.

        Expired entries read as absent but stay in the table until
        ``clear_expired`` or an explicit invalidation removes them.
        """
        entry = self._cache.get(key)
        if entry is None:
            return None
        if self._is_expired(entry, self._default_ttl if ttl is None else ttl):
            logger.debug("Cache entry expired", extra={"cache_key": key})
            return None
        self._cache.move_to_end(key)  # LRU touch
        return entry

    def set(self, key: str, value: object) -> None:
        """Store a value under key."""
        self._cache[key] = CacheEntry(key=key, value=value, created_at=self._clock())
        self._cache.move_to_end(key)
        if self._max_items and len(self._cache) > self._max_items:
            evicted, _ = self._cache.popitem(last=False)
            logger.debug("Cache entry evicted", extra={"cache_key": evicted})

    def invalidate(self, key: str) -> None:
        """Delete a cache entry."""
        self._cache.pop(key, None)

    def invalidate_by_prefix(self, prefix: str) -> None:
        """Delete every cache entry whose key starts with prefix."""
        for key in [k for k in self._cache if k.startswith(prefix)]:
            del self._cache[key]

    def clear(self) -> None:
        """Clear all cached entries."""
        self._cache.clear()

    def clear_expired(self, ttl: int | None = None) -> int:
        """Sweep expired entries."""
        ttl = self._default_ttl if ttl is None else ttl
        expired = [k for k, e in self._cache.items() if self._is_expired(e, ttl)]
        for key in expired:
            del self._cache[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache
