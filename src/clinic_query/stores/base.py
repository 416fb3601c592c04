"""Base store protocol."""

from typing import Protocol, runtime_checkable

from clinic_query.types import CacheEntry


@runtime_checkable
class CacheStore(Protocol):
    """Process-wide key to entry table with lazy, read-time expiry.

    Methods are synchronous: the only suspension points in the data layer
    are producer calls and debounce timers.
    """

    def get(self, key: str, ttl: int | None = None) -> CacheEntry[object] | None:
        """Get a fresh entry by key, or None if missing or older than ttl."""
        ...

    def set(self, key: str, value: object) -> None:
        """Store a value, replacing any previous entry for key."""
        ...

    def invalidate(self, key: str) -> None:
        """Drop one entry."""
        ...

    def invalidate_by_prefix(self, prefix: str) -> None:
        """Drop every entry whose key starts with prefix."""
        ...

    def clear(self) -> None:
        """Drop all entries."""
        ...

    def clear_expired(self, ttl: int | None = None) -> int:
        """Delete entries older than ttl, returning how many were removed."""
        ...
