"""DataLayer - the entry point that owns the shared cache store.

This module provides:
- query(): a cached fetch of one resource
- paginated(): a paginated query with debounced search
- clear_cache(), clear_all(), clear_expired(): cache management
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from clinic_query.coordinator import ErrorCallback
from clinic_query.duration import parse_duration
from clinic_query.errors import ErrorClassifier, is_cancellation
from clinic_query.query import PaginatedQuery, Query
from clinic_query.stores.base import CacheStore
from clinic_query.stores.memory import MemoryStore
from clinic_query.types import Duration, SortDirection

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass
class DataLayer:
    """Factory for query instances sharing one cache store."""

    store: CacheStore
    default_ttl: int
    paginated_ttl: int
    debounce: int
    classifier: ErrorClassifier = is_cancellation

    def query(
        self,
        key: str,
        producer: Callable[..., Awaitable[T]],
        *,
        ttl: Duration | None = None,
        enable_cache: bool = True,
        on_error: ErrorCallback | None = None,
        initial_data: T | None = None,
    ) -> Query[T]:
        """Create a cached query for one resource.

        Args:
            key: Cache key
            producer: Async function fetching the resource, optionally
                taking a CancellationToken
            ttl: Time to live (default: layer default)
            enable_cache: Read and write the shared store
            on_error: Called with every surfaced failure
            initial_data: Data shown before the first fetch completes

        Returns:
            Query instance; call ``start()`` to issue the initial fetch
        """
        return Query(
            key,
            producer,
            self.store,
            ttl=parse_duration(ttl) if ttl is not None else self.default_ttl,
            enable_cache=enable_cache,
            classifier=self.classifier,
            on_error=on_error,
            initial_data=initial_data,
        )

    def paginated(
        self,
        base_key: str,
        producer: Callable[..., Awaitable[Any]],
        *,
        ttl: Duration | None = None,
        debounce: Duration | None = None,
        page_size: int = 10,
        sort_by: str = "id",
        sort_direction: SortDirection | str = SortDirection.ASC,
        enable_cache: bool = True,
        on_error: ErrorCallback | None = None,
    ) -> PaginatedQuery[Any]:
        """Create a paginated query.

        Args:
            base_key: Key prefix shared by every page of this query
            producer: Async function from QueryParams (and optionally a
                CancellationToken) to a page envelope
            ttl: Time to live (default: layer paginated default)
            debounce: Quiet period for non-empty search (default: layer default)
            page_size: Initial page size
            sort_by: Initial sort field
            sort_direction: Initial sort direction
            enable_cache: Read and write the shared store
            on_error: Called with every surfaced failure

        Returns:
            PaginatedQuery instance; call ``start()`` to issue the initial fetch
        """
        return PaginatedQuery(
            base_key,
            producer,
            self.store,
            ttl=parse_duration(ttl) if ttl is not None else self.paginated_ttl,
            debounce=parse_duration(debounce) if debounce is not None else self.debounce,
            page_size=page_size,
            sort_by=sort_by,
            sort_direction=sort_direction,
            enable_cache=enable_cache,
            classifier=self.classifier,
            on_error=on_error,
        )

    def clear_cache(self, prefix_or_key: str | None = None) -> None:
        """Drop one key and every key nested under it, or everything."""
        if prefix_or_key is None:
            self.clear_all()
            return
        self.store.invalidate(prefix_or_key)
        self.store.invalidate_by_prefix(f"{prefix_or_key}:")

    def clear_all(self) -> None:
        """Clear all cached entries."""
        self.store.clear()

    def clear_expired(self, ttl: Duration | None = None) -> int:
        """Sweep entries older than ``ttl`` (default: the longest configured TTL)."""
        limit = (
            parse_duration(ttl)
            if ttl is not None
            else max(self.default_ttl, self.paginated_ttl)
        )
        removed = self.store.clear_expired(limit)
        if removed:
            logger.debug("Swept expired cache entries", extra={"removed": removed})
        return removed


def create_data_layer(
    *,
    store: CacheStore | None = None,
    default_ttl: Duration = "2m",
    paginated_ttl: Duration = "5m",
    debounce: Duration = "300ms",
    max_items: int | None = None,
    clock: Callable[[], int] | None = None,
    classifier: ErrorClassifier = is_cancellation,
) -> DataLayer:
    """Create a data layer.

    Args:
        store: Cache store (default: a new MemoryStore)
        default_ttl: Default time to live for simple queries
        paginated_ttl: Default time to live for paginated queries
        debounce: Quiet period before a non-empty search fetches
        max_items: LRU bound for the default store
        clock: Millisecond time source for the default store
        classifier: Decides whether a producer failure is a cancellation

    Returns:
        DataLayer instance with query, paginated and cache management
    """
    default_ttl_ms = parse_duration(default_ttl)
    paginated_ttl_ms = parse_duration(paginated_ttl)
    debounce_ms = parse_duration(debounce)

    if store is None:
        if clock is not None:
            store = MemoryStore(
                default_ttl=default_ttl_ms, max_items=max_items, clock=clock
            )
        else:
            store = MemoryStore(default_ttl=default_ttl_ms, max_items=max_items)
    elif max_items is not None or clock is not None:
        raise ValueError("max_items and clock only apply to the default store")

    return DataLayer(
        store=store,
        default_ttl=default_ttl_ms,
        paginated_ttl=paginated_ttl_ms,
        debounce=debounce_ms,
        classifier=classifier,
    )


__all__ = ["DataLayer", "create_data_layer"]
