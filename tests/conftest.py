"""Shared pytest fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from clinic_query import DataLayer, MemoryStore, create_data_layer


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock starting at t=0."""
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    """Create a fresh MemoryStore with a 2 minute TTL on the fake clock."""
    return MemoryStore(default_ttl=120_000, clock=clock)


@pytest.fixture
def layer(store: MemoryStore) -> DataLayer:
    """Create a DataLayer over the test store with a short debounce."""
    return create_data_layer(store=store, debounce="50ms")


@pytest.fixture
def page_payload() -> Callable[..., dict[str, Any]]:
    """Build server page envelopes."""

    def build(content: list[Any], page: int = 0, size: int = 10) -> dict[str, Any]:
        total_pages = max(1, -(-len(content) // size))
        return {
            "content": content,
            "page": page,
            "size": size,
            "totalElements": len(content),
            "totalPages": total_pages,
            "first": page == 0,
            "last": page >= total_pages - 1,
            "empty": not content,
        }

    return build
