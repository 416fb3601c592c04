"""Tests for package exports."""


def test_public_exports_available() -> None:
    """Test that the public API is importable from the package root."""
    from clinic_query import (
        CacheStore,
        ClinicResources,
        DataLayer,
        DebounceScheduler,
        MemoryStore,
        PaginatedQuery,
        Query,
        RequestCoordinator,
        create_data_layer,
    )

    # Just verify they're importable
    assert CacheStore is not None
    assert ClinicResources is not None
    assert DataLayer is not None
    assert DebounceScheduler is not None
    assert MemoryStore is not None
    assert PaginatedQuery is not None
    assert Query is not None
    assert RequestCoordinator is not None
    assert create_data_layer is not None
