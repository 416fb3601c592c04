"""clinic_query - Cached, deduplicated data access for the clinic admin UI."""

# Transport
from clinic_query.api import ClinicApiClient

# Cancellation
from clinic_query.cancellation import CancellationToken

# Coordination
from clinic_query.coordinator import RequestCoordinator
from clinic_query.debounce import DebounceScheduler

# Duration parsing
from clinic_query.duration import parse_duration

# Errors
from clinic_query.errors import (
    CancellationError,
    ClinicQueryError,
    ProducerError,
    TransportError,
    is_cancellation,
)

# DataLayer API
from clinic_query.layer import DataLayer, create_data_layer
from clinic_query.query import PaginatedQuery, Query, make_cache_key
from clinic_query.resources import ClinicResources

# Stores
from clinic_query.stores import CacheStore, MemoryStore

# Core types
from clinic_query.types import (
    CacheEntry,
    Duration,
    ErrorInfo,
    FetchState,
    FetchStatus,
    PageResponse,
    QueryParams,
    SortDirection,
)

__version__ = "0.1.0"

__all__ = [
    "CacheEntry",
    "CacheStore",
    "CancellationError",
    "CancellationToken",
    "ClinicApiClient",
    "ClinicQueryError",
    "ClinicResources",
    "DataLayer",
    "DebounceScheduler",
    "Duration",
    "ErrorInfo",
    "FetchState",
    "FetchStatus",
    "MemoryStore",
    "PageResponse",
    "PaginatedQuery",
    "ProducerError",
    "Query",
    "QueryParams",
    "RequestCoordinator",
    "SortDirection",
    "TransportError",
    "create_data_layer",
    "is_cancellation",
    "make_cache_key",
    "parse_duration",
]
