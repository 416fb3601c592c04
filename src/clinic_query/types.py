"""Core types for clinic_query."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Any, Generic, TypeVar

from clinic_query.errors import ProducerError

T = TypeVar("T")

# Duration type alias
Duration = str | int  # "300ms", "30s", "5m" or milliseconds

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT_BY = "id"


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    """A cached value with metadata."""

    key: str
    value: T
    created_at: int  # Unix timestamp ms


class FetchStatus(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """A surfaced fetch failure."""

    message: str
    status_code: int | None = None
    exception: BaseException | None = field(default=None, compare=False)

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        return cls(
            message=str(exc) or type(exc).__name__,
            status_code=getattr(exc, "status_code", None),
            exception=exc,
        )


@dataclass(frozen=True, slots=True)
class FetchState(Generic[T]):
    """Caller-visible state of one query instance.

    Replaced wholesale on every transition. ``data`` survives loading and
    error transitions so the last known good value stays displayable.
    """

    status: FetchStatus = FetchStatus.IDLE
    data: T | None = None
    error: ErrorInfo | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is FetchStatus.LOADING

    def loading(self) -> FetchState[T]:
        return replace(self, status=FetchStatus.LOADING)

    def succeeded(self, data: T) -> FetchState[T]:
        return FetchState(status=FetchStatus.SUCCESS, data=data, error=None)

    def failed(self, error: ErrorInfo) -> FetchState[T]:
        return FetchState(status=FetchStatus.ERROR, data=self.data, error=error)

    def settled(self) -> FetchState[T]:
        """Leave the loading status without a new result."""
        if self.error is not None:
            status = FetchStatus.ERROR
        elif self.data is not None:
            status = FetchStatus.SUCCESS
        else:
            status = FetchStatus.IDLE
        return replace(self, status=status)


class SortDirection(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str | SortDirection | None) -> SortDirection:
        """Anything other than a case-insensitive "desc" sorts ascending."""
        if isinstance(value, SortDirection):
            return value
        if value is not None and value.lower() == "desc":
            return cls.DESC
        return cls.ASC


@dataclass(frozen=True, slots=True)
class QueryParams:
    """Parameters of a paginated query (a page request)."""

    page: int = 0
    size: int = DEFAULT_PAGE_SIZE
    sort_by: str = DEFAULT_SORT_BY
    sort_direction: SortDirection = SortDirection.ASC
    search: str = ""

    def __post_init__(self) -> None:
        # Normalize in place the way the backend DTO clamps its setters.
        object.__setattr__(self, "page", max(0, int(self.page)))
        object.__setattr__(self, "size", min(max(1, int(self.size)), MAX_PAGE_SIZE))
        object.__setattr__(self, "sort_by", self.sort_by or DEFAULT_SORT_BY)
        object.__setattr__(
            self, "sort_direction", SortDirection.parse(self.sort_direction)
        )
        object.__setattr__(self, "search", self.search or "")

    def to_query(self) -> dict[str, Any]:
        """Wire representation used for query strings and cache keys."""
        return {
            "page": self.page,
            "size": self.size,
            "sortBy": self.sort_by,
            "sortDirection": self.sort_direction.value,
            "search": self.search,
        }


@dataclass(frozen=True, slots=True)
class PageResponse(Generic[T]):
    """One page of results."""

    content: list[T]
    page: int
    size: int
    total_elements: int
    total_pages: int
    first: bool
    last: bool
    empty: bool

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> PageResponse[Any]:
        """Build from the server's camelCase page envelope."""
        try:
            content = list(payload["content"])
            return cls(
                content=content,
                page=int(payload["page"]),
                size=int(payload["size"]),
                total_elements=int(payload["totalElements"]),
                total_pages=int(payload["totalPages"]),
                first=bool(payload["first"]),
                last=bool(payload["last"]),
                empty=bool(payload.get("empty", not content)),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise ProducerError(f"Malformed page response: {e!r}") from e

    @classmethod
    def from_items(cls, items: list[T]) -> PageResponse[T]:
        """Wrap a bare list as the one and only page."""
        total = len(items)
        return cls(
            content=list(items),
            page=0,
            size=total,
            total_elements=total,
            total_pages=1,
            first=True,
            last=True,
            empty=total == 0,
        )
