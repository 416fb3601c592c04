"""Query instances: simple cached fetches and paginated query state.

Provides:
- make_cache_key(): Deterministic key from a base name and query params
- Query: data/error/is_loading/refetch over one cache key
- PaginatedQuery: page/size/sort/search state with page-reset rules and
  debounced search
"""

from __future__ import annotations

import hashlib
import inspect
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any, Generic, TypeVar

from clinic_query.cancellation import CancellationToken
from clinic_query.coordinator import ErrorCallback, RequestCoordinator, StateListener
from clinic_query.debounce import DebounceScheduler
from clinic_query.errors import ErrorClassifier, ProducerError, is_cancellation
from clinic_query.stores.base import CacheStore
from clinic_query.types import (
    ErrorInfo,
    FetchState,
    PageResponse,
    QueryParams,
    SortDirection,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Changing any of these sends the query back to the first page.
RESET_FIELDS = frozenset({"search", "sort_by", "sort_direction"})
PARAM_FIELDS = frozenset({"page", "size"}) | RESET_FIELDS

ParamsListener = Callable[[QueryParams], None]


def make_cache_key(base: str, params: QueryParams | None = None) -> str:
    """Generate a cache key from a base name and query parameters."""
    if params is None:
        return base
    params_hash = hashlib.sha256(
        json.dumps(params.to_query(), sort_keys=True, default=str).encode()
    ).hexdigest()[:16]
    return f"{base}:{params_hash}"


_TOKEN_NAMES = frozenset({"token", "cancellation"})


def _accepts_token(fn: Callable[..., Any], arity: int) -> bool:
    """Whether ``fn`` takes a cancellation token after its ``arity`` args.

    The slot after the data arguments counts only when it is required, or
    when it is named or annotated as a token; an optional flag such as
    ``include_inactive=False`` is left alone.
    """
    try:
        sig = inspect.signature(fn)
    except (TypeError, ValueError):
        return False
    params = list(sig.parameters.values())
    if any(p.kind is p.VAR_POSITIONAL for p in params):
        return True
    positional = [
        p for p in params if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD)
    ]
    if len(positional) <= arity:
        return False
    slot = positional[arity]
    if slot.default is slot.empty:
        return True
    return slot.name in _TOKEN_NAMES or slot.annotation in (
        CancellationToken,
        "CancellationToken",
        "CancellationToken | None",
    )


def _as_page(result: Any) -> PageResponse[Any]:
    if isinstance(result, PageResponse):
        return result
    if isinstance(result, dict):
        return PageResponse.from_payload(result)
    if isinstance(result, list):
        logger.warning(
            "Producer returned a bare list; wrapping it as a single page",
            extra={"items": len(result)},
        )
        return PageResponse.from_items(result)
    raise ProducerError(f"Expected a page response, got {type(result).__name__}")


class Query(Generic[T]):
    """A cached fetch of one resource."""

    def __init__(
        self,
        key: str,
        producer: Callable[..., Awaitable[T]],
        store: CacheStore,
        *,
        ttl: int | None = None,
        enable_cache: bool = True,
        classifier: ErrorClassifier = is_cancellation,
        on_error: ErrorCallback | None = None,
        initial_data: T | None = None,
    ) -> None:
        self._key = key
        self._producer = producer
        self._takes_token = _accepts_token(producer, 0)
        self._store = store
        self._coordinator: RequestCoordinator[T] = RequestCoordinator(
            store,
            ttl=ttl,
            enable_cache=enable_cache,
            classifier=classifier,
            on_error=on_error,
            initial_data=initial_data,
        )
        self._started = False

    @property
    def key(self) -> str:
        return self._key

    @property
    def state(self) -> FetchState[T]:
        return self._coordinator.state

    @property
    def data(self) -> T | None:
        return self._coordinator.state.data

    @property
    def error(self) -> ErrorInfo | None:
        return self._coordinator.state.error

    @property
    def is_loading(self) -> bool:
        return self._coordinator.state.is_loading

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._coordinator.subscribe(listener)

    async def start(self) -> FetchState[T]:
        """Initial fetch; only the first call does anything."""
        if self._started:
            return self.state
        self._started = True
        return await self._coordinator.fetch(self._key, self._produce)

    async def refetch(self, force: bool = False) -> FetchState[T]:
        """Fetch again; ``force`` drops the cached entry and skips the cache."""
        if force:
            self._store.invalidate(self._key)
        return await self._coordinator.fetch(self._key, self._produce, force=force)

    def clear_cache(self) -> None:
        self._store.invalidate(self._key)

    def close(self) -> None:
        self._coordinator.close()

    async def _produce(self, token: CancellationToken) -> T:
        if self._takes_token:
            return await self._producer(token)
        return await self._producer()


class PaginatedQuery(Generic[T]):
    """Paginated query state machine.

    Every parameter change goes through ``update_params``, which applies the
    page reset in the same update as the change that caused it. Non-empty
    searches are debounced; everything else fetches immediately.
    """

    def __init__(
        self,
        base_key: str,
        producer: Callable[..., Awaitable[Any]],
        store: CacheStore,
        *,
        ttl: int | None = None,
        debounce: int = 300,
        page_size: int = 10,
        sort_by: str = "id",
        sort_direction: SortDirection | str = SortDirection.ASC,
        enable_cache: bool = True,
        classifier: ErrorClassifier = is_cancellation,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._base_key = base_key
        self._producer = producer
        self._takes_token = _accepts_token(producer, 1)
        self._store = store
        self._debounce = debounce
        self._params = QueryParams(
            size=page_size,
            sort_by=sort_by,
            sort_direction=SortDirection.parse(sort_direction),
        )
        self._coordinator: RequestCoordinator[PageResponse[T]] = RequestCoordinator(
            store,
            ttl=ttl,
            enable_cache=enable_cache,
            classifier=classifier,
            on_error=on_error,
        )
        self._scheduler = DebounceScheduler()
        self._params_listeners: list[ParamsListener] = []
        self._started = False
        self._closed = False

    # -------------------------------------------------------------------------
    # Caller-visible state
    # -------------------------------------------------------------------------

    @property
    def params(self) -> QueryParams:
        return self._params

    page_request = params

    @property
    def cache_key(self) -> str:
        return make_cache_key(self._base_key, self._params)

    @property
    def state(self) -> FetchState[PageResponse[T]]:
        return self._coordinator.state

    @property
    def data(self) -> PageResponse[T] | None:
        return self._coordinator.state.data

    @property
    def error(self) -> ErrorInfo | None:
        return self._coordinator.state.error

    @property
    def is_loading(self) -> bool:
        return self._coordinator.state.is_loading

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._coordinator.subscribe(listener)

    def subscribe_params(self, listener: ParamsListener) -> Callable[[], None]:
        self._params_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._params_listeners:
                self._params_listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> FetchState[PageResponse[T]]:
        """Initial fetch; only the first call does anything."""
        if self._started or self._closed:
            return self.state
        self._started = True
        return await self._fetch_current()

    def close(self) -> None:
        """Tear down: drop pending timers and ignore in-flight completions."""
        if self._closed:
            return
        self._closed = True
        self._scheduler.cancel_all()
        self._coordinator.close()
        self._params_listeners.clear()

    async def wait_idle(self) -> None:
        """Wait for pending debounced and scheduled fetches to finish."""
        await self._scheduler.drain()

    # -------------------------------------------------------------------------
    # Mutators
    # -------------------------------------------------------------------------

    def update_params(self, **changes: Any) -> QueryParams:
        """Apply a partial parameter update and schedule the matching fetch."""
        if self._closed:
            return self._params
        unknown = set(changes) - PARAM_FIELDS
        if unknown:
            raise TypeError(f"Unknown query parameters: {sorted(unknown)}")

        if RESET_FIELDS & set(changes):
            changes["page"] = 0
        updated = replace(self._params, **changes)
        if updated == self._params:
            return self._params

        self._params = updated
        for listener in list(self._params_listeners):
            listener(updated)
        self._coordinator.activate(make_cache_key(self._base_key, updated))

        if "search" in changes and updated.search:
            self._scheduler.schedule(self._fetch_current, self._debounce)
        else:
            self._scheduler.schedule(self._fetch_current, 0)
        return updated

    def set_page(self, page: int) -> QueryParams:
        return self.update_params(page=page)

    def set_page_size(self, size: int) -> QueryParams:
        return self.update_params(size=size, page=0)

    def set_search(self, search: str) -> QueryParams:
        return self.update_params(search=search)

    def set_sort(
        self, sort_by: str, sort_direction: SortDirection | str = SortDirection.ASC
    ) -> QueryParams:
        return self.update_params(
            sort_by=sort_by, sort_direction=SortDirection.parse(sort_direction)
        )

    async def refetch(self, force: bool = False) -> FetchState[PageResponse[T]]:
        """Fetch the current page again without changing parameters."""
        if self._closed:
            return self.state
        self._scheduler.cancel_pending()
        if force:
            self._store.invalidate(self.cache_key)
        return await self._fetch_current(force=force)

    def clear_cache(self) -> None:
        """Drop every cached page of this query."""
        self._store.invalidate_by_prefix(f"{self._base_key}:")

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    async def _fetch_current(self, force: bool = False) -> FetchState[PageResponse[T]]:
        params = self._params
        key = make_cache_key(self._base_key, params)

        async def produce(token: CancellationToken) -> PageResponse[T]:
            if self._takes_token:
                result = await self._producer(params, token)
            else:
                result = await self._producer(params)
            return _as_page(result)

        return await self._coordinator.fetch(key, produce, force=force)


__all__ = ["PaginatedQuery", "Query", "make_cache_key"]
