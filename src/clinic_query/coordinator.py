"""Request coordination: caching, supersession and stale-result rejection.

Each query instance owns one coordinator. For every key the coordinator
records the token of the most recently issued request; a completion may
touch the cache or the visible state only while its token is still the
latest one for that key. A newer request supersedes an older in-flight
one instead of joining it, so the request issued last always wins no
matter which network call resolves first.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Generic, NewType, TypeVar

from clinic_query.cancellation import CancellationToken
from clinic_query.errors import ErrorClassifier, is_cancellation
from clinic_query.stores.base import CacheStore
from clinic_query.types import ErrorInfo, FetchState

T = TypeVar("T")

logger = logging.getLogger(__name__)

RequestToken = NewType("RequestToken", int)

Producer = Callable[[CancellationToken], Awaitable[T]]
StateListener = Callable[[FetchState[Any]], None]
ErrorCallback = Callable[[Exception], None]


class RequestCoordinator(Generic[T]):
    """Single-flight-with-supersession fetcher bound to one FetchState."""

    def __init__(
        self,
        store: CacheStore,
        *,
        ttl: int | None = None,
        enable_cache: bool = True,
        classifier: ErrorClassifier = is_cancellation,
        on_error: ErrorCallback | None = None,
        initial_data: T | None = None,
    ) -> None:
        self._store = store
        self._ttl = ttl
        self._enable_cache = enable_cache
        self._classifier = classifier
        self._on_error = on_error
        self._state: FetchState[T] = FetchState(data=initial_data)
        self._listeners: list[StateListener] = []
        self._counter = itertools.count(1)
        self._latest: dict[str, RequestToken] = {}
        self._in_flight: dict[str, tuple[RequestToken, CancellationToken]] = {}
        self._active_key: str | None = None
        self._closed = False

    @property
    def state(self) -> FetchState[T]:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def in_flight(self, key: str) -> bool:
        return key in self._in_flight

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call ``listener`` with every new state; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def fetch(
        self,
        key: str,
        producer: Producer[T],
        *,
        force: bool = False,
        cancel_previous: bool = True,
    ) -> FetchState[T]:
        """Resolve ``key`` from the cache or by calling ``producer``.

        Returns the visible state once this request has settled. A superseded
        or cancelled request leaves the state untouched.
        """
        if self._closed:
            return self._state

        self._active_key = key

        if not force and self._enable_cache:
            entry = self._store.get(key, self._ttl)
            if entry is not None:
                logger.debug("Cache hit", extra={"cache_key": key})
                self._set_state(self._state.succeeded(entry.value))  # type: ignore[arg-type]
                return self._state

        token = RequestToken(next(self._counter))
        self._latest[key] = token
        previous = self._in_flight.get(key)
        if previous is not None and cancel_previous:
            logger.debug("Superseding in-flight request", extra={"cache_key": key})
            previous[1].cancel("superseded")
        cancellation = CancellationToken()
        self._in_flight[key] = (token, cancellation)

        self._set_state(self._state.loading())

        try:
            value = await producer(cancellation)
        except asyncio.CancelledError:
            self._release(key, token)
            raise
        except Exception as e:
            self._release(key, token)
            if not self._is_current(key, token):
                logger.debug("Discarding stale failure", extra={"cache_key": key})
                return self._state
            if self._classifier(e):
                logger.debug("Request cancelled", extra={"cache_key": key})
                if key == self._active_key and self._state.is_loading:
                    self._set_state(self._state.settled())
                return self._state
            self._fail(key, e)
            return self._state

        self._release(key, token)
        if not self._is_current(key, token):
            logger.debug("Discarding stale result", extra={"cache_key": key})
            return self._state

        if self._enable_cache:
            self._store.set(key, value)
        if key == self._active_key:
            self._set_state(self._state.succeeded(value))
        return self._state

    def activate(self, key: str) -> None:
        """Show ``key`` from now on, ahead of its fetch.

        In-flight requests for any other key are cancelled and forgotten, so
        none of them can settle the visible state. The state is marked
        loading until ``key`` is fetched.
        """
        if self._closed or key == self._active_key:
            return
        self._active_key = key
        for k in [k for k in self._in_flight if k != key]:
            self._drop(k)
        if not self._state.is_loading:
            self._set_state(self._state.loading())

    def cancel(self, key: str | None = None) -> None:
        """Signal cancellation for one in-flight key, or all of them."""
        keys = list(self._in_flight) if key is None else [key]
        for k in keys:
            self._drop(k)
        if self._state.is_loading and self._active_key not in self._in_flight:
            self._set_state(self._state.settled())

    def close(self) -> None:
        """Tear down: cancel everything in flight and ignore later completions."""
        if self._closed:
            return
        self._closed = True
        for _, cancellation in self._in_flight.values():
            cancellation.cancel("torn down")
        self._in_flight.clear()
        self._latest.clear()
        self._listeners.clear()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _is_current(self, key: str, token: RequestToken) -> bool:
        return not self._closed and self._latest.get(key) == token

    def _drop(self, key: str) -> None:
        entry = self._in_flight.pop(key, None)
        if entry is None:
            return
        # Forget the token too so a late completion is always discarded.
        if self._latest.get(key) == entry[0]:
            del self._latest[key]
        entry[1].cancel("cancelled")

    def _release(self, key: str, token: RequestToken) -> None:
        entry = self._in_flight.get(key)
        if entry is not None and entry[0] == token:
            del self._in_flight[key]

    def _fail(self, key: str, error: Exception) -> None:
        logger.debug(
            "Request failed",
            extra={"cache_key": key, "error": type(error).__name__},
        )
        if key != self._active_key:
            return
        self._set_state(self._state.failed(ErrorInfo.from_exception(error)))
        if self._on_error is not None:
            self._on_error(error)

    def _set_state(self, state: FetchState[T]) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)


__all__ = ["Producer", "RequestCoordinator", "RequestToken"]
