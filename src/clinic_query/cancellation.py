"""Cooperative cancellation tokens handed to producers."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import TypeVar

from clinic_query.errors import CancellationError

T = TypeVar("T")


class CancellationToken:
    """Signal that a request is no longer wanted.

    Producers may honor it by polling ``cancelled``, registering a callback,
    or awaiting their transport call through ``guard``. Nothing in the data
    layer relies on a producer honoring it.
    """

    __slots__ = ("_callbacks", "_cancelled", "_reason")

    def __init__(self) -> None:
        self._cancelled = False
        self._reason = ""
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def reason(self) -> str:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback; runs immediately if already cancelled.

        Returns a function that unregisters the callback.
        """
        if self._cancelled:
            callback()
            return lambda: None
        self._callbacks.append(callback)

        def remove() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return remove

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise CancellationError(self._reason)

    async def guard(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable``, aborting it with CancellationError on cancel."""
        if self._cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise CancellationError(self._reason)
        task = asyncio.ensure_future(awaitable)
        remove = self.on_cancel(task.cancel)
        try:
            return await task
        except asyncio.CancelledError:
            if self._cancelled and not _current_task_cancelling():
                raise CancellationError(self._reason) from None
            raise
        finally:
            remove()


def _current_task_cancelling() -> bool:
    """True when the awaiting task itself is being cancelled."""
    task = asyncio.current_task()
    return task is not None and task.cancelling() > 0
