"""Debounced scheduling of fetch callbacks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Run a callback once its input has stopped changing for a quiet period.

    Every ``schedule`` call replaces the pending one. A delay of zero runs
    the callback right away and drops whatever was pending.
    """

    def __init__(self) -> None:
        self._pending: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, fn: Callable[[], Awaitable[object]], delay: int) -> None:
        """Arm the timer for ``fn``; ``delay`` is in milliseconds."""
        self.cancel_pending()
        if delay <= 0:
            self._spawn(fn())
            return
        self._pending = self._spawn(self._fire_after(fn, delay))

    def cancel_pending(self) -> None:
        if self._pending is not None and not self._pending.done():
            logger.debug("Debounced call replaced")
            self._pending.cancel()
        self._pending = None

    def cancel_all(self) -> None:
        """Cancel the pending timer and any callback still running."""
        self.cancel_pending()
        for task in list(self._background_tasks):
            task.cancel()

    async def drain(self) -> None:
        """Wait until every spawned callback has finished."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def _fire_after(
        self, fn: Callable[[], Awaitable[object]], delay: int
    ) -> None:
        await asyncio.sleep(delay / 1000)
        # Past the quiet period; the call itself is no longer replaceable.
        self._pending = None
        self._spawn(fn())

    def _spawn(self, awaitable: Awaitable[object]) -> asyncio.Task[None]:
        task = asyncio.ensure_future(_run(awaitable))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task


async def _run(awaitable: Awaitable[object]) -> None:
    try:
        await awaitable
    except asyncio.CancelledError:
        raise
    except Exception:
        logger.exception("Scheduled callback failed")
