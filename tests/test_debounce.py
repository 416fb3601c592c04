"""Tests for the debounce scheduler."""

import asyncio

from clinic_query import DebounceScheduler


class TestDebounceScheduler:
    """Tests for DebounceScheduler."""

    async def test_zero_delay_runs_immediately(self) -> None:
        """Test that a zero delay bypasses the timer."""
        scheduler = DebounceScheduler()
        calls: list[str] = []

        async def fn() -> None:
            calls.append("run")

        scheduler.schedule(fn, 0)
        assert not scheduler.pending
        await scheduler.drain()
        assert calls == ["run"]

    async def test_rescheduling_collapses_calls(self) -> None:
        """Test that rapid schedules collapse into the last one."""
        scheduler = DebounceScheduler()
        calls: list[int] = []

        def make(n: int):
            async def fn() -> None:
                calls.append(n)

            return fn

        for n in range(5):
            scheduler.schedule(make(n), 50)
            await asyncio.sleep(0.005)
        assert scheduler.pending
        await scheduler.drain()
        assert calls == [4]

    async def test_waits_for_quiet_period(self) -> None:
        """Test that nothing runs before the delay elapses."""
        scheduler = DebounceScheduler()
        calls: list[str] = []

        async def fn() -> None:
            calls.append("run")

        scheduler.schedule(fn, 100)
        await asyncio.sleep(0.02)
        assert calls == []
        await scheduler.drain()
        assert calls == ["run"]

    async def test_immediate_call_drops_pending(self) -> None:
        """Test that a zero-delay schedule replaces a pending timer."""
        scheduler = DebounceScheduler()
        calls: list[str] = []

        async def debounced() -> None:
            calls.append("debounced")

        async def immediate() -> None:
            calls.append("immediate")

        scheduler.schedule(debounced, 50)
        scheduler.schedule(immediate, 0)
        await scheduler.drain()
        await asyncio.sleep(0.08)
        assert calls == ["immediate"]

    async def test_cancel_all(self) -> None:
        """Test that teardown cancels the pending timer."""
        scheduler = DebounceScheduler()
        calls: list[str] = []

        async def fn() -> None:
            calls.append("run")

        scheduler.schedule(fn, 20)
        scheduler.cancel_all()
        await asyncio.sleep(0.05)
        assert calls == []
        assert not scheduler.pending

    async def test_failing_callback_is_logged(self, caplog) -> None:
        """Test that a callback error is logged rather than lost."""
        scheduler = DebounceScheduler()

        async def fn() -> None:
            raise RuntimeError("boom")

        scheduler.schedule(fn, 0)
        await scheduler.drain()
        assert "Scheduled callback failed" in caplog.text
