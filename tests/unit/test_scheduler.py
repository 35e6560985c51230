"""
Tests for the Idle/Running cycle scheduler.
"""

import asyncio
import logging

import pytest

from pairarb.scheduler import CycleScheduler, CycleState


class HeldCycle:
    """Cycle that blocks until released, counting invocations."""

    def __init__(self):
        self.calls = 0
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self):
        self.calls += 1
        self.started.set()
        await self.release.wait()


class TestTick:
    @pytest.mark.asyncio
    async def test_overlapping_tick_is_noop(self):
        cycle = HeldCycle()
        scheduler = CycleScheduler(cycle, interval_sec=1)

        first = asyncio.create_task(scheduler.tick())
        await cycle.started.wait()
        assert scheduler.state is CycleState.RUNNING

        assert await scheduler.tick() is False
        assert cycle.calls == 1
        assert scheduler.ticks_skipped == 1

        cycle.release.set()
        assert await first is True
        assert scheduler.state is CycleState.IDLE

    @pytest.mark.asyncio
    async def test_returns_to_idle_after_error(self, caplog):
        async def failing():
            raise RuntimeError("rpc down")

        scheduler = CycleScheduler(failing, interval_sec=1)
        with caplog.at_level(logging.ERROR):
            assert await scheduler.tick() is True
        assert scheduler.state is CycleState.IDLE
        assert "Cycle error: rpc down" in caplog.text

    @pytest.mark.asyncio
    async def test_stack_trace_only_when_verbose(self, caplog):
        async def failing():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR):
            await CycleScheduler(failing, 1, verbose=False).tick()
            await CycleScheduler(failing, 1, verbose=True).tick()
        quiet, verbose = [r for r in caplog.records if "Cycle error" in r.message]
        assert not quiet.exc_info
        assert verbose.exc_info

    @pytest.mark.asyncio
    async def test_skipped_tick_logged_in_verbose_mode(self, caplog):
        cycle = HeldCycle()
        scheduler = CycleScheduler(cycle, interval_sec=1, verbose=True)
        first = asyncio.create_task(scheduler.tick())
        await cycle.started.wait()

        with caplog.at_level(logging.INFO):
            await scheduler.tick()
        assert "skipping tick" in caplog.text

        cycle.release.set()
        await first

    @pytest.mark.asyncio
    async def test_cancellation_still_returns_to_idle(self):
        cycle = HeldCycle()
        scheduler = CycleScheduler(cycle, interval_sec=1)
        task = asyncio.create_task(scheduler.tick())
        await cycle.started.wait()

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert scheduler.state is CycleState.IDLE

    def test_rejects_non_positive_interval(self):
        with pytest.raises(ValueError):
            CycleScheduler(HeldCycle(), interval_sec=0)


class TestRun:
    @pytest.mark.asyncio
    async def test_ticks_immediately_then_on_interval(self):
        calls = []

        async def cycle():
            calls.append(asyncio.get_running_loop().time())

        stop = asyncio.Event()
        scheduler = CycleScheduler(cycle, interval_sec=0.05)
        runner = asyncio.create_task(scheduler.run(stop))
        await asyncio.sleep(0.13)
        stop.set()
        await runner

        assert len(calls) >= 2
        assert scheduler.cycles_run == len(calls)

    @pytest.mark.asyncio
    async def test_slow_cycle_skips_ticks_and_finishes_on_stop(self):
        cycle = HeldCycle()
        stop = asyncio.Event()
        scheduler = CycleScheduler(cycle, interval_sec=0.02)
        runner = asyncio.create_task(scheduler.run(stop))

        await cycle.started.wait()
        await asyncio.sleep(0.07)
        stop.set()
        await asyncio.sleep(0)
        assert not runner.done()

        cycle.release.set()
        await runner
        assert cycle.calls == 1
        assert scheduler.ticks_skipped >= 1
        assert scheduler.state is CycleState.IDLE
