"""
Cycle scheduler with an explicit Idle/Running state machine.

A tick fires immediately at startup and then every interval. A tick that
arrives while a cycle is still running is skipped, so cycles never overlap.
"""

import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable, Optional, Set

from .utils import get_logger

logger = get_logger(__name__)


class CycleState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


class CycleScheduler:
    """
    Runs a cycle coroutine on a fixed cadence, never re-entrantly.

    The Idle→Running transition is a compare-and-set with no await between
    the check and the write, which is atomic on a single event loop. The
    state returns to Idle however the cycle ends.

    Attributes:
        cycle: Coroutine function performing one scan/decide/execute pass
        interval_sec: Seconds between ticks
        verbose: Log stack traces and skipped ticks
    """

    def __init__(
        self,
        cycle: Callable[[], Awaitable[object]],
        interval_sec: float = 20.0,
        verbose: bool = False,
    ):
        if interval_sec <= 0:
            raise ValueError(f"interval_sec must be positive: {interval_sec}")
        self.cycle = cycle
        self.interval_sec = interval_sec
        self.verbose = verbose
        self.state = CycleState.IDLE
        self.cycles_run = 0
        self.ticks_skipped = 0
        self._tasks: Set[asyncio.Task] = set()

    def _try_start(self) -> bool:
        if self.state is not CycleState.IDLE:
            return False
        self.state = CycleState.RUNNING
        return True

    async def tick(self) -> bool:
        """
        Run one cycle unless one is already running.

        Returns:
            True if a cycle ran, False if the tick was skipped
        """
        if not self._try_start():
            self.ticks_skipped += 1
            if self.verbose:
                logger.info("Previous cycle still running, skipping tick")
            return False

        t0 = time.perf_counter()
        try:
            await self.cycle()
        except Exception as e:
            logger.error(f"Cycle error: {e}", exc_info=self.verbose)
        finally:
            self.state = CycleState.IDLE
            self.cycles_run += 1
            logger.info(f"⏱ Cycle finished ({(time.perf_counter() - t0) * 1000:.0f} ms)")
        return True

    def _spawn_tick(self) -> asyncio.Task:
        task = asyncio.create_task(self.tick())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """
        Tick now and then every interval until stop_event is set.

        Ticks run as background tasks so a slow cycle does not delay the
        timer; overlapping ticks are skipped by tick(). On stop, an in-flight
        cycle is awaited, not cancelled.
        """
        stop_event = stop_event or asyncio.Event()
        logger.info(f"Scheduler started (interval {self.interval_sec:g}s)")

        while not stop_event.is_set():
            self._spawn_tick()
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval_sec)
            except asyncio.TimeoutError:
                pass

        if self._tasks:
            logger.info("Waiting for the running cycle to finish...")
            await asyncio.gather(*list(self._tasks))
        logger.info("Scheduler stopped")
