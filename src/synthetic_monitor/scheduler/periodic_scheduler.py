"""
Periodic scheduler for a single monitor.

This module provides a scheduler that runs a monitor's chains on a fixed period
in one background task. Fire times lie on a fixed grid anchored at start();
fires that elapse while a tick is still running are dropped rather than queued,
so two ticks of the same monitor never overlap.
"""

import asyncio
import logging
import math
from typing import Optional

from synthetic_monitor.config.constants import MONITOR_TASK_NAME_PREFIX
from synthetic_monitor.domain import MonitorDefinition
from synthetic_monitor.runner import ChainRunner

# Module logger
logger = logging.getLogger(__name__)


class MonitorScheduler:
    """
    Runs one monitor periodically with an explicit start/stop lifecycle.

    The scheduler has two states, stopped and running. start() moves it to
    running and launches the worker task; stop() halts the timer and waits
    for the tick in progress, if any, before returning.
    """

    def __init__(self, monitor: MonitorDefinition, runner: ChainRunner) -> None:
        """
        Initializes a new MonitorScheduler instance.

        Args:
            monitor: The monitor to run.
            runner: Component that executes the monitor's chains.

        Raises:
            ValueError: If the monitor's period is not positive.
        """
        if monitor.period.total_seconds() <= 0:
            raise ValueError("period must be a positive duration.")

        self._monitor: MonitorDefinition = monitor
        self._runner: ChainRunner = runner
        self._period: float = monitor.period.total_seconds()
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None
        self._ticks: int = 0
        self._dropped_ticks: int = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None

    @property
    def ticks(self) -> int:
        """Number of ticks completed since the scheduler was created."""
        return self._ticks

    @property
    def dropped_ticks(self) -> int:
        """Number of fires dropped because a tick was still running."""
        return self._dropped_ticks

    async def start(self) -> None:
        """
        Starts the periodic execution of the monitor.

        The first tick fires one period after this call.

        Raises:
            RuntimeError: If the scheduler is already running.
        """
        if self._task is not None:
            raise RuntimeError(f"tried to start an already started scheduler for '{self._monitor.name}'")

        logger.info(f"[{self._monitor.name}] starting scheduler (period: {self._period}s)...")
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(
            self._run_loop(self._stopping), name=f"{MONITOR_TASK_NAME_PREFIX}{self._monitor.name}"
        )

    async def stop(self) -> None:
        """
        Stops the scheduler and waits for the tick in progress to complete.

        No tick runs after this method returns. If the caller is cancelled
        while waiting, the tick in progress still runs to completion and no
        further tick starts.

        Raises:
            RuntimeError: If the scheduler is not running.
        """
        if self._task is None or self._stopping is None:
            raise RuntimeError(f"tried to stop a scheduler that is not running for '{self._monitor.name}'")

        logger.info(f"[{self._monitor.name}] stopping scheduler...")
        task = self._task
        self._stopping.set()
        try:
            # A cancelled caller must not cut the in-flight tick short
            await asyncio.shield(task)
        finally:
            self._task = None
            self._stopping = None
        logger.info(f"[{self._monitor.name}] scheduler stopped")

    async def _wait_until(self, stopping: asyncio.Event, deadline: float) -> bool:
        """
        Sleeps until the deadline on the loop clock or until stopping is set.

        Returns:
            bool: True if the scheduler should stop.
        """
        delay = max(0.0, deadline - asyncio.get_running_loop().time())
        try:
            await asyncio.wait_for(stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return False
        return True

    async def _tick(self) -> None:
        try:
            await self._runner.run_monitor(self._monitor)
        except Exception as e:
            logger.exception(f"[{self._monitor.name}] tick failed with error: {e}")
        self._ticks += 1

    async def _run_loop(self, stopping: asyncio.Event) -> None:
        loop = asyncio.get_running_loop()
        next_fire = loop.time() + self._period

        while True:
            if await self._wait_until(stopping, next_fire):
                break

            await self._tick()

            # Skip the grid points that elapsed during the tick.
            now = loop.time()
            next_fire += self._period
            if next_fire <= now:
                missed = math.floor((now - next_fire) / self._period) + 1
                self._dropped_ticks += missed
                next_fire += missed * self._period
                logger.debug(
                    f"[{self._monitor.name}] tick overran the period, dropped {missed} fire(s)"
                )

            if stopping.is_set():
                break
