"""Simulation clock -- asyncio loop that fires the market tick on a fixed period.

Every `interval` seconds:
1. Awaits the tick callback to completion (ticks never overlap)
2. Logs and swallows any error the tick raised, then goes back to sleep

`stop()` returns only after the loop task has finished, so no tick can fire
after it returns. A tick already in progress is allowed to complete.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

logger = logging.getLogger(__name__)

TickCallback = Callable[[], Coroutine[Any, Any, None]]


class SimulationClock:
    """Drives a tick callback on a fixed wall-clock period.

    Usage:
        clock = SimulationClock(session.tick, interval=5.0)
        await clock.start()
        ...
        await clock.stop()
    """

    def __init__(self, on_tick: TickCallback, interval: float = 5.0) -> None:
        if interval <= 0:
            raise ValueError(f"Tick interval must be positive, got {interval}")
        self._on_tick = on_tick
        self._interval = interval
        self._running = False
        self._in_tick = False
        self._task: asyncio.Task | None = None
        self._tick_count = 0

    @property
    def running(self) -> bool:
        return self._running

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def tick_count(self) -> int:
        return self._tick_count

    async def start(self) -> None:
        """Start the clock. Starting a running clock is a no-op."""
        if self._running:
            logger.debug("Clock already running")
            return
        if self._task is not None:
            # A stop() is still waiting on the previous loop's in-flight tick
            await self._wait(self._task)
            if self._running:
                return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("Simulation clock started (tick every %.2fs)", self._interval)

    async def stop(self) -> None:
        """Stop the clock and wait until the loop has exited."""
        if self._task is None:
            self._running = False
            return

        self._running = False
        task = self._task
        if not self._in_tick:
            task.cancel()
        await self._wait(task)
        if self._task is task:
            self._task = None
        logger.info("Simulation clock stopped after %d ticks", self._tick_count)

    @staticmethod
    async def _wait(task: asyncio.Task) -> None:
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _loop(self) -> None:
        """Sleep, tick, repeat until stopped."""
        while self._running:
            await asyncio.sleep(self._interval)
            if not self._running:
                break
            self._in_tick = True
            try:
                await self._on_tick()
                self._tick_count += 1
            except Exception:
                logger.exception("Error in simulation tick")
            finally:
                self._in_tick = False
