"""
Cooperative one-tick-per-interval timer.

Elapsed time is measured with the event loop's monotonic clock, so a late wake-up
charges the real elapsed time instead of one nominal interval, and rounding never accumulates.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

TickCallback = Callable[[float], Awaitable[bool]]


class ClockTicker:
    """
    Calls `on_tick(elapsed)` every `interval` seconds until it returns False or `stop()` is called.

    The callback is expected to route the tick through the session actor, it must not touch the clock directly.
    """

    def __init__(self, on_tick: TickCallback, interval: float = 1.0) -> None:
        self.on_tick = on_tick
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the scheduled continuation and wait for the task to wind down."""
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        last = loop.time()
        next_deadline = last + self.interval
        while True:
            await asyncio.sleep(max(next_deadline - loop.time(), 0.0))
            now = loop.time()
            elapsed, last = now - last, now
            # schedule against the original grid, not "now + interval"
            next_deadline += self.interval
            if next_deadline <= now:
                next_deadline = now + self.interval
            keep_going = await self.on_tick(elapsed)
            if not keep_going:
                logger.debug("Ticker stopped by callback")
                return
