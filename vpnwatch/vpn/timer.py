"""Cancelable periodic task running on the asyncio event loop."""

import asyncio
from typing import Awaitable, Callable, Optional

from ..logging_utility import logger


class PeriodicTask:
    """
    Run an async callback every interval seconds.

    Ticks never overlap: the next tick waits for the running one, and ticks
    missed while a slow callback was running are skipped. start() on a
    running task restarts it, so at most one loop exists per instance.
    """

    def __init__(self, interval: float, callback: Callable[[], Awaitable[None]], name: str = "periodic"):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self.name = name
        self.ticks = 0
        self.skipped = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def is_active(self) -> bool:
        return self._task is not None and not self._task.done()

    def is_current(self) -> bool:
        """True when called from inside the live loop, False once cancelled or restarted."""
        return self._task is not None and self._task is asyncio.current_task()

    def start(self) -> None:
        """Start the loop, cancelling a previous one. Needs a running event loop."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        logger.debug(f"Timer {self.name} started with {self.interval}s period")

    def cancel(self) -> None:
        """Stop the loop; the callback is not invoked again afterwards."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            logger.debug(f"Timer {self.name} cancelled")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self.interval
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            self.ticks += 1
            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Timer {self.name} tick failed: {str(e)}")

            next_tick += self.interval
            now = loop.time()
            if now > next_tick:
                missed = int((now - next_tick) // self.interval) + 1
                self.skipped += missed
                next_tick += missed * self.interval
                logger.debug(f"Timer {self.name} skipped {missed} tick(s)")
