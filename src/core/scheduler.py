"""Periodic background task that runs the eager expiry sweep.

Ticks are scheduled at a fixed rate. A sweep that overruns its slot
causes the missed ticks to be skipped, so at most one sweep runs at a
time. stop() prevents further ticks and waits for an in-flight sweep
to finish instead of cancelling it.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class ExpiryScheduler:
    def __init__(self, *, sweep: Callable[[], Awaitable[Any]], interval_ms: int) -> None:
        self._sweep = sweep
        self._interval = max(1, int(interval_ms)) / 1000.0

        self._task: Optional["asyncio.Task[None]"] = None
        self._stop_event = asyncio.Event()
        self._stopped = False

        self.ticks = 0
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stopped(self) -> bool:
        return self._stopped

    def start(self) -> None:
        # Must be called from a running event loop
        if self._stopped or self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="expiry-scheduler")
        logger.info(f"Expiry scheduler started (interval={self._interval:.3f}s)")

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True

        task = self._task
        if task is None:
            return

        self._stop_event.set()

        # A sweep that stops its own scheduler cannot wait for itself
        if task is not asyncio.current_task():
            await task
        logger.info(f"Expiry scheduler stopped after {self.ticks} ticks ({self.skipped_ticks} skipped)")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._interval

        while True:
            delay = next_tick - loop.time()
            if delay > 0:
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
                    return
                except asyncio.TimeoutError:
                    pass
            if self._stop_event.is_set():
                return

            try:
                await self._sweep()
            except Exception:
                # A failed tick never kills the loop
                logger.exception("Expiry sweep failed")
            self.ticks += 1

            next_tick += self._interval
            now = loop.time()
            if now > next_tick:
                missed = int((now - next_tick) // self._interval) + 1
                next_tick += missed * self._interval
                self.skipped_ticks += missed
                logger.debug(f"Sweep overran its interval, skipping {missed} tick(s)")
