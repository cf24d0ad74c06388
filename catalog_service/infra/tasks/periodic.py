"""Cancellable periodic background task owned by the application lifespan."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PeriodicTask:
    """Run ``action`` every ``interval`` seconds until stopped.

    The loop sleeps on an ``asyncio.Event`` so ``stop()`` wakes it
    immediately instead of waiting out the interval. A failing run is logged
    and the next run happens on schedule.

    Example:
            task = PeriodicTask("redis_stats", 30.0, redis_cache.collect_stats)
        await task.start()
        ...
        await task.stop()
    """

    def __init__(
        self,
        name: str,
        interval: float,
        action: Callable[[], Awaitable[object]],
        *,
        stop_timeout: float = 5.0,
    ) -> None:
        if interval <= 0:
            msg = "interval must be greater than 0"
            raise ValueError(msg)
        self.name = name
        self.interval = interval
        self._action = action
        self._stop_timeout = stop_timeout
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self.runs = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.is_running:
            logger.warning("Periodic task already running", extra={"task": self.name})
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self._run_loop(), name=f"periodic:{self.name}")
        logger.info("Periodic task started", extra={"task": self.name, "interval": self.interval})

    async def stop(self) -> None:
        if self._task is None:
            return

        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=self._stop_timeout)
        except TimeoutError:
            logger.warning("Periodic task shutdown timed out, cancelling", extra={"task": self.name})
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Periodic task stopped", extra={"task": self.name, "runs": self.runs})

    async def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                await self._action()
            except Exception:
                logger.exception("Periodic task run failed", extra={"task": self.name})
            self.runs += 1

            # Wait for next cycle or stop event
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except TimeoutError:
                continue
