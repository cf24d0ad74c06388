"""In-process deduplication of concurrent identical work.

Concurrent callers that ask for the same key while a computation is running
share that computation instead of starting their own. This is strictly a
per-process optimization: it says nothing about other workers or hosts.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from functools import partial
import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from catalog_service.infra.metrics.tracking import track_inflight_dedupe

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class DedupeResult(Generic[T]):
    value: T
    was_deduped: bool


class InFlightDeduplicator:
    """Map of key -> running task shared by every concurrent caller.

    The lookup and the insert happen without an intervening ``await``, so on
    the event loop no two callers can both miss and start a computation for
    the same key. The entry is removed exactly once, by the task's done
    callback, whether the computation succeeded, failed or was cancelled.

    Callers await the shared task through ``asyncio.shield``: a follower
    that is cancelled (client disconnect) does not cancel the work the other
    callers are waiting on.

    Example:
            dedupe = InFlightDeduplicator()
        result = await dedupe.dedupe("external-a:sync", fetch)
        response.headers["x-dedupe"] = "HIT" if result.was_deduped else "MISS"
    """

    def __init__(self) -> None:
        self._in_flight: dict[str, asyncio.Task[Any]] = {}

    def __len__(self) -> int:
        return len(self._in_flight)

    def __contains__(self, key: object) -> bool:
        return key in self._in_flight

    async def dedupe(
        self,
        key: str,
        compute: Callable[[], Awaitable[T]],
        *,
        namespace: str | None = None,
    ) -> DedupeResult[T]:
        """Run ``compute`` once for all concurrent callers of ``key``.

        Args:
            key: Identity of the logical request.
            compute: Zero-argument coroutine factory; invoked only by the first caller.
            namespace: Metrics label; defaults to ``key``.

        Returns:
            The shared value and whether this caller joined an existing computation.

        Raises:
            Exception: Whatever ``compute`` raised, delivered to every caller.
        """
        task = self._in_flight.get(key)
        joined = task is not None
        if task is None:
            task = asyncio.create_task(_invoke(compute), name=f"dedupe:{key}")
            self._in_flight[key] = task
            task.add_done_callback(partial(self._settle, key))
        else:
            logger.debug("Joined in-flight computation", extra={"dedupe_key": key})

        track_inflight_dedupe(namespace or key, joined)
        value = await asyncio.shield(task)
        return DedupeResult(value=value, was_deduped=joined)

    def _settle(self, key: str, task: asyncio.Task[Any]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the exception retrieved when every caller has gone away
        if not task.cancelled():
            task.exception()


async def _invoke(compute: Callable[[], Awaitable[T]]) -> T:
    return await compute()
