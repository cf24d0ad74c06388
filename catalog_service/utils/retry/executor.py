"""Bounded retry with exponential backoff for async operations."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import wraps
from typing import TYPE_CHECKING, ParamSpec, TypeVar

from catalog_service.infra.metrics.tracking import (
    track_retry_attempt,
    track_retry_exhausted,
    track_retry_success,
)

from .strategies import RetryStatistics, RetryStrategy

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


async def with_retry(
    operation: Callable[[], Awaitable[R]],
    *,
    retries: int,
    base_delay: float,
    max_delay: float,
    should_retry: Callable[[Exception], bool] | None = None,
    name: str | None = None,
    statistics: RetryStatistics | None = None,
) -> R:
    """Run ``operation`` up to ``retries + 1`` times.

    Between failed attempts the coroutine sleeps for the strategy's backoff
    delay. A failure that ``should_retry`` classifies as non-retryable, or the
    failure of the final attempt, is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        retries: Number of retries after the first attempt.
        base_delay: Base backoff delay in seconds.
        max_delay: Upper bound for a single backoff delay in seconds.
        should_retry: Optional classifier; returning False fails fast.
        name: Operation name used in logs and metrics.
        statistics: Optional statistics object filled in place.

    Returns:
        Result of the first successful attempt.

    Raises:
        Exception: The last error raised by ``operation``.
    """
    strategy = RetryStrategy(
        retries=retries,
        base_delay=base_delay,
        max_delay=max_delay,
        should_retry=should_retry,
    )
    op_name = name or getattr(operation, "__name__", "operation")
    stats = statistics if statistics is not None else RetryStatistics()
    stats.start_time = time.monotonic()

    attempt = 0
    while True:
        try:
            result = await operation()
        except Exception as e:
            stats.exceptions.append(type(e).__name__)

            if not strategy.should_retry(e):
                stats.end_time = time.monotonic()
                logger.warning(
                    f"Non-retryable exception in {op_name}: {e}",
                    extra={"operation": op_name, "exception": str(e)},
                )
                raise

            if attempt >= strategy.retries:
                stats.end_time = time.monotonic()
                track_retry_exhausted(op_name)
                logger.warning(
                    f"All retry attempts exhausted for {op_name}",
                    extra={
                        "operation": op_name,
                        "attempts": attempt + 1,
                        "last_exception": str(e),
                        "total_delay": stats.total_delay,
                    },
                )
                raise

            delay = strategy.calculate_delay(attempt)
            stats.attempts += 1
            stats.total_delay += delay
            track_retry_attempt(op_name, attempt + 2)

            logger.info(
                f"Retrying {op_name} after {delay:.3f}s (attempt {attempt + 1}/{strategy.max_attempts})",
                extra={
                    "operation": op_name,
                    "attempt": attempt + 1,
                    "max_attempts": strategy.max_attempts,
                    "delay": delay,
                    "exception": str(e),
                },
            )
            await asyncio.sleep(delay)
            attempt += 1
        else:
            stats.end_time = time.monotonic()
            if attempt > 0:
                track_retry_success(op_name, attempt + 1)
            return result


def retry(
    retries: int = 2,
    base_delay: float = 0.2,
    max_delay: float = 2.0,
    should_retry: Callable[[Exception], bool] | None = None,
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Decorator form of :func:`with_retry`.

    Example:
        @retry(retries=5, base_delay=0.25, max_delay=5.0)
        async def ping() -> None:
            ...
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            return await with_retry(
                lambda: func(*args, **kwargs),
                retries=retries,
                base_delay=base_delay,
                max_delay=max_delay,
                should_retry=should_retry,
                name=func.__name__,
            )

        return wrapper

    return decorator
