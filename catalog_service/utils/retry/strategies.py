from __future__ import annotations

import random
from collections.abc import Callable
from dataclasses import dataclass, field


@dataclass
class RetryStatistics:
    """Statistics captured during a retry session."""

    attempts: int = 0
    total_delay: float = 0.0
    start_time: float = 0.0
    end_time: float = 0.0
    exceptions: list[str] = field(default_factory=list)

    @property
    def duration(self) -> float:
        """Total time spent retrying."""
        return self.end_time - self.start_time


class RetryStrategy:
    """Bounded exponential backoff with additive jitter.

    The delay before retry ``n`` (0-indexed) is
    ``min(max_delay, base_delay * 2**n + uniform(0, base_delay))``.
    """

    def __init__(
        self,
        retries: int = 2,
        base_delay: float = 0.2,
        max_delay: float = 2.0,
        should_retry: Callable[[Exception], bool] | None = None,
    ) -> None:
        if retries < 0:
            msg = "retries must be >= 0"
            raise ValueError(msg)
        if base_delay < 0 or max_delay < 0:
            msg = "delays must be >= 0"
            raise ValueError(msg)
        self.retries = retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.should_retry_func = should_retry

    @property
    def max_attempts(self) -> int:
        return self.retries + 1

    def should_retry(self, exception: Exception) -> bool:
        if self.should_retry_func is None:
            return True
        return self.should_retry_func(exception)

    def calculate_delay(self, attempt: int) -> float:
        exp_delay = self.base_delay * (2**attempt)
        jitter = random.uniform(0, self.base_delay) if self.base_delay > 0 else 0.0  # noqa: S311
        return min(self.max_delay, exp_delay + jitter)
