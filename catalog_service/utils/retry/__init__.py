from __future__ import annotations

from catalog_service.utils.retry.executor import retry, with_retry
from catalog_service.utils.retry.strategies import RetryStatistics, RetryStrategy

__all__ = ["RetryStatistics", "RetryStrategy", "retry", "with_retry"]
