"""Tests for bounded retry with exponential backoff."""

from __future__ import annotations

import pytest

from catalog_service.utils.retry import RetryStatistics, RetryStrategy, retry, with_retry


class TransientError(Exception):
    pass


class FatalError(Exception):
    pass


@pytest.mark.unit
class TestRetryStrategy:
    def test_delay_grows_exponentially_within_jitter(self):
        strategy = RetryStrategy(retries=5, base_delay=0.1, max_delay=10.0)

        for attempt in range(4):
            delay = strategy.calculate_delay(attempt)
            expected = 0.1 * 2**attempt
            assert expected <= delay <= expected + 0.1

    def test_delay_is_capped(self):
        strategy = RetryStrategy(retries=10, base_delay=1.0, max_delay=2.5)

        assert strategy.calculate_delay(8) == 2.5

    def test_zero_base_delay_has_no_jitter(self):
        strategy = RetryStrategy(retries=3, base_delay=0.0, max_delay=1.0)

        assert strategy.calculate_delay(2) == 0.0

    def test_max_attempts(self):
        assert RetryStrategy(retries=2).max_attempts == 3

    @pytest.mark.parametrize("kwargs", [{"retries": -1}, {"base_delay": -0.1}, {"max_delay": -1}])
    def test_rejects_negative_values(self, kwargs):
        with pytest.raises(ValueError):
            RetryStrategy(**kwargs)


@pytest.mark.unit
class TestWithRetry:
    async def test_returns_first_success(self):
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            if calls < 3:
                raise TransientError("boom")
            return "ok"

        stats = RetryStatistics()
        result = await with_retry(
            operation, retries=2, base_delay=0.0, max_delay=0.0, statistics=stats,
        )

        assert result == "ok"
        assert calls == 3
        assert stats.attempts == 2
        assert stats.exceptions == ["TransientError", "TransientError"]

    async def test_reraises_last_error_when_exhausted(self):
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            raise TransientError(f"failure {calls}")

        with pytest.raises(TransientError, match="failure 3"):
            await with_retry(operation, retries=2, base_delay=0.0, max_delay=0.0)
        assert calls == 3

    async def test_non_retryable_error_fails_fast(self):
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            raise FatalError("nope")

        with pytest.raises(FatalError):
            await with_retry(
                operation,
                retries=5,
                base_delay=0.0,
                max_delay=0.0,
                should_retry=lambda e: not isinstance(e, FatalError),
            )
        assert calls == 1

    async def test_zero_retries_runs_once(self):
        calls = 0

        async def operation():
            nonlocal calls
            calls += 1
            raise TransientError

        with pytest.raises(TransientError):
            await with_retry(operation, retries=0, base_delay=0.0, max_delay=0.0)
        assert calls == 1


@pytest.mark.unit
async def test_retry_decorator_passes_arguments():
    attempts: list[int] = []

    @retry(retries=1, base_delay=0.0, max_delay=0.0)
    async def add(a: int, b: int) -> int:
        attempts.append(a)
        if len(attempts) == 1:
            raise TransientError
        return a + b

    assert await add(2, 3) == 5
    assert attempts == [2, 2]
