"""Tests for the circuit breaker with last-good fallback.

Tests cover:
- State transitions (CLOSED -> OPEN -> HALF_OPEN -> CLOSED)
- Fallback to the last good payload or a placeholder
- Cooldown measured on an injected clock
- Health snapshot
"""

from __future__ import annotations

import pytest

from catalog_service.infra.resilience import CircuitBreaker, CircuitState

OPEN = {"message": "temporarily unavailable"}
FAILED = {"message": "failed; fallback used"}


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def breaker(clock) -> CircuitBreaker:
    return CircuitBreaker(name="test_service", failure_threshold=3, cooldown=10.0, clock=clock)


async def ok():
    return {"data": "live"}


async def fail():
    raise ConnectionError("upstream down")


async def run(breaker: CircuitBreaker, operation):
    return await breaker.execute(operation, open_placeholder=OPEN, failure_placeholder=FAILED)


@pytest.mark.unit
class TestCircuitBreakerTransitions:
    async def test_success_is_live(self, breaker):
        result = await run(breaker, ok)

        assert result.source == "live"
        assert result.data == {"data": "live"}
        assert result.reason is None
        assert breaker.state == CircuitState.CLOSED

    async def test_opens_after_threshold(self, breaker):
        for _ in range(2):
            await run(breaker, fail)
        assert breaker.state == CircuitState.CLOSED

        await run(breaker, fail)

        assert breaker.state == CircuitState.OPEN
        assert breaker.consecutive_failures == 3

    async def test_success_resets_consecutive_failures(self, breaker):
        await run(breaker, fail)
        await run(breaker, fail)
        await run(breaker, ok)
        await run(breaker, fail)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 1

    async def test_open_short_circuits_without_calling(self, breaker):
        for _ in range(3):
            await run(breaker, fail)
        calls = 0

        async def counted():
            nonlocal calls
            calls += 1
            return "x"

        result = await run(breaker, counted)

        assert calls == 0
        assert result.source == "fallback"
        assert result.reason == "circuit_open"
        assert result.data == OPEN
        assert breaker.total_rejections == 1

    async def test_half_open_success_closes(self, breaker, clock):
        for _ in range(3):
            await run(breaker, fail)
        clock.advance(10.0)

        result = await run(breaker, ok)

        assert result.source == "live"
        assert breaker.state == CircuitState.CLOSED
        assert breaker.consecutive_failures == 0

    async def test_half_open_failure_reopens_and_restarts_cooldown(self, breaker, clock):
        for _ in range(3):
            await run(breaker, fail)
        clock.advance(10.0)

        await run(breaker, fail)

        assert breaker.state == CircuitState.OPEN
        assert breaker.cooldown_remaining() == pytest.approx(10.0)
        clock.advance(9.0)
        assert (await run(breaker, ok)).reason == "circuit_open"

    async def test_still_open_before_cooldown(self, breaker, clock):
        for _ in range(3):
            await run(breaker, fail)
        clock.advance(9.9)

        assert (await run(breaker, ok)).source == "fallback"
        assert breaker.state == CircuitState.OPEN


@pytest.mark.unit
class TestCircuitBreakerFallback:
    async def test_failure_without_history_uses_placeholder(self, breaker):
        result = await run(breaker, fail)

        assert result.source == "fallback"
        assert result.data == FAILED
        assert result.reason == "upstream down"

    async def test_failure_reuses_last_good_value(self, breaker):
        await run(breaker, ok)

        result = await run(breaker, fail)

        assert result.source == "fallback"
        assert result.data == {"data": "live"}
        assert breaker.has_fallback

    async def test_open_reuses_last_good_value(self, breaker):
        await run(breaker, ok)
        for _ in range(3):
            await run(breaker, fail)

        result = await run(breaker, ok)

        assert result.reason == "circuit_open"
        assert result.data == {"data": "live"}

    async def test_never_raises(self, breaker):
        async def broken():
            raise KeyError("missing")

        result = await run(breaker, broken)

        assert result.is_fallback


@pytest.mark.unit
class TestCircuitBreakerObservability:
    async def test_health_snapshot(self, breaker, clock):
        for _ in range(3):
            await run(breaker, fail)
        clock.advance(4.0)

        assert breaker.health() == {
            "state": "open",
            "consecutiveFailures": 3,
            "cooldownRemainingMs": 6000,
            "hasFallback": False,
        }

    async def test_metrics_counters(self, breaker):
        await run(breaker, ok)
        await run(breaker, fail)

        metrics = breaker.get_metrics()

        assert metrics["total_successes"] == 1
        assert metrics["total_failures"] == 1
        assert metrics["failure_rate"] == 0.5

    async def test_reset(self, breaker):
        await run(breaker, ok)
        for _ in range(3):
            await run(breaker, fail)

        await breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert not breaker.has_fallback

    @pytest.mark.parametrize("kwargs", [{"failure_threshold": 0}, {"cooldown": 0}])
    def test_rejects_invalid_configuration(self, kwargs):
        with pytest.raises(ValueError):
            CircuitBreaker(name="bad", **kwargs)
