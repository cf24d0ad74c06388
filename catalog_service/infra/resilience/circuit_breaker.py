"""Circuit breaker with fallback to the last good payload.

The breaker wraps a single external dependency and never raises: every call
resolves to a :class:`BreakerResult` that is either ``live`` (the dependency
answered) or ``fallback`` (the last successful payload, or a placeholder when
there has been none yet).

States:
    - CLOSED: Normal operation, calls pass through
    - OPEN: Failure threshold reached, calls short-circuit to the fallback
    - HALF_OPEN: Cooldown elapsed, the next call probes the dependency

Transitions:
    CLOSED -> OPEN: After ``failure_threshold`` consecutive failures
    OPEN -> HALF_OPEN: When ``cooldown`` seconds have elapsed since opening
    HALF_OPEN -> CLOSED: On the next success
    HALF_OPEN -> OPEN: On the next failure, restarting the cooldown clock

Example:
    >>> breaker = CircuitBreaker(name="external_a", failure_threshold=5, cooldown=15.0)
    >>> result = await breaker.execute(
    ...     fetch_payload,
    ...     open_placeholder={"message": "temporarily unavailable"},
    ...     failure_placeholder={"message": "failed; fallback used"},
    ... )
    >>> result.source
    'live'
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING, Any, Literal

from catalog_service.infra.metrics.tracking import (
    track_circuit_breaker_failure,
    track_circuit_breaker_fallback,
    track_circuit_breaker_rejected,
    track_circuit_breaker_state_change,
    track_circuit_breaker_success,
    update_circuit_breaker_state,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

CIRCUIT_OPEN_REASON = "circuit_open"


class CircuitState(StrEnum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Short-circuiting to fallback
    HALF_OPEN = "half_open"  # Probing recovery


@dataclass(frozen=True)
class BreakerResult:
    """Outcome of a breaker-protected call.

    Attributes:
        source: ``live`` when the dependency answered, ``fallback`` otherwise.
        data: The live payload, the last good payload or a placeholder.
        reason: Why the fallback was used (``circuit_open``, ``disabled`` or
            the failure message); None for live results.
    """

    source: Literal["live", "fallback"]
    data: Any
    reason: str | None = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


class CircuitBreaker:
    """Consecutive-failure circuit breaker for one dependency.

    State is guarded by an ``asyncio.Lock``; the protected call itself runs
    outside the lock so a slow dependency never blocks state queries.

    Attributes:
        name: Identifier used in logs and metrics labels.
        failure_threshold: Consecutive failures that open the circuit.
        cooldown: Seconds the circuit stays open before probing again.
        total_failures: Lifetime failures.
        total_successes: Lifetime successes.
        total_rejections: Lifetime calls short-circuited while open.
    """

    def __init__(
        self,
        *,
        name: str,
        failure_threshold: int = 5,
        cooldown: float = 15.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            name: Unique identifier for this circuit breaker instance.
            failure_threshold: Consecutive failures before opening. Must be > 0.
            cooldown: Seconds to stay OPEN before probing. Must be > 0.
            clock: Monotonic time source in seconds.

        Raises:
            ValueError: If the threshold or cooldown is invalid.
        """
        if failure_threshold <= 0:
            msg = "failure_threshold must be greater than 0"
            raise ValueError(msg)
        if cooldown <= 0:
            msg = "cooldown must be greater than 0"
            raise ValueError(msg)

        self.name = name
        self.failure_threshold = failure_threshold
        self.cooldown = cooldown
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._consecutive_failures = 0
        self._opened_at: float | None = None
        self._last_good: Any = None
        self._has_last_good = False
        self._lock = asyncio.Lock()

        self.total_failures = 0
        self.total_successes = 0
        self.total_rejections = 0

        update_circuit_breaker_state(self.name, self._state.value)

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def consecutive_failures(self) -> int:
        return self._consecutive_failures

    @property
    def has_fallback(self) -> bool:
        """True once a live call has succeeded and its payload is cached."""
        return self._has_last_good

    @property
    def last_good_value(self) -> Any:
        return self._last_good

    def cooldown_remaining(self) -> float:
        """Seconds left before an OPEN circuit may be probed (0 otherwise)."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        return max(0.0, self.cooldown - (self._clock() - self._opened_at))

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        *,
        open_placeholder: Any,
        failure_placeholder: Any,
    ) -> BreakerResult:
        """Run ``operation`` under breaker protection.

        Args:
            operation: Zero-argument coroutine factory performing the call.
                Retries, if any, belong inside it; one invocation is one
                breaker attempt.
            open_placeholder: Payload returned while open and nothing good is cached.
            failure_placeholder: Payload returned on failure and nothing good is cached.

        Returns:
            A live result, or a fallback result tagged with its reason.
        """
        async with self._lock:
            self._check_state()
            if self._state == CircuitState.OPEN:
                self.total_rejections += 1
                track_circuit_breaker_rejected(self.name)
                return self._fallback(open_placeholder, CIRCUIT_OPEN_REASON)

        try:
            data = await operation()
        except Exception as e:  # noqa: BLE001
            await self._on_failure(e)
            return self._fallback(failure_placeholder, str(e) or type(e).__name__)

        await self._on_success(data)
        return BreakerResult(source="live", data=data)

    def get_metrics(self) -> dict[str, Any]:
        """Get circuit breaker counters and state."""
        total_calls = self.total_failures + self.total_successes
        failure_rate = self.total_failures / total_calls if total_calls > 0 else 0.0
        return {
            "name": self.name,
            "state": self._state.value,
            "consecutive_failures": self._consecutive_failures,
            "failure_threshold": self.failure_threshold,
            "cooldown": self.cooldown,
            "total_failures": self.total_failures,
            "total_successes": self.total_successes,
            "total_rejections": self.total_rejections,
            "failure_rate": failure_rate,
        }

    def health(self) -> dict[str, Any]:
        """Observability snapshot in wire (camelCase) form."""
        return {
            "state": self._state.value,
            "consecutiveFailures": self._consecutive_failures,
            "cooldownRemainingMs": int(self.cooldown_remaining() * 1000),
            "hasFallback": self._has_last_good,
        }

    async def reset(self) -> None:
        """Force the circuit closed and forget the cached payload."""
        async with self._lock:
            if self._state != CircuitState.CLOSED:
                self._transition(CircuitState.CLOSED)
            self._consecutive_failures = 0
            self._opened_at = None
            self._last_good = None
            self._has_last_good = False
        logger.info("Circuit breaker reset", extra={"circuit_breaker": self.name})

    def _fallback(self, placeholder: Any, reason: str) -> BreakerResult:
        track_circuit_breaker_fallback(self.name, used_last_good=self._has_last_good)
        data = self._last_good if self._has_last_good else placeholder
        return BreakerResult(source="fallback", data=data, reason=reason)

    def _check_state(self) -> None:
        # Called with the lock held
        if self._state == CircuitState.OPEN and self.cooldown_remaining() <= 0:
            self._transition(CircuitState.HALF_OPEN)

    async def _on_success(self, data: Any) -> None:
        async with self._lock:
            self.total_successes += 1
            track_circuit_breaker_success(self.name)
            self._last_good = data
            self._has_last_good = True
            self._consecutive_failures = 0
            self._opened_at = None
            if self._state != CircuitState.CLOSED:
                self._transition(CircuitState.CLOSED)

    async def _on_failure(self, exception: Exception) -> None:
        async with self._lock:
            self.total_failures += 1
            self._consecutive_failures += 1
            track_circuit_breaker_failure(self.name)

            logger.warning(
                "Circuit breaker recorded failure",
                extra={
                    "circuit_breaker": self.name,
                    "state": self._state.value,
                    "consecutive_failures": self._consecutive_failures,
                    "failure_threshold": self.failure_threshold,
                    "exception_type": type(exception).__name__,
                    "exception_message": str(exception),
                },
            )

            if self._state == CircuitState.HALF_OPEN:
                self._open(str(exception))
            elif (
                self._state == CircuitState.CLOSED
                and self._consecutive_failures >= self.failure_threshold
            ):
                self._open(str(exception))
            elif self._state == CircuitState.OPEN:
                # A call admitted before another caller opened the circuit
                self._opened_at = self._clock()

    def _open(self, reason: str) -> None:
        self._opened_at = self._clock()
        self._transition(CircuitState.OPEN)
        logger.warning(
            "Circuit breaker opened",
            extra={
                "circuit_breaker": self.name,
                "reason": reason,
                "consecutive_failures": self._consecutive_failures,
                "failure_threshold": self.failure_threshold,
                "cooldown": self.cooldown,
            },
        )

    def _transition(self, new_state: CircuitState) -> None:
        old_state = self._state
        self._state = new_state
        track_circuit_breaker_state_change(self.name, old_state.value, new_state.value)
        update_circuit_breaker_state(self.name, new_state.value)
        if new_state != CircuitState.OPEN:
            logger.info(
                "Circuit breaker state changed",
                extra={
                    "circuit_breaker": self.name,
                    "old_state": old_state.value,
                    "new_state": new_state.value,
                },
            )
