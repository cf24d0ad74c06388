"""Resilience primitives: circuit breaker and in-flight deduplication."""

from __future__ import annotations

from catalog_service.infra.resilience.circuit_breaker import (
    CIRCUIT_OPEN_REASON,
    BreakerResult,
    CircuitBreaker,
    CircuitState,
)
from catalog_service.infra.resilience.dedupe import DedupeResult, InFlightDeduplicator

__all__ = [
    "CIRCUIT_OPEN_REASON",
    "BreakerResult",
    "CircuitBreaker",
    "CircuitState",
    "DedupeResult",
    "InFlightDeduplicator",
]
