"""Helper functions for tracking operational metrics."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import TYPE_CHECKING, Any

from catalog_service.infra.metrics import business, prometheus

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

logger = logging.getLogger(__name__)


# ============================================================================
# Error Tracking
# ============================================================================


def track_error(
    error_type: str,
    endpoint: str,
    status_code: int,
    extra: dict[str, Any] | None = None,
) -> None:
    """Track an error occurrence.

    Args:
        error_type: Type of error (e.g., 'bad_request', 'not_found', 'rate_limit')
        endpoint: API endpoint where error occurred
        status_code: HTTP status code
        extra: Additional context for logging

    Example:
            track_error("bad_request", "/products", 400, {"reason": "invalid_cursor"})
    """
    business.errors_total.labels(
        error_type=error_type,
        endpoint=endpoint,
        status_code=str(status_code),
    ).inc()

    logger.debug(
        f"Tracked error: {error_type}",
        extra={"endpoint": endpoint, "status_code": status_code, **(extra or {})},
    )


def track_unhandled_exception(exception_type: str, endpoint: str) -> None:
    """Track an unhandled exception.

    Args:
        exception_type: Type of exception (e.g., 'ValueError', 'KeyError')
        endpoint: API endpoint where exception occurred
    """
    business.exceptions_unhandled_total.labels(
        exception_type=exception_type,
        endpoint=endpoint,
    ).inc()


# ============================================================================
# Cache Tracking
# ============================================================================


def track_cache_result(namespace: str, status: str) -> None:
    """Count a read-through cache outcome.

    Args:
        namespace: Cache namespace derived from the key (e.g., 'products:list')
        status: One of HIT, MISS, WAIT, BYPASS

    Example:
            track_cache_result("products:list", "HIT")
    """
    prometheus.cache_results_total.labels(namespace=namespace, status=status).inc()


def track_cache_lock_wait(namespace: str, waited_seconds: float) -> None:
    """Record how long a request polled while another request rebuilt the value."""
    prometheus.cache_lock_wait_seconds.labels(namespace=namespace).observe(waited_seconds)


def track_cache_version_bump() -> None:
    prometheus.cache_version_bumps_total.inc()


def track_inflight_dedupe(namespace: str, joined: bool) -> None:
    """Count whether a caller joined an in-flight computation or started one."""
    prometheus.inflight_dedupe_total.labels(
        namespace=namespace,
        result="HIT" if joined else "MISS",
    ).inc()


@asynccontextmanager
async def track_cache_operation(operation: str, cache_name: str = "redis") -> AsyncIterator[None]:
    """Time a single Redis operation.

    Example:
            async with track_cache_operation("get"):
            raw = await client.get(key)
    """
    start_time = time.perf_counter()
    try:
        yield
    finally:
        prometheus.cache_operation_duration_seconds.labels(
            operation=operation,
            cache_name=cache_name,
        ).observe(time.perf_counter() - start_time)


# ============================================================================
# Rate Limiting Tracking
# ============================================================================


def track_rate_limit_check(result: str) -> None:
    """Track a rate limit check.

    Args:
        result: 'allowed', 'rejected' or 'bypass'
    """
    business.rate_limit_checks_total.labels(result=result).inc()


def track_rate_limit_rejection(endpoint: str) -> None:
    prometheus.rate_limit_rejections_total.labels(endpoint=endpoint).inc()


def track_rate_limiter_redis_error(error_type: str) -> None:
    """Track a Redis failure that forced the limiter to bypass.

    Args:
        error_type: Exception class name
    """
    business.rate_limiter_redis_errors_total.labels(error_type=error_type).inc()


# ============================================================================
# Circuit Breaker Tracking
# ============================================================================


def update_circuit_breaker_state(circuit_name: str, state: str) -> None:
    """Update circuit breaker state gauge.

    Args:
        circuit_name: Name of the circuit breaker
        state: Current state ('closed', 'half_open', 'open')

    Example:
            update_circuit_breaker_state("external_a", "open")
    """
    state_map = {"closed": 0, "half_open": 1, "open": 2}
    business.circuit_breaker_state.labels(circuit_name=circuit_name).set(state_map.get(state, 0))


def track_circuit_breaker_failure(circuit_name: str) -> None:
    business.circuit_breaker_failures_total.labels(circuit_name=circuit_name).inc()


def track_circuit_breaker_success(circuit_name: str) -> None:
    business.circuit_breaker_successes_total.labels(circuit_name=circuit_name).inc()


def track_circuit_breaker_state_change(circuit_name: str, from_state: str, to_state: str) -> None:
    """Track a circuit breaker state change.

    Args:
        circuit_name: Name of the circuit breaker
        from_state: Previous state
        to_state: New state
    """
    business.circuit_breaker_state_changes_total.labels(
        circuit_name=circuit_name,
        from_state=from_state,
        to_state=to_state,
    ).inc()


def track_circuit_breaker_rejected(circuit_name: str) -> None:
    business.circuit_breaker_rejected_total.labels(circuit_name=circuit_name).inc()


def track_circuit_breaker_fallback(circuit_name: str, used_last_good: bool) -> None:
    business.circuit_breaker_fallbacks_total.labels(
        circuit_name=circuit_name,
        kind="last_good" if used_last_good else "placeholder",
    ).inc()


# ============================================================================
# Retry Tracking
# ============================================================================


def track_retry_attempt(operation: str, attempt_number: int) -> None:
    """Track a retry attempt.

    Args:
        operation: Name of the operation being retried
        attempt_number: Current attempt number (1-indexed)

    Example:
            track_retry_attempt("connect_database", 2)
    """
    business.retry_attempts_total.labels(
        operation=operation,
        attempt_number=str(attempt_number),
    ).inc()


def track_retry_exhausted(operation: str) -> None:
    business.retry_exhausted_total.labels(operation=operation).inc()


def track_retry_success(operation: str, attempts_needed: int) -> None:
    business.retry_success_after_failure_total.labels(
        operation=operation,
        attempts_needed=str(attempts_needed),
    ).inc()


# ============================================================================
# External Service Tracking
# ============================================================================


@asynccontextmanager
async def track_external_service_call(service_name: str, endpoint: str) -> AsyncIterator[None]:
    """Context manager to track an external service call with timing.

    Args:
        service_name: Name of the external service
        endpoint: Service endpoint being called

    Example:
            async with track_external_service_call("external_a", "/sync"):
            response = await client.get("/sync")
    """
    start_time = time.time()
    status = "success"

    try:
        yield
    except Exception as e:
        status = "error"
        business.external_service_errors_total.labels(
            service_name=service_name,
            error_type=type(e).__name__,
        ).inc()
        raise
    finally:
        duration = time.time() - start_time

        business.external_service_calls_total.labels(
            service_name=service_name,
            endpoint=endpoint,
            status=status,
        ).inc()

        business.external_service_duration_seconds.labels(
            service_name=service_name,
            endpoint=endpoint,
        ).observe(duration)


# ============================================================================
# Dependency Health Tracking
# ============================================================================


def update_dependency_health(dependency_name: str, dependency_type: str, is_healthy: bool) -> None:
    """Update dependency health status.

    Args:
        dependency_name: Name of the dependency
        dependency_type: Type of dependency (database, cache, api)
        is_healthy: Whether dependency is healthy

    Example:
            update_dependency_health("postgres", "database", True)
    """
    business.dependency_health.labels(
        dependency_name=dependency_name,
        dependency_type=dependency_type,
    ).set(1 if is_healthy else 0)


@asynccontextmanager
async def track_dependency_check(dependency_name: str) -> AsyncIterator[None]:
    """Context manager to track dependency health check duration."""
    start_time = time.time()

    try:
        yield
    finally:
        duration = time.time() - start_time
        business.dependency_check_duration_seconds.labels(dependency_name=dependency_name).observe(
            duration,
        )
