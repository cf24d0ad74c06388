"""Operational metrics for errors, rate limiting, resilience and dependencies."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

from catalog_service.infra.metrics.prometheus import DEFAULT_LATENCY_BUCKETS, REGISTRY

# ============================================================================
# Error and Exception Metrics
# ============================================================================

errors_total = Counter(
    "errors_total",
    "Total number of errors by type and endpoint",
    ["error_type", "endpoint", "status_code"],
    registry=REGISTRY,
)

exceptions_unhandled_total = Counter(
    "exceptions_unhandled_total",
    "Total number of unhandled exceptions",
    ["exception_type", "endpoint"],
    registry=REGISTRY,
)

# ============================================================================
# Rate Limiting Metrics
# ============================================================================

rate_limit_checks_total = Counter(
    "rate_limit_checks_total",
    "Total number of rate limit checks performed",
    ["result"],  # result: allowed, denied, bypass
    registry=REGISTRY,
)

rate_limiter_redis_errors_total = Counter(
    "rate_limiter_redis_errors_total",
    "Total Redis errors during rate limit checks",
    ["error_type"],
    registry=REGISTRY,
)

# ============================================================================
# Circuit Breaker Metrics
# ============================================================================

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=half_open, 2=open)",
    ["circuit_name"],
    registry=REGISTRY,
)

circuit_breaker_failures_total = Counter(
    "circuit_breaker_failures_total",
    "Total number of circuit breaker failures",
    ["circuit_name"],
    registry=REGISTRY,
)

circuit_breaker_successes_total = Counter(
    "circuit_breaker_successes_total",
    "Total number of circuit breaker successes",
    ["circuit_name"],
    registry=REGISTRY,
)

circuit_breaker_state_changes_total = Counter(
    "circuit_breaker_state_changes_total",
    "Total number of circuit breaker state changes",
    ["circuit_name", "from_state", "to_state"],
    registry=REGISTRY,
)

circuit_breaker_rejected_total = Counter(
    "circuit_breaker_rejected_total",
    "Total number of requests rejected by circuit breaker",
    ["circuit_name"],
    registry=REGISTRY,
)

circuit_breaker_fallbacks_total = Counter(
    "circuit_breaker_fallbacks_total",
    "Total number of fallback responses served, by whether a last good value existed",
    ["circuit_name", "kind"],  # kind: last_good, placeholder
    registry=REGISTRY,
)

# ============================================================================
# Retry Metrics
# ============================================================================

retry_attempts_total = Counter(
    "retry_attempts_total",
    "Total number of retry attempts",
    ["operation", "attempt_number"],
    registry=REGISTRY,
)

retry_exhausted_total = Counter(
    "retry_exhausted_total",
    "Total number of operations that exhausted all retries",
    ["operation"],
    registry=REGISTRY,
)

retry_success_after_failure_total = Counter(
    "retry_success_after_failure_total",
    "Total number of operations that succeeded after at least one retry",
    ["operation", "attempts_needed"],
    registry=REGISTRY,
)

# ============================================================================
# External Service Metrics
# ============================================================================

external_service_calls_total = Counter(
    "external_service_calls_total",
    "Total number of calls to external services",
    ["service_name", "endpoint", "status"],
    registry=REGISTRY,
)

external_service_duration_seconds = Histogram(
    "external_service_duration_seconds",
    "External service call duration in seconds",
    ["service_name", "endpoint"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

external_service_errors_total = Counter(
    "external_service_errors_total",
    "Total number of external service errors",
    ["service_name", "error_type"],
    registry=REGISTRY,
)

# ============================================================================
# Dependency Health Metrics
# ============================================================================

dependency_health = Gauge(
    "dependency_health",
    "Dependency health status (1=healthy, 0=unhealthy)",
    ["dependency_name", "dependency_type"],
    registry=REGISTRY,
)

dependency_check_duration_seconds = Histogram(
    "dependency_check_duration_seconds",
    "Dependency health check duration in seconds",
    ["dependency_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)
