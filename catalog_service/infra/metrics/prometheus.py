"""Prometheus metrics for HTTP traffic and the Redis cache."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram

# Custom registry keeps tests and multiple app instances isolated from the default one
REGISTRY = CollectorRegistry()

# Covers response times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# HTTP metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
    registry=REGISTRY,
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
    registry=REGISTRY,
)

rate_limit_rejections_total = Counter(
    "rate_limit_rejections_total",
    "Total number of requests rejected with 429 by the fixed-window limiter.",
    ["endpoint"],
    registry=REGISTRY,
)

# Database metrics
database_query_duration_seconds = Histogram(
    "database_query_duration_seconds",
    "Database query duration in seconds",
    ["operation"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Read-through cache metrics
cache_results_total = Counter(
    "cache_results_total",
    "Outcome of read-through cache lookups (HIT, MISS, WAIT, BYPASS).",
    ["namespace", "status"],
    registry=REGISTRY,
)

cache_operation_duration_seconds = Histogram(
    "cache_operation_duration_seconds",
    "Redis operation duration in seconds",
    ["operation", "cache_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

cache_lock_wait_seconds = Histogram(
    "cache_lock_wait_seconds",
    "Time spent polling for a value while another request held the rebuild lock.",
    ["namespace"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

cache_version_bumps_total = Counter(
    "cache_version_bumps_total",
    "Total number of namespace cache version bumps.",
    registry=REGISTRY,
)

inflight_dedupe_total = Counter(
    "inflight_dedupe_total",
    "In-process request coalescing outcomes (HIT joined an existing task, MISS started one).",
    ["namespace", "result"],
    registry=REGISTRY,
)

# Redis server metrics, refreshed by the periodic stats task
cache_memory_bytes = Gauge(
    "cache_memory_bytes",
    "Memory used by the Redis server in bytes.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_memory_max_bytes = Gauge(
    "cache_memory_max_bytes",
    "Configured maxmemory of the Redis server in bytes (0 means unlimited).",
    ["cache_name"],
    registry=REGISTRY,
)

cache_keys_total = Gauge(
    "cache_keys_total",
    "Number of keys in the selected Redis database.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_connections_active = Gauge(
    "cache_connections_active",
    "Number of clients connected to the Redis server.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_evictions_total = Counter(
    "cache_evictions_total",
    "Keys evicted by the Redis server due to maxmemory.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_expired_keys_total = Counter(
    "cache_expired_keys_total",
    "Keys expired by the Redis server.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_keyspace_hits_total = Counter(
    "cache_keyspace_hits_total",
    "Successful key lookups reported by the Redis server.",
    ["cache_name"],
    registry=REGISTRY,
)

cache_keyspace_misses_total = Counter(
    "cache_keyspace_misses_total",
    "Failed key lookups reported by the Redis server.",
    ["cache_name"],
    registry=REGISTRY,
)

application_info = Gauge(
    "application_info",
    "Application metadata (always 1).",
    ["version", "environment", "service_name"],
    registry=REGISTRY,
)
