"""Redis client wrapper with connection pooling and availability tracking.

This module provides the single Redis client used by the read-through cache,
the rebuild locks, the cache version counter and the rate limiter:
- Connection pooling via ``ConnectionPool.from_url``
- JSON get/set helpers
- Atomic set-if-absent with TTL and compare-and-delete for locks
- Availability tracking (disabled / connecting / up / down) for health checks
- Prometheus operation timings and periodic INFO stats
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any, cast

from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError

from catalog_service.infra.common.health import DependencyHealth, DependencyStatus
from catalog_service.infra.metrics.prometheus import (
    cache_connections_active,
    cache_evictions_total,
    cache_expired_keys_total,
    cache_keys_total,
    cache_keyspace_hits_total,
    cache_keyspace_misses_total,
    cache_memory_bytes,
    cache_memory_max_bytes,
)
from catalog_service.infra.metrics.tracking import track_cache_operation

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from catalog_service.core.settings.redis import RedisSettings

logger = logging.getLogger(__name__)

# Seconds a failed Redis stays out of the hot path before commands probe it again
REPROBE_INTERVAL = 1.0

# Delete KEYS[1] only while it still holds the caller's token
RELEASE_LOCK_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


class RedisCache:
    """Redis client with availability tracking.

    Every command goes through :meth:`_execute`, which times the call and
    flips the status to ``down`` (recording the error) when Redis raises, and
    back to ``up`` on the next success. Callers decide how to degrade.

    Example:
            cache = RedisCache(get_redis_settings())
        await cache.connect()

        await cache.set_json("key", {"data": "value"}, ttl=30)
        value = await cache.get_json("key")

        await cache.disconnect()
    """

    def __init__(self, settings: RedisSettings, client: Redis | None = None) -> None:
        """Initialize Redis cache client.

        Args:
            settings: Redis settings.
            client: Pre-built client (tests); skips pool creation in connect().
        """
        self.settings = settings
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = client
        self._status = DependencyStatus.DOWN if settings.enabled else DependencyStatus.DISABLED
        self._last_error: str | None = None
        self._down_since = 0.0
        self._last_counters: dict[str, int] = {}

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def status(self) -> DependencyStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        """True when commands should be attempted.

        A Redis marked down is retried once REPROBE_INTERVAL has elapsed so the
        cache recovers without a restart.
        """
        if not self.enabled or self._client is None:
            return False
        if self._status == DependencyStatus.UP:
            return True
        return time.monotonic() - self._down_since >= REPROBE_INTERVAL

    def health(self) -> DependencyHealth:
        return DependencyHealth(
            enabled=self.enabled,
            status=self._status,
            last_error=self._last_error,
        )

    async def connect(self, *, strict: bool = False) -> None:
        """Establish the connection pool and verify it with PING.

        Args:
            strict: Re-raise connection failures instead of staying degraded.

        Raises:
            RuntimeError: If ``strict`` and REDIS_URL is not configured.
            RedisError: If ``strict`` and Redis cannot be reached.
        """
        if not self.enabled:
            self._status = DependencyStatus.DISABLED
            self._last_error = None
            return

        if self._client is None:
            if not self.settings.is_configured:
                self._status = DependencyStatus.DOWN
                self._last_error = "REDIS_URL is not set"
                logger.warning("Redis not connected", extra={"error": self._last_error})
                if strict:
                    raise RuntimeError(self._last_error)
                return

            logger.info(
                "Connecting to Redis",
                extra={
                    "max_connections": self.settings.max_connections,
                    "socket_timeout": self.settings.socket_timeout,
                },
            )
            self._pool = ConnectionPool.from_url(
                cast("str", self.settings.redis_url),
                **self.settings.connection_pool_kwargs(),
            )
            self._client = Redis(connection_pool=self._pool)

        self._status = DependencyStatus.CONNECTING
        try:
            await cast("Awaitable[bool]", self._client.ping())
        except (RedisError, OSError) as e:
            self._mark_down(str(e))
            logger.exception("Redis connection failed", extra={"error": str(e)})
            if strict:
                raise
            return

        self._status = DependencyStatus.UP
        self._last_error = None
        logger.info("Redis connection established successfully")

    async def disconnect(self) -> None:
        """Close the client and the pool."""
        if self._client is None:
            return

        logger.info("Disconnecting from Redis")
        try:
            await self._client.aclose()
            if self._pool is not None:
                await self._pool.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Redis disconnect error", extra={"error": str(e)})
        finally:
            self._client = None
            self._pool = None
            if self.enabled:
                self._status = DependencyStatus.DOWN
        logger.info("Redis connection closed")

    @property
    def client(self) -> Redis:
        """Get the Redis client instance.

        Raises:
            RuntimeError: If not connected.
        """
        if self._client is None:
            msg = "Redis client not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def _execute(self, operation: str, command: Callable[[Redis], Awaitable[Any]]) -> Any:
        client = self.client
        try:
            async with track_cache_operation(operation):
                result = await command(client)
        except (RedisError, OSError) as e:
            if self._status != DependencyStatus.DOWN:
                logger.warning(
                    "Redis command failed; marking Redis down",
                    extra={"operation": operation, "error": str(e)},
                )
            self._mark_down(str(e))
            if isinstance(e, RedisError):
                raise
            # Socket errors surface to callers as RedisError
            raise RedisConnectionError(str(e)) from e
        if self._status != DependencyStatus.UP:
            logger.info("Redis ready", extra={"operation": operation})
            self._status = DependencyStatus.UP
            self._last_error = None
        return result

    def _mark_down(self, error: str) -> None:
        self._status = DependencyStatus.DOWN
        self._last_error = error
        self._down_since = time.monotonic()

    async def get(self, key: str) -> str | None:
        return await self._execute("get", lambda c: c.get(key))

    async def get_json(self, key: str) -> Any | None:
        """Get and JSON-decode a value; missing keys return None."""
        raw = await self.get(key)
        if raw is None:
            return None
        return json.loads(raw)

    async def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """JSON-encode and store a value with an optional TTL in seconds."""
        payload = json.dumps(value, separators=(",", ":"), ensure_ascii=False)
        result = await self._execute("set", lambda c: c.set(key, payload, ex=ttl))
        return bool(result)

    async def set_if_absent(self, key: str, value: str, *, ttl_ms: int | None = None) -> bool:
        """Atomic ``SET key value [PX ttl_ms] NX``; True when the key was created."""
        result = await self._execute("set_nx", lambda c: c.set(key, value, px=ttl_ms, nx=True))
        return bool(result)

    async def compare_and_delete(self, key: str, token: str) -> bool:
        """Delete ``key`` only if it still holds ``token``."""
        result = await self._execute(
            "release_lock",
            lambda c: c.eval(RELEASE_LOCK_SCRIPT, 1, key, token),
        )
        return int(result or 0) == 1

    async def incr(self, key: str) -> int:
        return int(await self._execute("incr", lambda c: c.incr(key)))

    async def pttl(self, key: str) -> int:
        """Remaining TTL in milliseconds (-1 without expiry, -2 when missing)."""
        return int(await self._execute("pttl", lambda c: c.pttl(key)))

    async def eval(self, script: str, keys: list[str], args: list[Any]) -> Any:
        return await self._execute(
            "eval",
            lambda c: c.eval(script, len(keys), *keys, *args),
        )

    async def health_check(self) -> bool:
        """PING Redis; returns False instead of raising."""
        if self._client is None:
            return False
        try:
            await self._execute("ping", lambda c: c.ping())
        except RedisError:
            return False
        return True

    async def collect_stats(self, cache_name: str = "redis") -> dict[str, Any]:
        """Collect Redis INFO stats and update Prometheus metrics.

        Called periodically by the stats collector task.

        Returns:
            Dictionary with collected stats, empty when Redis is unavailable.
        """
        if not self.is_ready:
            return {}
        try:
            info = await self._execute("info", lambda c: c.info())
        except RedisError as e:
            logger.warning("Failed to collect Redis stats", extra={"error": str(e)})
            return {}

        used_memory = int(info.get("used_memory", 0))
        max_memory = int(info.get("maxmemory", 0))
        cache_memory_bytes.labels(cache_name=cache_name).set(used_memory)
        cache_memory_max_bytes.labels(cache_name=cache_name).set(max_memory)

        db_info = info.get("db0", {})
        keys = int(db_info.get("keys", 0)) if isinstance(db_info, dict) else 0
        cache_keys_total.labels(cache_name=cache_name).set(keys)

        connected_clients = int(info.get("connected_clients", 0))
        cache_connections_active.labels(cache_name=cache_name).set(connected_clients)

        stats = {
            "used_memory": used_memory,
            "max_memory": max_memory,
            "keys": keys,
            "connected_clients": connected_clients,
            "evicted_keys": int(info.get("evicted_keys", 0)),
            "expired_keys": int(info.get("expired_keys", 0)),
            "keyspace_hits": int(info.get("keyspace_hits", 0)),
            "keyspace_misses": int(info.get("keyspace_misses", 0)),
        }

        # Redis reports cumulative totals; counters advance by the delta
        for stat, counter in (
            ("evicted_keys", cache_evictions_total),
            ("expired_keys", cache_expired_keys_total),
            ("keyspace_hits", cache_keyspace_hits_total),
            ("keyspace_misses", cache_keyspace_misses_total),
        ):
            self._advance_counter(counter.labels(cache_name=cache_name), stat, stats[stat])

        logger.debug("Redis stats collected", extra=stats)
        return stats

    def _advance_counter(self, metric: Any, name: str, current_value: int) -> None:
        # First collection only records the baseline
        previous = self._last_counters.get(name, current_value)
        delta = max(0, current_value - previous)
        if delta > 0:
            metric.inc(delta)
        self._last_counters[name] = current_value
