"""Read-through cache with stampede protection.

At most one request per key recomputes a missing value. The winner takes a
short-lived Redis lock (``SET key:lock token PX ttl NX``), computes, stores the
result and releases the lock with a compare-and-delete so it can never remove a
lock that expired and was re-acquired by someone else. Followers poll the cache
with exponential backoff for a bounded time and then compute on their own, so
a slow or crashed winner costs them latency, never availability.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import StrEnum
import logging
import time
from typing import TYPE_CHECKING, Any, Generic, TypeVar
from uuid import uuid4

from redis.exceptions import RedisError

from catalog_service.infra.metrics.tracking import track_cache_lock_wait, track_cache_result

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from catalog_service.core.settings.cache import CacheSettings
    from catalog_service.infra.cache.redis import RedisCache

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheStatus(StrEnum):
    """How a value was obtained; surfaced as the ``x-cache`` response header."""

    HIT = "HIT"
    MISS = "MISS"
    WAIT = "WAIT"
    BYPASS = "BYPASS"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    value: T
    status: CacheStatus


def _namespace(key: str) -> str:
    # "products:list:v3:<hash>" -> "products:list"
    return key.split(":v", 1)[0]


class StampedeProtectedCache:
    """Read-through JSON cache guarded by a per-key rebuild lock.

    Redis failures never surface to callers: any ``RedisError`` degrades the
    lookup to ``BYPASS`` and the value is computed directly. Errors raised by
    ``compute`` propagate unchanged and are never cached.

    Example:
            cache = StampedeProtectedCache(redis_cache, cache_settings)
        result = await cache.with_cache(key, 30, lambda: repository.list_page(query))
        response.headers["x-cache"] = result.status
    """

    def __init__(self, redis: RedisCache, settings: CacheSettings) -> None:
        self.redis = redis
        self.settings = settings

    @property
    def available(self) -> bool:
        return self.settings.enabled and self.redis.is_ready

    async def with_cache(
        self,
        key: str | None,
        ttl_seconds: int,
        compute: Callable[[], Awaitable[T]],
    ) -> CacheResult[T]:
        """Return the cached value for ``key`` or compute and store it.

        Args:
            key: Cache key; None (caching unavailable) computes directly.
            ttl_seconds: TTL of the stored value.
            compute: Zero-argument coroutine factory producing a JSON-serializable value.

        Returns:
            The value and how it was obtained (HIT, MISS, WAIT or BYPASS).
        """
        if key is None or not self.available:
            return await self._bypass(key, compute)

        namespace = _namespace(key)
        try:
            cached = await self.redis.get_json(key)
        except RedisError as e:
            logger.warning("Cache read failed; bypassing", extra={"key": key, "error": str(e)})
            return await self._bypass(key, compute)
        if cached is not None:
            track_cache_result(namespace, CacheStatus.HIT)
            return CacheResult(cached, CacheStatus.HIT)

        lock_key = f"{key}:lock"
        token = uuid4().hex
        try:
            acquired = await self.redis.set_if_absent(
                lock_key,
                token,
                ttl_ms=self.settings.lock_ttl_ms,
            )
        except RedisError as e:
            logger.warning("Cache lock failed; bypassing", extra={"key": key, "error": str(e)})
            return await self._bypass(key, compute)

        if acquired:
            try:
                value = await compute()
                await self._store(key, value, ttl_seconds)
            finally:
                await self._release(lock_key, token)
            track_cache_result(namespace, CacheStatus.MISS)
            return CacheResult(value, CacheStatus.MISS)

        waited = await self._wait_for_value(key)
        if waited is not None:
            track_cache_result(namespace, CacheStatus.WAIT)
            return CacheResult(waited, CacheStatus.WAIT)

        logger.info(
            "Cache lock wait budget exhausted; computing directly",
            extra={"key": key, "budget_seconds": self.settings.lock_wait_budget},
        )
        return await self._bypass(key, compute)

    async def _bypass(self, key: str | None, compute: Callable[[], Awaitable[T]]) -> CacheResult[T]:
        value = await compute()
        track_cache_result(_namespace(key) if key else "none", CacheStatus.BYPASS)
        return CacheResult(value, CacheStatus.BYPASS)

    async def _store(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            await self.redis.set_json(key, value, ttl=ttl_seconds)
        except RedisError as e:
            logger.warning("Cache write failed", extra={"key": key, "error": str(e)})

    async def _release(self, lock_key: str, token: str) -> None:
        try:
            released = await self.redis.compare_and_delete(lock_key, token)
        except RedisError as e:
            logger.warning(
                "Cache lock release failed",
                extra={"lock_key": lock_key, "error": str(e)},
            )
            return
        if not released:
            # The lock expired during compute and may now belong to another request
            logger.warning(
                "Cache lock expired before release",
                extra={"lock_key": lock_key, "lock_ttl_ms": self.settings.lock_ttl_ms},
            )

    async def _wait_for_value(self, key: str) -> Any | None:
        """Poll ``key`` with doubling delays until a value appears or the budget runs out."""
        budget = self.settings.lock_wait_budget
        delay = self.settings.poll_initial_delay
        start = time.monotonic()
        try:
            while time.monotonic() - start < budget:
                await asyncio.sleep(delay)
                cached = await self.redis.get_json(key)
                if cached is not None:
                    return cached
                delay = min(self.settings.poll_max_delay, delay * 2)
        except RedisError as e:
            logger.warning("Cache poll failed", extra={"key": key, "error": str(e)})
            return None
        finally:
            track_cache_lock_wait(_namespace(key), time.monotonic() - start)
        return None
