"""Versioned cache keys with O(1) namespace invalidation.

Keys have the form ``{namespace}:v{version}:{sha1(params)}``. The version is a
shared integer counter in Redis; bumping it makes every previously issued key
unreachable without enumerating or deleting anything. Old entries are reclaimed
by their own TTL.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from redis.exceptions import RedisError

from catalog_service.infra.metrics.tracking import track_cache_version_bump
from catalog_service.utils.hashing import stable_hash

if TYPE_CHECKING:
    from catalog_service.core.settings.cache import CacheSettings
    from catalog_service.infra.cache.redis import RedisCache

logger = logging.getLogger(__name__)

PRODUCTS_CACHE_VERSION_KEY = "products:cache_version"


class CacheKeyVersioner:
    """Builds versioned cache keys and bumps the version counter.

    Example:
            versioner = CacheKeyVersioner(redis_cache, cache_settings)
        key = await versioner.cache_key("products:list", {"limit": 20})
        # "products:list:v3:5d41402abc4b2a76b9719d911017c592..."
        await versioner.bump_version()
    """

    def __init__(
        self,
        redis: RedisCache,
        settings: CacheSettings,
        version_key: str = PRODUCTS_CACHE_VERSION_KEY,
    ) -> None:
        self.redis = redis
        self.settings = settings
        self.version_key = version_key

    @property
    def available(self) -> bool:
        """Caching is on and Redis is usable."""
        return self.settings.enabled and self.redis.is_ready

    async def current_version(self) -> int:
        """Read the version, lazily initializing it to 1.

        The ``SET NX`` is a no-op when the counter already exists, so concurrent
        first readers all observe the same value.

        Raises:
            RedisError: If Redis fails.
        """
        await self.redis.set_if_absent(self.version_key, "1")
        raw = await self.redis.get(self.version_key)
        return int(raw) if raw is not None else 1

    async def cache_key(self, namespace: str, params: Any) -> str | None:
        """Return ``{namespace}:v{version}:{hash}`` or None when caching is unavailable."""
        if not self.available:
            return None
        try:
            version = await self.current_version()
        except RedisError as e:
            logger.warning(
                "Cache version unavailable; bypassing cache",
                extra={"namespace": namespace, "error": str(e)},
            )
            return None
        return f"{namespace}:v{version}:{stable_hash(params)}"

    async def bump_version(self) -> int:
        """Atomically increment the version and return the new value.

        Raises:
            RuntimeError: If caching is unavailable.
            RedisError: If Redis fails.
        """
        if not self.available:
            msg = "Cache is unavailable; cannot bump version"
            raise RuntimeError(msg)
        # Make sure the first bump moves 1 -> 2 rather than creating the key at 1
        await self.redis.set_if_absent(self.version_key, "1")
        version = await self.redis.incr(self.version_key)
        track_cache_version_bump()
        logger.info(
            "Cache version bumped",
            extra={"version_key": self.version_key, "version": version},
        )
        return version
