"""Cache management commands."""

from __future__ import annotations

import sys

import click
from redis.exceptions import RedisError

from catalog_service.cli.utils import coro, error, info, success
from catalog_service.core.settings import get_cache_settings, get_redis_settings
from catalog_service.infra.cache import CacheKeyVersioner, RedisCache


async def _connect() -> RedisCache:
    settings = get_redis_settings()
    if not settings.enabled:
        error("REDIS_ENABLED is false. Set REDIS_ENABLED=true and REDIS_URL to use this command.")
        sys.exit(1)
    redis = RedisCache(settings)
    try:
        await redis.connect(strict=True)
    except (RuntimeError, RedisError, OSError) as e:
        error(f"Redis connection failed: {e}")
        sys.exit(1)
    return redis


@click.group(name="cache")
def cache() -> None:
    """Cache management commands."""


@cache.command()
@coro
async def invalidate() -> None:
    """Bump the products cache version (O(1) invalidation)."""
    redis = await _connect()
    try:
        version = await CacheKeyVersioner(redis, get_cache_settings()).bump_version()
    except (RuntimeError, RedisError) as e:
        error(f"Invalidation failed: {e}")
        sys.exit(1)
    finally:
        await redis.disconnect()
    success(f"Products cache invalidated; version is now {version}")


@cache.command()
@coro
async def version() -> None:
    """Print the current products cache version."""
    redis = await _connect()
    try:
        current = await CacheKeyVersioner(redis, get_cache_settings()).current_version()
    except RedisError as e:
        error(f"Could not read cache version: {e}")
        sys.exit(1)
    finally:
        await redis.disconnect()
    info(f"Products cache version: {current}")
