"""Tests for the RedisCache wrapper status tracking."""

from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from catalog_service.core.settings import RedisSettings
from catalog_service.infra.cache import RedisCache
from catalog_service.infra.common.health import DependencyStatus


@pytest.mark.unit
class TestRedisCacheStatus:
    async def test_connect_marks_up(self, redis_cache):
        assert redis_cache.status == DependencyStatus.UP
        assert redis_cache.health().to_dict() == {
            "enabled": True,
            "status": "up",
            "lastError": None,
        }

    async def test_disabled(self):
        cache = RedisCache(RedisSettings(enabled=False))
        await cache.connect()

        assert cache.status == DependencyStatus.DISABLED
        assert not cache.is_ready
        assert cache.health().is_healthy

    async def test_missing_url_is_down(self):
        cache = RedisCache(RedisSettings(enabled=True, redis_url=None))
        await cache.connect()

        assert cache.status == DependencyStatus.DOWN
        assert cache.health().last_error == "REDIS_URL is not set"

    async def test_missing_url_strict_raises(self):
        cache = RedisCache(RedisSettings(enabled=True, redis_url=None))

        with pytest.raises(RuntimeError):
            await cache.connect(strict=True)

    async def test_failed_ping_is_down(self, fake_redis):
        fake_redis.fail = True
        cache = RedisCache(RedisSettings(enabled=True), client=fake_redis)

        await cache.connect()

        assert cache.status == DependencyStatus.DOWN
        assert not cache.health().is_healthy

    async def test_command_failure_then_recovery(self, redis_cache, fake_redis):
        fake_redis.fail = True
        assert not await redis_cache.health_check()
        assert redis_cache.status == DependencyStatus.DOWN

        fake_redis.fail = False
        assert await redis_cache.health_check()
        assert redis_cache.status == DependencyStatus.UP

    async def test_json_round_trip_and_lock_release(self, redis_cache):
        await redis_cache.set_json("k", {"a": [1, 2]}, ttl=10)
        assert await redis_cache.get_json("k") == {"a": [1, 2]}
        assert await redis_cache.get_json("missing") is None

        assert await redis_cache.set_if_absent("lock", "t1", ttl_ms=1000)
        assert not await redis_cache.set_if_absent("lock", "t2", ttl_ms=1000)
        assert not await redis_cache.compare_and_delete("lock", "t2")
        assert await redis_cache.compare_and_delete("lock", "t1")

    async def test_collect_stats(self, redis_cache):
        stats = await redis_cache.collect_stats()

        assert stats["used_memory"] == 1024
        assert stats["connected_clients"] == 1

    async def test_disconnect_closes_client(self, redis_cache, fake_redis):
        await redis_cache.disconnect()

        assert fake_redis.closed
        assert redis_cache.status == DependencyStatus.DOWN

    async def test_socket_error_is_raised_as_redis_error(self, redis_cache, fake_redis):
        fake_redis.fail = True
        fake_redis.error_type = ConnectionResetError

        with pytest.raises(RedisConnectionError):
            await redis_cache.get("k")

        assert redis_cache.status == DependencyStatus.DOWN
        assert redis_cache.health().last_error == "Connection refused"
