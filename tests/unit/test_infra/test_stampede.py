"""Tests for the stampede-protected read-through cache."""

from __future__ import annotations

import asyncio

import pytest

from catalog_service.core.settings import CacheSettings
from catalog_service.infra.cache import CacheStatus, StampedeProtectedCache

KEY = "products:list:v1:abc"


@pytest.fixture
def cache(redis_cache, cache_settings) -> StampedeProtectedCache:
    return StampedeProtectedCache(redis_cache, cache_settings)


@pytest.mark.unit
class TestReadThrough:
    async def test_miss_then_hit(self, cache, fake_redis):
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            return {"items": [1, 2]}

        first = await cache.with_cache(KEY, 30, compute)
        second = await cache.with_cache(KEY, 30, compute)

        assert first.status == CacheStatus.MISS
        assert second.status == CacheStatus.HIT
        assert second.value == {"items": [1, 2]}
        assert calls == 1
        assert await fake_redis.get(f"{KEY}:lock") is None

    async def test_value_is_stored_with_ttl(self, cache, fake_redis):
        async def compute():
            return {"ok": True}

        await cache.with_cache(KEY, 30, compute)

        ttl_ms = await fake_redis.pttl(KEY)
        assert 29_000 < ttl_ms <= 30_000

    async def test_none_key_bypasses(self, cache, fake_redis):
        async def compute():
            return 1

        result = await cache.with_cache(None, 30, compute)

        assert result.status == CacheStatus.BYPASS
        assert fake_redis.commands == ["ping"]

    async def test_disabled_cache_bypasses(self, redis_cache):
        cache = StampedeProtectedCache(redis_cache, CacheSettings(enabled=False))

        async def compute():
            return 1

        assert (await cache.with_cache(KEY, 30, compute)).status == CacheStatus.BYPASS


@pytest.mark.unit
class TestStampede:
    async def test_concurrent_misses_compute_once(self, cache):
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.05)
            return {"n": calls}

        results = await asyncio.gather(*(cache.with_cache(KEY, 30, compute) for _ in range(10)))

        assert calls == 1
        statuses = [r.status for r in results]
        assert statuses.count(CacheStatus.MISS) == 1
        assert statuses.count(CacheStatus.WAIT) == 9
        assert all(r.value == {"n": 1} for r in results)

    async def test_follower_computes_after_wait_budget(self, cache, fake_redis, cache_settings):
        # Another process holds the lock and never writes the value
        await fake_redis.set(f"{KEY}:lock", "someone-else", px=cache_settings.lock_ttl_ms)
        calls = 0

        async def compute():
            nonlocal calls
            calls += 1
            return "direct"

        loop = asyncio.get_running_loop()
        started = loop.time()
        result = await cache.with_cache(KEY, 30, compute)

        assert result.status == CacheStatus.BYPASS
        assert result.value == "direct"
        assert calls == 1
        assert loop.time() - started >= cache_settings.lock_wait_budget * 0.9
        assert await fake_redis.get(f"{KEY}:lock") == "someone-else"

    async def test_compute_error_propagates_and_releases_lock(self, cache, fake_redis):
        async def compute():
            raise ValueError("query failed")

        with pytest.raises(ValueError, match="query failed"):
            await cache.with_cache(KEY, 30, compute)

        assert await fake_redis.get(f"{KEY}:lock") is None
        assert await fake_redis.get(KEY) is None

    async def test_release_does_not_delete_a_foreign_lock(self, cache, fake_redis):
        async def compute():
            # Simulate lock expiry and takeover during compute
            await fake_redis.set(f"{KEY}:lock", "new-owner")
            return 1

        result = await cache.with_cache(KEY, 30, compute)

        assert result.status == CacheStatus.MISS
        assert await fake_redis.get(f"{KEY}:lock") == "new-owner"


@pytest.mark.unit
class TestRedisFailures:
    async def test_redis_error_degrades_to_bypass(self, cache, fake_redis):
        fake_redis.fail = True

        async def compute():
            return "fresh"

        result = await cache.with_cache(KEY, 30, compute)

        assert result.status == CacheStatus.BYPASS
        assert result.value == "fresh"

    async def test_redis_marked_down_skips_redis(self, cache, fake_redis, redis_cache):
        fake_redis.fail = True

        async def compute():
            return "fresh"

        await cache.with_cache(KEY, 30, compute)
        calls_after_failure = len(fake_redis.commands)
        result = await cache.with_cache(KEY, 30, compute)

        assert not redis_cache.is_ready
        assert result.status == CacheStatus.BYPASS
        assert len(fake_redis.commands) == calls_after_failure

    async def test_socket_error_degrades_to_bypass(self, cache, fake_redis, redis_cache):
        fake_redis.fail = True
        fake_redis.error_type = ConnectionResetError

        async def compute():
            return "fresh"

        result = await cache.with_cache(KEY, 30, compute)

        assert result.status == CacheStatus.BYPASS
        assert result.value == "fresh"
        assert not redis_cache.is_ready
