"""Pytest configuration and shared fixtures.

Organization:
    - FakeRedis: in-memory stand-in for ``redis.asyncio.Redis``
    - Settings Fixtures: settings factory with infrastructure switched on
    - Database Fixtures: SQLite engine and a connected Database
    - Application Fixtures: service container, FastAPI app and HTTP client

Nothing here needs a running Redis, PostgreSQL or external API.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
import os
import time
from typing import Any

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure tests run without external infrastructure
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("REDIS_ENABLED", "false")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("EXTERNAL_A_ENABLED", "false")
os.environ.setdefault("LOG_JSON_LOGS", "false")

from catalog_service.app.container import ServiceContainer  # noqa: E402
from catalog_service.app.main import create_app  # noqa: E402
from catalog_service.core.settings import (  # noqa: E402
    AppSettings,
    CacheSettings,
    DatabaseSettings,
    ExternalApiSettings,
    LoggingSettings,
    RateLimitSettings,
    RedisSettings,
    Settings,
)
from catalog_service.infra.cache.redis import RELEASE_LOCK_SCRIPT, RedisCache  # noqa: E402
from catalog_service.infra.database import Database  # noqa: E402
from catalog_service.infra.ratelimit import RATE_LIMIT_SCRIPT  # noqa: E402

EXTERNAL_URL = "https://external.test/sync"


# ============================================================================
# FakeRedis
# ============================================================================


class FakeRedis:
    """The subset of ``redis.asyncio.Redis`` the service uses.

    Values are stored as strings with an optional monotonic expiry. The two
    Lua scripts the service runs are recognised by their text and emulated.
    Setting ``fail`` makes every command raise ``error_type``, a redis
    ``ConnectionError`` unless a test swaps in a socket-level ``OSError``.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[str, float | None]] = {}
        self.fail = False
        self.error_type: type[Exception] = RedisConnectionError
        self.commands: list[str] = []
        self.closed = False

    def _check(self, command: str) -> None:
        self.commands.append(command)
        if self.fail:
            msg = "Connection refused"
            raise self.error_type(msg)

    def _live(self, key: str) -> tuple[str, float | None] | None:
        entry = self._data.get(key)
        if entry is None:
            return None
        _, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._data[key]
            return None
        return entry

    def keys_matching(self, prefix: str) -> list[str]:
        return [key for key in list(self._data) if key.startswith(prefix) and self._live(key)]

    async def get(self, key: str) -> str | None:
        self._check("get")
        entry = self._live(key)
        return entry[0] if entry else None

    async def set(
        self,
        key: str,
        value: Any,
        ex: int | None = None,
        px: int | None = None,
        nx: bool = False,
    ) -> bool | None:
        self._check("set")
        if nx and self._live(key) is not None:
            return None
        expires_at = None
        if ex is not None:
            expires_at = time.monotonic() + ex
        elif px is not None:
            expires_at = time.monotonic() + px / 1000
        self._data[key] = (str(value), expires_at)
        return True

    async def incr(self, key: str) -> int:
        self._check("incr")
        entry = self._live(key)
        value = int(entry[0]) + 1 if entry else 1
        self._data[key] = (str(value), entry[1] if entry else None)
        return value

    async def pttl(self, key: str) -> int:
        self._check("pttl")
        entry = self._live(key)
        if entry is None:
            return -2
        if entry[1] is None:
            return -1
        return int((entry[1] - time.monotonic()) * 1000)

    async def delete(self, *keys: str) -> int:
        self._check("delete")
        return sum(1 for key in keys if self._data.pop(key, None) is not None)

    async def eval(self, script: str, numkeys: int, *keys_and_args: Any) -> Any:
        self._check("eval")
        keys = list(keys_and_args[:numkeys])
        args = list(keys_and_args[numkeys:])
        if script == RELEASE_LOCK_SCRIPT:
            entry = self._live(keys[0])
            if entry is not None and entry[0] == str(args[0]):
                del self._data[keys[0]]
                return 1
            return 0
        if script == RATE_LIMIT_SCRIPT:
            entry = self._live(keys[0])
            count = int(entry[0]) + 1 if entry else 1
            expires_at = entry[1] if entry else None
            if count == 1:
                expires_at = time.monotonic() + int(args[0])
            self._data[keys[0]] = (str(count), expires_at)
            ttl = int(expires_at - time.monotonic()) if expires_at is not None else -1
            return [count, ttl]
        msg = f"Unsupported script: {script[:40]!r}"
        raise NotImplementedError(msg)

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def info(self) -> dict[str, Any]:
        self._check("info")
        return {
            "used_memory": 1024,
            "maxmemory": 0,
            "connected_clients": 1,
            "db0": {"keys": len(self._data), "expires": 0},
            "evicted_keys": 0,
            "expired_keys": 0,
            "keyspace_hits": 0,
            "keyspace_misses": 0,
        }

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
async def redis_cache(fake_redis: FakeRedis) -> RedisCache:
    """A connected RedisCache backed by FakeRedis."""
    cache = RedisCache(RedisSettings(enabled=True), client=fake_redis)  # type: ignore[arg-type]
    await cache.connect()
    return cache


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def cache_settings() -> CacheSettings:
    """Cache settings with short polls so follower tests run fast."""
    return CacheSettings(
        enabled=True,
        lock_ttl_ms=1000,
        poll_initial_delay=0.01,
        poll_max_delay=0.05,
        poll_max_wait=0.5,
        stats_interval_seconds=0,
    )


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for Settings with DB and Redis enabled and fast timings.

    Example:
        settings = make_settings(rate_limit=RateLimitSettings(enabled=True, max_requests=2))
    """

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "app": AppSettings(environment="test"),
            "db": DatabaseSettings(enabled=True, connect_retries=0),
            "redis": RedisSettings(enabled=True),
            "cache": CacheSettings(
                enabled=True,
                lock_ttl_ms=1000,
                poll_initial_delay=0.01,
                poll_max_delay=0.05,
                poll_max_wait=0.5,
                stats_interval_seconds=0,
            ),
            "external_a": ExternalApiSettings(
                enabled=True,
                url=EXTERNAL_URL,
                retries=1,
                retry_base_delay=0.0,
                retry_max_delay=0.0,
                breaker_failure_threshold=2,
                breaker_cooldown=60.0,
            ),
            "rate_limit": RateLimitSettings(enabled=False),
            "logging": LoggingSettings(json_logs=False, level="WARNING"),
        }
        values.update(overrides)
        return Settings(**values)

    return _make


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """In-memory SQLite engine shared by every connection of one test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def database(engine: AsyncEngine) -> Database:
    """A connected Database with the products schema created."""
    db = Database(DatabaseSettings(enabled=True, connect_retries=0), engine=engine)
    await db.connect(strict=True)
    return db


def product_rows(count: int, *, start: datetime | None = None) -> list[dict[str, Any]]:
    """Deterministic product rows: prices cycle so ties on price exist."""
    start = start or datetime(2024, 1, 1, tzinfo=UTC)
    categories = ("books", "games", "tools")
    return [
        {
            "name": f"Product {i:03d}",
            "description": f"Description of product {i}",
            "price": Decimal(10 + (i % 5)) + Decimal("0.99"),
            "category": categories[i % len(categories)],
            "created_at": start + timedelta(hours=i),
        }
        for i in range(count)
    ]


@pytest.fixture
def make_rows() -> Callable[..., list[dict[str, Any]]]:
    return product_rows


# ============================================================================
# Application Fixtures
# ============================================================================


def external_ok_handler(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json={"items": [1, 2, 3]})


@pytest.fixture
def external_handler() -> Callable[[httpx.Request], httpx.Response]:
    """Handler used by the mock transport of the external API client."""
    return external_ok_handler


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    return make_settings()


@pytest.fixture
async def services(
    settings: Settings,
    fake_redis: FakeRedis,
    engine: AsyncEngine,
    external_handler: Callable[[httpx.Request], httpx.Response],
) -> AsyncGenerator[ServiceContainer]:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(external_handler))
    container = ServiceContainer.build(
        settings,
        redis_client=fake_redis,  # type: ignore[arg-type]
        engine=engine,
        http_client=http_client,
    )
    yield container
    await http_client.aclose()


@pytest.fixture
async def app(settings: Settings, services: ServiceContainer) -> AsyncGenerator[Any]:
    """FastAPI app with its lifespan running against the fake container."""
    application = create_app(settings, services)
    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app: Any) -> AsyncGenerator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def seeded(services: ServiceContainer, app: Any) -> ServiceContainer:
    """Container whose database holds 12 products."""
    async with services.database.session() as session:
        await services.products.repository.insert_many(session, product_rows(12))
        await session.commit()
    return services
