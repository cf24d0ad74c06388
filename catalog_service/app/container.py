"""Composition root for process-local components.

Every stateful component (connections, circuit breaker, in-flight map,
rate limiter, background tasks) is built here once per application and
stored on ``app.state.services``. Nothing in the codebase keeps these as
module-level singletons, so tests build isolated containers with fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import TYPE_CHECKING

import httpx

from catalog_service.features.products.service import ProductService
from catalog_service.infra.cache import CacheKeyVersioner, RedisCache, StampedeProtectedCache
from catalog_service.infra.database import Database
from catalog_service.infra.external import ExternalApiService
from catalog_service.infra.ratelimit import RateLimiter
from catalog_service.infra.resilience import CircuitBreaker, InFlightDeduplicator
from catalog_service.infra.tasks import PeriodicTask

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from sqlalchemy.ext.asyncio import AsyncEngine

    from catalog_service.core.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Holds the components one application instance owns."""

    settings: Settings
    redis: RedisCache
    database: Database
    versioner: CacheKeyVersioner
    cache: StampedeProtectedCache
    dedupe: InFlightDeduplicator
    breaker: CircuitBreaker
    external_a: ExternalApiService
    rate_limiter: RateLimiter
    products: ProductService
    http_client: httpx.AsyncClient
    stats_task: PeriodicTask | None = None
    owns_http_client: bool = True
    started_at: float = field(default_factory=time.time)

    @classmethod
    def build(
        cls,
        settings: Settings,
        *,
        redis_client: Redis | None = None,
        engine: AsyncEngine | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> ServiceContainer:
        """Wire every component from settings.

        Args:
            settings: Unified settings.
            redis_client: Pre-built Redis client (tests inject a fake).
            engine: Pre-built SQLAlchemy engine (tests inject SQLite).
            http_client: Pre-built HTTP client for the external API.
        """
        redis = RedisCache(settings.redis, client=redis_client)
        database = Database(settings.db, engine=engine)
        versioner = CacheKeyVersioner(redis, settings.cache)
        cache = StampedeProtectedCache(redis, settings.cache)
        dedupe = InFlightDeduplicator()

        breaker = CircuitBreaker(
            name="external_a",
            failure_threshold=settings.external_a.breaker_failure_threshold,
            cooldown=settings.external_a.breaker_cooldown,
        )
        owns_http_client = http_client is None
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=settings.external_a.timeout)
        external_a = ExternalApiService(settings.external_a, breaker, http_client)

        stats_task = None
        if settings.redis.enabled and settings.cache.stats_interval_seconds > 0:
            stats_task = PeriodicTask(
                "redis_stats",
                settings.cache.stats_interval_seconds,
                redis.collect_stats,
            )

        return cls(
            settings=settings,
            redis=redis,
            database=database,
            versioner=versioner,
            cache=cache,
            dedupe=dedupe,
            breaker=breaker,
            external_a=external_a,
            rate_limiter=RateLimiter(redis, settings.rate_limit),
            products=ProductService(
                database=database,
                versioner=versioner,
                cache=cache,
                dedupe=dedupe,
                cache_settings=settings.cache,
            ),
            http_client=http_client,
            stats_task=stats_task,
            owns_http_client=owns_http_client,
        )

    async def start(self) -> None:
        """Connect dependencies and start background tasks.

        Connection failures leave a dependency ``down`` unless
        ``APP_BOOTSTRAP_STRICT`` is set, in which case they propagate.
        """
        strict = self.settings.app.bootstrap_strict
        await self.database.connect(strict=strict)
        await self.redis.connect(strict=strict)
        if self.stats_task is not None:
            await self.stats_task.start()

        logger.info(
            "Services started",
            extra={
                "db": self.database.status.value,
                "redis": self.redis.status.value,
                "external_a_enabled": self.external_a.enabled,
                "rate_limit_enabled": self.rate_limiter.enabled,
            },
        )

    async def stop(self) -> None:
        """Stop background tasks and close connections in reverse order."""
        if self.stats_task is not None:
            await self.stats_task.stop()
        if self.owns_http_client:
            await self.http_client.aclose()
        await self.redis.disconnect()
        await self.database.disconnect()
        logger.info("Services stopped")

    def uptime_seconds(self) -> float:
        return time.time() - self.started_at
