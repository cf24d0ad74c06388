"""Async database engine and session management with availability tracking."""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
import time
from typing import TYPE_CHECKING, Any, cast

from opentelemetry import trace
from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from catalog_service.infra.common.health import DependencyHealth, DependencyStatus
from catalog_service.infra.database.base import Base
from catalog_service.infra.metrics.prometheus import database_query_duration_seconds
from catalog_service.utils.retry import with_retry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from catalog_service.core.settings.database import DatabaseSettings

logger = logging.getLogger(__name__)

_OPERATIONS = ("SELECT", "INSERT", "UPDATE", "DELETE", "BEGIN", "COMMIT", "ROLLBACK", "CREATE")


def _before_cursor_execute(
    conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
) -> None:
    """Record query start time before execution."""
    _ = conn, cursor, statement, parameters, executemany
    context._query_start_time = time.perf_counter()


def _after_cursor_execute(
    conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
) -> None:
    """Record query duration and link to current trace via exemplar."""
    _ = conn, cursor, parameters, executemany
    start = getattr(context, "_query_start_time", None)
    if start is None:
        return
    duration = time.perf_counter() - start

    # e.g., "SELECT * FROM..." -> "SELECT"
    operation = "UNKNOWN"
    words = statement.split(None, 1) if statement else []
    if words and words[0].upper() in _OPERATIONS:
        operation = words[0].upper()

    span = trace.get_current_span()
    span_context = span.get_span_context()
    histogram = database_query_duration_seconds.labels(operation=operation)
    if span_context.is_valid:
        histogram.observe(duration, exemplar={"trace_id": format(span_context.trace_id, "032x")})
    else:
        histogram.observe(duration)


def instrument_engine(engine: AsyncEngine) -> None:
    """Attach query timing listeners to an async engine."""
    event.listen(engine.sync_engine, "before_cursor_execute", _before_cursor_execute)
    event.listen(engine.sync_engine, "after_cursor_execute", _after_cursor_execute)


class Database:
    """Owns the async engine and session factory for the products store.

    The status follows the same lifecycle as the Redis client: ``disabled``
    when DB_ENABLED is false, ``connecting`` during bootstrap, then ``up`` or
    ``down``. Startup connects with bounded retry; a failure leaves the
    service running in degraded mode unless ``strict`` is requested.

    Example:
            database = Database(get_db_settings())
        await database.connect()
        async with database.session() as session:
            rows = (await session.execute(select(Product))).scalars().all()
        await database.disconnect()
    """

    def __init__(self, settings: DatabaseSettings, engine: AsyncEngine | None = None) -> None:
        """Initialize the database wrapper.

        Args:
            settings: Database settings.
            engine: Pre-built engine (tests); skips engine creation in connect().
        """
        self.settings = settings
        self._engine: AsyncEngine | None = engine
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None
        if engine is not None:
            self._sessionmaker = self._build_sessionmaker(engine)
        self._status = DependencyStatus.DOWN if settings.enabled else DependencyStatus.DISABLED
        self._last_error: str | None = None

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    @property
    def status(self) -> DependencyStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        return self.enabled and self._status == DependencyStatus.UP

    @property
    def engine(self) -> AsyncEngine:
        """Get the engine.

        Raises:
            RuntimeError: If not connected.
        """
        if self._engine is None:
            msg = "Database engine not initialized. Call connect() first."
            raise RuntimeError(msg)
        return self._engine

    def health(self) -> DependencyHealth:
        return DependencyHealth(
            enabled=self.enabled,
            status=self._status,
            last_error=self._last_error,
        )

    @staticmethod
    def _build_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
        return async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def connect(self, *, strict: bool = False) -> None:
        """Create the engine, verify connectivity and optionally create the schema.

        Args:
            strict: Re-raise failures instead of staying degraded.

        Raises:
            RuntimeError: If ``strict`` and DATABASE_URL is not configured.
            SQLAlchemyError: If ``strict`` and the database cannot be reached.
        """
        if not self.enabled:
            self._status = DependencyStatus.DISABLED
            self._last_error = None
            return

        if self._engine is None:
            if not self.settings.is_configured:
                self._status = DependencyStatus.DOWN
                self._last_error = "DATABASE_URL is not set"
                logger.warning("Database not connected", extra={"error": self._last_error})
                if strict:
                    raise RuntimeError(self._last_error)
                return

            self._engine = create_async_engine(
                cast("str", self.settings.database_url),
                **self.settings.engine_kwargs(),
            )
            instrument_engine(self._engine)
            self._sessionmaker = self._build_sessionmaker(self._engine)

        self._status = DependencyStatus.CONNECTING
        logger.info(
            "Initializing database connection with retry",
            extra={
                "retries": self.settings.connect_retries,
                "base_delay": self.settings.connect_retry_base_delay,
            },
        )
        try:
            await with_retry(
                self._ping,
                retries=self.settings.connect_retries,
                base_delay=self.settings.connect_retry_base_delay,
                max_delay=self.settings.connect_retry_max_delay,
                name="database_connect",
            )
            if self.settings.create_schema:
                await self.create_schema()
        except (SQLAlchemyError, OSError) as e:
            self._status = DependencyStatus.DOWN
            self._last_error = str(e)
            logger.exception("Failed to connect to database", extra={"error": str(e)})
            if strict:
                raise
            return

        self._status = DependencyStatus.UP
        self._last_error = None
        logger.info(
            "Database connection established successfully",
            extra={"dialect": self.engine.dialect.name},
        )

    async def _ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def create_schema(self) -> None:
        """Create the products table and its indexes if they do not exist."""
        # Register models on the metadata
        from catalog_service.core.models.product import Product  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, checkfirst=True))
        logger.info("Product schema ensured")

    async def drop_schema(self) -> None:
        from catalog_service.core.models.product import Product  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Get async database session.

        Raises:
            RuntimeError: If not connected.
        """
        if self._sessionmaker is None:
            msg = "Database session factory not initialized. Call connect() first."
            raise RuntimeError(msg)
        async with self._sessionmaker() as session:
            yield session

    async def disconnect(self) -> None:
        """Dispose the engine and its pool.

        This should be called during application shutdown.
        """
        if self._engine is None:
            return
        logger.info("Closing database connection")
        try:
            await self._engine.dispose()
        except (SQLAlchemyError, OSError) as e:
            logger.warning("Error closing database connection", extra={"error": str(e)})
        finally:
            self._engine = None
            self._sessionmaker = None
            if self.enabled:
                self._status = DependencyStatus.DOWN
        logger.info("Database connection closed")
