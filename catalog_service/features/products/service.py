"""Service layer for the products feature.

Each read goes through the same pipeline:

    params -> stable hash + cache version -> in-flight dedupe -> cache-with-lock -> query

so concurrent identical requests in this process share one computation, and
concurrent misses across processes recompute at most once per key.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
import logging
from typing import TYPE_CHECKING, Any

from catalog_service.core.exceptions import BadRequestException, ServiceUnavailableException
from catalog_service.core.pagination import CursorCodec
from catalog_service.features.products.repository import (
    ProductFilters,
    ProductRepository,
    cursor_type_for,
)
from catalog_service.features.products.schemas import (
    CategoryCount,
    PageInfo,
    ProductItem,
    ProductListResponse,
    ProductStatsResponse,
    ProductTotals,
)
from catalog_service.infra.cache.stampede import CacheStatus
from catalog_service.utils.hashing import canonical_datetime, stable_hash

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import datetime

    from catalog_service.core.models.product import Product
    from catalog_service.core.pagination import Cursor
    from catalog_service.core.settings.cache import CacheSettings
    from catalog_service.features.products.schemas import ProductListQuery
    from catalog_service.infra.cache.stampede import StampedeProtectedCache
    from catalog_service.infra.cache.versioning import CacheKeyVersioner
    from catalog_service.infra.database.session import Database
    from catalog_service.infra.resilience.dedupe import InFlightDeduplicator

logger = logging.getLogger(__name__)

LIST_NAMESPACE = "products:list"
STATS_NAMESPACE = "products:stats"
# Stats are global: one key per cache version
STATS_KEY_PARAMS = {"v": 1}

_CENTS = Decimal("0.01")


@dataclass(frozen=True)
class ServedResult:
    """Response body plus the metadata surfaced as headers."""

    body: dict[str, Any]
    cache_status: CacheStatus
    deduped: bool

    def headers(self) -> dict[str, str]:
        return {
            "x-cache": self.cache_status.value,
            "x-dedupe": "HIT" if self.deduped else "MISS",
        }


def format_price(value: Decimal | float | None) -> str | None:
    if value is None:
        return None
    return format(Decimal(str(value)).quantize(_CENTS), "f")


def format_timestamp(value: datetime | None) -> str | None:
    return canonical_datetime(value) if value is not None else None


def product_to_item(product: Product) -> ProductItem:
    return ProductItem(
        id=product.id,
        name=product.name,
        description=product.description,
        price=format_price(product.price) or "0.00",
        category=product.category,
        created_at=canonical_datetime(product.created_at),
    )


class ProductService:
    """Cached, deduplicated product reads."""

    def __init__(
        self,
        *,
        database: Database,
        versioner: CacheKeyVersioner,
        cache: StampedeProtectedCache,
        dedupe: InFlightDeduplicator,
        cache_settings: CacheSettings,
        repository: ProductRepository | None = None,
    ) -> None:
        self.database = database
        self.versioner = versioner
        self.cache = cache
        self.dedupe = dedupe
        self.cache_settings = cache_settings
        self.repository = repository or ProductRepository()

    def _require_database(self) -> None:
        if not self.database.enabled:
            raise ServiceUnavailableException("Database is disabled (DB_ENABLED=false).")
        if not self.database.is_ready:
            raise ServiceUnavailableException(
                "Database is not connected",
                extra={"status": self.database.status.value},
            )

    def _decode_cursor(self, query: ProductListQuery) -> Cursor | None:
        if query.cursor is None:
            return None
        return CursorCodec.decode(
            query.cursor,
            sort_by=query.sort_by,
            sort_order=query.sort_order,
            cursor_type=cursor_type_for(query.sort_by),
        )

    @staticmethod
    def _validate_ranges(query: ProductListQuery) -> None:
        if (
            query.min_price is not None
            and query.max_price is not None
            and query.min_price > query.max_price
        ):
            raise BadRequestException(
                "minPrice cannot be greater than maxPrice",
                type="invalid-price-range",
            )
        if (
            query.created_from is not None
            and query.created_to is not None
            and query.created_from > query.created_to
        ):
            raise BadRequestException(
                "createdFrom cannot be after createdTo",
                type="invalid-date-range",
            )

    async def list_products(self, query: ProductListQuery) -> ServedResult:
        """Serve one page of products.

        Raises:
            ServiceUnavailableException: If the database is disabled or not connected.
            BadRequestException: If a range is inverted or the cursor is invalid.
        """
        self._require_database()
        self._validate_ranges(query)
        cursor = self._decode_cursor(query)

        key_params = {
            "limit": query.limit,
            "sortBy": query.sort_by,
            "sortOrder": query.sort_order,
            "q": query.q,
            "category": query.category,
            "minPrice": query.min_price,
            "maxPrice": query.max_price,
            "createdFrom": query.created_from,
            "createdTo": query.created_to,
            "cursor": query.cursor,
        }
        filters = ProductFilters(
            q=query.q,
            category=query.category,
            min_price=query.min_price,
            max_price=query.max_price,
            created_from=query.created_from,
            created_to=query.created_to,
        )

        async def compute() -> dict[str, Any]:
            async with self.database.session() as session:
                page = await self.repository.list_page(
                    session,
                    filters=filters,
                    sort_by=query.sort_by,
                    sort_order=query.sort_order,
                    limit=query.limit,
                    cursor=cursor,
                )
            next_cursor = (
                CursorCodec.encode(query.sort_by, query.sort_order, page.next_cursor)
                if page.next_cursor is not None
                else None
            )
            response = ProductListResponse(
                items=[product_to_item(p) for p in page.items],
                page_info=PageInfo(
                    limit=query.limit,
                    has_more=page.has_more,
                    next_cursor=next_cursor,
                ),
            )
            return response.model_dump(mode="json", by_alias=True)

        return await self._serve(
            namespace=LIST_NAMESPACE,
            key_params=key_params,
            ttl_seconds=self.cache_settings.products_list_ttl_seconds,
            compute=compute,
        )

    async def get_stats(self) -> ServedResult:
        """Serve catalog-wide aggregates.

        Raises:
            ServiceUnavailableException: If the database is disabled or not connected.
        """
        self._require_database()

        async def compute() -> dict[str, Any]:
            async with self.database.session() as session:
                stats = await self.repository.stats(session)
            response = ProductStatsResponse(
                totals=ProductTotals(
                    total=stats.total,
                    min_price=format_price(stats.min_price),
                    max_price=format_price(stats.max_price),
                    min_created_at=format_timestamp(stats.min_created_at),
                    max_created_at=format_timestamp(stats.max_created_at),
                ),
                by_category=[
                    CategoryCount(category=category, count=count)
                    for category, count in stats.by_category
                ],
            )
            return response.model_dump(mode="json", by_alias=True)

        return await self._serve(
            namespace=STATS_NAMESPACE,
            key_params=STATS_KEY_PARAMS,
            ttl_seconds=self.cache_settings.products_stats_ttl_seconds,
            compute=compute,
        )

    async def _serve(
        self,
        *,
        namespace: str,
        key_params: dict[str, Any],
        ttl_seconds: int,
        compute: Callable[[], Awaitable[dict[str, Any]]],
    ) -> ServedResult:
        cache_key = await self.versioner.cache_key(namespace, key_params)
        dedupe_key = cache_key or f"{namespace}:bypass:{stable_hash(key_params)}"

        shared = await self.dedupe.dedupe(
            dedupe_key,
            lambda: self.cache.with_cache(cache_key, ttl_seconds, compute),
            namespace=namespace,
        )
        result = shared.value
        logger.debug(
            "Served products read",
            extra={
                "namespace": namespace,
                "cache_status": result.status.value,
                "deduped": shared.was_deduped,
            },
        )
        return ServedResult(body=result.value, cache_status=result.status, deduped=shared.was_deduped)
