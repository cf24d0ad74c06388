"""Repository for the products feature.

Listing uses keyset pagination: rows are ordered by ``(sort_column, id)`` and
a cursor resumes strictly after the last row of the previous page with

    (col OP :v) OR (col = :v AND id OP :id)

where OP is ``>`` for ascending and ``<`` for descending order. The same
composite index serves the ORDER BY and the seek, so every page costs the
same regardless of how deep the client has paged.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, asc, delete, desc, func, insert, or_, select

from catalog_service.core.models.product import SEARCH_CONFIG, Product, search_document
from catalog_service.core.pagination import Cursor, DateCursor, NumericCursor, TextCursor

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.orm import InstrumentedAttribute
    from sqlalchemy.sql.elements import ColumnElement

    from catalog_service.core.pagination import SortOrder

logger = logging.getLogger(__name__)

# Hard ceiling on rows fetched per page (max limit + 1 look-ahead row)
MAX_FETCH = 101
TOP_CATEGORIES = 50

SORT_COLUMNS: dict[str, tuple[InstrumentedAttribute[Any], type[Cursor]]] = {
    "createdAt": (Product.created_at, DateCursor),
    "price": (Product.price, NumericCursor),
    "name": (Product.name, TextCursor),
}


@dataclass(frozen=True)
class ProductFilters:
    """Optional predicates, all combined with AND."""

    q: str | None = None
    category: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    created_from: datetime | None = None
    created_to: datetime | None = None


@dataclass(frozen=True)
class ProductPage:
    items: list[Product]
    has_more: bool
    next_cursor: Cursor | None


@dataclass(frozen=True)
class ProductStats:
    total: int
    min_price: Decimal | None
    max_price: Decimal | None
    min_created_at: datetime | None
    max_created_at: datetime | None
    by_category: list[tuple[str, int]]


def cursor_type_for(sort_by: str) -> type[Cursor]:
    """Cursor variant carried by pages sorted on ``sort_by``."""
    return SORT_COLUMNS[sort_by][1]


def cursor_for_row(sort_by: str, row: Product) -> Cursor:
    """Build the cursor marking ``row`` as the last item of a page."""
    if sort_by == "createdAt":
        created_at = row.created_at
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=UTC)
        return DateCursor(value=created_at, id=row.id)
    if sort_by == "price":
        return NumericCursor(value=row.price, id=row.id)
    return TextCursor(value=row.name, id=row.id)


class ProductRepository:
    """Queries over the ``products`` table."""

    def _filter_clauses(
        self,
        session: AsyncSession,
        filters: ProductFilters,
    ) -> list[ColumnElement[bool]]:
        clauses: list[ColumnElement[bool]] = []

        if filters.q:
            if session.get_bind().dialect.name == "postgresql":
                clauses.append(
                    search_document().bool_op("@@")(func.plainto_tsquery(SEARCH_CONFIG, filters.q))
                )
            else:
                clauses.append(
                    or_(
                        Product.name.icontains(filters.q, autoescape=True),
                        Product.description.icontains(filters.q, autoescape=True),
                    )
                )
        if filters.category:
            clauses.append(Product.category == filters.category)
        if filters.min_price is not None:
            clauses.append(Product.price >= filters.min_price)
        if filters.max_price is not None:
            clauses.append(Product.price <= filters.max_price)
        if filters.created_from is not None:
            clauses.append(Product.created_at >= filters.created_from)
        if filters.created_to is not None:
            clauses.append(Product.created_at <= filters.created_to)
        return clauses

    async def list_page(
        self,
        session: AsyncSession,
        *,
        filters: ProductFilters,
        sort_by: str,
        sort_order: SortOrder,
        limit: int,
        cursor: Cursor | None = None,
    ) -> ProductPage:
        """Fetch one page of products strictly after ``cursor``.

        Args:
            session: Database session
            filters: Optional predicates
            sort_by: One of ``createdAt``, ``price``, ``name``
            sort_order: ``asc`` or ``desc``
            limit: Page size (1..100)
            cursor: Last row of the previous page, minted under the same sort

        Returns:
            Up to ``limit`` rows, whether more exist, and the cursor for the next page.
        """
        column, _ = SORT_COLUMNS[sort_by]
        clauses = self._filter_clauses(session, filters)

        if cursor is not None:
            if sort_order == "asc":
                seek = or_(
                    column > cursor.value,
                    and_(column == cursor.value, Product.id > cursor.id),
                )
            else:
                seek = or_(
                    column < cursor.value,
                    and_(column == cursor.value, Product.id < cursor.id),
                )
            clauses.append(seek)

        direction = asc if sort_order == "asc" else desc
        fetch = min(MAX_FETCH, max(1, limit + 1))
        stmt = (
            select(Product)
            .where(*clauses)
            .order_by(direction(column), direction(Product.id))
            .limit(fetch)
        )

        result = await session.execute(stmt)
        rows = list(result.scalars().all())

        items = rows[:limit]
        has_more = len(rows) > limit
        next_cursor = cursor_for_row(sort_by, items[-1]) if has_more and items else None

        logger.debug(
            "Fetched products page",
            extra={
                "sort_by": sort_by,
                "sort_order": sort_order,
                "limit": limit,
                "rows": len(items),
                "has_more": has_more,
            },
        )
        return ProductPage(items=items, has_more=has_more, next_cursor=next_cursor)

    async def stats(self, session: AsyncSession) -> ProductStats:
        """Aggregate totals and the largest categories."""
        totals_stmt = select(
            func.count(Product.id),
            func.min(Product.price),
            func.max(Product.price),
            func.min(Product.created_at),
            func.max(Product.created_at),
        )
        total, min_price, max_price, min_created, max_created = (
            await session.execute(totals_stmt)
        ).one()

        count = func.count(Product.id).label("count")
        by_category_stmt = (
            select(Product.category, count)
            .group_by(Product.category)
            .order_by(count.desc(), Product.category.asc())
            .limit(TOP_CATEGORIES)
        )
        by_category = [
            (category, int(n)) for category, n in await session.execute(by_category_stmt)
        ]

        return ProductStats(
            total=int(total or 0),
            min_price=min_price,
            max_price=max_price,
            min_created_at=min_created,
            max_created_at=max_created,
            by_category=by_category,
        )

    async def count(self, session: AsyncSession) -> int:
        result = await session.execute(select(func.count(Product.id)))
        return int(result.scalar_one())

    async def insert_many(self, session: AsyncSession, rows: Sequence[dict[str, Any]]) -> int:
        """Bulk insert product rows; returns the number of rows inserted."""
        if not rows:
            return 0
        await session.execute(insert(Product), list(rows))
        return len(rows)

    async def delete_all(self, session: AsyncSession) -> int:
        result = await session.execute(delete(Product))
        return int(result.rowcount or 0)


def get_product_repository() -> ProductRepository:
    return ProductRepository()
