"""Keyset pagination and aggregates against a real SQL engine (SQLite)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from catalog_service.core.pagination import NumericCursor
from catalog_service.features.products.repository import (
    MAX_FETCH,
    ProductFilters,
    ProductRepository,
)


@pytest.fixture
def repository() -> ProductRepository:
    return ProductRepository()


async def insert(database, rows):
    async with database.session() as session:
        await ProductRepository().insert_many(session, rows)
        await session.commit()


def row(name: str, price: str, *, hours: int = 0, category: str = "books", description=None):
    return {
        "name": name,
        "description": description,
        "price": Decimal(price),
        "category": category,
        "created_at": datetime(2024, 1, 1, tzinfo=UTC) + timedelta(hours=hours),
    }


async def walk(database, repository, *, sort_by, sort_order, limit, filters=None):
    """Follow cursors until the last page; returns ids in page order."""
    ids: list[int] = []
    cursor = None
    pages = 0
    while True:
        async with database.session() as session:
            page = await repository.list_page(
                session,
                filters=filters or ProductFilters(),
                sort_by=sort_by,
                sort_order=sort_order,
                limit=limit,
                cursor=cursor,
            )
        pages += 1
        ids.extend(p.id for p in page.items)
        if not page.has_more:
            assert page.next_cursor is None
            return ids, pages
        cursor = page.next_cursor


@pytest.mark.integration
class TestKeysetPagination:
    async def test_price_ascending_with_ties(self, database, repository):
        await insert(
            database,
            [row("A", "10.00"), row("B", "10.00"), row("C", "12.50"), row("D", "9.99")],
        )

        async with database.session() as session:
            first = await repository.list_page(
                session, filters=ProductFilters(), sort_by="price", sort_order="asc", limit=2,
            )
        assert [p.name for p in first.items] == ["D", "A"]
        assert first.has_more
        assert first.next_cursor == NumericCursor(Decimal("10.00"), first.items[-1].id)

        async with database.session() as session:
            second = await repository.list_page(
                session,
                filters=ProductFilters(),
                sort_by="price",
                sort_order="asc",
                limit=2,
                cursor=first.next_cursor,
            )
        assert [p.name for p in second.items] == ["B", "C"]
        assert not second.has_more
        assert second.next_cursor is None

    @pytest.mark.parametrize("sort_by", ["createdAt", "price", "name"])
    @pytest.mark.parametrize("sort_order", ["asc", "desc"])
    async def test_walk_visits_every_row_once(self, database, repository, make_rows, sort_by, sort_order):
        await insert(database, make_rows(23))

        ids, pages = await walk(
            database, repository, sort_by=sort_by, sort_order=sort_order, limit=5,
        )

        assert len(ids) == 23
        assert len(set(ids)) == 23
        assert pages == 5

    async def test_walk_order_matches_full_sort(self, database, repository, make_rows):
        await insert(database, make_rows(17))

        ids, _ = await walk(database, repository, sort_by="price", sort_order="desc", limit=4)
        async with database.session() as session:
            everything = await repository.list_page(
                session, filters=ProductFilters(), sort_by="price", sort_order="desc", limit=100,
            )

        assert ids == [p.id for p in everything.items]
        prices = [p.price for p in everything.items]
        assert prices == sorted(prices, reverse=True)

    async def test_exact_multiple_has_no_empty_trailing_page(self, database, repository, make_rows):
        await insert(database, make_rows(10))

        _, pages = await walk(database, repository, sort_by="createdAt", sort_order="desc", limit=5)

        assert pages == 2

    async def test_empty_table(self, database, repository):
        async with database.session() as session:
            page = await repository.list_page(
                session, filters=ProductFilters(), sort_by="name", sort_order="asc", limit=20,
            )

        assert page.items == []
        assert not page.has_more
        assert page.next_cursor is None

    def test_fetch_ceiling(self):
        assert MAX_FETCH == 101


@pytest.mark.integration
class TestFilters:
    async def test_filters_are_combined(self, database, repository):
        await insert(
            database,
            [
                row("Red lamp", "15.00", hours=1, category="home"),
                row("Blue lamp", "45.00", hours=2, category="home"),
                row("Lamp oil", "5.00", hours=3, category="garden"),
                row("Chair", "20.00", hours=4, category="home", description="goes with a lamp"),
            ],
        )
        filters = ProductFilters(
            q="lamp",
            category="home",
            min_price=Decimal("10"),
            max_price=Decimal("30"),
        )

        async with database.session() as session:
            page = await repository.list_page(
                session, filters=filters, sort_by="name", sort_order="asc", limit=10,
            )

        assert [p.name for p in page.items] == ["Chair", "Red lamp"]

    async def test_created_range_is_inclusive(self, database, repository):
        await insert(database, [row(f"P{i}", "1.00", hours=i) for i in range(5)])
        start = datetime(2024, 1, 1, 1, tzinfo=UTC)
        end = datetime(2024, 1, 1, 3, tzinfo=UTC)

        async with database.session() as session:
            page = await repository.list_page(
                session,
                filters=ProductFilters(created_from=start, created_to=end),
                sort_by="createdAt",
                sort_order="asc",
                limit=10,
            )

        assert [p.name for p in page.items] == ["P1", "P2", "P3"]

    async def test_search_escapes_wildcards(self, database, repository):
        await insert(database, [row("100% cotton", "1.00"), row("1000 pieces", "1.00")])

        async with database.session() as session:
            page = await repository.list_page(
                session,
                filters=ProductFilters(q="0%"),
                sort_by="name",
                sort_order="asc",
                limit=10,
            )

        assert [p.name for p in page.items] == ["100% cotton"]


@pytest.mark.integration
class TestStatsAndMaintenance:
    async def test_stats(self, database, repository):
        await insert(
            database,
            [
                row("A", "5.00", hours=0, category="books"),
                row("B", "7.50", hours=5, category="books"),
                row("C", "2.25", hours=2, category="games"),
            ],
        )

        async with database.session() as session:
            stats = await repository.stats(session)

        assert stats.total == 3
        assert Decimal(str(stats.min_price)) == Decimal("2.25")
        assert Decimal(str(stats.max_price)) == Decimal("7.50")
        assert stats.by_category == [("books", 2), ("games", 1)]

    async def test_stats_empty(self, database, repository):
        async with database.session() as session:
            stats = await repository.stats(session)

        assert stats.total == 0
        assert stats.min_price is None
        assert stats.by_category == []

    async def test_count_and_delete_all(self, database, repository, make_rows):
        await insert(database, make_rows(4))

        async with database.session() as session:
            assert await repository.count(session) == 4
            assert await repository.delete_all(session) == 4
            await session.commit()
            assert await repository.count(session) == 0
