"""Deterministic pseudo-random product rows for local datasets and benchmarks."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from decimal import Decimal
import logging
import random
import time
from typing import TYPE_CHECKING, Any

from catalog_service.features.products.repository import ProductRepository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from catalog_service.infra.database import Database

logger = logging.getLogger(__name__)

CATEGORIES = (
    "fruits", "vegetables", "grains", "dairy", "meat",
    "seafood", "spices", "beverages", "snacks", "bakery",
    "frozen", "organic", "household", "personal-care", "baby",
    "pet", "health", "ready-to-eat", "condiments", "misc",
)
ADJECTIVES = (
    "Fresh", "Organic", "Premium", "Farm", "Local",
    "Natural", "Seasonal", "Crisp", "Healthy", "Value",
)
NOUNS = (
    "Apples", "Tomatoes", "Rice", "Milk", "Chicken",
    "Fish", "Chili", "Juice", "Cookies", "Bread",
    "Spinach", "Cheese", "Yogurt", "Beans", "Tea",
)
GRADES = ("A", "B", "C")
NOTES = ("sweet", "spicy", "crunchy", "soft", "rich")

CREATED_SPAN = timedelta(days=365 * 5)
NULL_DESCRIPTION_RATE = 0.03
_PROGRESS_INTERVAL = 2.0


@dataclass(frozen=True)
class SeedReport:
    inserted: int
    final_count: int
    elapsed_seconds: float


def generate_products(
    count: int,
    *,
    start_index: int,
    rng: random.Random,
    now: datetime,
) -> Iterator[dict[str, Any]]:
    """Yield ``count`` product rows numbered from ``start_index + 1``.

    Prices are uniform in [0, 10000) with two decimals; ``created_at`` is
    uniform over the five years before ``now``.
    """
    oldest = now - CREATED_SPAN
    span_ms = int(CREATED_SPAN.total_seconds() * 1000)
    for i in range(count):
        idx = start_index + i + 1
        category = rng.choice(CATEGORIES)
        description = None
        if rng.random() >= NULL_DESCRIPTION_RATE:
            description = (
                f"Category:{category} quality:{rng.choice(GRADES)} "
                f"batch:{rng.randrange(10_000)} notes:{rng.choice(NOTES)}"
            )
        yield {
            "name": f"{rng.choice(ADJECTIVES)} {rng.choice(NOUNS)} #{idx}",
            "description": description,
            "price": Decimal(rng.randrange(1_000_000)) / 100,
            "category": category,
            "created_at": oldest + timedelta(milliseconds=rng.randrange(span_ms)),
        }


async def seed_products(
    database: Database,
    *,
    target_count: int,
    batch_size: int = 2000,
    reset: bool = False,
    seed: int = 42,
    repository: ProductRepository | None = None,
) -> SeedReport:
    """Insert products until the table holds ``target_count`` rows.

    Args:
        database: Connected database.
        target_count: Desired total row count; nothing is inserted if already reached.
        batch_size: Rows per INSERT statement.
        reset: Delete every existing product first.
        seed: Random seed; the same seed yields the same rows.
        repository: Repository override.
    """
    repository = repository or ProductRepository()
    rng = random.Random(seed)
    now = datetime.now(UTC)
    started = time.monotonic()
    last_log = started

    async with database.session() as session:
        if reset:
            logger.warning("Reset enabled: deleting all products")
            await repository.delete_all(session)
            await session.commit()
        current = await repository.count(session)

    if current >= target_count:
        logger.info("Seed skipped (already at/above target)", extra={"current": current})
        return SeedReport(inserted=0, final_count=current, elapsed_seconds=0.0)

    logger.info(
        "Seeding products",
        extra={"target_count": target_count, "batch_size": batch_size, "current": current},
    )
    inserted = 0
    while current < target_count:
        batch = min(batch_size, target_count - current)
        rows = list(generate_products(batch, start_index=current, rng=rng, now=now))
        async with database.session() as session:
            await repository.insert_many(session, rows)
            await session.commit()
        current += batch
        inserted += batch

        if time.monotonic() - last_log >= _PROGRESS_INTERVAL:
            elapsed = time.monotonic() - started
            logger.info(
                "Seed progress",
                extra={
                    "inserted": current,
                    "target": target_count,
                    "rows_per_sec": round(current / max(elapsed, 1e-9)),
                },
            )
            last_log = time.monotonic()

    async with database.session() as session:
        final_count = await repository.count(session)
    elapsed = time.monotonic() - started
    logger.info(
        "Seed completed",
        extra={"final_count": final_count, "elapsed_seconds": round(elapsed, 3)},
    )
    return SeedReport(inserted=inserted, final_count=final_count, elapsed_seconds=elapsed)
