"""Database commands: schema creation and product seeding."""

from __future__ import annotations

import sys

import click
from sqlalchemy.exc import SQLAlchemyError

from catalog_service.cli.utils import coro, error, info, success
from catalog_service.core.settings import get_db_settings
from catalog_service.features.products.seed import seed_products
from catalog_service.infra.database import Database


async def _connect() -> Database:
    settings = get_db_settings()
    if not settings.enabled:
        error("DB_ENABLED is false. Set DB_ENABLED=true and DATABASE_URL to use this command.")
        sys.exit(1)
    database = Database(settings)
    try:
        await database.connect(strict=True)
    except (RuntimeError, SQLAlchemyError, OSError) as e:
        error(f"Database connection failed: {e}")
        sys.exit(1)
    return database


@click.group(name="db")
def db() -> None:
    """Database management commands."""


@db.command(name="create-schema")
@coro
async def create_schema() -> None:
    """Create the products table and its indexes if missing."""
    database = await _connect()
    try:
        await database.create_schema()
        success("Schema is up to date")
    finally:
        await database.disconnect()


@db.command()
@click.option("--count", default=1_000_000, show_default=True, type=click.IntRange(min=1),
              help="Target total number of products")
@click.option("--batch-size", default=2000, show_default=True, type=click.IntRange(1, 50_000),
              help="Rows per INSERT statement")
@click.option("--reset", is_flag=True, help="Delete all products before seeding")
@click.option("--seed", "random_seed", default=42, show_default=True, type=int,
              help="Random seed; the same seed produces the same rows")
@coro
async def seed(count: int, batch_size: int, reset: bool, random_seed: int) -> None:
    """Insert deterministic pseudo-random products up to --count rows."""
    database = await _connect()
    try:
        await database.create_schema()
        info(f"Seeding products to {count:,} rows (batch size {batch_size:,})...")
        report = await seed_products(
            database,
            target_count=count,
            batch_size=batch_size,
            reset=reset,
            seed=random_seed,
        )
    except SQLAlchemyError as e:
        error(f"Seed failed: {e}")
        sys.exit(1)
    finally:
        await database.disconnect()

    if report.inserted == 0:
        info(f"Nothing to do: table already holds {report.final_count:,} products")
    else:
        success(
            f"Inserted {report.inserted:,} products in {report.elapsed_seconds:.1f}s "
            f"(total {report.final_count:,})"
        )
