"""Product domain model."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, String, Text, func, literal_column
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql.elements import ColumnElement

from catalog_service.infra.database.base import Base

SEARCH_CONFIG = literal_column("'english'::regconfig")


class Product(Base):
    """Catalog product row.

    Every sortable column is paired with ``id`` in a composite index so
    that both ``ORDER BY (col, id)`` and the cursor seek predicate are
    served by the same index.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
        server_default=func.now(),
    )

    __table_args__ = (
        Index("ix_products_category", "category"),
        Index("ix_products_price_id", "price", "id"),
        Index("ix_products_name_id", "name", "id"),
        Index("ix_products_created_at_id", "created_at", "id"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name={self.name!r}, price={self.price})>"


def search_document() -> ColumnElement[object]:
    """PostgreSQL tsvector over name and description (matches the GIN index)."""
    return func.to_tsvector(
        SEARCH_CONFIG,
        Product.name
        + literal_column("' '")
        + func.coalesce(Product.description, literal_column("''")),
    )


Index(
    "ix_products_search",
    search_document(),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
