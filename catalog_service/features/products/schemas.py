"""Pydantic schemas for the products feature."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from catalog_service.core.pagination import SortOrder

ProductSortBy = Literal["createdAt", "price", "name"]


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ProductListQuery(BaseModel):
    """Validated query of ``GET /products``."""

    model_config = ConfigDict(frozen=True)

    limit: int = Field(default=20, ge=1, le=100)
    sort_by: ProductSortBy = "createdAt"
    sort_order: SortOrder = "desc"
    q: str | None = Field(default=None, min_length=1)
    category: str | None = Field(default=None, min_length=1)
    min_price: Decimal | None = Field(default=None, ge=0)
    max_price: Decimal | None = Field(default=None, ge=0)
    created_from: datetime | None = None
    created_to: datetime | None = None
    cursor: str | None = Field(default=None, min_length=1)

    @field_validator("created_from", "created_to")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps as UTC and normalize aware ones to UTC."""
        if v is None:
            return v
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v.astimezone(UTC)


class ProductItem(CamelModel):
    """A product as rendered on the wire."""

    id: int
    name: str
    description: str | None = None
    price: str = Field(description="Decimal price with two fractional digits, e.g. '19.99'")
    category: str
    created_at: str = Field(description="ISO-8601 UTC timestamp")


class PageInfo(CamelModel):
    limit: int
    has_more: bool
    next_cursor: str | None = Field(
        default=None,
        description="Opaque cursor for the next page; only valid with the same sortBy/sortOrder",
    )


class ProductListResponse(CamelModel):
    items: list[ProductItem]
    page_info: PageInfo


class ProductTotals(CamelModel):
    total: int
    min_price: str | None = None
    max_price: str | None = None
    min_created_at: str | None = None
    max_created_at: str | None = None


class CategoryCount(CamelModel):
    category: str
    count: int


class ProductStatsResponse(CamelModel):
    totals: ProductTotals
    by_category: list[CategoryCount]
