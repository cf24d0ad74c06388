"""Products feature: cached keyset-paginated listing and stats."""

from __future__ import annotations

from .repository import ProductFilters, ProductPage, ProductRepository, get_product_repository
from .schemas import ProductListQuery, ProductListResponse, ProductStatsResponse
from .service import ProductService, ServedResult

__all__ = [
    "ProductFilters",
    "ProductListQuery",
    "ProductListResponse",
    "ProductPage",
    "ProductRepository",
    "ProductService",
    "ProductStatsResponse",
    "ServedResult",
    "get_product_repository",
]
