"""API router for the products feature.

Endpoints:
    GET /products        - Keyset-paginated, filterable product listing
    GET /products/stats  - Catalog-wide aggregates

Both responses carry ``x-cache`` (HIT, MISS, WAIT or BYPASS) and
``x-dedupe`` (HIT when the request joined an identical in-flight one).

Example Usage:
    # First page, cheapest first
    GET /products?sortBy=price&sortOrder=asc&limit=2

    # Next page: pass pageInfo.nextCursor with the same sortBy/sortOrder
    GET /products?sortBy=price&sortOrder=asc&limit=2&cursor=eyJzb3J0QnkiOi...
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
import logging
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from catalog_service.core.dependencies import ProductServiceDep, SettingsDep
from catalog_service.core.pagination import SortOrder
from catalog_service.core.schemas import ProblemDetails
from catalog_service.features.products.schemas import (
    ProductListQuery,
    ProductListResponse,
    ProductSortBy,
    ProductStatsResponse,
)

router = APIRouter(prefix="/products", tags=["products"])
logger = logging.getLogger(__name__)

_ERROR_RESPONSES = {
    400: {"model": ProblemDetails, "description": "Invalid range or cursor"},
    503: {"model": ProblemDetails, "description": "Database disabled or not connected"},
}


@router.get(
    "",
    response_model=ProductListResponse,
    summary="List products",
    description="Return one page of products ordered by (sortBy, id) with an opaque next cursor.",
    responses=_ERROR_RESPONSES,
)
async def list_products(
    service: ProductServiceDep,
    settings: SettingsDep,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
    sort_by: Annotated[ProductSortBy, Query(alias="sortBy")] = "createdAt",
    sort_order: Annotated[SortOrder, Query(alias="sortOrder")] = "desc",
    q: Annotated[str | None, Query(min_length=1, max_length=200)] = None,
    category: Annotated[str | None, Query(min_length=1, max_length=100)] = None,
    min_price: Annotated[Decimal | None, Query(alias="minPrice", ge=0)] = None,
    max_price: Annotated[Decimal | None, Query(alias="maxPrice", ge=0)] = None,
    created_from: Annotated[datetime | None, Query(alias="createdFrom")] = None,
    created_to: Annotated[datetime | None, Query(alias="createdTo")] = None,
    cursor: Annotated[str | None, Query(min_length=1, max_length=1024)] = None,
) -> JSONResponse:
    pagination = settings.pagination
    query = ProductListQuery(
        limit=min(limit or pagination.default_limit, pagination.max_limit),
        sort_by=sort_by,
        sort_order=sort_order,
        q=q,
        category=category,
        min_price=min_price,
        max_price=max_price,
        created_from=created_from,
        created_to=created_to,
        cursor=cursor,
    )
    served = await service.list_products(query)
    return JSONResponse(content=served.body, headers=served.headers())


@router.get(
    "/stats",
    response_model=ProductStatsResponse,
    summary="Product statistics",
    description="Totals, price and creation-date ranges, and the 50 largest categories.",
    responses={503: _ERROR_RESPONSES[503]},
)
async def product_stats(service: ProductServiceDep) -> JSONResponse:
    served = await service.get_stats()
    return JSONResponse(content=served.body, headers=served.headers())
