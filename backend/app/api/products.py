"""Product API endpoints.

Listing goes through the catalog cache; search and single-product reads go
straight to the database. Every write evicts the listing cache.
"""

import math

from fastapi import APIRouter, Depends, Query, status

from app.api.deps import get_catalog_service, get_current_principal, require_roles
from app.core import AppError
from app.schemas.common import ERROR_RESPONSES
from app.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from app.services.auth import Principal
from app.services.catalog import CatalogService, normalize_pagination
from app.services.permissions import ROLE_ADMIN, ROLE_SELLER
from app.services.product import ProductFilters

router = APIRouter(prefix="/products", tags=["products"], responses=ERROR_RESPONSES)

# page and limit are taken as raw strings: out-of-range or non-numeric
# values fall back to defaults instead of failing validation.
PageParam = Query(None, description="Page number (default 1)")
LimitParam = Query(None, description="Items per page (default 20, max 100)")


def _listing(
    items: list[ProductResponse], total: int, page: int, limit: int
) -> ProductListResponse:
    return ProductListResponse(
        items=items,
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if total > 0 else 0,
    )


@router.get("", response_model=ProductListResponse)
async def list_products(
    page: str | None = PageParam,
    limit: str | None = LimitParam,
    _: Principal = Depends(get_current_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """List all products."""
    page_value, limit_value = normalize_pagination(page, limit)
    items, total = await service.list_all(page_value, limit_value)
    return _listing(items, total, page_value, limit_value)


@router.get("/search", response_model=ProductListResponse)
async def search_products(
    page: str | None = PageParam,
    limit: str | None = LimitParam,
    text: str | None = Query(None, max_length=100),
    category_id: int | None = Query(None, ge=1),
    min_price: float | None = Query(None, alias="min", ge=0, description="Minimum price"),
    max_price: float | None = Query(None, alias="max", ge=0, description="Maximum price"),
    _: Principal = Depends(get_current_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductListResponse:
    """Search products by text, category and price range.

    Filters that are present are combined with AND.
    """
    if min_price is not None and max_price is not None and min_price > max_price:
        raise AppError.invalid_request("min must not be greater than max")

    page_value, limit_value = normalize_pagination(page, limit)
    filters = ProductFilters(
        text=(text or "").strip() or None,
        category_id=category_id,
        min_price=min_price,
        max_price=max_price,
    )
    items, total = await service.search(filters, page_value, limit_value)
    return _listing(items, total, page_value, limit_value)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    _: Principal = Depends(get_current_principal),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    """Get a product by ID."""
    return await service.get(product_id)


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    data: ProductCreate,
    principal: Principal = Depends(require_roles(ROLE_SELLER, ROLE_ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    """Create a product owned by the caller."""
    return await service.create(principal, data)


@router.patch("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    data: ProductUpdate,
    principal: Principal = Depends(require_roles(ROLE_SELLER, ROLE_ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    """Update a product. Sellers may only update their own products."""
    return await service.update(principal, product_id, data)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    principal: Principal = Depends(require_roles(ROLE_SELLER, ROLE_ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
) -> None:
    """Delete a product. Sellers may only delete their own products."""
    await service.delete(principal, product_id)
    return None


@router.put("/{product_id}/approve", response_model=ProductResponse)
async def approve_product(
    product_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: CatalogService = Depends(get_catalog_service),
) -> ProductResponse:
    """Mark a product as approved (admin only)."""
    return await service.approve(product_id)
