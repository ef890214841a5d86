"""Catalog service - product reads behind a cache-aside layer.

Listing pages are cached in the key-value store under one fixed key,
``products:all``. The value is a hash with one field per ``(page, limit)``
combination, each holding ``{"items": [...], "total": N}``:

- a hit returns the page and the row count captured when it was filled;
- any product write deletes the whole ``products:all`` key, evicting every
  cached page at once;
- the key expires ``ttl`` seconds after it was first filled (``EXPIRE NX``),
  bounding staleness if an eviction is ever missed.

The cache only speeds reads up. Any cache failure is logged and treated as a
miss (reads) or ignored (evictions); it never reaches the client. Search
results are never cached.
"""

import builtins
import json
import logging
from typing import Any, Protocol

from pydantic import ValidationError

from app.core import AppError
from app.core.cache import KV_ERRORS, KeyValueStore
from app.models import Product
from app.schemas.product import ProductCreate, ProductResponse, ProductUpdate
from app.services.auth import Principal
from app.services.permissions import can_modify_owned
from app.services.product import ProductFilters

logger = logging.getLogger(__name__)

CATALOG_CACHE_KEY = "products:all"
DEFAULT_CACHE_TTL_SECONDS = 300

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100


class ProductStore(Protocol):
    """Store operations the catalog needs (implemented by ProductRepository)."""

    async def get(self, product_id: int) -> Product | None: ...

    async def create(self, seller_id: int, data: dict[str, Any]) -> Product: ...

    async def update(self, product_id: int, data: dict[str, Any]) -> Product | None: ...

    async def set_approved(self, product_id: int, approved: bool) -> Product | None: ...

    async def delete(self, product_id: int) -> bool: ...

    async def commit(self) -> None: ...

    async def list(self, offset: int, limit: int) -> tuple[list[Product], int]: ...

    async def search(
        self, filters: ProductFilters, offset: int, limit: int
    ) -> tuple[builtins.list[Product], int]: ...


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def normalize_pagination(page: Any = None, limit: Any = None) -> tuple[int, int]:
    """Clamp raw pagination input.

    ``limit`` outside ``(0, 100]`` or not an integer becomes 20; ``page``
    below 1 or not an integer becomes 1.
    """
    limit_value = _as_int(limit)
    if limit_value is None or limit_value <= 0 or limit_value > MAX_LIMIT:
        limit_value = DEFAULT_LIMIT

    page_value = _as_int(page)
    if page_value is None or page_value < 1:
        page_value = DEFAULT_PAGE

    return page_value, limit_value


def page_field(page: int, limit: int) -> str:
    """Hash field under ``products:all`` for one listing page."""
    return f"page={page}:limit={limit}"


class CatalogService:
    """Product catalog operations with cache-aside listing."""

    def __init__(
        self,
        store: ProductStore,
        cache: KeyValueStore,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SECONDS,
    ):
        self.store = store
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_all(
        self, page: Any = None, limit: Any = None
    ) -> tuple[list[ProductResponse], int]:
        """Return one page of all products and the total product count."""
        page, limit = normalize_pagination(page, limit)
        field = page_field(page, limit)

        cached = await self._read_cached_page(field)
        if cached is not None:
            logger.debug(f"Catalog cache hit ({field})")
            return cached

        logger.debug(f"Catalog cache miss ({field})")
        offset = (page - 1) * limit
        products, total = await self.store.list(offset, limit)
        items = [ProductResponse.model_validate(p) for p in products]

        await self._write_cached_page(field, items, total)
        return items, total

    async def search(
        self,
        filters: ProductFilters,
        page: Any = None,
        limit: Any = None,
    ) -> tuple[list[ProductResponse], int]:
        """Filtered product search. Always served from the store."""
        page, limit = normalize_pagination(page, limit)
        offset = (page - 1) * limit
        products, total = await self.store.search(filters, offset, limit)
        return [ProductResponse.model_validate(p) for p in products], total

    async def get(self, product_id: int) -> ProductResponse:
        product = await self.store.get(product_id)
        if product is None:
            raise AppError.not_found(f"Product {product_id} not found")
        return ProductResponse.model_validate(product)

    # ------------------------------------------------------------------
    # Writes (each one commits, then evicts the listing cache)
    # ------------------------------------------------------------------

    async def create(self, principal: Principal, data: ProductCreate) -> ProductResponse:
        product = await self.store.create(principal.subject_id, data.model_dump())
        await self.store.commit()
        await self.invalidate()
        logger.info(f"Product {product.id} created by seller {principal.subject_id}")
        return ProductResponse.model_validate(product)

    async def update(
        self, principal: Principal, product_id: int, data: ProductUpdate
    ) -> ProductResponse:
        await self._get_owned(principal, product_id)
        changes = data.model_dump(exclude_unset=True)
        product = await self.store.update(product_id, changes)
        if product is None:
            raise AppError.not_found(f"Product {product_id} not found")
        await self.store.commit()
        await self.invalidate()
        logger.info(f"Product {product_id} updated by {principal.subject_id}")
        return ProductResponse.model_validate(product)

    async def delete(self, principal: Principal, product_id: int) -> None:
        await self._get_owned(principal, product_id)
        if not await self.store.delete(product_id):
            raise AppError.not_found(f"Product {product_id} not found")
        await self.store.commit()
        await self.invalidate()
        logger.info(f"Product {product_id} deleted by {principal.subject_id}")

    async def approve(self, product_id: int, approved: bool = True) -> ProductResponse:
        product = await self.store.set_approved(product_id, approved)
        if product is None:
            raise AppError.not_found(f"Product {product_id} not found")
        await self.store.commit()
        await self.invalidate()
        return ProductResponse.model_validate(product)

    async def invalidate(self) -> None:
        """Evict every cached listing page. Failures are logged, not raised."""
        try:
            await self.cache.delete(CATALOG_CACHE_KEY)
        except KV_ERRORS as e:
            logger.warning(
                f"Failed to evict {CATALOG_CACHE_KEY}; stale pages expire within "
                f"{self.ttl_seconds}s: {e}"
            )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _get_owned(self, principal: Principal, product_id: int) -> Product:
        product = await self.store.get(product_id)
        if product is None:
            raise AppError.not_found(f"Product {product_id} not found")
        if not can_modify_owned(principal.subject_id, principal.role, product.seller_id):
            raise AppError.forbidden("Only the seller or an admin can modify this product")
        return product

    async def _read_cached_page(self, field: str) -> tuple[list[ProductResponse], int] | None:
        try:
            raw = await self.cache.hget(CATALOG_CACHE_KEY, field)
        except KV_ERRORS as e:
            logger.warning(f"Catalog cache read failed, falling back to store: {e}")
            return None
        if raw is None:
            return None

        try:
            doc = json.loads(raw)
            items = [ProductResponse.model_validate(item) for item in doc["items"]]
            return items, int(doc["total"])
        except (ValueError, TypeError, KeyError, ValidationError) as e:
            logger.warning(f"Discarding unreadable catalog cache entry ({field}): {e}")
            return None

    async def _write_cached_page(
        self, field: str, items: list[ProductResponse], total: int
    ) -> None:
        payload = json.dumps(
            {"items": [item.model_dump(mode="json") for item in items], "total": total},
            separators=(",", ":"),
        )
        try:
            # MULTI/EXEC: a page is never stored without the namespace TTL.
            # Only the first fill starts the clock; later pages must not extend it.
            async with self.cache.pipeline(transaction=True) as pipe:
                pipe.hset(CATALOG_CACHE_KEY, field, payload)
                pipe.expire(CATALOG_CACHE_KEY, self.ttl_seconds, nx=True)
                await pipe.execute()
        except KV_ERRORS as e:
            logger.warning(f"Catalog cache write failed: {e}")
