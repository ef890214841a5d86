"""Product store - SQL access to the products table."""

import builtins
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import Select, func, literal_column, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import AppError
from app.models import Category, OrderItem, Product


@dataclass(frozen=True)
class ProductFilters:
    """Search filters; ``None`` means the filter is not applied."""

    text: str | None = None
    category_id: int | None = None
    min_price: float | None = None
    max_price: float | None = None


_TS_CONFIG = literal_column("'simple'::regconfig")


def _search_document() -> Any:
    """Full-text document over name and description."""
    return func.to_tsvector(_TS_CONFIG, func.concat_ws(" ", Product.name, Product.description))


class ProductRepository:
    """Row-level CRUD and listing queries for products."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, product_id: int) -> Product | None:
        result = await self.db.execute(select(Product).where(Product.id == product_id))
        return result.scalar_one_or_none()

    async def create(self, seller_id: int, data: dict[str, Any]) -> Product:
        await self._ensure_category(data["category_id"])
        product = Product(
            seller_id=seller_id,
            category_id=data["category_id"],
            name=data["name"],
            description=data.get("description"),
            price=Decimal(str(data["price"])),
            stock=data["stock"],
        )
        self.db.add(product)
        await self.db.flush()
        await self.db.refresh(product)
        return product

    async def update(self, product_id: int, data: dict[str, Any]) -> Product | None:
        product = await self.get(product_id)
        if not product:
            return None

        if "category_id" in data and data["category_id"] != product.category_id:
            await self._ensure_category(data["category_id"])

        for field, value in data.items():
            if field == "price" and value is not None:
                value = Decimal(str(value))
            setattr(product, field, value)

        await self.db.flush()
        await self.db.refresh(product)
        return product

    async def set_approved(self, product_id: int, approved: bool) -> Product | None:
        return await self.update(product_id, {"is_approved": approved})

    async def delete(self, product_id: int) -> bool:
        product = await self.get(product_id)
        if not product:
            return False

        # Order items keep their product row (ON DELETE RESTRICT)
        ordered = await self.db.execute(
            select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1)
        )
        if ordered.scalar_one_or_none() is not None:
            raise AppError.validation("Product is referenced by orders")

        await self.db.delete(product)
        await self.db.flush()
        return True

    async def commit(self) -> None:
        await self.db.commit()

    async def list(self, offset: int, limit: int) -> tuple[builtins.list[Product], int]:
        """Return one page of products ordered by name, plus the total row count."""
        count_result = await self.db.execute(select(func.count(Product.id)))
        total = count_result.scalar() or 0

        result = await self.db.execute(
            select(Product).order_by(Product.name, Product.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def search(
        self, filters: ProductFilters, offset: int, limit: int
    ) -> tuple[builtins.list[Product], int]:
        """Filtered page, newest first, plus the count of all matching rows."""
        query = self._apply_filters(select(Product), filters)
        count_query = self._apply_filters(select(func.count(Product.id)), filters)

        total = (await self.db.execute(count_query)).scalar() or 0
        result = await self.db.execute(
            query.order_by(Product.created_at.desc(), Product.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    @staticmethod
    def _apply_filters(query: Select, filters: ProductFilters) -> Select:
        if filters.text:
            query = query.where(
                _search_document().op("@@")(func.plainto_tsquery(_TS_CONFIG, filters.text))
            )
        if filters.category_id is not None:
            query = query.where(Product.category_id == filters.category_id)
        if filters.min_price is not None:
            query = query.where(Product.price >= Decimal(str(filters.min_price)))
        if filters.max_price is not None:
            query = query.where(Product.price <= Decimal(str(filters.max_price)))
        return query

    async def _ensure_category(self, category_id: int) -> None:
        result = await self.db.execute(select(Category.id).where(Category.id == category_id))
        if result.scalar_one_or_none() is None:
            raise AppError.not_found(f"Category {category_id} not found")
