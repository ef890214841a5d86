"""Category service - business logic for product categories."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import AppError
from app.models import Category, Product
from app.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, category_id: int) -> Category:
        result = await self.db.execute(select(Category).where(Category.id == category_id))
        category = result.scalar_one_or_none()
        if category is None:
            raise AppError.not_found(f"Category {category_id} not found")
        return category

    async def list(self) -> list[Category]:
        """All categories ordered by name."""
        result = await self.db.execute(select(Category).order_by(Category.name))
        return list(result.scalars().all())

    async def create(self, data: CategoryCreate) -> Category:
        category = Category(name=data.name, description=data.description)
        self.db.add(category)
        await self._flush_unique()
        await self.db.refresh(category)
        logger.info(f"Category created: {category.name}")
        return category

    async def update(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get(category_id)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(category, field, value)
        await self._flush_unique()
        await self.db.refresh(category)
        return category

    async def delete(self, category_id: int) -> None:
        category = await self.get(category_id)
        in_use = await self.db.execute(
            select(Product.id).where(Product.category_id == category_id).limit(1)
        )
        if in_use.scalar_one_or_none() is not None:
            raise AppError.validation("Category still has products")
        await self.db.delete(category)
        await self.db.flush()

    async def _flush_unique(self) -> None:
        try:
            await self.db.flush()
        except IntegrityError as e:
            raise AppError.validation("Category name already exists") from e
