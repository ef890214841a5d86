"""Cart service - one cart per user, created on first access."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core import AppError
from app.models import Cart, CartItem, Product
from app.schemas.cart import CartItemCreate

logger = logging.getLogger(__name__)


class CartService:
    """Service for the caller's shopping cart."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _load(self, user_id: int) -> Cart | None:
        result = await self.db.execute(
            select(Cart)
            .where(Cart.user_id == user_id)
            .options(selectinload(Cart.items))
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, user_id: int) -> Cart:
        """Return the user's cart with its items, creating an empty one if needed."""
        cart = await self._load(user_id)
        if cart is not None:
            return cart

        try:
            async with self.db.begin_nested():
                self.db.add(Cart(user_id=user_id))
        except IntegrityError:
            # A concurrent request created it first
            logger.debug(f"Cart for user {user_id} already created concurrently")

        cart = await self._load(user_id)
        if cart is None:
            raise AppError.internal(f"Cart for user {user_id} could not be created")
        return cart

    async def add_item(self, user_id: int, data: CartItemCreate) -> Cart:
        """Add a product to the cart, merging quantities for a product already present."""
        product = await self.db.execute(select(Product.id).where(Product.id == data.product_id))
        if product.scalar_one_or_none() is None:
            raise AppError.not_found(f"Product {data.product_id} not found")

        cart = await self.get_or_create(user_id)
        existing = next((i for i in cart.items if i.product_id == data.product_id), None)
        if existing is not None:
            existing.quantity += data.quantity
        else:
            self.db.add(
                CartItem(cart_id=cart.id, product_id=data.product_id, quantity=data.quantity)
            )
        await self.db.flush()
        return await self.get_or_create(user_id)

    async def remove_item(self, user_id: int, item_id: int) -> Cart:
        cart = await self.get_or_create(user_id)
        item = next((i for i in cart.items if i.id == item_id), None)
        if item is None:
            raise AppError.not_found(f"Cart item {item_id} not found")
        await self.db.delete(item)
        await self.db.flush()
        return await self.get_or_create(user_id)

    async def clear(self, user_id: int) -> None:
        """Remove every item from the user's cart."""
        cart = await self.get_or_create(user_id)
        await self.db.execute(delete(CartItem).where(CartItem.cart_id == cart.id))
        await self.db.flush()
