"""Order service.

An order and its items are written inside one savepoint: if any item refers
to a missing product, or any insert fails, nothing of the order remains.
Unit prices are always read from the products table, never from the client.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core import AppError
from app.models import Order, OrderItem, Product
from app.schemas.order import OrderCreate
from app.services.auth import Principal
from app.services.permissions import can_modify_owned

logger = logging.getLogger(__name__)


class OrderService:
    """Service for placing and reading orders."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, user_id: int, data: OrderCreate) -> Order:
        """Place an order for the given items atomically."""
        product_ids = {item.product_id for item in data.items}

        async with self.db.begin_nested():
            result = await self.db.execute(
                select(Product.id, Product.price).where(Product.id.in_(product_ids))
            )
            prices: dict[int, Decimal] = {row.id: row.price for row in result}

            missing = sorted(product_ids - prices.keys())
            if missing:
                raise AppError.not_found(
                    f"Product {', '.join(str(pid) for pid in missing)} not found"
                )

            order = Order(
                user_id=user_id,
                status="pending",
                total=sum(
                    (prices[item.product_id] * item.quantity for item in data.items),
                    Decimal("0"),
                ),
            )
            self.db.add(order)
            await self.db.flush()

            for item in data.items:
                self.db.add(
                    OrderItem(
                        order_id=order.id,
                        product_id=item.product_id,
                        quantity=item.quantity,
                        price=prices[item.product_id],
                    )
                )
            await self.db.flush()

        logger.info(f"Order {order.id} placed by user {user_id} ({len(data.items)} items)")
        return await self._load(order.id)

    async def list_for_user(self, user_id: int) -> list[Order]:
        """The user's orders, newest first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .options(selectinload(Order.items))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def get(self, principal: Principal, order_id: int) -> Order:
        """Get an order visible to the caller (its owner or an admin)."""
        order = await self._load(order_id)
        if not can_modify_owned(principal.subject_id, principal.role, order.user_id):
            # Other users' orders are indistinguishable from missing ones
            raise AppError.not_found(f"Order {order_id} not found")
        return order

    async def delete(self, principal: Principal, order_id: int) -> None:
        order = await self.get(principal, order_id)
        await self.db.delete(order)
        await self.db.flush()
        logger.info(f"Order {order_id} deleted by {principal.subject_id}")

    async def _load(self, order_id: int) -> Order:
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id)
            .options(selectinload(Order.items))
            .execution_options(populate_existing=True)
        )
        order = result.scalar_one_or_none()
        if order is None:
            raise AppError.not_found(f"Order {order_id} not found")
        return order
