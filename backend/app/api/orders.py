"""Order API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_principal
from app.core import get_db
from app.schemas.common import ERROR_RESPONSES
from app.schemas.order import OrderCreate, OrderResponse
from app.services.auth import Principal
from app.services.order import OrderService

router = APIRouter(prefix="/orders", tags=["orders"], responses=ERROR_RESPONSES)


def get_order_service(db: AsyncSession = Depends(get_db)) -> OrderService:
    """Dependency to get order service."""
    return OrderService(db)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    data: OrderCreate,
    principal: Principal = Depends(get_current_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    """Place an order.

    Unit prices are taken from the catalog at the time of the order. If any
    product does not exist, no order is created.
    """
    order = await service.create(principal.subject_id, data)
    return OrderResponse.model_validate(order)


@router.get("", response_model=list[OrderResponse])
async def list_orders(
    principal: Principal = Depends(get_current_principal),
    service: OrderService = Depends(get_order_service),
) -> list[OrderResponse]:
    """List the caller's orders, newest first."""
    orders = await service.list_for_user(principal.subject_id)
    return [OrderResponse.model_validate(o) for o in orders]


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    service: OrderService = Depends(get_order_service),
) -> OrderResponse:
    return OrderResponse.model_validate(await service.get(principal, order_id))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_order(
    order_id: int,
    principal: Principal = Depends(get_current_principal),
    service: OrderService = Depends(get_order_service),
) -> None:
    await service.delete(principal, order_id)
    return None
