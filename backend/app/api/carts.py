"""Cart API endpoints. Every route acts on the caller's own cart."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_principal
from app.core import get_db
from app.schemas.cart import CartItemCreate, CartResponse
from app.schemas.common import ERROR_RESPONSES
from app.services.auth import Principal
from app.services.cart import CartService

router = APIRouter(prefix="/cart", tags=["cart"], responses=ERROR_RESPONSES)


def get_cart_service(db: AsyncSession = Depends(get_db)) -> CartService:
    """Dependency to get cart service."""
    return CartService(db)


@router.get("", response_model=CartResponse)
async def get_cart(
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    """Get the caller's cart, creating an empty one on first access."""
    return CartResponse.model_validate(await service.get_or_create(principal.subject_id))


@router.post("/items", response_model=CartResponse, status_code=status.HTTP_201_CREATED)
async def add_cart_item(
    data: CartItemCreate,
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.add_item(principal.subject_id, data)
    return CartResponse.model_validate(cart)


@router.delete("/items/{item_id}", response_model=CartResponse)
async def remove_cart_item(
    item_id: int,
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
) -> CartResponse:
    cart = await service.remove_item(principal.subject_id, item_id)
    return CartResponse.model_validate(cart)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_cart(
    principal: Principal = Depends(get_current_principal),
    service: CartService = Depends(get_cart_service),
) -> None:
    """Remove all items from the caller's cart."""
    await service.clear(principal.subject_id)
    return None
