# Marketplace Pydantic Schemas
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from app.schemas.cart import CartItemCreate, CartItemResponse, CartResponse
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.common import ErrorResponse, MessageResponse
from app.schemas.order import OrderCreate, OrderItemCreate, OrderItemResponse, OrderResponse
from app.schemas.product import (
    ProductCreate,
    ProductListResponse,
    ProductResponse,
    ProductUpdate,
)
from app.schemas.user import RoleUpdateRequest, UserResponse, UserUpdate

__all__ = [
    # Auth
    "LoginRequest",
    "SignupRequest",
    "TokenResponse",
    # Cart
    "CartItemCreate",
    "CartItemResponse",
    "CartResponse",
    # Category
    "CategoryCreate",
    "CategoryResponse",
    "CategoryUpdate",
    # Common
    "ErrorResponse",
    "MessageResponse",
    # Order
    "OrderCreate",
    "OrderItemCreate",
    "OrderItemResponse",
    "OrderResponse",
    # Product
    "ProductCreate",
    "ProductListResponse",
    "ProductResponse",
    "ProductUpdate",
    # User
    "RoleUpdateRequest",
    "UserResponse",
    "UserUpdate",
]
