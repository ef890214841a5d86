# Marketplace Models
from app.models.base import BaseModel
from app.models.cart import Cart, CartItem
from app.models.category import Category
from app.models.order import Order, OrderItem
from app.models.product import Product
from app.models.user import User

__all__ = [
    "BaseModel",
    "Cart",
    "CartItem",
    "Category",
    "Order",
    "OrderItem",
    "Product",
    "User",
]
