# Marketplace Services
from app.services.auth import AuthService, Principal
from app.services.cart import CartService
from app.services.catalog import CatalogService
from app.services.category import CategoryService
from app.services.order import OrderService
from app.services.product import ProductFilters, ProductRepository
from app.services.revocation import RevocationGate, RevocationReason
from app.services.user import UserService

__all__ = [
    "AuthService",
    "CartService",
    "CatalogService",
    "CategoryService",
    "OrderService",
    "Principal",
    "ProductFilters",
    "ProductRepository",
    "RevocationGate",
    "RevocationReason",
    "UserService",
]
