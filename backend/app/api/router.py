"""Marketplace API Router - aggregates all versioned API routes."""

from fastapi import APIRouter

from app.api import auth, carts, categories, orders, products, users

# Main API router - all routes will be prefixed with /api/v1
api_router = APIRouter(prefix="/api/v1")

# Include routers
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(categories.router)
api_router.include_router(products.router)
api_router.include_router(carts.router)
api_router.include_router(orders.router)
