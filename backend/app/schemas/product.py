"""Pydantic schemas for Product API."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ProductCreate(BaseModel):
    category_id: int = Field(..., ge=1)
    name: str = Field(..., min_length=2, max_length=100)
    description: str | None = Field(None, max_length=5000)
    price: float = Field(..., gt=0)
    stock: int = Field(..., ge=0)


class ProductUpdate(BaseModel):
    """Partial product update; only provided fields are written."""

    category_id: int | None = Field(None, ge=1)
    name: str | None = Field(None, min_length=2, max_length=100)
    description: str | None = Field(None, max_length=5000)
    price: float | None = Field(None, gt=0)
    stock: int | None = Field(None, ge=0)


class ProductResponse(BaseModel):
    """Product summary. This is also the shape stored in the catalog cache."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    seller_id: int
    category_id: int
    name: str
    description: str | None
    price: float
    stock: int
    is_approved: bool
    created_at: datetime


class ProductListResponse(BaseModel):
    """Paginated product listing."""

    items: list[ProductResponse]
    page: int
    limit: int
    total: int
    total_pages: int
