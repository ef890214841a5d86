"""Category API endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_principal, require_roles
from app.core import get_db
from app.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from app.schemas.common import ERROR_RESPONSES
from app.services.auth import Principal
from app.services.category import CategoryService
from app.services.permissions import ROLE_ADMIN

router = APIRouter(prefix="/categories", tags=["categories"], responses=ERROR_RESPONSES)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    """Dependency to get category service."""
    return CategoryService(db)


@router.get("", response_model=list[CategoryResponse])
async def list_categories(
    _: Principal = Depends(get_current_principal),
    service: CategoryService = Depends(get_category_service),
) -> list[CategoryResponse]:
    """List all categories ordered by name."""
    return [CategoryResponse.model_validate(c) for c in await service.list()]


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(
    category_id: int,
    _: Principal = Depends(get_current_principal),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.get(category_id))


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    data: CategoryCreate,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.create(data))


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: int,
    data: CategoryUpdate,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: CategoryService = Depends(get_category_service),
) -> CategoryResponse:
    return CategoryResponse.model_validate(await service.update(category_id, data))


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category(
    category_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: CategoryService = Depends(get_category_service),
) -> None:
    """Delete a category that no product refers to."""
    await service.delete(category_id)
    return None
