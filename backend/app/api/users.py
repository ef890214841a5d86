"""User API endpoints: self-service profile and admin account controls."""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_principal, get_revocation_gate, require_roles
from app.core import get_db
from app.schemas.common import ERROR_RESPONSES
from app.schemas.user import RoleUpdateRequest, UserResponse, UserUpdate
from app.services.auth import Principal
from app.services.permissions import ROLE_ADMIN
from app.services.revocation import RevocationGate
from app.services.user import UserService

router = APIRouter(prefix="/users", tags=["users"], responses=ERROR_RESPONSES)


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
    page: int
    page_size: int
    pages: int


def get_user_service(
    db: AsyncSession = Depends(get_db),
    gate: RevocationGate = Depends(get_revocation_gate),
) -> UserService:
    """Dependency to get user service."""
    return UserService(db, gate)


@router.get("/me", response_model=UserResponse)
async def get_profile(
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Get the caller's profile."""
    return UserResponse.model_validate(await service.get(principal.subject_id))


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: UserUpdate,
    principal: Principal = Depends(get_current_principal),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Update the caller's name, email or password."""
    user = await service.update_me(principal.subject_id, data)
    return UserResponse.model_validate(user)


@router.get("", response_model=UserListResponse)
async def list_users(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserListResponse:
    """List all accounts (admin only)."""
    users, total = await service.list(page=page, page_size=page_size)
    pages = (total + page_size - 1) // page_size if total > 0 else 0
    return UserListResponse(
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/lookup", response_model=UserResponse)
async def lookup_user(
    email: EmailStr = Query(..., description="Email address of the account"),
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Find an account by email (admin only)."""
    return UserResponse.model_validate(await service.get_by_email(email))


@router.put("/{user_id}/block", response_model=UserResponse)
async def block_user(
    user_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Block an account. All of its tokens are rejected from now on."""
    return UserResponse.model_validate(await service.block(user_id))


@router.put("/{user_id}/unblock", response_model=UserResponse)
async def unblock_user(
    user_id: int,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Lift a block. Calling this for an account that is not blocked is harmless."""
    return UserResponse.model_validate(await service.unblock(user_id))


@router.put("/{user_id}/role", response_model=UserResponse)
async def change_role(
    user_id: int,
    data: RoleUpdateRequest,
    _: Principal = Depends(require_roles(ROLE_ADMIN)),
    service: UserService = Depends(get_user_service),
) -> UserResponse:
    """Change an account's role (admin only)."""
    return UserResponse.model_validate(await service.set_role(user_id, data.role))
