"""Authentication API endpoints."""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_principal, get_revocation_gate
from app.core import AppError, get_db, settings
from app.schemas.auth import LoginRequest, SignupRequest, TokenResponse
from app.schemas.common import ERROR_RESPONSES, MessageResponse
from app.schemas.user import UserResponse
from app.services.auth import AuthService, Principal
from app.services.revocation import RevocationGate, RevocationReason
from app.services.user import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"], responses=ERROR_RESPONSES)


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db)


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    service: AuthService = Depends(get_auth_service),
) -> UserResponse:
    """Register a new account with the ``user`` role."""
    user = await service.signup(data.name, data.email, data.password)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    gate: RevocationGate = Depends(get_revocation_gate),
) -> TokenResponse:
    """Exchange credentials for an access token.

    A successful login starts a new session for the account, so any logout
    marker left by a previous session is cleared.
    """
    user = await service.authenticate(data.email, data.password)
    if await gate.is_blocked(user.id):
        raise AppError.forbidden("User has been blocked", reason="blocked")

    await gate.clear_logout(user.id)
    logger.info(f"User {user.id} logged in")

    return TokenResponse(
        **service.issue_token(user),
        user=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    principal: Principal = Depends(get_current_principal),
    gate: RevocationGate = Depends(get_revocation_gate),
) -> MessageResponse:
    """Revoke every token of the caller."""
    await gate.revoke(
        principal.subject_id,
        RevocationReason.LOGOUT,
        ttl_seconds=settings.logout_marker_ttl_seconds,
    )
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserResponse)
async def get_me(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    gate: RevocationGate = Depends(get_revocation_gate),
) -> UserResponse:
    """Get the authenticated user's account."""
    user = await UserService(db, gate).get(principal.subject_id)
    return UserResponse.model_validate(user)
