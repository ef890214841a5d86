"""Shared API dependencies: authentication, role checks and service wiring."""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import AppError, KeyValueStore, get_db, get_kv_store, settings
from app.services.auth import Principal
from app.services.catalog import CatalogService
from app.services.permissions import is_role_allowed
from app.services.product import ProductRepository
from app.services.revocation import RevocationGate, extract_bearer_token


def get_revocation_gate(store: KeyValueStore = Depends(get_kv_store)) -> RevocationGate:
    """Dependency to get the revocation gate."""
    return RevocationGate(store)


async def get_current_principal(
    request: Request,
    authorization: str | None = Header(default=None),
    gate: RevocationGate = Depends(get_revocation_gate),
) -> Principal:
    """Authenticate the bearer token of the request.

    The principal is also stored on ``request.state.principal`` so
    middleware and handlers further down can read it.
    """
    token = extract_bearer_token(authorization)
    principal = await gate.authenticate(token)
    request.state.principal = principal
    return principal


def require_roles(*roles: str) -> Callable[..., Awaitable[Principal]]:
    """Dependency factory admitting only principals holding one of ``roles``."""
    allowed = frozenset(roles)

    async def check_role(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not is_role_allowed(principal.role, allowed):
            raise AppError.forbidden("Insufficient role for this operation", reason="role")
        return principal

    return check_role


def get_catalog_service(
    db: AsyncSession = Depends(get_db),
    store: KeyValueStore = Depends(get_kv_store),
) -> CatalogService:
    """Dependency to get the catalog service."""
    return CatalogService(
        ProductRepository(db),
        store,
        ttl_seconds=settings.catalog_cache_ttl_seconds,
    )
