"""Marketplace Backend - FastAPI Application Factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import api_router
from app.api.health import router as health_router
from app.core import (
    KeyValueStore,
    check_cache_connection,
    create_redis_client,
    engine,
    register_exception_handlers,
    settings,
    setup_logging,
)
from app.core.logging import get_logger
from app.middleware import RequestContextMiddleware

# Import all models to ensure they're registered with Base for Alembic
from app.models import (  # noqa: F401
    Cart,
    CartItem,
    Category,
    Order,
    OrderItem,
    Product,
    User,
)

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    setup_logging(
        level=settings.log_level,
        format_type="structured" if not settings.debug else "dev",
    )
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")

    for warning in settings.check_security_configuration():
        logger.warning(f"SECURITY: {warning}")

    # A store injected by the caller (tests) is left alone and not closed
    owns_store = getattr(app.state, "kv_store", None) is None
    if owns_store:
        app.state.kv_store = create_redis_client()

    if not await check_cache_connection(app.state.kv_store):
        # Authenticated requests are rejected until the cache is reachable
        logger.warning("Key-value store is not reachable at startup")

    yield

    # Shutdown
    logger.info("Shutting down...")
    if owns_store:
        await app.state.kv_store.aclose()
        app.state.kv_store = None
    await engine.dispose()


def create_app(kv_store: KeyValueStore | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title=settings.app_name,
        description="Marketplace backend with cached catalog and revocable sessions",
        version=settings.app_version,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
    )
    app.state.kv_store = kv_store

    register_exception_handlers(app)

    app.add_middleware(RequestContextMiddleware)

    # CORS middleware - MUST be outermost (added last in Starlette LIFO order)
    # so that CORS headers are present on ALL responses, including errors.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=[
            "Authorization",
            "Content-Type",
            "Accept",
            "X-Request-ID",
        ],
        expose_headers=["X-Request-ID"],
    )

    # Prometheus metrics (before routers so /metrics endpoint is registered first)
    if settings.enable_metrics:
        from prometheus_fastapi_instrumentator import Instrumentator

        Instrumentator(
            excluded_handlers=["/health", "/metrics"],
        ).instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)

    # Include routers
    app.include_router(health_router)  # Health at root level
    app.include_router(api_router)  # API at /api/v1

    # Root endpoint
    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "api": api_router.prefix,
        }

    return app


# Application instance
app = create_app()
