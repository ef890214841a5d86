"""Middleware module for the marketplace backend."""

from app.middleware.request_context import RequestContextMiddleware, resolve_request_id

__all__ = [
    "RequestContextMiddleware",
    "resolve_request_id",
]
