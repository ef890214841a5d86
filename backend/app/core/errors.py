"""Application error type and its HTTP rendering.

Every failure that reaches a client is an ``AppError`` carrying exactly one
``ErrorKind``. Handlers render it as::

    {"error": {"code": "<kind>", "message": "<text>", "reason": "<optional>"}}

``detail`` is for logs only and is never serialized.
"""

import enum
import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ErrorKind(str, enum.Enum):
    INVALID_REQUEST = "invalid_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]


_STATUS_CODES = {
    ErrorKind.INVALID_REQUEST: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

_GENERIC_INTERNAL_MESSAGE = "An internal error occurred"


class AppError(Exception):
    """A classified application error.

    Args:
        kind: Taxonomy entry, determines the HTTP status.
        message: Client-facing text. Ignored for INTERNAL_ERROR.
        detail: Diagnostic text for logs.
        reason: Optional machine-readable sub-code (e.g. "revoked").
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        detail: str | None = None,
        reason: str | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.detail = detail
        self.reason = reason

    def __repr__(self) -> str:
        return (
            f"AppError(kind={self.kind.value!r}, message={self.message!r}, "
            f"reason={self.reason!r})"
        )

    @classmethod
    def invalid_request(cls, message: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.INVALID_REQUEST, message, **kwargs)

    @classmethod
    def unauthorized(cls, message: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.UNAUTHORIZED, message, **kwargs)

    @classmethod
    def forbidden(cls, message: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.FORBIDDEN, message, **kwargs)

    @classmethod
    def not_found(cls, message: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.NOT_FOUND, message, **kwargs)

    @classmethod
    def validation(cls, message: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.VALIDATION_ERROR, message, **kwargs)

    @classmethod
    def internal(cls, detail: str, **kwargs: Any) -> "AppError":
        return cls(ErrorKind.INTERNAL_ERROR, _GENERIC_INTERNAL_MESSAGE, detail=detail, **kwargs)

    def to_body(self) -> dict[str, Any]:
        message = (
            _GENERIC_INTERNAL_MESSAGE if self.kind is ErrorKind.INTERNAL_ERROR else self.message
        )
        error: dict[str, Any] = {"code": self.kind.value, "message": message}
        if self.reason:
            error["reason"] = self.reason
        return {"error": error}


def error_response(error: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if error.kind is ErrorKind.UNAUTHORIZED else None
    return JSONResponse(
        status_code=error.kind.status_code,
        content=error.to_body(),
        headers=headers,
    )


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL_ERROR:
        logger.error(f"Internal error on {request.method} {request.url.path}: {exc.detail}")
    elif exc.detail:
        logger.debug(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.detail}")
    return error_response(exc)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    problems = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return error_response(AppError.invalid_request("; ".join(problems) or "Invalid request"))


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = {
        401: ErrorKind.UNAUTHORIZED,
        403: ErrorKind.FORBIDDEN,
        404: ErrorKind.NOT_FOUND,
    }.get(exc.status_code, ErrorKind.INVALID_REQUEST)
    if exc.status_code >= 500:
        kind = ErrorKind.INTERNAL_ERROR
    response = error_response(AppError(kind, str(exc.detail)))
    # Keep the framework's status (405, 415, ...) rather than the kind's default
    response.status_code = exc.status_code
    return response


async def _database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}", exc_info=exc)
    return error_response(AppError.internal(str(exc)))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that render every error in the common envelope."""
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(SQLAlchemyError, _database_error_handler)
