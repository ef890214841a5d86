"""Shared response schemas."""

from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    code: str = Field(description="Stable error code, e.g. 'not_found' or 'unauthorized'")
    message: str
    reason: str | None = Field(None, description="Sub-code for authentication rejections")


class ErrorResponse(BaseModel):
    """Envelope for every error returned by the API."""

    error: ErrorBody


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid request"},
    401: {"model": ErrorResponse, "description": "Missing, invalid or revoked token"},
    403: {"model": ErrorResponse, "description": "Blocked subject or insufficient role"},
    404: {"model": ErrorResponse, "description": "Entity not found"},
}
