"""Pydantic schemas for user API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Role = Literal["user", "seller", "admin"]


class UserResponse(BaseModel):
    """Public view of an account. Never includes the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime


class UserUpdate(BaseModel):
    """Self-service profile update. All fields optional."""

    name: str | None = Field(None, min_length=2, max_length=100)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6, max_length=128)


class RoleUpdateRequest(BaseModel):
    role: Role
