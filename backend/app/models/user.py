"""User model - marketplace accounts and their roles."""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel

USER_ROLES = ("user", "seller", "admin")

UserRole = Enum(*USER_ROLES, name="user_role", create_constraint=True)


class User(BaseModel):
    """Marketplace account.

    ``role`` is embedded in issued tokens, so a role change only takes effect
    for tokens issued afterwards. ``is_active`` mirrors the admin block
    marker kept in the key-value store.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(UserRole, nullable=False, default="user")
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_login_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"
