"""User service - profile management and admin account controls."""

import logging

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import AppError
from app.models import User
from app.schemas.user import UserUpdate
from app.services.auth import hash_password
from app.services.revocation import RevocationGate, RevocationReason

logger = logging.getLogger(__name__)


class UserService:
    """Service for reading and administering user accounts."""

    def __init__(self, db: AsyncSession, gate: RevocationGate):
        self.db = db
        self.gate = gate

    async def get(self, user_id: int) -> User:
        """Get a user by ID, raising not_found when absent."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise AppError.not_found(f"User {user_id} not found")
        return user

    async def get_by_email(self, email: str) -> User:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        user = result.scalar_one_or_none()
        if user is None:
            raise AppError.not_found("User not found")
        return user

    async def list(self, page: int = 1, page_size: int = 50) -> tuple[list[User], int]:
        """List users ordered by ID with pagination."""
        total = (await self.db.execute(select(func.count(User.id)))).scalar() or 0
        offset = (page - 1) * page_size
        result = await self.db.execute(
            select(User).order_by(User.id).offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def update_me(self, user_id: int, data: UserUpdate) -> User:
        """Apply a self-service profile update."""
        user = await self.get(user_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)

        if "email" in changes:
            email = changes["email"].lower()
            if email != user.email:
                existing = await self.db.execute(select(User.id).where(User.email == email))
                if existing.scalar_one_or_none() is not None:
                    raise AppError.validation("Email is already registered")
            user.email = email
        if "name" in changes:
            user.name = changes["name"]
        if "password" in changes:
            user.password_hash = hash_password(changes["password"])

        try:
            await self.db.flush()
        except IntegrityError as e:
            raise AppError.validation("Email is already registered") from e
        await self.db.refresh(user)
        return user

    async def set_role(self, user_id: int, role: str) -> User:
        """Change a user's role. Takes effect for tokens issued afterwards."""
        user = await self.get(user_id)
        user.role = role
        await self.db.flush()
        await self.db.refresh(user)
        logger.info(f"User {user_id} role changed to {role}")
        return user

    async def block(self, user_id: int) -> User:
        """Block a user: deactivate the account and revoke all of its tokens."""
        user = await self.get(user_id)
        user.is_active = False
        await self.db.flush()
        await self.gate.revoke(user_id, RevocationReason.BLOCKED)
        await self.db.refresh(user)
        return user

    async def unblock(self, user_id: int) -> User:
        """Lift a block. Unblocking an active user changes nothing."""
        user = await self.get(user_id)
        await self.gate.unblock(user_id)
        user.is_active = True
        await self.db.flush()
        await self.db.refresh(user)
        return user
