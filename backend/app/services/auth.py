"""Authentication service: password hashing, access tokens and login."""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerifyMismatchError
from jwt.exceptions import PyJWTError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core import AppError, settings
from app.models.user import User

logger = logging.getLogger(__name__)

# Argon2 password hasher with recommended parameters
# Memory: 64 MiB, Time: 3 iterations, Parallelism: 4
ph = PasswordHasher(
    time_cost=3,
    memory_cost=65536,
    parallelism=4,
    hash_len=32,
    salt_len=16,
)

# Verified against when the email is unknown so both paths cost the same
_DUMMY_HASH = ph.hash("dummy-password-for-timing")


class TokenError(Exception):
    """JWT token could not be verified."""

    pass


class TokenExpiredError(TokenError):
    """JWT token has expired."""

    pass


class InvalidTokenError(TokenError):
    """JWT token is malformed, badly signed or missing claims."""

    pass


@dataclass(frozen=True)
class Principal:
    """The authenticated subject of a request."""

    subject_id: int
    role: str


def hash_password(password: str) -> str:
    """Hash a password using Argon2id."""
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash using constant-time comparison."""
    try:
        ph.verify(password_hash, password)
        return True
    except (VerifyMismatchError, InvalidHashError):
        return False


def create_access_token(subject_id: int, role: str, expires_in: timedelta | None = None) -> str:
    """Issue a signed access token for a subject."""
    now = datetime.now(UTC)
    expire = now + (expires_in or timedelta(minutes=settings.jwt_access_token_expire_minutes))
    payload = {
        "sub": str(subject_id),
        "role": role,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    token = jwt.encode(
        payload,
        settings.effective_jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return str(token)


def decode_token(token: str) -> dict[str, Any]:
    """Decode a JWT, checking signature and expiry."""
    try:
        return jwt.decode(
            token,
            settings.effective_jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token has expired") from e
    except PyJWTError as e:
        raise InvalidTokenError(f"Invalid token: {e}") from e


def verify_access_token(token: str) -> Principal:
    """Verify an access token offline and extract its principal."""
    payload = decode_token(token)
    if payload.get("type") != "access":
        raise InvalidTokenError("Not an access token")

    role = payload.get("role")
    if not isinstance(role, str) or not role:
        raise InvalidTokenError("Token missing role")

    try:
        subject_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise InvalidTokenError("Token subject is not a numeric id") from e

    return Principal(subject_id=subject_id, role=role)


class AuthService:
    """Service for account registration and credential checks."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def signup(self, name: str, email: str, password: str) -> User:
        """Register a new account with the default role."""
        if await self.get_user_by_email(email) is not None:
            raise AppError.validation("Email is already registered")

        user = User(
            name=name,
            email=email.lower(),
            password_hash=hash_password(password),
            role="user",
        )
        self.session.add(user)
        try:
            await self.session.flush()
        except IntegrityError as e:
            # Lost a race with a concurrent signup for the same email
            raise AppError.validation("Email is already registered") from e
        await self.session.refresh(user)

        logger.info(f"User signed up: id={user.id}")
        return user

    async def authenticate(self, email: str, password: str) -> User:
        """Check credentials and return the user.

        Unknown email and wrong password produce the same error to prevent
        account enumeration.
        """
        user = await self.get_user_by_email(email)

        if user is None:
            verify_password(password, _DUMMY_HASH)
            raise AppError.unauthorized("Invalid email or password", reason="invalid_credentials")

        if not verify_password(password, user.password_hash):
            raise AppError.unauthorized("Invalid email or password", reason="invalid_credentials")

        if not user.is_active:
            raise AppError.forbidden("User has been blocked", reason="blocked")

        user.last_login_at = datetime.now(UTC)
        await self.session.flush()
        return user

    def issue_token(self, user: User) -> dict[str, Any]:
        """Create the login response payload for a user."""
        return {
            "access_token": create_access_token(user.id, user.role),
            "token_type": "bearer",
            "expires_in": settings.jwt_access_token_expire_minutes * 60,
        }
