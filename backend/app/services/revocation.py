"""Session revocation gate.

Access tokens are verified offline, so a token stays cryptographically valid
until its ``exp`` claim. Logout and admin blocks are enforced by existence
markers in the key-value store, checked on every authenticated request:

    blacklist_user:<subject_id>   written on logout
    blocked_user:<subject_id>     written on admin block, removed on unblock

A marker revokes every token of the subject regardless of when it was issued.
Marker values are informational only and never read back.

If the key-value store cannot answer, the request is rejected: absence of a
marker must be proven before a request is admitted.
"""

import logging
from datetime import UTC, datetime
from enum import Enum

from app.core import AppError
from app.core.cache import KV_ERRORS, KeyValueStore
from app.services.auth import (
    InvalidTokenError,
    Principal,
    TokenExpiredError,
    verify_access_token,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


class RevocationReason(str, Enum):
    LOGOUT = "logout"
    BLOCKED = "blocked"


_KEY_PREFIXES = {
    RevocationReason.LOGOUT: "blacklist_user:",
    RevocationReason.BLOCKED: "blocked_user:",
}


def revocation_key(subject_id: int, reason: RevocationReason) -> str:
    """Key-value store key holding the marker for a subject and reason."""
    return f"{_KEY_PREFIXES[reason]}{subject_id}"


def extract_bearer_token(authorization: str | None) -> str:
    """Pull the raw token out of an ``Authorization`` header value."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise AppError.unauthorized(
            "Missing or invalid authorization header", reason="invalid_token"
        )
    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AppError.unauthorized("Empty bearer token", reason="invalid_token")
    return token


class RevocationGate:
    """Admits or rejects bearer tokens and manages revocation markers."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    async def authenticate(self, raw_token: str) -> Principal:
        """Verify a token and check that its subject has not been revoked.

        Raises:
            AppError: ``unauthorized`` with reason ``invalid_token``,
                ``invalid_or_expired``, ``revoked`` or ``revocation_unavailable``;
                ``forbidden`` with reason ``blocked``.
        """
        if not raw_token or raw_token.count(".") != 2:
            raise AppError.unauthorized("Malformed token", reason="invalid_token")

        try:
            principal = verify_access_token(raw_token)
        except TokenExpiredError as e:
            raise AppError.unauthorized(
                "Token has expired", reason="invalid_or_expired", detail=str(e)
            ) from e
        except InvalidTokenError as e:
            raise AppError.unauthorized(
                "Invalid token", reason="invalid_or_expired", detail=str(e)
            ) from e

        if await self._marker_exists(principal.subject_id, RevocationReason.LOGOUT):
            logger.debug(f"Rejected token of logged-out subject {principal.subject_id}")
            raise AppError.unauthorized("Token has been revoked", reason="revoked")

        if await self._marker_exists(principal.subject_id, RevocationReason.BLOCKED):
            logger.debug(f"Rejected token of blocked subject {principal.subject_id}")
            raise AppError.forbidden("User has been blocked", reason="blocked")

        return principal

    async def _marker_exists(self, subject_id: int, reason: RevocationReason) -> bool:
        key = revocation_key(subject_id, reason)
        try:
            return await self.store.exists(key) > 0
        except KV_ERRORS as e:
            logger.warning(f"Revocation lookup failed for {key}: {e}")
            raise AppError.unauthorized(
                "Unable to verify session", reason="revocation_unavailable", detail=str(e)
            ) from e

    async def revoke(
        self,
        subject_id: int,
        reason: RevocationReason,
        ttl_seconds: int | None = None,
    ) -> None:
        """Create a revocation marker; ``ttl_seconds=None`` keeps it until removed."""
        key = revocation_key(subject_id, reason)
        try:
            await self.store.set(key, datetime.now(UTC).isoformat(), ex=ttl_seconds)
        except KV_ERRORS as e:
            raise AppError.internal(f"Failed to write revocation marker {key}: {e}") from e
        logger.info(f"Revoked subject {subject_id} (reason={reason.value}, ttl={ttl_seconds})")

    async def unblock(self, subject_id: int) -> None:
        """Remove the block marker. Unblocking a subject that is not blocked is a no-op."""
        key = revocation_key(subject_id, RevocationReason.BLOCKED)
        try:
            removed = await self.store.delete(key)
        except KV_ERRORS as e:
            raise AppError.internal(f"Failed to remove revocation marker {key}: {e}") from e
        if removed:
            logger.info(f"Unblocked subject {subject_id}")

    async def clear_logout(self, subject_id: int) -> None:
        """Drop the logout marker so tokens issued by a fresh login are admitted."""
        key = revocation_key(subject_id, RevocationReason.LOGOUT)
        try:
            await self.store.delete(key)
        except KV_ERRORS as e:
            raise AppError.internal(f"Failed to clear logout marker {key}: {e}") from e

    async def is_blocked(self, subject_id: int) -> bool:
        """Whether an admin block marker exists (fails closed like authenticate)."""
        key = revocation_key(subject_id, RevocationReason.BLOCKED)
        try:
            return await self.store.exists(key) > 0
        except KV_ERRORS as e:
            raise AppError.unauthorized(
                "Unable to verify session", reason="revocation_unavailable", detail=str(e)
            ) from e
