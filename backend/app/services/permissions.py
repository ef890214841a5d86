"""Role checks, kept free of any request or framework state."""

from collections.abc import Iterable

ROLE_USER = "user"
ROLE_SELLER = "seller"
ROLE_ADMIN = "admin"

CATALOG_EDITORS = frozenset({ROLE_SELLER, ROLE_ADMIN})
ADMINS = frozenset({ROLE_ADMIN})


def is_role_allowed(role: str | None, allowed_roles: Iterable[str]) -> bool:
    """Return True when ``role`` is one of ``allowed_roles``."""
    if not role:
        return False
    return role in frozenset(allowed_roles)


def can_modify_owned(subject_id: int, role: str, owner_id: int) -> bool:
    """Owners may modify their own records; admins may modify anyone's."""
    return role == ROLE_ADMIN or subject_id == owner_id
