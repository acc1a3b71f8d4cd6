"""Caller identity and store permissions."""

from dataclasses import dataclass

import structlog

from src.models.store import Store

logger = structlog.get_logger()

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    """Identity supplied by the upstream auth gateway."""

    user_id: str
    is_admin: bool = False

    @classmethod
    def from_role(cls, user_id: str, role: str | None) -> "CurrentUser":
        return cls(user_id=user_id, is_admin=(role or "").lower() == ADMIN_ROLE)


def can_manage_store(user: CurrentUser, store: Store) -> bool:
    """Owners manage their own stores; admins manage every store."""
    return user.is_admin or store.user_id == user.user_id


def ensure_can_manage_store(user: CurrentUser, store: Store) -> None:
    """
    Raise if the user may not act on the store.

    Raises:
        PermissionError: The user is neither the owner nor an admin
    """
    if not can_manage_store(user, store):
        logger.warning("store_permission_denied", user_id=user.user_id, store_id=store.id)
        raise PermissionError(f"User {user.user_id} cannot manage store {store.id}")
