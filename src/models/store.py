"""Store model."""

from enum import StrEnum
from typing import Any, Optional

from sqlalchemy import String
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, UUIDMixin, TimestampMixin


class Platform(StrEnum):
    """Supported sales channel platforms."""

    SHOPIFY = "shopify"
    MIRAKL = "mirakl"


class StoreStatus(StrEnum):
    """Connection status of a store."""

    PENDING = "pending"
    ACTIVE = "active"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class Store(Base, UUIDMixin, TimestampMixin):
    """A connected external sales channel owned by one user."""

    __tablename__ = "stores"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )

    # Basic info
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    platform: Mapped[str] = mapped_column(String(50), nullable=False)  # shopify, mirakl

    status: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        default=StoreStatus.PENDING,
    )

    # Shopify: {"access_token"}
    # Mirakl: {"api_key"} or {"client_id", "client_secret", "audience"}
    credentials: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )

    @property
    def access_token(self) -> Optional[str]:
        return (self.credentials or {}).get("access_token") or None

    @property
    def api_key(self) -> Optional[str]:
        return (self.credentials or {}).get("api_key") or None

    @property
    def has_oauth_credentials(self) -> bool:
        creds = self.credentials or {}
        return all(creds.get(k) for k in ("client_id", "client_secret", "audience"))

    def __repr__(self) -> str:
        return f"<Store {self.name} ({self.platform})>"
