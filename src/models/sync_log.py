"""Sync audit log model."""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from sqlalchemy import DateTime, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, UUIDMixin


class SyncType(StrEnum):
    """What a sync pulls from the channel."""

    PRODUCTS = "products"
    ORDERS = "orders"
    INVENTORY = "inventory"


class SyncStatus(StrEnum):
    """Outcome recorded in the audit log."""

    SUCCESS = "success"
    ERROR = "error"
    PARTIAL = "partial"


class SyncLog(Base, UUIDMixin):
    """Append-only audit record, one per sync attempt and per completed chunk."""

    __tablename__ = "sync_logs"

    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    details: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(32), nullable=False)
    related_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        nullable=True,
        index=True,
    )  # store id
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<SyncLog {self.type} {self.status}>"
