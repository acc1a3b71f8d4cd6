"""Order and Customer models."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import DateTime, ForeignKey, Numeric, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, TimestampMixin, UUIDMixin


class Customer(Base, UUIDMixin, TimestampMixin):
    """A buyer profile normalized across channels."""

    __tablename__ = "customers"

    # Channel-native identifier, usually the buyer email
    external_id: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)

    first_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    last_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    city: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    country: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    phone_number: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    def __repr__(self) -> str:
        return f"<Customer {self.external_id}>"


class Order(Base, UUIDMixin, TimestampMixin):
    """A purchase pulled from a channel. Only ever written by sync."""

    __tablename__ = "orders"

    store_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    owner_user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )

    commercial_id: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_order_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    customer_id: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    shipping_address: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)
    billing_address: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="")
    commission: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    order_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    shipping_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    received_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Upstream payload kept verbatim for audit
    raw_data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("store_id", "commercial_id", name="uq_orders_store_commercial_id"),
    )

    def __repr__(self) -> str:
        return f"<Order {self.commercial_id} ({self.status})>"
