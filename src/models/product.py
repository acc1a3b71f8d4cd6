"""Product model."""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base, UUIDMixin, TimestampMixin


class Product(Base, UUIDMixin, TimestampMixin):
    """A catalog entry, merchant-authored or imported from a channel."""

    __tablename__ = "products"

    owner_user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False),
        nullable=False,
        index=True,
    )
    # Null for merchant-authored products
    store_id: Mapped[Optional[str]] = mapped_column(
        UUID(as_uuid=False),
        ForeignKey("stores.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="USD")

    shop_sku: Mapped[str] = mapped_column(String(255), nullable=False)
    provider_sku: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    is_shared: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    image_url: Mapped[str] = mapped_column(String(2048), nullable=False, default="")
    inventory: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    category: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    brand: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    reference: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        UniqueConstraint("owner_user_id", "shop_sku", name="uq_products_owner_shop_sku"),
    )

    def __repr__(self) -> str:
        return f"<Product {self.shop_sku} ({self.title[:30]})>"
