"""Initial schema with stores, products, customers, orders, sync logs.

Revision ID: 0001
Revises:
Create Date: 2026-03-01 12:00:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# Revision identifiers
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    ]


def upgrade() -> None:
    """Create initial database schema."""

    # Stores table
    op.create_table(
        "stores",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("domain", sa.String(255), nullable=False),
        sa.Column("platform", sa.String(50), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="pending"),
        sa.Column("credentials", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
    )
    op.create_index("ix_stores_user_id", "stores", ["user_id"])

    # Products table
    op.create_table(
        "products",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column(
            "store_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("stores.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(512), nullable=False, server_default=""),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column("shop_sku", sa.String(255), nullable=False),
        sa.Column("provider_sku", sa.String(255), nullable=False, server_default=""),
        sa.Column("is_shared", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("image_url", sa.String(2048), nullable=False, server_default=""),
        sa.Column("inventory", sa.Integer, nullable=False, server_default="0"),
        sa.Column("category", sa.String(255), nullable=True),
        sa.Column("brand", sa.String(255), nullable=True),
        sa.Column("reference", sa.String(255), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("owner_user_id", "shop_sku", name="uq_products_owner_shop_sku"),
    )
    op.create_index("ix_products_owner_user_id", "products", ["owner_user_id"])
    op.create_index("ix_products_store_id", "products", ["store_id"])

    # Customers table
    op.create_table(
        "customers",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("external_id", sa.String(255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(255), nullable=False, server_default=""),
        sa.Column("city", sa.String(255), nullable=False, server_default=""),
        sa.Column("country", sa.String(64), nullable=False, server_default=""),
        sa.Column("phone_number", sa.String(64), nullable=False, server_default=""),
        *_timestamps(),
    )

    # Orders table
    op.create_table(
        "orders",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column(
            "store_id",
            postgresql.UUID(as_uuid=False),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("commercial_id", sa.String(255), nullable=False),
        sa.Column("provider_order_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("customer_id", sa.String(255), nullable=False, server_default=""),
        sa.Column("shipping_address", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("billing_address", postgresql.JSONB, nullable=False, server_default="{}"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("currency", sa.String(3), nullable=False, server_default=""),
        sa.Column("commission", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(64), nullable=False, server_default=""),
        sa.Column("order_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("shipping_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("received_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_data", postgresql.JSONB, nullable=False, server_default="{}"),
        *_timestamps(),
        sa.UniqueConstraint("store_id", "commercial_id", name="uq_orders_store_commercial_id"),
    )
    op.create_index("ix_orders_store_id", "orders", ["store_id"])
    op.create_index("ix_orders_owner_user_id", "orders", ["owner_user_id"])

    # Sync logs table (append-only)
    op.create_table(
        "sync_logs",
        sa.Column("id", postgresql.UUID(as_uuid=False), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("details", sa.Text, nullable=False, server_default=""),
        sa.Column("status", sa.String(32), nullable=False),
        sa.Column("related_id", postgresql.UUID(as_uuid=False), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_sync_logs_user_id", "sync_logs", ["user_id"])
    op.create_index("ix_sync_logs_related_id", "sync_logs", ["related_id"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("sync_logs")
    op.drop_table("orders")
    op.drop_table("customers")
    op.drop_table("products")
    op.drop_table("stores")
