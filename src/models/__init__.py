"""Database models."""

from src.models.base import Base
from src.models.order import Customer, Order
from src.models.product import Product
from src.models.store import Platform, Store, StoreStatus
from src.models.sync_log import SyncLog, SyncStatus, SyncType

__all__ = [
    "Base",
    "Store",
    "Platform",
    "StoreStatus",
    "Product",
    "Order",
    "Customer",
    "SyncLog",
    "SyncType",
    "SyncStatus",
]
