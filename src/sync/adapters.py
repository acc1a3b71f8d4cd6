"""Per (platform, sync type) adapters plugged into the generic orchestrator."""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import structlog

from src.config import SyncConfig
from src.integrations import MiraklClient, ShopifyClient, create_mirakl_client, create_shopify_client
from src.models.store import Platform, Store
from src.models.sync_log import SyncType
from src.sync.dedup import deduplicate, deduplicate_products
from src.sync.errors import SyncError, UnsupportedSyncError
from src.sync.parsers import (
    CustomerRecord,
    OrderRecord,
    ProductRecord,
    parse_mirakl_offer,
    parse_mirakl_order,
    parse_shopify_product,
)
from src.sync.writer import EntityKind, WriteBatch

logger = structlog.get_logger()


class SyncAdapter(ABC):
    """What the orchestrator needs to know about one data source.

    Subclasses fetch raw pages, parse records and name the uniqueness key
    of the parsed entity. ``prepare`` turns a parsed chunk into write
    batches and may be overridden when one record feeds several tables.
    """

    platform: Platform
    sync_type: SyncType
    entity_kind: EntityKind
    # Used in the duplicate-key failure message
    entity_label: str = "keys"

    def __init__(self, store: Store):
        self.store = store

    @property
    def owner_user_id(self) -> str:
        return self.store.user_id

    @abstractmethod
    async def count_total(self) -> int:
        """Total records the source reports."""

    @abstractmethod
    async def fetch_page(self, offset: int, limit: int) -> list[dict[str, Any]]:
        """Raw records starting at ``offset``."""

    @abstractmethod
    def parse_record(self, raw: dict[str, Any]) -> Any:
        """Map one raw record onto its entity."""

    @abstractmethod
    def uniqueness_key(self, entity: Any) -> Any:
        """Natural key used for in-batch dedup."""

    def prepare(self, parsed: list[Any]) -> list[WriteBatch]:
        unique = deduplicate(parsed, self.uniqueness_key, key_name=f"{self.entity_kind}_key")
        return [WriteBatch(self.entity_kind, [entity.to_row() for entity in unique])]

    async def close(self) -> None:
        """Release network resources."""


# === Mirakl ===


class MiraklOffersAdapter(SyncAdapter):
    platform = Platform.MIRAKL
    sync_type = SyncType.PRODUCTS
    entity_kind = EntityKind.PRODUCTS
    entity_label = "SKUs"

    def __init__(self, store: Store, client: MiraklClient):
        super().__init__(store)
        self.client = client

    async def count_total(self) -> int:
        return await self.client.count_offers()

    async def fetch_page(self, offset: int, limit: int) -> list[dict[str, Any]]:
        return await self.client.get_offers_page(offset, limit)

    def parse_record(self, raw: dict[str, Any]) -> ProductRecord:
        return parse_mirakl_offer(raw, self.owner_user_id, self.store.id)

    def uniqueness_key(self, entity: ProductRecord) -> str:
        return entity.shop_sku

    def prepare(self, parsed: list[ProductRecord]) -> list[WriteBatch]:
        unique = deduplicate_products(parsed)
        return [WriteBatch(EntityKind.PRODUCTS, [product.to_row() for product in unique])]

    async def close(self) -> None:
        await self.client.close()


class MiraklOrdersAdapter(SyncAdapter):
    """Orders plus the customers who placed them.

    Customers are written before orders in the same transaction.
    """

    platform = Platform.MIRAKL
    sync_type = SyncType.ORDERS
    entity_kind = EntityKind.ORDERS
    entity_label = "commercial ids"

    def __init__(self, store: Store, client: MiraklClient):
        super().__init__(store)
        self.client = client

    async def count_total(self) -> int:
        return await self.client.count_orders()

    async def fetch_page(self, offset: int, limit: int) -> list[dict[str, Any]]:
        return await self.client.get_orders_page(offset, limit)

    def parse_record(self, raw: dict[str, Any]) -> tuple[OrderRecord, CustomerRecord]:
        return parse_mirakl_order(raw, self.owner_user_id, self.store.id)

    def uniqueness_key(self, entity: tuple[OrderRecord, CustomerRecord]) -> str:
        return entity[0].commercial_id

    def prepare(self, parsed: list[tuple[OrderRecord, CustomerRecord]]) -> list[WriteBatch]:
        orders = deduplicate([order for order, _ in parsed], lambda o: o.commercial_id, key_name="commercial_id")

        customers = [customer for _, customer in parsed if customer.external_id]
        anonymous = len(parsed) - len(customers)
        if anonymous:
            logger.info("customers_without_external_id_skipped", store_id=self.store.id, count=anonymous)
        customers = deduplicate(customers, lambda c: c.external_id, key_name="external_id")

        return [
            WriteBatch(EntityKind.CUSTOMERS, [customer.to_row() for customer in customers]),
            WriteBatch(EntityKind.ORDERS, [order.to_row() for order in orders]),
        ]

    async def close(self) -> None:
        await self.client.close()


# === Shopify ===


class ShopifyProductsAdapter(SyncAdapter):
    """Shopify products behind the offset interface.

    Shopify paginates with cursors, so the adapter remembers which cursor
    starts each offset it has reached. Offsets must be requested in order,
    which the paginator guarantees. Once Shopify reports no next page,
    offsets at or past the end answer empty without a request.
    """

    platform = Platform.SHOPIFY
    sync_type = SyncType.PRODUCTS
    entity_kind = EntityKind.PRODUCTS
    entity_label = "SKUs"

    def __init__(self, store: Store, client: ShopifyClient):
        super().__init__(store)
        self.client = client
        self._cursors: dict[int, Optional[str]] = {0: None}
        self._end: Optional[int] = None

    async def count_total(self) -> int:
        return await self.client.count_products()

    async def fetch_page(self, offset: int, limit: int) -> list[dict[str, Any]]:
        if self._end is not None and offset >= self._end:
            return []
        if offset not in self._cursors:
            raise SyncError(f"No Shopify cursor for offset {offset}; pages must be fetched in order")

        nodes, page_info = await self.client.get_products_page(limit, self._cursors[offset])
        next_offset = offset + len(nodes)
        if page_info.get("hasNextPage") and page_info.get("endCursor"):
            self._cursors[next_offset] = page_info["endCursor"]
        else:
            self._end = next_offset
        return nodes

    def parse_record(self, raw: dict[str, Any]) -> ProductRecord:
        return parse_shopify_product(raw, self.owner_user_id, self.store.id)

    def uniqueness_key(self, entity: ProductRecord) -> str:
        return entity.shop_sku

    async def close(self) -> None:
        await self.client.close()


# === Registry ===

AdapterFactory = Callable[[Store, SyncConfig], Awaitable[SyncAdapter]]


async def _mirakl_offers(store: Store, config: SyncConfig) -> SyncAdapter:
    return MiraklOffersAdapter(store, await create_mirakl_client(store, config))


async def _mirakl_orders(store: Store, config: SyncConfig) -> SyncAdapter:
    return MiraklOrdersAdapter(store, await create_mirakl_client(store, config))


async def _shopify_products(store: Store, config: SyncConfig) -> SyncAdapter:
    return ShopifyProductsAdapter(store, create_shopify_client(store, config))


# Inventory and Shopify orders have no pipeline yet
ADAPTERS: dict[tuple[str, str], AdapterFactory] = {
    (Platform.MIRAKL, SyncType.PRODUCTS): _mirakl_offers,
    (Platform.MIRAKL, SyncType.ORDERS): _mirakl_orders,
    (Platform.SHOPIFY, SyncType.PRODUCTS): _shopify_products,
}


def find_adapter_factory(
    platform: str,
    sync_type: str,
    registry: Optional[dict[tuple[str, str], AdapterFactory]] = None,
) -> AdapterFactory:
    """
    Look up the adapter factory for a platform and sync type.

    Raises:
        UnsupportedSyncError: If no pipeline is registered for the pair
    """
    registry = ADAPTERS if registry is None else registry
    try:
        return registry[(platform, sync_type)]
    except KeyError:
        raise UnsupportedSyncError(
            f"{str(sync_type).capitalize()} sync is not yet implemented for {platform} stores"
        ) from None
