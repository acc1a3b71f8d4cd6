"""Unit tests for sync adapters."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from src.models import Platform, SyncType
from src.sync.adapters import (
    ADAPTERS,
    MiraklOffersAdapter,
    MiraklOrdersAdapter,
    ShopifyProductsAdapter,
    find_adapter_factory,
)
from src.sync.errors import SyncError, UnsupportedSyncError
from src.sync.writer import EntityKind


def shopify_client_with_pages(pages):
    """Shopify client mock answering ``pages`` of (node count, next cursor)."""
    client = MagicMock()
    responses = []
    for count, cursor in pages:
        nodes = [{"id": f"gid://shopify/Product/{n}"} for n in range(count)]
        responses.append((nodes, {"hasNextPage": cursor is not None, "endCursor": cursor}))
    client.get_products_page = AsyncMock(side_effect=responses)
    client.close = AsyncMock()
    return client


class TestRegistry:
    """Tests for the adapter registry."""

    def test_implemented_pipelines(self):
        assert set(ADAPTERS) == {
            (Platform.MIRAKL, SyncType.PRODUCTS),
            (Platform.MIRAKL, SyncType.ORDERS),
            (Platform.SHOPIFY, SyncType.PRODUCTS),
        }

    def test_plain_strings_resolve(self):
        assert ("mirakl", "orders") in ADAPTERS
        assert ("shopify", "inventory") not in ADAPTERS

    def test_lookup_returns_registered_factory(self):
        assert find_adapter_factory("mirakl", "orders") is ADAPTERS[(Platform.MIRAKL, SyncType.ORDERS)]

    @pytest.mark.parametrize(
        "platform, sync_type",
        [("shopify", "orders"), ("mirakl", "inventory"), ("amazon", "products")],
    )
    def test_unregistered_pair_raises_unsupported(self, platform, sync_type):
        with pytest.raises(UnsupportedSyncError, match="not yet implemented"):
            find_adapter_factory(platform, sync_type)

    def test_lookup_uses_given_registry(self):
        factory = AsyncMock()

        assert find_adapter_factory("shopify", "orders", {("shopify", "orders"): factory}) is factory
        with pytest.raises(UnsupportedSyncError):
            find_adapter_factory("mirakl", "products", {})


class TestMiraklOffersAdapter:
    """Tests for offers prepare step."""

    def test_prepare_dedups_products(self, mirakl_store, sample_offer):
        adapter = MiraklOffersAdapter(mirakl_store, MagicMock())
        duplicate = dict(sample_offer, product_title="Second copy")

        parsed = [adapter.parse_record(r) for r in (sample_offer, duplicate)]
        batches = adapter.prepare(parsed)

        assert len(batches) == 1
        assert batches[0].kind == EntityKind.PRODUCTS
        assert [row["title"] for row in batches[0].rows] == ["Blue Widget"]
        assert batches[0].rows[0]["store_id"] == mirakl_store.id


class TestMiraklOrdersAdapter:
    """Tests for orders prepare step."""

    def test_customers_written_before_orders(self, mirakl_store, sample_mirakl_order):
        adapter = MiraklOrdersAdapter(mirakl_store, MagicMock())

        batches = adapter.prepare([adapter.parse_record(sample_mirakl_order)])

        assert [b.kind for b in batches] == [EntityKind.CUSTOMERS, EntityKind.ORDERS]

    def test_duplicate_commercial_id_keeps_first(self, mirakl_store, sample_mirakl_order):
        adapter = MiraklOrdersAdapter(mirakl_store, MagicMock())
        second = dict(sample_mirakl_order, total_price=99.0)

        batches = adapter.prepare([adapter.parse_record(r) for r in (sample_mirakl_order, second)])
        orders = batches[1].rows

        assert len(orders) == 1
        assert str(orders[0]["total_amount"]) == "49.99"

    def test_customers_without_id_are_skipped(self, mirakl_store):
        adapter = MiraklOrdersAdapter(mirakl_store, MagicMock())

        batches = adapter.prepare([adapter.parse_record({"commercial_id": "CO-5"})])

        assert batches[0].rows == []
        assert len(batches[1].rows) == 1

    def test_repeat_customer_written_once(self, mirakl_store, sample_mirakl_order):
        adapter = MiraklOrdersAdapter(mirakl_store, MagicMock())
        other_order = dict(sample_mirakl_order, commercial_id="CO-2")

        batches = adapter.prepare([adapter.parse_record(r) for r in (sample_mirakl_order, other_order)])

        assert len(batches[0].rows) == 1
        assert len(batches[1].rows) == 2


@pytest.mark.asyncio
class TestShopifyProductsAdapter:
    """Tests for cursor-to-offset mapping."""

    async def test_follows_cursors(self, shopify_store):
        client = shopify_client_with_pages([(100, "c1"), (100, "c2"), (30, None)])
        adapter = ShopifyProductsAdapter(shopify_store, client)

        sizes = [len(await adapter.fetch_page(offset, 100)) for offset in (0, 100, 200)]

        assert sizes == [100, 100, 30]
        afters = [call.args[1] for call in client.get_products_page.await_args_list]
        assert afters == [None, "c1", "c2"]

    async def test_past_the_end_needs_no_request(self, shopify_store):
        client = shopify_client_with_pages([(100, None)])
        adapter = ShopifyProductsAdapter(shopify_store, client)

        await adapter.fetch_page(0, 100)

        assert await adapter.fetch_page(100, 100) == []
        assert client.get_products_page.await_count == 1

    async def test_unknown_offset_raises(self, shopify_store):
        adapter = ShopifyProductsAdapter(shopify_store, shopify_client_with_pages([]))

        with pytest.raises(SyncError):
            await adapter.fetch_page(500, 100)

    async def test_close_closes_client(self, shopify_store):
        client = shopify_client_with_pages([])
        adapter = ShopifyProductsAdapter(shopify_store, client)

        await adapter.close()

        client.close.assert_awaited_once()
