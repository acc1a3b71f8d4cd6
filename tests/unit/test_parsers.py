"""Unit tests for record parsers."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from src.sync.parsers import parse_mirakl_offer, parse_mirakl_order, parse_shopify_product

OWNER = "11111111-1111-1111-1111-111111111111"
STORE = "22222222-2222-2222-2222-222222222222"


class TestParseMiraklOffer:
    """Tests for Mirakl offer mapping."""

    def test_full_offer(self, sample_offer):
        product = parse_mirakl_offer(sample_offer, OWNER, STORE)

        assert product.owner_user_id == OWNER
        assert product.store_id == STORE
        assert product.shop_sku == "SKU-001"
        assert product.provider_sku == "PRD-9001"
        assert product.title == "Blue Widget"
        assert product.reference == "3700000000001"
        assert product.category == "Widgets"
        assert product.brand == "Acme"
        assert product.price == Decimal("19.99")
        assert product.currency == "EUR"
        assert product.inventory == 12
        assert product.image_url == ""
        assert product.is_shared is False

    def test_missing_fields_default(self):
        product = parse_mirakl_offer({}, OWNER, STORE)

        assert product.shop_sku == ""
        assert product.title == ""
        assert product.price == Decimal("0")
        assert product.inventory == 0
        assert product.reference is None
        assert product.category is None

    def test_garbage_numbers_default_to_zero(self):
        product = parse_mirakl_offer({"total_price": "n/a", "quantity": "lots"}, OWNER, STORE)

        assert product.price == Decimal("0")
        assert product.inventory == 0

    @pytest.mark.parametrize("quantity", ["1e400", "inf", "-inf", "nan", 2**40])
    def test_quantity_outside_integer_column_defaults_to_zero(self, sample_offer, quantity):
        sample_offer["quantity"] = quantity

        assert parse_mirakl_offer(sample_offer, OWNER, STORE).inventory == 0

    @pytest.mark.parametrize("price", ["1e400", "NaN", "Infinity", "-Infinity", "1e12", 10**10])
    def test_price_outside_amount_column_defaults_to_zero(self, sample_offer, price):
        sample_offer["total_price"] = price

        assert parse_mirakl_offer(sample_offer, OWNER, STORE).price == Decimal("0")

    def test_largest_storable_price_kept(self, sample_offer):
        sample_offer["total_price"] = "9999999999.99"

        assert parse_mirakl_offer(sample_offer, OWNER, STORE).price == Decimal("9999999999.99")

    def test_to_row_has_column_names(self, sample_offer):
        row = parse_mirakl_offer(sample_offer, OWNER, STORE).to_row()

        assert row["shop_sku"] == "SKU-001"
        assert row["owner_user_id"] == OWNER
        assert "id" not in row


class TestParseMiraklOrder:
    """Tests for Mirakl order mapping."""

    def test_order_and_customer(self, sample_mirakl_order):
        order, customer = parse_mirakl_order(sample_mirakl_order, OWNER, STORE)

        assert order.commercial_id == "CO-1"
        assert order.provider_order_id == "CO-1-A"
        assert order.status == "SHIPPING"
        assert order.total_amount == Decimal("49.99")
        assert order.commission == Decimal("5.0")
        assert order.order_date == datetime(2026, 2, 1, 10, 0, tzinfo=timezone.utc)
        assert order.shipping_date is None
        assert order.customer_id == "jane@example.com"
        assert order.raw_data is sample_mirakl_order

        assert customer.external_id == "jane@example.com"
        assert customer.first_name == "Jane"
        assert customer.last_name == "Doe"

    def test_address_fields_fall_back_to_billing(self, sample_mirakl_order):
        _, customer = parse_mirakl_order(sample_mirakl_order, OWNER, STORE)

        # City from shipping, phone from billing since shipping phone is blank
        assert customer.city == "Lyon"
        assert customer.country == "FRA"
        assert customer.phone_number == "+33100000000"

    def test_customer_id_used_without_email(self, sample_mirakl_order):
        del sample_mirakl_order["customer"]["email"]

        order, customer = parse_mirakl_order(sample_mirakl_order, OWNER, STORE)

        assert customer.external_id == "CUST-77"
        assert order.customer_id == "CUST-77"

    def test_missing_customer(self):
        order, customer = parse_mirakl_order({"commercial_id": "CO-9"}, OWNER, STORE)

        assert order.commercial_id == "CO-9"
        assert customer.external_id == ""
        assert order.shipping_address == {}

    def test_bad_date_becomes_none(self, sample_mirakl_order):
        sample_mirakl_order["created_date"] = "yesterday"

        order, _ = parse_mirakl_order(sample_mirakl_order, OWNER, STORE)

        assert order.order_date is None

    def test_non_finite_totals_default_to_zero(self, sample_mirakl_order):
        sample_mirakl_order["total_price"] = "1e400"
        sample_mirakl_order["total_commission"] = float("nan")

        order, _ = parse_mirakl_order(sample_mirakl_order, OWNER, STORE)

        assert order.total_amount == Decimal("0")
        assert order.commission == Decimal("0")


class TestParseShopifyProduct:
    """Tests for Shopify product mapping (first variant and image only)."""

    def test_first_variant_and_image_only(self, sample_shopify_product):
        product = parse_shopify_product(sample_shopify_product, OWNER, STORE)

        assert product.shop_sku == "MUG-RED"
        assert product.price == Decimal("12.50")
        assert product.inventory == 7
        assert product.image_url == "https://cdn.shopify.com/mug-front.jpg"
        assert product.provider_sku == "gid://shopify/Product/101"
        assert product.currency == "USD"

    def test_no_variants_keys_by_product_id(self):
        node = {"id": "gid://shopify/Product/5", "title": "Gift card", "variants": {"edges": []}}

        product = parse_shopify_product(node, OWNER, STORE)

        assert product.shop_sku == "gid://shopify/Product/5"
        assert product.price == Decimal("0")
        assert product.image_url == ""
