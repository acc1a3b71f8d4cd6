"""Unit tests for in-batch deduplication."""

from dataclasses import dataclass

from src.sync.dedup import deduplicate, deduplicate_products
from src.sync.parsers import ProductRecord

OWNER = "11111111-1111-1111-1111-111111111111"


@dataclass
class Item:
    sku: str
    v: int


def product(shop_sku, reference=None, title=""):
    return ProductRecord(owner_user_id=OWNER, store_id=None, shop_sku=shop_sku, reference=reference, title=title)


class TestDeduplicate:
    """Tests for first-occurrence-wins dedup."""

    def test_first_occurrence_wins(self):
        items = [Item("A", 1), Item("B", 1), Item("A", 2)]

        assert deduplicate(items, lambda i: i.sku) == [Item("A", 1), Item("B", 1)]

    def test_preserves_relative_order(self):
        items = [Item("C", 1), Item("A", 1), Item("C", 2), Item("B", 1), Item("A", 3)]

        result = deduplicate(items, lambda i: i.sku)

        assert [i.sku for i in result] == ["C", "A", "B"]
        assert [i.v for i in result] == [1, 1, 1]

    def test_idempotent(self):
        items = [Item("A", 1), Item("A", 2), Item("B", 1), Item("B", 5), Item("C", 0)]

        once = deduplicate(items, lambda i: i.sku)

        assert deduplicate(once, lambda i: i.sku) == once

    def test_empty_input(self):
        assert deduplicate([], lambda i: i.sku) == []

    def test_empty_string_is_a_key_by_default(self):
        items = [Item("", 1), Item("", 2)]

        assert deduplicate(items, lambda i: i.sku) == [Item("", 1)]

    def test_skip_empty_keeps_unkeyed_items(self):
        items = [Item("", 1), Item("", 2), Item("A", 1), Item("A", 2)]

        assert deduplicate(items, lambda i: i.sku, skip_empty=True) == [Item("", 1), Item("", 2), Item("A", 1)]


class TestDeduplicateProducts:
    """Tests for the two-pass product dedup."""

    def test_shop_sku_then_reference(self):
        products = [
            product("SKU-1", reference="EAN-1", title="first"),
            product("SKU-1", reference="EAN-9", title="same sku"),
            product("SKU-2", reference="EAN-1", title="same reference"),
            product("SKU-3", reference="EAN-3", title="unique"),
        ]

        result = deduplicate_products(products)

        assert [p.title for p in result] == ["first", "unique"]

    def test_products_without_reference_are_kept(self):
        products = [product("SKU-1"), product("SKU-2"), product("SKU-3", reference="")]

        assert len(deduplicate_products(products)) == 3

    def test_shop_sku_pass_runs_first(self):
        # SKU-1's second row would win the reference pass alone, but is gone already
        products = [
            product("SKU-1", reference="EAN-1", title="a"),
            product("SKU-1", reference="EAN-2", title="b"),
            product("SKU-2", reference="EAN-2", title="c"),
        ]

        assert [p.title for p in deduplicate_products(products)] == ["a", "c"]
