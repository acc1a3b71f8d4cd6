"""In-batch deduplication."""

from collections import Counter
from typing import Any, Callable, Sequence, TypeVar

import structlog

from src.sync.parsers import ProductRecord

logger = structlog.get_logger()

T = TypeVar("T")


def deduplicate(
    items: Sequence[T],
    key: Callable[[T], Any],
    *,
    key_name: str = "key",
    skip_empty: bool = False,
) -> list[T]:
    """
    Keep the first item for each key value, preserving input order.

    Collisions are logged, never raised.

    Args:
        items: Parsed entities
        key: Extracts the uniqueness key from an entity
        key_name: Name used in the collision log
        skip_empty: Treat None/"" keys as unkeyed and keep every such item
    """
    seen: set[Any] = set()
    dropped: Counter = Counter()
    kept: list[T] = []

    for item in items:
        value = key(item)
        if skip_empty and (value is None or value == ""):
            kept.append(item)
            continue
        if value in seen:
            dropped[value] += 1
            continue
        seen.add(value)
        kept.append(item)

    if dropped:
        logger.warning(
            "duplicate_key_dropped",
            key=key_name,
            distinct_values=len(dropped),
            dropped=sum(dropped.values()),
            values=[str(v) for v in list(dropped)[:20]],
        )

    return kept


def deduplicate_products(products: Sequence[ProductRecord]) -> list[ProductRecord]:
    """Dedup on shop_sku, then on reference (products without one are kept)."""
    unique = deduplicate(products, lambda p: p.shop_sku, key_name="shop_sku")
    return deduplicate(unique, lambda p: p.reference, key_name="reference", skip_empty=True)
