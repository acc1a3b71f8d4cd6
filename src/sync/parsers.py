"""Map raw marketplace records onto the platform's entity shapes.

Parsers never raise on missing or malformed fields. Absent strings become
"", absent or out-of-range numbers become zero and unparseable dates become
None, so one bad record cannot fail a whole batch.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Optional


@dataclass
class ProductRecord:
    """Normalized catalog entry."""

    owner_user_id: str
    store_id: Optional[str]
    shop_sku: str
    provider_sku: str = ""
    title: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    currency: str = ""
    inventory: int = 0
    image_url: str = ""
    is_shared: bool = False
    category: Optional[str] = None
    brand: Optional[str] = None
    reference: Optional[str] = None

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class CustomerRecord:
    """Normalized buyer profile."""

    external_id: str
    first_name: str = ""
    last_name: str = ""
    city: str = ""
    country: str = ""
    phone_number: str = ""

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class OrderRecord:
    """Normalized order."""

    store_id: str
    owner_user_id: str
    commercial_id: str
    provider_order_id: str = ""
    customer_id: str = ""
    shipping_address: dict[str, Any] = field(default_factory=dict)
    billing_address: dict[str, Any] = field(default_factory=dict)
    total_amount: Decimal = Decimal("0")
    currency: str = ""
    commission: Decimal = Decimal("0")
    status: str = ""
    order_date: Optional[datetime] = None
    shipping_date: Optional[datetime] = None
    received_date: Optional[datetime] = None
    raw_data: dict[str, Any] = field(default_factory=dict)

    def to_row(self) -> dict[str, Any]:
        row = asdict(self)
        # asdict deep-copies; keep the upstream payload as received
        row["raw_data"] = self.raw_data
        return row


# === Coercion helpers ===


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


# Column bounds: Numeric(12, 2) and a 32-bit Integer
_MAX_AMOUNT = Decimal("1e10")
_MAX_INT = 2**31 - 1


def _decimal(value: Any) -> Decimal:
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite() or abs(amount) >= _MAX_AMOUNT:
        return Decimal("0")
    return amount


def _int(value: Any) -> int:
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0
    if abs(number) > _MAX_INT:
        return 0
    return number


def _datetime(value: Any) -> Optional[datetime]:
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _optional(value: Any) -> Optional[str]:
    text = _text(value)
    return text or None


def _first_reference(references: Any) -> Optional[str]:
    if not isinstance(references, list) or not references:
        return None
    first = references[0]
    if isinstance(first, dict):
        return _optional(first.get("reference"))
    return _optional(first)


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


# === Mirakl ===


def parse_mirakl_offer(offer: dict[str, Any], owner_user_id: str, store_id: Optional[str]) -> ProductRecord:
    """Map a Mirakl offer onto a product.

    Mirakl's offer feed has no images, so ``image_url`` is always empty, and
    imported products start unshared.
    """
    return ProductRecord(
        owner_user_id=owner_user_id,
        store_id=store_id,
        shop_sku=_text(offer.get("shop_sku")),
        provider_sku=_text(offer.get("product_sku")),
        title=_text(offer.get("product_title")),
        description=_text(offer.get("product_description")),
        reference=_first_reference(offer.get("product_references")),
        category=_optional(offer.get("category_label")),
        brand=_optional(offer.get("product_brand")),
        price=_decimal(offer.get("total_price")),
        currency=_text(offer.get("currency_iso_code")),
        inventory=_int(offer.get("quantity")),
        image_url="",
        is_shared=False,
    )


def parse_mirakl_order(
    order: dict[str, Any],
    owner_user_id: str,
    store_id: str,
) -> tuple[OrderRecord, CustomerRecord]:
    """Map a Mirakl order onto an order and the customer who placed it.

    Country, phone and city come from the shipping address, falling back to
    the billing address field by field.
    """
    customer_data = _mapping(order.get("customer"))
    shipping = _mapping(customer_data.get("shipping_address"))
    billing = _mapping(customer_data.get("billing_address"))

    def _address_field(name: str) -> str:
        return _text(shipping.get(name)) or _text(billing.get(name))

    customer = CustomerRecord(
        external_id=_text(customer_data.get("email")) or _text(customer_data.get("customer_id")),
        first_name=_text(customer_data.get("firstname") or customer_data.get("first_name")),
        last_name=_text(customer_data.get("lastname") or customer_data.get("last_name")),
        country=_address_field("country_iso_code"),
        phone_number=_address_field("phone"),
        city=_address_field("city"),
    )

    record = OrderRecord(
        store_id=store_id,
        owner_user_id=owner_user_id,
        commercial_id=_text(order.get("commercial_id")),
        provider_order_id=_text(order.get("order_id")),
        customer_id=customer.external_id,
        shipping_address=shipping,
        billing_address=billing,
        order_date=_datetime(order.get("created_date")),
        shipping_date=_datetime(order.get("shipped_date")),
        received_date=_datetime(order.get("received_date")),
        total_amount=_decimal(order.get("total_price")),
        currency=_text(order.get("currency_iso_code")),
        commission=_decimal(order.get("total_commission")),
        status=_text(order.get("order_state")),
        raw_data=order,
    )
    return record, customer


# === Shopify ===


def parse_shopify_product(node: dict[str, Any], owner_user_id: str, store_id: Optional[str]) -> ProductRecord:
    """Map a Shopify GraphQL product node onto a product.

    Lossy: only the first variant (price, SKU, stock) and the first image
    are kept. Products without a variant SKU are keyed by their Shopify GID.
    """
    variant_edges = _mapping(node.get("variants")).get("edges") or []
    variant = _mapping(variant_edges[0].get("node")) if variant_edges else {}
    image_edges = _mapping(node.get("images")).get("edges") or []
    image = _mapping(image_edges[0].get("node")) if image_edges else {}

    product_id = _text(node.get("id"))
    return ProductRecord(
        owner_user_id=owner_user_id,
        store_id=store_id,
        shop_sku=_text(variant.get("sku")) or product_id,
        provider_sku=product_id,
        title=_text(node.get("title")),
        description=_text(node.get("description")),
        price=_decimal(variant.get("price")),
        # GraphQL product nodes carry no currency; shop currency is USD unless configured
        currency="USD",
        inventory=_int(variant.get("inventoryQuantity")),
        image_url=_text(image.get("url") or image.get("originalSrc")),
        is_shared=False,
    )
