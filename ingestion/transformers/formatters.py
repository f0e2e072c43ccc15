"""
Map raw WooCommerce records onto Supabase rows.

All functions here are free of I/O. Missing or malformed source fields never
raise: each one falls back to a fixed default.
"""

from datetime import datetime, timezone
from typing import Any, List, Optional
import math
import re

from schemas.supabase import CatalogProductRecord, SaleRecord
from schemas.woocommerce import WooBilling, WooCategory, WooOrder, WooProduct

UNKNOWN_CUSTOMER = "Client inconnu"
UNKNOWN_PRODUCT = "Produit inconnu"
UNKNOWN_EMAIL = "unknown"
UNKNOWN_STATUS = "unknown"
UNCATEGORIZED = "uncategorized"
NO_PAYMENT_METHOD = "N/A"

ZONE_OFFSET = re.compile(r"[+-]\d{2}:?\d{2}$")


def parse_or_zero(value: Any) -> float:
    """
    Parse a monetary value as float, 0.0 on any failure.

    Absent values, unparseable text and non-finite results (NaN, inf)
    all yield 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        parsed = float(str(value).strip())
    except (ValueError, TypeError):
        return 0.0
    return parsed if math.isfinite(parsed) else 0.0


def parse_int_or_zero(value: Any) -> int:
    """Parse a count (quantity, stock, sales) as int, 0 on any failure"""
    return int(parse_or_zero(value))


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_timestamp(date_created_gmt: Optional[str], now: Optional[str] = None) -> str:
    """
    ISO-8601 UTC timestamp for an order.

    WooCommerce's *_gmt fields carry no offset, so a 'Z' is appended.
    When the field is absent the current time is used, taken at
    formatting time, which makes re-runs over such orders differ.
    """
    if date_created_gmt:
        if date_created_gmt.endswith("Z") or ZONE_OFFSET.search(date_created_gmt[10:]):
            return date_created_gmt
        return f"{date_created_gmt}Z"
    return now or utc_now_iso()


def format_customer_name(billing: WooBilling) -> str:
    name = f"{billing.first_name or ''} {billing.last_name or ''}".strip()
    return name or UNKNOWN_CUSTOMER


def customer_key(billing: WooBilling) -> str:
    """Grouping key for customer aggregates"""
    return billing.email or UNKNOWN_EMAIL


def format_category(categories: List[WooCategory]) -> str:
    if categories and categories[0].name:
        return categories[0].name
    return UNCATEGORIZED


def format_id(value: Any) -> str:
    """Conflict keys are always strings, whatever the source type"""
    return str(value)


def format_order(order: WooOrder, now: Optional[str] = None) -> SaleRecord:
    """Project an order onto a `sales` row"""
    return SaleRecord(
        order_id=format_id(order.id),
        created_at=format_timestamp(order.date_created_gmt, now),
        customer_name=format_customer_name(order.billing),
        total=parse_or_zero(order.total),
        payment_method=order.payment_method_title or NO_PAYMENT_METHOD,
        status=order.status or UNKNOWN_STATUS,
    )


def format_product(product: WooProduct) -> CatalogProductRecord:
    """Project a catalog product onto a `products` row"""
    return CatalogProductRecord(
        product_id=format_id(product.id),
        name=(product.name or "").strip() or UNKNOWN_PRODUCT,
        category=format_category(product.categories),
        price=parse_or_zero(product.price),
        stock=parse_int_or_zero(product.stock_quantity),
        total_sales=parse_int_or_zero(product.total_sales),
    )
