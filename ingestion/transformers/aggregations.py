"""
Derived aggregates computed in memory from one extraction window.

Rankings are deterministic: equal scores are ordered by their grouping
key ascending (email, product name or product id).
"""

from typing import Dict, Iterable, List, Optional, Sequence

from schemas.supabase import (
    CustomerTotal,
    DailyRevenue,
    HybridProductRecord,
    ProductQuantity,
    ProductSalesRecord,
    SalesReport,
)
from schemas.woocommerce import WooOrder, WooProduct
from ingestion.transformers.formatters import (
    UNKNOWN_PRODUCT,
    customer_key,
    format_category,
    format_id,
    format_timestamp,
    parse_int_or_zero,
    parse_or_zero,
)

DEFAULT_STATUS_ALLOWLIST = ("completed", "processing", "refunded")


def filter_by_status(
    orders: Iterable[WooOrder],
    allowlist: Optional[Sequence[str]]
) -> List[WooOrder]:
    """
    Keep only orders whose status is in the allow-list.

    Applied before formatting and derivation, so excluded orders are
    absent from the whole sync. A None allow-list keeps everything.
    """
    orders = list(orders)
    if allowlist is None:
        return orders
    allowed = {s.lower() for s in allowlist}
    return [o for o in orders if (o.status or "").lower() in allowed]


def top_customers(orders: Iterable[WooOrder], limit: int = 5) -> List[CustomerTotal]:
    """Customers ranked by summed order total, grouped by billing email"""
    totals: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for order in orders:
        key = customer_key(order.billing)
        totals[key] = totals.get(key, 0.0) + parse_or_zero(order.total)
        counts[key] = counts.get(key, 0) + 1

    ranked = sorted(totals.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        CustomerTotal(email=email, total=round(total, 2), order_count=counts[email])
        for email, total in ranked
    ]


def top_products_by_quantity(orders: Iterable[WooOrder], limit: int = 5) -> List[ProductQuantity]:
    """Products ranked by units sold, grouped by line item name"""
    quantities: Dict[str, int] = {}
    for order in orders:
        for item in order.line_items:
            name = (item.name or "").strip() or UNKNOWN_PRODUCT
            quantities[name] = quantities.get(name, 0) + parse_int_or_zero(item.quantity)

    ranked = sorted(quantities.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [ProductQuantity(name=name, quantity=qty) for name, qty in ranked]


def top_products_by_sales(
    orders: Iterable[WooOrder],
    limit: int = 50,
    now: Optional[str] = None
) -> List[ProductSalesRecord]:
    """
    Products ranked by units sold, grouped by product id.

    Each entry sums quantity and line total over every line item in the
    window that references the product. The name is taken from the first
    line item seen with one; last_sold_date is the latest order timestamp.
    Line items without a product id are ignored.
    """
    stats: Dict[str, dict] = {}
    for order in orders:
        sold_at = format_timestamp(order.date_created_gmt, now)
        for item in order.line_items:
            if item.product_id is None:
                continue
            pid = format_id(item.product_id)
            entry = stats.get(pid)
            if entry is None:
                entry = stats[pid] = {
                    "product_id": pid,
                    "name": None,
                    "total_sold": 0,
                    "total_revenue": 0.0,
                    "last_sold_date": sold_at,
                }
            if entry["name"] is None and (item.name or "").strip():
                entry["name"] = item.name.strip()
            entry["total_sold"] += parse_int_or_zero(item.quantity)
            entry["total_revenue"] += parse_or_zero(item.total)
            if sold_at > entry["last_sold_date"]:
                entry["last_sold_date"] = sold_at

    ranked = sorted(stats.values(), key=lambda e: (-e["total_sold"], e["product_id"]))[:limit]
    return [
        ProductSalesRecord(
            product_id=e["product_id"],
            name=e["name"] or UNKNOWN_PRODUCT,
            total_sold=e["total_sold"],
            total_revenue=round(e["total_revenue"], 2),
            last_sold_date=e["last_sold_date"],
        )
        for e in ranked
    ]


def revenue_by_date(orders: Iterable[WooOrder], now: Optional[str] = None) -> List[DailyRevenue]:
    """Order totals summed per calendar day (YYYY-MM-DD), oldest first"""
    revenue: Dict[str, float] = {}
    counts: Dict[str, int] = {}
    for order in orders:
        day = format_timestamp(order.date_created_gmt, now)[:10]
        revenue[day] = revenue.get(day, 0.0) + parse_or_zero(order.total)
        counts[day] = counts.get(day, 0) + 1

    return [
        DailyRevenue(date=day, revenue=round(revenue[day], 2), order_count=counts[day])
        for day in sorted(revenue)
    ]


def average_order_value(orders: Sequence[WooOrder]) -> float:
    """Total revenue divided by order count, 0.0 for an empty window"""
    if not orders:
        return 0.0
    total = sum(parse_or_zero(o.total) for o in orders)
    return round(total / len(orders), 2)


def build_sales_report(
    orders: Sequence[WooOrder],
    top_n: int = 5,
    statuses: Optional[Sequence[str]] = None,
    now: Optional[str] = None
) -> SalesReport:
    """Assemble the BI summary for one extraction window"""
    total_revenue = sum(parse_or_zero(o.total) for o in orders)
    return SalesReport(
        order_count=len(orders),
        total_revenue=round(total_revenue, 2),
        average_order_value=average_order_value(orders),
        top_customers=top_customers(orders, top_n),
        top_products=top_products_by_quantity(orders, top_n),
        revenue_by_date=revenue_by_date(orders, now),
        statuses=list(statuses) if statuses is not None else None,
    )


def merge_catalog_with_sales(
    sales: Sequence[ProductSalesRecord],
    catalog: Iterable[WooProduct]
) -> List[HybridProductRecord]:
    """
    Enrich order-derived product aggregates with catalog fields.

    Ranking order of `sales` is kept. Products missing from the catalog
    (deleted since the order) get catalog defaults and fall back to
    total_sold for total_sales.
    """
    by_id = {format_id(p.id): p for p in catalog}
    merged = []
    for record in sales:
        product = by_id.get(record.product_id)
        if product is None:
            catalog_fields = {
                "category": format_category([]),
                "price": 0.0,
                "stock": 0,
                "total_sales": record.total_sold,
            }
        else:
            catalog_fields = {
                "category": format_category(product.categories),
                "price": parse_or_zero(product.price),
                "stock": parse_int_or_zero(product.stock_quantity),
                "total_sales": parse_int_or_zero(product.total_sales),
            }
            if product.name and product.name.strip():
                record = record.model_copy(update={"name": product.name.strip()})
        merged.append(HybridProductRecord(**record.model_dump(), **catalog_fields))
    return merged
