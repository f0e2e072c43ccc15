"""
Pydantic schemas for data validation and serialization.

Schemas:
    woocommerce: Raw source records (orders, line items, products)
    supabase: Target rows (sales, products) and BI aggregate views

Validation:
    Source schemas are lenient: unknown fields are ignored and missing
    fields default to None so the formatters can apply their sentinels.
    Target schemas are strict about the conflict key, which must be a
    non-empty string.

Usage:
    from schemas.woocommerce import parse_order, WooOrder
    from schemas.supabase import SaleRecord, SalesReport
"""

__all__ = [
    "WooOrder",
    "WooProduct",
    "WooLineItem",
    "WooBilling",
    "parse_order",
    "parse_product",
    "SaleRecord",
    "CatalogProductRecord",
    "ProductSalesRecord",
    "HybridProductRecord",
    "CustomerTotal",
    "ProductQuantity",
    "DailyRevenue",
    "SalesReport",
]
