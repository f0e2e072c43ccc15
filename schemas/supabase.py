"""
Pydantic schemas for records written to Supabase and for the
transient BI aggregate views
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class SaleRecord(BaseModel):
    """
    Row of the `sales` table. Conflict key: order_id.

    order_id is always the stringified WooCommerce id, so re-upserting the
    same order replaces every other column.
    """

    order_id: str = Field(..., min_length=1)
    created_at: str
    customer_name: str
    total: float
    payment_method: str
    status: str


class CatalogProductRecord(BaseModel):
    """Direct projection of a catalog product. Conflict key: product_id."""

    product_id: str = Field(..., min_length=1)
    name: str
    category: str
    price: float
    stock: int
    total_sales: int


class ProductSalesRecord(BaseModel):
    """
    Product aggregate derived from order line items. Conflict key: product_id.

    total_sold and total_revenue are sums over the current extraction
    window, never deltas against what is already stored.
    """

    product_id: str = Field(..., min_length=1)
    name: str
    total_sold: int = 0
    total_revenue: float = 0.0
    last_sold_date: str


class HybridProductRecord(ProductSalesRecord):
    """Order-derived aggregate enriched with catalog fields"""

    category: str
    price: float
    stock: int
    total_sales: int


# ============================================================================
# Aggregate views (not persisted)
# ============================================================================

class CustomerTotal(BaseModel):
    email: str
    total: float
    order_count: int


class ProductQuantity(BaseModel):
    name: str
    quantity: int


class DailyRevenue(BaseModel):
    date: str
    revenue: float
    order_count: int


class SalesReport(BaseModel):
    """BI summary computed from one extraction window"""

    order_count: int
    total_revenue: float
    average_order_value: float
    top_customers: List[CustomerTotal] = Field(default_factory=list)
    top_products: List[ProductQuantity] = Field(default_factory=list)
    revenue_by_date: List[DailyRevenue] = Field(default_factory=list)
    statuses: Optional[List[str]] = None
