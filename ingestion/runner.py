# ============================================================================
# File: ingestion/runner.py
# Description: WooCommerce -> Supabase sync orchestrator
# ============================================================================
"""
Sync Runner - Orchestrates Extract, Aggregate, Load.

Phases run strictly in sequence, orders before products, because the
order-derived product strategies need the extracted order set:

1. Extract orders (full window, every page)
2. Filter by status (optional allow-list)
3. Format and upsert `sales`
4. Derive products (orders / catalog / hybrid strategy)
5. Upsert `products`
6. Build the BI report (optional, logged and returned, not persisted)

Any ETLException aborts the run and is raised unlogged; the caller
reports it once. Tables already written stay written.
"""

from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel

from core.config import SyncConfig
from core.exceptions import ETLException
from ingestion.extractors.woocommerce_extractor import WooCommerceExtractor
from ingestion.loaders.supabase_loader import SupabaseLoader
from ingestion.transformers.aggregations import (
    build_sales_report,
    filter_by_status,
    merge_catalog_with_sales,
    top_products_by_sales,
)
from ingestion.transformers.formatters import format_order, format_product
from schemas.woocommerce import WooOrder

logger = logging.getLogger(__name__)

SALES_CONFLICT_KEY = "order_id"
PRODUCTS_CONFLICT_KEY = "product_id"


class SyncRunner:
    """
    WooCommerce -> Supabase sync orchestrator

    Responsibilities:
    - Orchestrate Extract -> Aggregate -> Load
    - Keep loads idempotent (merge-duplicates on stable conflict keys)
    - Fail fast: no retries, no continuation after a failed table
    - Report run counts and the BI summary
    """

    def __init__(
        self,
        config: SyncConfig,
        extractor: Optional[WooCommerceExtractor] = None,
        loader: Optional[SupabaseLoader] = None
    ):
        self.config = config
        self.extractor = extractor or WooCommerceExtractor(config)
        self.loader = loader or SupabaseLoader(config)

    async def close(self):
        await self.extractor.close()
        await self.loader.close()

    async def derive_products(self, orders: List[WooOrder]) -> List[BaseModel]:
        """Build `products` rows according to the configured strategy"""
        strategy = self.config.product_strategy

        if strategy == "catalog":
            catalog = await self.extractor.fetch_products()
            return [format_product(p) for p in catalog]

        ranked = top_products_by_sales(orders, self.config.top_products_limit)
        if strategy == "hybrid" and ranked:
            catalog = await self.extractor.fetch_products_by_ids(
                r.product_id for r in ranked
            )
            return merge_catalog_with_sales(ranked, catalog)
        return ranked

    async def run(self) -> Dict[str, Any]:
        """
        Run the full sync once.

        Returns:
            Dictionary with run statistics:
            - status: "success"
            - orders_extracted: Orders returned by the source
            - records_skipped: Unusable payloads dropped at validation
            - orders_synced: Orders left after the status filter
            - sales_loaded: Rows written to the sales table
            - products_loaded: Rows written to the products table
            - product_strategy: Strategy used for products
            - report: BI summary (when enabled)

        Raises:
            ExtractionError: A page or id batch could not be fetched
            LoadError: A chunk upsert failed
            ETLException: For other sync-related errors
        """
        config = self.config
        orders_extracted = 0
        sales_loaded = 0
        products_loaded = 0

        try:
            # --------------------------------------------------
            # PHASE 1: EXTRACTION
            # --------------------------------------------------
            logger.info("Starting WooCommerce -> Supabase sync")

            orders = await self.extractor.fetch_orders()
            orders_extracted = len(orders)
            logger.info(f"Total orders fetched: {orders_extracted}")

            # --------------------------------------------------
            # PHASE 2: STATUS FILTER
            # --------------------------------------------------
            orders = filter_by_status(orders, config.status_allowlist)
            if config.status_allowlist is not None:
                logger.info(
                    f"Kept {len(orders)}/{orders_extracted} orders with status in "
                    f"{', '.join(config.status_allowlist)}"
                )

            # --------------------------------------------------
            # PHASE 3: SALES
            # --------------------------------------------------
            sales = [format_order(o) for o in orders]
            sales_loaded = await self.loader.upsert(
                config.sales_table, SALES_CONFLICT_KEY, sales
            )

            # --------------------------------------------------
            # PHASE 4: PRODUCTS
            # --------------------------------------------------
            products = await self.derive_products(orders)
            products_loaded = await self.loader.upsert(
                config.products_table, PRODUCTS_CONFLICT_KEY, products
            )
            logger.info(
                f"Top {products_loaded} products synced successfully "
                f"(strategy: {config.product_strategy})"
            )

            result: Dict[str, Any] = {
                "status": "success",
                "orders_extracted": orders_extracted,
                "records_skipped": self.extractor.skipped_records,
                "orders_synced": len(orders),
                "sales_loaded": sales_loaded,
                "products_loaded": products_loaded,
                "product_strategy": config.product_strategy,
            }

            # --------------------------------------------------
            # PHASE 5: REPORT
            # --------------------------------------------------
            if config.enable_report:
                report = build_sales_report(
                    orders,
                    top_n=config.report_top_n,
                    statuses=config.status_allowlist
                )
                log_report(report)
                result["report"] = report.model_dump()

            logger.info(f"Synchronization finished: {len(sales)} orders processed")
            return result

        except ETLException:
            raise

        except Exception as e:
            raise ETLException(
                "Unexpected error in sync",
                context={
                    "orders_extracted": orders_extracted,
                    "sales_loaded": sales_loaded,
                    "products_loaded": products_loaded
                },
                original_exception=e
            )


def log_report(report) -> None:
    """Write the BI summary to the log, one line per entry"""
    logger.info(
        f"Report: {report.order_count} orders, revenue {report.total_revenue:.2f}, "
        f"average order {report.average_order_value:.2f}"
    )
    for rank, customer in enumerate(report.top_customers, start=1):
        logger.info(
            f"Top customer #{rank}: {customer.email} "
            f"({customer.total:.2f} over {customer.order_count} orders)"
        )
    for rank, product in enumerate(report.top_products, start=1):
        logger.info(f"Top product #{rank}: {product.name} ({product.quantity} sold)")
    for day in report.revenue_by_date:
        logger.debug(f"Revenue {day.date}: {day.revenue:.2f} ({day.order_count} orders)")
