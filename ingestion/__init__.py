"""
Sync pipeline components: WooCommerce (source) -> Supabase (target).

Modules:
    base: Abstract paginated HTTP source (page loop, id batches, delays)
    runner: Sync orchestrator (extract, aggregate, load)
    scheduler: APScheduler integration for interval runs

Subpackages:
    extractors: WooCommerce orders / products extractor
    transformers: Record formatters and in-memory aggregations
    loaders: Supabase chunked upsert loader

Architecture:
    The pipeline follows a three-phase approach, strictly sequential:

    1. Extract - Fetch every page of orders until an empty page
    2. Aggregate - Format rows and derive product / BI aggregates
    3. Load - Upsert chunk by chunk with merge-duplicates semantics

    There is no retry and no checkpoint: every run re-reads the whole
    window, and the first failed page or chunk ends the run.

Usage:
    from core.config import get_settings
    from ingestion.runner import SyncRunner

    runner = SyncRunner(get_settings().resolve())
    try:
        result = await runner.run()
    finally:
        await runner.close()

    print(f"Loaded {result['sales_loaded']} sales")
"""

__all__ = [
    "PaginatedSource",
    "SyncRunner",
    "SyncScheduler",
    "WooCommerceExtractor",
    "SupabaseLoader",
]
