"""
Tests for failure scenarios and error handling
"""

import httpx
import pytest

from conftest import FakeSupabase, FakeWooCommerce, build_config, make_item, make_order
from core.exceptions import APIExtractionError, ETLException, UpsertError
from ingestion.extractors.woocommerce_extractor import WooCommerceExtractor
from ingestion.loaders.supabase_loader import SupabaseLoader
from ingestion.runner import SyncRunner


def build_runner(config, woo, supabase):
    return SyncRunner(
        config,
        extractor=WooCommerceExtractor(config, client=woo.client()),
        loader=SupabaseLoader(config, client=supabase.client()),
    )


@pytest.mark.asyncio
async def test_source_down_nothing_loaded(sync_config):
    """
    Test: WooCommerce fails mid-pagination, nothing is written
    """
    woo = FakeWooCommerce(orders=[make_order(i) for i in range(1, 151)], fail_page=2)
    supabase = FakeSupabase()

    with pytest.raises(APIExtractionError) as exc_info:
        await build_runner(sync_config, woo, supabase).run()

    assert exc_info.value.context["page"] == 2
    assert exc_info.value.context["status_code"] == 500
    assert supabase.requests == []


@pytest.mark.asyncio
async def test_product_load_failure_after_sales(sync_config, mock_orders):
    """
    Test: products upsert fails, sales stay committed, run still fails
    """
    woo = FakeWooCommerce(orders=mock_orders)
    supabase = FakeSupabase(fail_on_request=2, fail_status=500)

    with pytest.raises(UpsertError) as exc_info:
        await build_runner(sync_config, woo, supabase).run()

    assert exc_info.value.context["table_name"] == "products"
    assert len(supabase.rows("sales")) == 3
    assert supabase.rows("products") == []


@pytest.mark.asyncio
async def test_sales_chunk_failure_partial_commit(mock_orders):
    """
    Test: second sales chunk fails, first chunk committed, products never written
    """
    config = build_config(chunk_size=2)
    woo = FakeWooCommerce(orders=mock_orders)
    supabase = FakeSupabase(fail_on_request=2)

    with pytest.raises(UpsertError) as exc_info:
        await build_runner(config, woo, supabase).run()

    assert exc_info.value.context["chunk_index"] == 1
    assert exc_info.value.context["records_committed"] == 2
    assert {row["order_id"] for row in supabase.rows("sales")} == {"101", "102"}
    assert "products" not in supabase.tables


@pytest.mark.asyncio
async def test_hybrid_lookup_failure(mock_orders):
    """
    Test: catalog lookup by id fails after sales were written
    """
    config = build_config(product_strategy="hybrid")

    def handler(request: httpx.Request) -> httpx.Response:
        if "include" in request.url.params:
            return httpx.Response(401, json={"code": "woocommerce_rest_cannot_view"})
        page = int(request.url.params["page"])
        return httpx.Response(200, json=mock_orders if page == 1 else [])

    supabase = FakeSupabase()
    runner = SyncRunner(
        config,
        extractor=WooCommerceExtractor(config, client=httpx.AsyncClient(transport=httpx.MockTransport(handler))),
        loader=SupabaseLoader(config, client=supabase.client()),
    )

    with pytest.raises(APIExtractionError) as exc_info:
        await runner.run()

    assert exc_info.value.context["status_code"] == 401
    assert exc_info.value.context["batch"] == 0
    assert len(supabase.rows("sales")) == 3


@pytest.mark.asyncio
async def test_malformed_orders_are_defaulted(sync_config):
    """
    Test: orders with missing fields are synced with defaults, not rejected
    """
    raw = [
        {"id": 1},
        {"id": 2, "billing": None, "line_items": "oops", "total": None},
        {"billing": {"email": "no-id@example.com"}},
    ]
    woo = FakeWooCommerce(orders=raw)
    supabase = FakeSupabase()

    result = await build_runner(sync_config, woo, supabase).run()

    assert result["sales_loaded"] == 2
    assert result["records_skipped"] == 1
    for row in supabase.rows("sales"):
        assert row["customer_name"] == "Client inconnu"
        assert row["total"] == 0.0
        assert row["status"] == "unknown"


@pytest.mark.asyncio
async def test_blank_order_id_is_skipped(sync_config):
    """
    Test: an order with a blank id is skipped and counted, the rest still load
    """
    woo = FakeWooCommerce(orders=[make_order(1), {"id": "", "total": "5"}])
    supabase = FakeSupabase()

    result = await build_runner(sync_config, woo, supabase).run()

    assert result["status"] == "success"
    assert result["sales_loaded"] == 1
    assert result["records_skipped"] == 1
    assert [row["order_id"] for row in supabase.rows("sales")] == ["1"]


@pytest.mark.asyncio
async def test_non_text_item_name_keeps_order(sync_config):
    """
    Test: a numeric line item name is coerced, the order is not dropped
    """
    woo = FakeWooCommerce(orders=[make_order(1, line_items=[make_item(5, 1234)])])
    supabase = FakeSupabase()

    result = await build_runner(sync_config, woo, supabase).run()

    assert result["sales_loaded"] == 1
    assert result["records_skipped"] == 0
    assert supabase.rows("products")[0]["name"] == "1234"


@pytest.mark.asyncio
async def test_unexpected_error_is_wrapped(sync_config, mock_orders):
    woo = FakeWooCommerce(orders=mock_orders)
    runner = build_runner(sync_config, woo, FakeSupabase())
    runner.loader.upsert = None

    with pytest.raises(ETLException) as exc_info:
        await runner.run()

    assert exc_info.value.message == "Unexpected error in sync"
    assert exc_info.value.context["orders_extracted"] == 3
