"""
Pytest configuration and fixtures
"""

import json
from typing import Any, Dict, List, Optional

import httpx
import pytest

from core.config import SyncConfig


WOO_URL = "https://shop.example.com"
SUPABASE_URL = "https://project.supabase.co"


def make_order(
    order_id,
    total="10.00",
    email="alice@example.com",
    first_name="Alice",
    last_name="Martin",
    status="completed",
    date="2024-01-15T10:00:00",
    line_items: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Build a raw WooCommerce order payload"""
    return {
        "id": order_id,
        "date_created_gmt": date,
        "status": status,
        "total": total,
        "payment_method_title": "Carte bancaire",
        "billing": {"first_name": first_name, "last_name": last_name, "email": email},
        "line_items": line_items if line_items is not None else [],
    }


def make_item(product_id, name, quantity=1, total="10.00", price=None) -> Dict[str, Any]:
    return {
        "product_id": product_id,
        "name": name,
        "quantity": quantity,
        "total": total,
        "price": price if price is not None else total,
    }


def make_product(product_id, name, price="19.90", categories=("Parfums",), stock=5, total_sales=12):
    return {
        "id": product_id,
        "name": name,
        "price": price,
        "categories": [{"id": i, "name": c} for i, c in enumerate(categories)],
        "stock_quantity": stock,
        "total_sales": total_sales,
    }


class FakeWooCommerce:
    """
    In-memory WooCommerce REST API served through httpx.MockTransport.

    `pages` maps a resource to an explicit list of page bodies; otherwise
    `records` is sliced by page/per_page.
    """

    def __init__(self, orders=None, products=None, pages=None, fail_page=None, fail_status=500):
        self.records = {"orders": orders or [], "products": products or []}
        self.pages = pages or {}
        self.fail_page = fail_page
        self.fail_status = fail_status
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        resource = request.url.path.rstrip("/").rsplit("/", 1)[-1]
        params = request.url.params

        if "include" in params:
            wanted = params["include"].split(",")
            body = [r for r in self.records[resource] if str(r["id"]) in wanted]
            return httpx.Response(200, json=body)

        page = int(params.get("page", 1))
        if self.fail_page == page:
            return httpx.Response(self.fail_status, text="upstream exploded")

        if resource in self.pages:
            bodies = self.pages[resource]
            body = bodies[page - 1] if page <= len(bodies) else []
            return httpx.Response(200, json=body)

        per_page = int(params.get("per_page", 100))
        start = (page - 1) * per_page
        return httpx.Response(200, json=self.records[resource][start:start + per_page])

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


class FakeSupabase:
    """
    In-memory PostgREST table store with merge-duplicates semantics.

    Incoming rows replace stored rows with the same conflict key.
    `fail_on_request` makes the n-th POST (1-based) return an error.
    """

    def __init__(self, fail_on_request: Optional[int] = None, fail_status: int = 409):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.fail_on_request = fail_on_request
        self.fail_status = fail_status
        self.requests: List[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_on_request == len(self.requests):
            return httpx.Response(self.fail_status, json={"message": "duplicate key value"})

        table = request.url.path.rsplit("/", 1)[-1]
        conflict_key = request.url.params["on_conflict"]
        store = self.tables.setdefault(table, {})
        for row in json.loads(request.content):
            store[row[conflict_key]] = row
        return httpx.Response(201)

    def rows(self, table: str) -> List[Dict[str, Any]]:
        return list(self.tables.get(table, {}).values())

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))


def build_config(**overrides) -> SyncConfig:
    values = dict(
        woocommerce_url=WOO_URL,
        consumer_key="ck_test",
        consumer_secret="cs_test",
        supabase_url=SUPABASE_URL,
        supabase_key="service_role_test",
        page_delay=0,
        chunk_delay=0,
        enable_report=True,
    )
    values.update(overrides)
    return SyncConfig(**values)


@pytest.fixture
def sync_config() -> SyncConfig:
    """SyncConfig with delays disabled"""
    return build_config()


@pytest.fixture
def mock_orders():
    """Three orders, one without billing details"""
    return [
        make_order(101, total="120.50", line_items=[
            make_item(7, "Eau de Parfum Rose", quantity=2, total="100.00"),
            make_item(9, "Bougie Ambre", quantity=1, total="20.50"),
        ]),
        make_order(102, total="35.00", email="bob@example.com", first_name="Bob", last_name="Durand",
                   status="processing", date="2024-01-16T08:30:00", line_items=[
            make_item(9, "Bougie Ambre", quantity=1, total="35.00"),
        ]),
        make_order(103, total="abc", email=None, first_name="", last_name="",
                   status="cancelled", date=None, line_items=[
            make_item(7, "Eau de Parfum Rose", quantity=3, total="150.00"),
        ]),
    ]


@pytest.fixture
def mock_products():
    return [
        make_product(7, "Eau de Parfum Rose", price="50.00", total_sales=40),
        make_product(9, "Bougie Ambre", price="20.50", categories=(), stock=None, total_sales=8),
    ]
