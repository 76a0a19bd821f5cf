"""Pytest configuration and shared fixtures for Revenue Model Optimizer tests."""

from datetime import datetime

import pytest

from revenue_optimizer.errors import ShopifyAPIError
from revenue_optimizer.models.shopify import Order, Product
from revenue_optimizer.services.shopify_client import ShopifyResponse
from revenue_optimizer.utils.dates import UTC

# Fixed evaluation time; the sample product went live exactly 60 days earlier
NOW = datetime(2024, 6, 30, 12, 0, 0, tzinfo=UTC)

SHOP_DOMAIN = "test-shop.myshopify.com"
ACCESS_TOKEN = "shpat_test_token_12345"


class FakeShopifyClient:
    """In-memory stand-in for ShopifyClient.

    ``routes`` maps a resource path to either a response body, a list of
    ``ShopifyResponse`` objects served in order (one per call), or an
    exception to raise.
    """

    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.closed = True

    async def get(self, path, query=None):
        self.calls.append((path, dict(query or {})))
        if path not in self.routes:
            raise ShopifyAPIError(404, "Not Found", path)

        route = self.routes[path]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, list):
            return route.pop(0)
        return ShopifyResponse(body=route)


class FakeClientFactory:
    """Client factory that hands out FakeShopifyClients and remembers them."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.clients = []
        self.credentials = []

    def __call__(self, shop_domain, access_token):
        self.credentials.append((shop_domain, access_token))
        client = FakeShopifyClient(self.routes)
        self.clients.append(client)
        return client

    @property
    def calls(self):
        return [call for client in self.clients for call in client.calls]


def link_header(next_page_info=None, prev_page_info=None):
    """Build a Shopify ``Link`` header with the given cursors."""
    base = f"https://{SHOP_DOMAIN}/admin/api/2024-10/products.json?limit=250"
    parts = []
    if prev_page_info:
        parts.append(f'<{base}&page_info={prev_page_info}>; rel="previous"')
    if next_page_info:
        parts.append(f'<{base}&page_info={next_page_info}>; rel="next"')
    return ", ".join(parts)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def sample_product_data():
    """Raw Shopify product: published 60 days before NOW, one variant with 50 in stock."""
    return {
        "id": 1001,
        "title": "Classic Cotton Tee",
        "body_html": "<p>Soft everyday tee</p>",
        "vendor": "Acme Apparel",
        "product_type": "Clothing",
        "tags": "cotton, basics",
        "status": "active",
        "published_at": "2024-05-01T12:00:00Z",
        "created_at": "2024-05-01T12:00:00Z",
        "updated_at": "2024-06-01T08:00:00Z",
        "variants": [
            {
                "id": 2001,
                "product_id": 1001,
                "title": "Medium / Blue",
                "sku": "TEE-M-BLUE",
                "barcode": "123456789012",
                "price": "20.00",
                "compare_at_price": "25.00",
                "inventory_quantity": 50,
                "weight": 0.2,
                "requires_shipping": True,
                "created_at": "2024-05-01T12:00:00Z",
            },
            {
                "id": 2002,
                "product_id": 1001,
                "title": "Large / Black",
                "sku": "TEE-L-BLACK",
                "barcode": "123456789029",
                "price": "22.00",
                "compare_at_price": None,
                "inventory_quantity": 0,
                "requires_shipping": True,
                "created_at": "2024-05-01T12:00:00Z",
            },
        ],
    }


@pytest.fixture
def sample_product(sample_product_data):
    return Product.model_validate(sample_product_data)


@pytest.fixture
def sample_variant(sample_product):
    return sample_product.find_variant(2001)


@pytest.fixture
def sample_orders_data():
    """Two orders for variant 2001 (5 units each) plus one unrelated order."""
    return [
        {
            "id": 5001,
            "created_at": "2024-05-21T10:00:00Z",
            "financial_status": "paid",
            "total_price": "100.00",
            "customer": {"id": 9001},
            "total_shipping_price_set": {"shop_money": {"amount": "5.00", "currency_code": "USD"}},
            "refunds": [],
            "line_items": [
                {"product_id": 1001, "variant_id": 2001, "title": "Classic Cotton Tee",
                 "quantity": 5, "price": "20.00"},
            ],
        },
        {
            "id": 5002,
            "created_at": "2024-06-10T10:00:00Z",
            "financial_status": "paid",
            "total_price": "100.00",
            "customer": {"id": 9001},
            "total_shipping_price_set": {"shop_money": {"amount": "0.00", "currency_code": "USD"}},
            "refunds": [{"id": 1}],
            "line_items": [
                {"product_id": 1001, "variant_id": 2001, "title": "Classic Cotton Tee",
                 "quantity": 5, "price": "20.00"},
            ],
        },
        {
            "id": 5003,
            "created_at": "2024-06-20T10:00:00Z",
            "financial_status": "pending",
            "total_price": "40.00",
            "customer": {"id": 9002},
            "refunds": [],
            "line_items": [
                {"product_id": 3003, "variant_id": 4004, "title": "Mug",
                 "quantity": 2, "price": "20.00"},
            ],
        },
    ]


@pytest.fixture
def sample_orders(sample_orders_data):
    return [Order.model_validate(o) for o in sample_orders_data]


@pytest.fixture
def sample_customers_data():
    return [
        {
            "id": 9001,
            "email": "ann@example.com",
            "first_name": "Ann",
            "last_name": "Lee",
            "orders_count": 3,
            "total_spent": "300.00",
            "state": "enabled",
            "created_at": "2024-03-01T00:00:00Z",
            "updated_at": "2024-06-15T00:00:00Z",
        },
        {
            "id": 9002,
            "email": "bob@example.com",
            "first_name": "Bob",
            "last_name": "Ng",
            "orders_count": 1,
            "total_spent": "40.00",
            "state": "disabled",
            "created_at": "2023-01-01T00:00:00Z",
            "updated_at": "2023-02-01T00:00:00Z",
        },
    ]


@pytest.fixture
def fake_factory(sample_product_data, sample_orders_data, sample_customers_data):
    """Factory serving the sample product, orders and customers."""
    return FakeClientFactory({
        "products/1001": {"product": sample_product_data},
        "products": {"products": [sample_product_data]},
        "products/count": {"count": 1},
        "variants/2001": {"variant": sample_product_data["variants"][0]},
        "orders": {"orders": sample_orders_data},
        "orders/5001": {"order": sample_orders_data[0]},
        "orders/count": {"count": len(sample_orders_data)},
        "customers": {"customers": sample_customers_data},
        "customers/search": {"customers": sample_customers_data[:1]},
        "customers/9001": {"customer": sample_customers_data[0]},
        "shop": {"shop": {"id": 1, "name": "Test Shop", "email": "owner@example.com",
                          "domain": "shop.example.com", "myshopify_domain": SHOP_DOMAIN,
                          "currency": "USD", "timezone": "UTC", "country_name": "United States",
                          "plan_name": "basic"}},
    })
