"""Tests for the orders, customers, LTV/CAC and auth services."""

import base64
import hashlib
import hmac
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from revenue_optimizer.config.settings import Settings
from revenue_optimizer.errors import InvalidRequestError, ShopifyAPIError, UpstreamError
from revenue_optimizer.services.auth_service import AuthService, generate_state
from revenue_optimizer.services.customers_service import CustomersService
from revenue_optimizer.services.ltv_cac_service import LtvCacService
from revenue_optimizer.services.orders_service import OrdersService
from revenue_optimizer.services.shopify_client import ShopifyResponse

from tests.conftest import ACCESS_TOKEN, SHOP_DOMAIN, FakeClientFactory, link_header


class TestOrdersService:
    """Test suite for OrdersService."""

    @pytest.mark.asyncio
    async def test_get_orders_passes_filters(self, fake_factory):
        service = OrdersService(fake_factory)

        result = await service.get_orders(SHOP_DOMAIN, ACCESS_TOKEN, limit=10, status="paid")

        assert result["count"] == 3
        assert result["pagination"]["hasNext"] is False
        assert fake_factory.calls == [("orders", {"limit": 10, "status": "paid"})]

    @pytest.mark.asyncio
    async def test_limit_is_capped(self, fake_factory):
        await OrdersService(fake_factory).get_orders(SHOP_DOMAIN, ACCESS_TOKEN, limit=1000)
        assert fake_factory.calls[0][1]["limit"] == 250

    @pytest.mark.asyncio
    async def test_single_order_and_count(self, fake_factory):
        service = OrdersService(fake_factory)

        order = await service.get_order(SHOP_DOMAIN, ACCESS_TOKEN, "5001")
        count = await service.get_order_count(SHOP_DOMAIN, ACCESS_TOKEN)

        assert order["id"] == 5001
        assert count == 3

    @pytest.mark.asyncio
    async def test_analytics(self, fake_factory):
        analytics = await OrdersService(fake_factory).get_order_analytics(SHOP_DOMAIN, ACCESS_TOKEN)

        assert analytics["totalRevenue"] == 240.0
        assert fake_factory.calls == [("orders", {"limit": 250, "status": "any"})]


class TestCustomersService:
    """Test suite for CustomersService."""

    @pytest.mark.asyncio
    async def test_search_builds_wildcard_query(self, fake_factory):
        result = await CustomersService(fake_factory).get_customers(
            SHOP_DOMAIN, ACCESS_TOKEN, search="ann"
        )

        path, query = fake_factory.calls[0]
        assert path == "customers/search"
        assert query["query"] == "email:*ann* OR first_name:*ann* OR last_name:*ann*"
        assert result["count"] == 1

    @pytest.mark.asyncio
    async def test_plain_listing(self, fake_factory):
        result = await CustomersService(fake_factory).get_customers(
            SHOP_DOMAIN, ACCESS_TOKEN, page_info="cursor"
        )

        assert fake_factory.calls == [("customers", {"limit": 50, "page_info": "cursor"})]
        assert result["count"] == 2

    @pytest.mark.asyncio
    async def test_single_customer(self, fake_factory):
        customer = await CustomersService(fake_factory).get_customer(SHOP_DOMAIN, ACCESS_TOKEN, "9001")
        assert customer["email"] == "ann@example.com"

    @pytest.mark.asyncio
    async def test_analytics(self, fake_factory):
        analytics = await CustomersService(fake_factory).get_customer_analytics(
            SHOP_DOMAIN, ACCESS_TOKEN
        )
        assert analytics["totalCustomers"] == 2


class TestLtvCacService:
    """Test suite for LtvCacService."""

    @pytest.mark.asyncio
    async def test_analyze(self, fake_factory, now):
        result = await LtvCacService(fake_factory).analyze(
            SHOP_DOMAIN, ACCESS_TOKEN, ad_spend=100, now=now
        )

        data = result["shopify_data"]
        # only the two paid orders count
        assert data["total_revenue"] == 200.0
        assert data["total_orders"] == 2
        assert data["total_customers"] == 2
        assert data["new_customers_acquired"] == 1
        # one of two customers inactive, spread over six months
        assert data["churn_rate"] == 0.083

        assert result["cac"] == 100.0
        assert result["ltv"] == pytest.approx(100 / 0.083, abs=0.01)
        assert result["recommendation"].startswith("Excellent!")

    @pytest.mark.asyncio
    async def test_zero_ad_spend(self, fake_factory, now):
        result = await LtvCacService(fake_factory).analyze(SHOP_DOMAIN, ACCESS_TOKEN, now=now)

        assert result["cac"] == 0
        assert "add your advertising spend" in result["recommendation"]

    @pytest.mark.asyncio
    async def test_order_window_query(self, fake_factory, now):
        await LtvCacService(fake_factory).fetch_shopify_data(SHOP_DOMAIN, ACCESS_TOKEN, now=now)

        path, query = fake_factory.calls[0]
        assert path == "orders"
        assert query["status"] == "any"
        assert query["created_at_min"].startswith("2023-12-30")
        assert query["created_at_max"].startswith("2024-06-30")
        assert query["fields"] == "id,total_price,financial_status"

    @pytest.mark.asyncio
    async def test_follows_link_cursor(self, sample_customers_data, now):
        paid = {"id": 1, "financial_status": "paid", "total_price": "10.00"}
        factory = FakeClientFactory({
            "orders": [
                ShopifyResponse({"orders": [paid]}, {"link": link_header(next_page_info="p2")}),
                ShopifyResponse({"orders": [paid]}),
            ],
            "customers": {"customers": sample_customers_data},
        })

        data = await LtvCacService(factory).fetch_shopify_data(SHOP_DOMAIN, ACCESS_TOKEN, now=now)

        assert data["total_orders"] == 2
        order_calls = [q for path, q in factory.calls if path == "orders"]
        assert order_calls[1] == {"limit": 250, "page_info": "p2"}

    @pytest.mark.asyncio
    async def test_record_cap(self, sample_customers_data, now):
        page = ShopifyResponse(
            {"orders": [{"id": i, "financial_status": "paid", "total_price": "1.00"} for i in range(250)]},
            {"link": link_header(next_page_info="more")},
        )
        factory = FakeClientFactory({
            "orders": [page] * 10,
            "customers": {"customers": sample_customers_data},
        })

        data = await LtvCacService(factory).fetch_shopify_data(SHOP_DOMAIN, ACCESS_TOKEN, now=now)

        # stops once more than 1000 orders have been counted
        assert data["total_orders"] == 1250

    @pytest.mark.asyncio
    async def test_shopify_failure_propagates(self, now):
        factory = FakeClientFactory({"orders": ShopifyAPIError(403, "Forbidden", "orders")})

        with pytest.raises(ShopifyAPIError):
            await LtvCacService(factory).analyze(SHOP_DOMAIN, ACCESS_TOKEN, now=now)


class TestAuthService:
    """Test suite for AuthService."""

    @pytest.fixture
    def settings(self, monkeypatch):
        monkeypatch.setenv("SHOPIFY_API_KEY", "key123")
        monkeypatch.setenv("SHOPIFY_API_SECRET", "secret456")
        monkeypatch.setenv("SHOPIFY_APP_URL", "https://app.example.com/")
        monkeypatch.setenv("SHOPIFY_WEBHOOK_SECRET", "hooksecret")
        return Settings()

    @pytest.mark.parametrize("domain,valid", [
        ("my-shop.myshopify.com", True),
        ("shop1.myshopify.com", True),
        ("-shop.myshopify.com", False),
        ("shop.example.com", False),
        ("https://shop.myshopify.com", False),
        ("", False),
    ])
    def test_validate_shop_domain(self, domain, valid):
        assert AuthService.validate_shop_domain(domain) is valid

    def test_generate_oauth_url(self, settings):
        url = AuthService(settings).generate_oauth_url("my-shop.myshopify.com", "nonce1")

        parsed = urlparse(url)
        params = parse_qs(parsed.query)
        assert parsed.netloc == "my-shop.myshopify.com"
        assert parsed.path == "/admin/oauth/authorize"
        assert params["client_id"] == ["key123"]
        assert params["scope"] == ["read_products,read_orders,read_customers,read_analytics"]
        assert params["redirect_uri"] == ["https://app.example.com/api/v1/auth/callback"]
        assert params["state"] == ["nonce1"]
        assert "redirect_uri=https%3A%2F%2Fapp.example.com%2Fapi%2Fv1%2Fauth%2Fcallback" in url

    def test_generated_state(self):
        state = generate_state()
        assert len(state) == 32
        assert state.isalnum()

    def test_verify_webhook(self, settings):
        body = '{"id": 1}'
        signature = base64.b64encode(
            hmac.new(b"hooksecret", body.encode(), hashlib.sha256).digest()
        ).decode()
        service = AuthService(settings)

        assert service.verify_webhook(body, signature) is True
        assert service.verify_webhook(body.encode(), signature) is True
        assert service.verify_webhook(body, "bogus") is False

    def test_verify_webhook_without_secret(self, settings):
        settings.shopify.webhook_secret = ""
        assert AuthService(settings).verify_webhook("{}", "anything") is False

    @pytest.mark.asyncio
    async def test_exchange_code_for_token(self, settings):
        def handler(request):
            assert request.url == httpx.URL("https://my-shop.myshopify.com/admin/oauth/access_token")
            assert request.method == "POST"
            return httpx.Response(200, json={"access_token": "shpat_new", "scope": "read_products"})

        service = AuthService(settings, transport=httpx.MockTransport(handler))
        assert await service.exchange_code_for_token("my-shop.myshopify.com", "code1") == "shpat_new"

    @pytest.mark.asyncio
    async def test_exchange_rejected(self, settings):
        service = AuthService(
            settings, transport=httpx.MockTransport(lambda request: httpx.Response(400))
        )
        with pytest.raises(UpstreamError):
            await service.exchange_code_for_token("my-shop.myshopify.com", "expired")

    @pytest.mark.asyncio
    async def test_exchange_refuses_non_shopify_host(self, settings):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200, json={"access_token": "shpat_new"})

        service = AuthService(settings, transport=httpx.MockTransport(handler))

        with pytest.raises(InvalidRequestError):
            await service.exchange_code_for_token("attacker.example.com", "code1")
        assert requests == []

    @pytest.mark.asyncio
    async def test_validate_access_token(self, settings, fake_factory):
        assert await AuthService(settings, fake_factory).validate_access_token(SHOP_DOMAIN, "t") is True

        rejecting = FakeClientFactory({"shop": ShopifyAPIError(401, "Unauthorized", "shop")})
        assert await AuthService(settings, rejecting).validate_access_token(SHOP_DOMAIN, "t") is False

    def test_configuration_status(self, settings):
        status = AuthService(settings).configuration_status()

        assert status["status"] == "Ready"
        assert status["configuration"]["apiKey"] == "Configured"
        assert status["configuration"]["callbackUrl"] == "https://app.example.com/api/v1/auth/callback"
