"""Tests for category resolution and the AI metrics payload."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from revenue_optimizer.analytics.ai_metrics import calculate_ai_metrics
from revenue_optimizer.analytics.category_resolver import (
    ProductCategoryResolver,
    category_from_tags,
    classification_payload,
    extract_category,
    is_consumable,
    is_seasonal,
    static_category,
)
from revenue_optimizer.errors import AIServiceError
from revenue_optimizer.models.shopify import Product


@pytest.fixture
def ai_client():
    client = MagicMock()
    client.classify_category = AsyncMock(return_value={"category": "apparel"})
    return client


class TestCategoryHelpers:
    def test_tag_match_is_case_insensitive(self):
        assert category_from_tags("Summer, FASHION, sale") == "fashion"

    def test_tag_match_uses_list_order(self):
        # furniture precedes food in the predefined list
        assert category_from_tags("food, furniture") == "furniture"

    def test_no_tags(self):
        assert category_from_tags(None) is None
        assert category_from_tags("cotton, basics") is None

    def test_static_map(self):
        assert static_category("Clothing") == "fashion"
        assert static_category("Gadgets") == "general"
        assert static_category(None) == "general"

    def test_keyword_flags(self):
        product = Product(title="Winter Protein Blend", product_type="Health", tags="Supplement")
        assert is_consumable(product) is True
        assert is_seasonal(product) is True
        assert is_consumable(Product(title="Desk"), category="food") is True

    @pytest.mark.parametrize("response,expected", [
        ({"categories_in_training_data": ["fitness", "food"]}, "fitness"),
        ({"category": "beauty"}, "beauty"),
        ({"data": {"category": "toys"}}, "toys"),
        ({"predicted_category": "books"}, "books"),
        ({"classification": "home"}, "home"),
        ({"result": {"category": "automotive"}}, "automotive"),
        ({"categories_in_training_data": [], "category": "beauty"}, "beauty"),
        ({"category": "  "}, None),
        ({"unexpected": "shape"}, None),
        (["not", "a", "dict"], None),
        (None, None),
    ])
    def test_extract_category_accessor_chain(self, response, expected):
        assert extract_category(response) == expected

    def test_classification_payload_strips_variants(self, sample_product):
        payload = classification_payload(sample_product, "test-shop.myshopify.com")

        product_data = payload["data"]["products"][0]
        assert "variants" not in product_data
        assert product_data["title"] == "Classic Cotton Tee"
        assert payload["data"]["searchParams"]["shopDomain"] == "test-shop.myshopify.com"
        assert "accessToken" not in str(payload)


class TestProductCategoryResolver:
    """Test ProductCategoryResolver precedence and fallbacks."""

    @pytest.mark.asyncio
    async def test_tag_match_skips_ai_call(self, ai_client):
        resolver = ProductCategoryResolver(ai_client)
        product = Product(id=1, tags="fitness, yoga", product_type="Clothing")

        assert await resolver.resolve(product) == "fitness"
        assert ai_client.classify_category.await_count == 0

    @pytest.mark.asyncio
    async def test_ai_category_used_when_tags_do_not_match(self, ai_client, sample_product):
        resolver = ProductCategoryResolver(ai_client)

        assert await resolver.resolve(sample_product, "test-shop.myshopify.com") == "apparel"
        assert ai_client.classify_category.await_count == 1

    @pytest.mark.asyncio
    async def test_ai_failure_falls_back_to_static_map(self, ai_client, sample_product):
        ai_client.classify_category = AsyncMock(side_effect=AIServiceError("timed out"))
        resolver = ProductCategoryResolver(ai_client)

        assert await resolver.resolve(sample_product) == "fashion"

    @pytest.mark.asyncio
    async def test_unusable_ai_response_falls_back(self, ai_client, sample_product):
        ai_client.classify_category = AsyncMock(return_value={"status": "ok"})

        assert await ProductCategoryResolver(ai_client).resolve(sample_product) == "fashion"

    @pytest.mark.asyncio
    async def test_without_ai_client(self, sample_product):
        assert await ProductCategoryResolver(None).resolve(sample_product) == "fashion"


class TestAIMetrics:
    """Test calculate_ai_metrics over the sample orders."""

    def test_metrics_for_product_orders(self, sample_product, sample_orders):
        product_orders = [o for o in sample_orders if o.contains_product(sample_product.id)]
        metrics = calculate_ai_metrics(sample_product, product_orders, "2002", "fashion")

        assert metrics["price"] == 22.0
        assert metrics["category"] == "fashion"
        # one of two orders has a refund
        assert metrics["return_rate"] == 0.5
        # the single customer ordered twice
        assert metrics["repeat_rate"] == 1.0
        assert metrics["churn_rate"] == 0.0
        assert metrics["shipping_cost"] == 2.5
        assert metrics["is_consumable"] == 0
        assert metrics["is_seasonal"] == 0
        assert metrics["traffic_source"] == "organic"

    def test_unknown_variant_uses_first_variant_price(self, sample_product):
        assert calculate_ai_metrics(sample_product, [], "999")["price"] == 20.0

    def test_no_orders(self, sample_product):
        metrics = calculate_ai_metrics(sample_product, [])

        assert metrics["return_rate"] == 0
        assert metrics["repeat_rate"] == 0
        assert metrics["churn_rate"] == 1.0
        assert metrics["shipping_cost"] == 0
        assert metrics["category"] == "fashion"
