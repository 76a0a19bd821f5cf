"""Tests for shop-wide rollups and LTV/CAC arithmetic."""

from datetime import datetime

import pytest

from revenue_optimizer.analytics.aggregates import (
    calculate_ltv_cac,
    churn_rate,
    customer_analytics,
    is_active_customer,
    ltv_cac_recommendation,
    order_analytics,
    product_analytics,
)
from revenue_optimizer.models.shopify import Customer, Product
from revenue_optimizer.utils.dates import UTC


class TestProductAnalytics:
    def test_rollup(self, sample_product):
        draft = Product.model_validate({
            "id": 2,
            "status": "draft",
            "vendor": None,
            "product_type": "",
            "variants": [{"id": 3, "price": "100.00", "inventory_quantity": 5}],
        })
        analytics = product_analytics([sample_product, draft])

        assert analytics["totalProducts"] == 2
        assert analytics["publishedProducts"] == 1
        assert analytics["draftProducts"] == 1
        assert analytics["productsByVendor"] == {"Acme Apparel": 1, "Unknown": 1}
        assert analytics["productsByType"] == {"Clothing": 1, "Unknown": 1}
        assert analytics["totalVariants"] == 3
        assert analytics["averageVariantsPerProduct"] == 1.5
        assert analytics["priceRange"] == {"min": 20.0, "max": 100.0, "average": pytest.approx(142 / 3)}

        stats = analytics["inventoryStats"]
        assert stats["totalInventory"] == 55
        assert stats["lowStockVariants"] == 2
        assert stats["outOfStockVariants"] == 1

    def test_empty(self):
        analytics = product_analytics([])

        assert analytics["totalProducts"] == 0
        assert analytics["averageVariantsPerProduct"] == 0
        assert analytics["priceRange"] == {"min": 0, "max": 0, "average": 0}


class TestOrderAnalytics:
    def test_rollup(self, sample_orders):
        analytics = order_analytics(sample_orders)

        assert analytics["totalOrders"] == 3
        assert analytics["totalRevenue"] == 240.0
        assert analytics["averageOrderValue"] == 80.0
        assert analytics["ordersByStatus"] == {"paid": 2, "pending": 1}
        assert [o["id"] for o in analytics["recentOrders"]] == [5003, 5002, 5001]

    def test_empty(self):
        analytics = order_analytics([])
        assert analytics["averageOrderValue"] == 0


class TestCustomerAnalytics:
    def test_rollup(self, sample_customers_data):
        customers = [Customer.model_validate(c) for c in sample_customers_data]
        analytics = customer_analytics(customers)

        assert analytics["totalCustomers"] == 2
        assert analytics["returningCustomers"] == 1
        assert analytics["newCustomers"] == 1
        assert analytics["averageLifetimeValue"] == 170.0
        assert analytics["topCustomers"][0]["email"] == "ann@example.com"
        assert analytics["customersByState"] == {"enabled": 1, "disabled": 1}


class TestChurnRate:
    """Churn is an estimate: inactive share spread over six months, clamped."""

    def test_no_customers_uses_default(self):
        assert churn_rate(0, 0) == 0.05

    def test_all_inactive_is_clamped_to_window(self):
        assert churn_rate(100, 0) == pytest.approx(1 / 6)

    def test_lower_clamp(self):
        assert churn_rate(100, 100) == 0.01

    def test_midrange(self):
        assert churn_rate(100, 70) == pytest.approx(0.05)


class TestLtvCac:
    """Test LTV/CAC formulas and recommendation bands."""

    def test_zero_ad_spend(self):
        result = calculate_ltv_cac(
            total_revenue=1000.0,
            total_orders=10,
            total_customers=5,
            churn=0.05,
            ad_spend=0,
            new_customers=4,
        )

        assert result.cac == 0
        assert "add your advertising spend" in result.recommendation
        # AOV 100 x frequency 2 x lifespan 20
        assert result.ltv == 4000.0

    def test_no_new_customers_yields_zero_cac(self):
        result = calculate_ltv_cac(1000.0, 10, 5, 0.05, ad_spend=500, new_customers=0)
        assert result.cac == 0

    def test_zero_churn_uses_default_lifespan(self):
        result = calculate_ltv_cac(100.0, 1, 1, 0, ad_spend=0, new_customers=0)
        assert result.customer_lifespan_months == 20

    def test_empty_shop(self):
        result = calculate_ltv_cac(0, 0, 0, 0.05, ad_spend=100, new_customers=0)

        assert result.ltv == 0
        assert result.cac == 0

    @pytest.mark.parametrize("ltv,cac,prefix", [
        (500, 100, "Excellent!"),
        (300, 100, "Good news!"),
        (150, 100, "Your business is making money."),
        (120, 100, "Warning:"),
        (100, 100, "Alert:"),
        (50, 100, "Alert:"),
    ])
    def test_recommendation_bands(self, ltv, cac, prefix):
        assert ltv_cac_recommendation(ltv, cac).startswith(prefix)

    def test_recommendation_formats_whole_numbers(self):
        text = ltv_cac_recommendation(4000.4, 200.6)
        assert "worth 4000 but only cost 201" in text


class TestActiveCustomer:
    def test_recent_with_orders(self, sample_customers_data):
        since = datetime(2024, 3, 30, tzinfo=UTC)

        assert is_active_customer(Customer.model_validate(sample_customers_data[0]), since) is True
        assert is_active_customer(Customer.model_validate(sample_customers_data[1]), since) is False

    def test_no_orders_is_inactive(self):
        customer = Customer(updated_at="2024-06-01T00:00:00Z", orders_count=0)
        assert is_active_customer(customer, datetime(2024, 3, 1, tzinfo=UTC)) is False
