"""Tests for per-variant sales metrics."""

import pytest

from revenue_optimizer.analytics.variant_metrics import (
    VariantMetricsCalculator,
    days_of_stock,
    months_from_days,
)
from revenue_optimizer.config.constants import MAX_DAYS_OF_STOCK, MINIMUM_MONTHS_LIVE
from revenue_optimizer.models.shopify import Order, Product, Variant


class TestDaysOfStock:
    """Test the single days-of-stock sentinel."""

    def test_no_sales_with_stock_returns_cap(self):
        assert days_of_stock(50, 0) == MAX_DAYS_OF_STOCK

    def test_out_of_stock_returns_zero(self):
        assert days_of_stock(0, 0) == 0
        assert days_of_stock(0, 3.5) == 0

    def test_result_is_capped(self):
        assert days_of_stock(10_000, 1) == MAX_DAYS_OF_STOCK

    def test_regular_rate(self):
        assert days_of_stock(30, 2) == 15


class TestMonthsFromDays:
    def test_thirty_day_months(self):
        assert months_from_days(60) == 2.0

    def test_floor_applies_to_brand_new_products(self):
        assert months_from_days(0) == MINIMUM_MONTHS_LIVE


class TestVariantMetricsCalculator:
    """Test VariantMetricsCalculator against the sample 60-day product."""

    def test_worked_example(self, sample_variant, sample_product, sample_orders, now):
        """10 units sold over 60 days with 50 left in stock."""
        metrics = VariantMetricsCalculator().calculate(
            sample_variant, sample_product, sample_orders, now=now
        )

        assert metrics.units_sold == 10
        assert metrics.total_revenue == pytest.approx(200.0)
        assert metrics.order_count == 2
        assert metrics.days_live == 60
        assert metrics.months_live == pytest.approx(2.0)
        assert metrics.monthly_sales_rate == pytest.approx(5.0)
        assert metrics.daily_sales_rate == pytest.approx(10 / 60)
        assert metrics.current_inventory == 50
        assert metrics.estimated_initial_inventory == 60
        assert metrics.days_of_stock_remaining == pytest.approx(300.0)
        assert metrics.stockout_risk == 0

    def test_to_dict_shape(self, sample_variant, sample_product, sample_orders, now):
        data = VariantMetricsCalculator().calculate(
            sample_variant, sample_product, sample_orders, now=now
        ).to_dict()

        assert data["total_quantity_sold"] == 10
        assert data["estimated_initial_quantity"] == 60
        assert data["monthly_sales_rate"] == 5.0
        assert data["inventory_turnover_rate"] == 0.17
        assert data["days_of_stock_remaining"] == 300
        assert isinstance(data["days_of_stock_remaining"], int)
        assert data["total_revenue"] == 200.0
        assert data["days_since_last_sale"] == 21
        assert data["first_sale_timestamp"] < data["last_sale_timestamp"]

    def test_zero_orders(self, sample_variant, sample_product, now):
        """No orders: zero rates, capped days of stock, no sale timestamps."""
        metrics = VariantMetricsCalculator().calculate(
            sample_variant, sample_product, [], now=now
        )

        assert metrics.units_sold == 0
        assert metrics.total_revenue == 0
        assert metrics.monthly_sales_rate == 0
        assert metrics.daily_sales_rate == 0
        assert metrics.days_of_stock_remaining == MAX_DAYS_OF_STOCK
        assert metrics.sales_acceleration == 0
        assert metrics.seasonality_score == 0
        assert metrics.days_since_last_sale == 60
        assert metrics.to_dict()["first_sale_timestamp"] is None

    def test_other_variants_are_ignored(self, sample_product, sample_orders, now):
        out_of_stock = sample_product.find_variant(2002)
        metrics = VariantMetricsCalculator().calculate(
            out_of_stock, sample_product, sample_orders, now=now
        )

        assert metrics.units_sold == 0
        assert metrics.days_of_stock_remaining == 0
        assert metrics.stockout_risk == 1

    def test_string_and_int_ids_match(self, sample_product, sample_orders, now):
        variant = Variant(id="2001", price="20.00", inventory_quantity=50)
        metrics = VariantMetricsCalculator().calculate(variant, sample_product, sample_orders, now=now)

        assert metrics.units_sold == 10

    def test_price_elasticity_uses_compare_at_discount(self, sample_variant):
        # 20 vs 25 is a 20% discount
        assert VariantMetricsCalculator.price_elasticity(sample_variant, 10) == pytest.approx(50.0)

    def test_price_elasticity_without_compare_at(self):
        variant = Variant(price="22.00", compare_at_price=None)
        assert VariantMetricsCalculator.price_elasticity(variant, 10) == 0.0


class TestSalesTrend:
    """Test sales acceleration and seasonality."""

    @staticmethod
    def _order(created_at, quantity):
        return Order.model_validate({
            "created_at": created_at,
            "line_items": [{"variant_id": 1, "quantity": quantity, "price": "10.00"}],
        })

    def test_acceleration_needs_two_orders(self):
        calculator = VariantMetricsCalculator()
        assert calculator.sales_acceleration([self._order("2024-06-01T00:00:00Z", 5)], 1) == 0.0

    def test_accelerating_sales(self):
        orders = [
            self._order("2024-06-01T00:00:00Z", 1),
            self._order("2024-06-02T00:00:00Z", 1),
            self._order("2024-06-03T00:00:00Z", 4),
            self._order("2024-06-04T00:00:00Z", 4),
        ]
        # First half: 2 units over 1 day; second half: 8 units over 1 day
        assert VariantMetricsCalculator().sales_acceleration(orders, 1) == pytest.approx(3.0)

    def test_seasonality_single_month_is_zero(self):
        orders = [
            self._order("2024-06-01T00:00:00Z", 3),
            self._order("2024-06-20T00:00:00Z", 7),
        ]
        assert VariantMetricsCalculator().seasonality_score(orders, 1) == 0.0

    def test_seasonality_uneven_months(self):
        orders = [
            self._order("2024-01-10T00:00:00Z", 1),
            self._order("2024-07-10T00:00:00Z", 9),
        ]
        # values [1, 9]: mean 5, population stdev 4
        assert VariantMetricsCalculator().seasonality_score(orders, 1) == pytest.approx(0.8)

    def test_missing_publish_date_counts_as_today(self, now):
        product = Product(id=1, variants=[Variant(id=1, inventory_quantity=5)])
        metrics = VariantMetricsCalculator().calculate(product.variants[0], product, [], now=now)

        assert metrics.days_live == 0
        assert metrics.months_live == MINIMUM_MONTHS_LIVE
