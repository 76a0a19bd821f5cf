"""
Per-variant sales metrics derived from a bounded window of orders.

All rates come from whatever orders the caller fetched (at most one page of
250). They describe that sample, not the variant's full sales history.
"""

import math
import statistics
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from revenue_optimizer.config.constants import (
    DAYS_PER_MONTH,
    MAX_DAYS_OF_STOCK,
    MINIMUM_MONTHS_LIVE,
    STOCKOUT_RISK_DAYS,
)
from revenue_optimizer.models.shopify import Order, Product, Variant
from revenue_optimizer.utils.dates import (
    ceil_days_between,
    days_between,
    now_utc,
    parse_timestamp,
    to_epoch_millis,
)
from revenue_optimizer.utils.formatters import round_half_up, to_float
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)


def months_from_days(days_live: float) -> float:
    """Days live expressed in 30-day months, floored at one day's worth."""
    return max(days_live / DAYS_PER_MONTH, MINIMUM_MONTHS_LIVE)


def days_of_stock(current_inventory: int, daily_sales_rate: float) -> float:
    """
    Days until the current stock runs out at the given daily rate.

    Capped at ``MAX_DAYS_OF_STOCK``. With no sales the result is the cap
    when stock is on hand and 0 when it is not.
    """
    if current_inventory <= 0:
        return 0.0
    if daily_sales_rate <= 0:
        return float(MAX_DAYS_OF_STOCK)
    return min(current_inventory / daily_sales_rate, float(MAX_DAYS_OF_STOCK))


def product_launch_date(product: Product) -> Optional[datetime]:
    return parse_timestamp(product.published_at) or parse_timestamp(product.created_at)


@dataclass
class VariantMetrics:
    units_sold: int
    total_revenue: float
    order_count: int
    first_sale_at: Optional[datetime]
    last_sale_at: Optional[datetime]
    days_live: int
    months_live: float
    monthly_sales_rate: float
    daily_sales_rate: float
    current_inventory: int
    estimated_initial_inventory: int
    inventory_turnover_rate: float
    days_of_stock_remaining: float
    stockout_risk: int
    sales_acceleration: float
    seasonality_score: float
    price_elasticity_indicator: float
    days_since_last_sale: int

    def to_dict(self) -> Dict[str, Any]:
        """Output shape with rates rounded half-up to 2 places."""
        return {
            "current_quantity": self.current_inventory,
            "estimated_initial_quantity": self.estimated_initial_inventory,
            "total_quantity_sold": self.units_sold,
            "inventory_turnover_rate": round_half_up(self.inventory_turnover_rate),
            "monthly_sales_rate": round_half_up(self.monthly_sales_rate),
            "daily_sales_rate": round_half_up(self.daily_sales_rate),
            "total_revenue": round_half_up(self.total_revenue),
            "total_orders": self.order_count,
            "days_live": self.days_live,
            "months_live": round_half_up(self.months_live),
            "days_since_last_sale": self.days_since_last_sale,
            "stockout_risk": self.stockout_risk,
            "days_of_stock_remaining": int(round_half_up(self.days_of_stock_remaining, 0)),
            "sales_acceleration": round_half_up(self.sales_acceleration),
            "seasonality_score": round_half_up(self.seasonality_score),
            "price_elasticity_indicator": round_half_up(self.price_elasticity_indicator),
            "first_sale_timestamp": to_epoch_millis(self.first_sale_at),
            "last_sale_timestamp": to_epoch_millis(self.last_sale_at),
        }


class VariantMetricsCalculator:
    """Reduces order line items into sales metrics for one variant."""

    def calculate(
        self,
        variant: Variant,
        product: Product,
        orders: List[Order],
        now: Optional[datetime] = None,
    ) -> VariantMetrics:
        """
        Compute sales totals, velocity, inventory and trend metrics.

        Args:
            variant: Target variant
            product: Parent product (supplies the publish date)
            orders: Orders to scan; line items for other variants are ignored
            now: Evaluation time, defaults to the current UTC time

        Returns:
            VariantMetrics for the variant over the supplied orders
        """
        now = now or now_utc()

        units_sold = 0
        revenue = 0.0
        first_sale: Optional[datetime] = None
        last_sale: Optional[datetime] = None
        matching_orders = 0

        for order in orders:
            items = order.items_for_variant(variant.id)
            if not items:
                continue
            matching_orders += 1
            ordered_at = parse_timestamp(order.created_at)
            for item in items:
                quantity = item.quantity or 0
                units_sold += quantity
                revenue += quantity * to_float(item.price)
            if ordered_at is not None:
                if first_sale is None or ordered_at < first_sale:
                    first_sale = ordered_at
                if last_sale is None or ordered_at > last_sale:
                    last_sale = ordered_at

        launched_at = product_launch_date(product)
        days_live = ceil_days_between(launched_at, now) if launched_at else 0
        months_live = months_from_days(days_live)

        monthly_sales_rate = units_sold / months_live
        daily_sales_rate = units_sold / max(days_live, 1)

        current_inventory = variant.stock
        # No inventory ledger exists; what was sold plus what is left is the best estimate
        estimated_initial = current_inventory + units_sold
        turnover = units_sold / estimated_initial if estimated_initial > 0 else 0.0

        remaining = days_of_stock(current_inventory, daily_sales_rate)
        days_since_last_sale = (
            ceil_days_between(last_sale, now) if last_sale is not None else days_live
        )

        metrics = VariantMetrics(
            units_sold=units_sold,
            total_revenue=revenue,
            order_count=matching_orders,
            first_sale_at=first_sale,
            last_sale_at=last_sale,
            days_live=days_live,
            months_live=months_live,
            monthly_sales_rate=monthly_sales_rate,
            daily_sales_rate=daily_sales_rate,
            current_inventory=current_inventory,
            estimated_initial_inventory=estimated_initial,
            inventory_turnover_rate=turnover,
            days_of_stock_remaining=remaining,
            stockout_risk=1 if remaining <= STOCKOUT_RISK_DAYS else 0,
            sales_acceleration=self.sales_acceleration(orders, variant.id),
            seasonality_score=self.seasonality_score(orders, variant.id),
            price_elasticity_indicator=self.price_elasticity(variant, units_sold),
            days_since_last_sale=days_since_last_sale,
        )

        logger.debug(
            "Variant metrics calculated",
            variant_id=variant.id,
            units_sold=units_sold,
            orders_scanned=len(orders),
            monthly_sales_rate=monthly_sales_rate,
        )
        return metrics

    @staticmethod
    def _timed_sales(orders: List[Order], variant_id: Any) -> List[Tuple[datetime, int]]:
        """(order time, units of the variant) for each dated order containing it."""
        sales = []
        for order in orders:
            items = order.items_for_variant(variant_id)
            ordered_at = parse_timestamp(order.created_at)
            if not items or ordered_at is None:
                continue
            sales.append((ordered_at, sum(item.quantity or 0 for item in items)))
        sales.sort(key=lambda sale: sale[0])
        return sales

    def sales_acceleration(self, orders: List[Order], variant_id: Any) -> float:
        """
        Relative change in daily sales rate between the two halves of the
        variant's order history.

        Orders are split by count at ``floor(n / 2)``. Each half's rate is
        its units divided by the days between its first and last order
        (at least 1). Returns 0 with fewer than 2 orders or when the first
        half sold nothing.
        """
        sales = self._timed_sales(orders, variant_id)
        if len(sales) < 2:
            return 0.0

        midpoint = len(sales) // 2
        first_half, second_half = sales[:midpoint], sales[midpoint:]

        def half_rate(half):
            span = days_between(half[0][0], half[-1][0])
            return sum(units for _, units in half) / max(span, 1)

        first_rate = half_rate(first_half)
        if first_rate <= 0:
            return 0.0
        return (half_rate(second_half) - first_rate) / first_rate

    def seasonality_score(self, orders: List[Order], variant_id: Any) -> float:
        """Coefficient of variation of units sold per calendar month.

        Months are bucketed 0-11 regardless of year. Returns 0 when fewer
        than 2 months have sales.
        """
        by_month: Dict[int, int] = {}
        for ordered_at, units in self._timed_sales(orders, variant_id):
            by_month[ordered_at.month - 1] = by_month.get(ordered_at.month - 1, 0) + units

        values = list(by_month.values())
        if len(values) < 2:
            return 0.0
        mean = statistics.fmean(values)
        if mean <= 0:
            return 0.0
        return statistics.pstdev(values) / mean

    @staticmethod
    def price_elasticity(variant: Variant, units_sold: int) -> float:
        """Units sold per unit of relative discount from the compare-at price.

        A crude proxy, not a calibrated elasticity.
        """
        price = variant.price_value
        compare_at = variant.compare_at_value
        if price <= 0 or compare_at <= 0:
            return 0.0
        change = (price - compare_at) / compare_at
        if math.isclose(change, 0.0):
            return 0.0
        return units_sold / abs(change)
