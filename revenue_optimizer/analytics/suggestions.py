"""
Rule-based suggestions built on variant metrics and stale analysis.

Six independent rule groups run in a fixed order and every group that
matches contributes a suggestion:

1. Inventory level   (at most one of CRITICAL_INVENTORY, LOW_INVENTORY,
                      INVENTORY_WARNING, OVERSTOCK)
2. Sales performance (at most one of NO_SALES, POOR_PERFORMANCE,
                      BELOW_TARGET, HIGH_PERFORMER)
3. Trend             (DECLINING_TREND or POSITIVE_MOMENTUM)
4. Pricing           (PRICING_OPPORTUNITY)
5. Seasonality       (SEASONAL_PLANNING)
6. Bundling          (BUNDLING_OPPORTUNITY)

Priorities are fixed per rule.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from revenue_optimizer.analytics.stale_inventory import StaleAnalysisResult
from revenue_optimizer.analytics.variant_metrics import product_launch_date
from revenue_optimizer.config.constants import (
    HIGH_PERFORMER_RATIO,
    INVENTORY_CRITICAL_LOW_DAYS,
    INVENTORY_HIGH_DAYS,
    INVENTORY_LOW_DAYS,
    INVENTORY_OPTIMAL_DAYS,
    INVENTORY_PERCENT_TIERS,
    NEW_PRODUCT_DAYS,
    POOR_PERFORMANCE_RATIO,
    PRICE_INCREASE_RATIO,
    PRICE_TIER_DEFAULT,
    PRICE_TIERS,
    RECENT_PRODUCT_DAYS,
    SEASONALITY_THRESHOLD,
    TREND_ALERT_THRESHOLD,
    TREND_LABEL_THRESHOLD,
)
from revenue_optimizer.models.shopify import Product, Variant
from revenue_optimizer.utils.dates import ceil_days_between, now_utc
from revenue_optimizer.utils.formatters import format_number, format_threshold, round_half_up


class SuggestionType(str, Enum):
    CRITICAL_INVENTORY = "CRITICAL_INVENTORY"
    LOW_INVENTORY = "LOW_INVENTORY"
    INVENTORY_WARNING = "INVENTORY_WARNING"
    OVERSTOCK = "OVERSTOCK"
    NO_SALES = "NO_SALES"
    POOR_PERFORMANCE = "POOR_PERFORMANCE"
    BELOW_TARGET = "BELOW_TARGET"
    HIGH_PERFORMER = "HIGH_PERFORMER"
    DECLINING_TREND = "DECLINING_TREND"
    POSITIVE_MOMENTUM = "POSITIVE_MOMENTUM"
    PRICING_OPPORTUNITY = "PRICING_OPPORTUNITY"
    SEASONAL_PLANNING = "SEASONAL_PLANNING"
    BUNDLING_OPPORTUNITY = "BUNDLING_OPPORTUNITY"


class Priority(str, Enum):
    URGENT = "URGENT"
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class InventoryStatus(str, Enum):
    OUT_OF_STOCK = "OUT_OF_STOCK"
    CRITICAL_LOW = "CRITICAL_LOW"
    LOW = "LOW"
    OPTIMAL = "OPTIMAL"
    HIGH = "HIGH"
    OVERSTOCKED = "OVERSTOCKED"


class TrendLabel(str, Enum):
    IMPROVING = "IMPROVING"
    DECLINING = "DECLINING"
    STABLE = "STABLE"


@dataclass
class Suggestion:
    type: SuggestionType
    action: str
    reason: str
    priority: Priority
    proposed_price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "type": self.type.value,
            "action": self.action,
            "reason": self.reason,
            "priority": self.priority.value,
        }
        if self.proposed_price is not None:
            data["proposed_price"] = self.proposed_price
        return data


@dataclass
class SuggestionInput:
    variant: Variant
    product: Product
    monthly_sales_rate: float
    stale_threshold: float
    current_inventory: int
    days_of_stock_remaining: float
    total_revenue: float
    months_live: float
    sales_acceleration: float
    seasonality_score: float
    stale_analysis: Optional[StaleAnalysisResult] = None
    total_units_sold: Optional[int] = None
    now: Optional[datetime] = None


@dataclass
class SuggestionReport:
    suggestions: List[Suggestion] = field(default_factory=list)
    performance_summary: Dict[str, Any] = field(default_factory=dict)
    threshold_explanation: Dict[str, Any] = field(default_factory=dict)

    @property
    def types(self) -> List[SuggestionType]:
        return [s.type for s in self.suggestions]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_suggestions": len(self.suggestions),
            "suggestions": [s.to_dict() for s in self.suggestions],
            "performance_summary": self.performance_summary,
            "threshold_explanation": self.threshold_explanation,
        }


def inventory_status(days_remaining: float, current_stock: int) -> InventoryStatus:
    """Place a variant in exactly one of the six inventory bands."""
    if current_stock <= 0:
        return InventoryStatus.OUT_OF_STOCK
    if days_remaining <= INVENTORY_CRITICAL_LOW_DAYS:
        return InventoryStatus.CRITICAL_LOW
    if days_remaining <= INVENTORY_LOW_DAYS:
        return InventoryStatus.LOW
    if days_remaining <= INVENTORY_OPTIMAL_DAYS:
        return InventoryStatus.OPTIMAL
    if days_remaining <= INVENTORY_HIGH_DAYS:
        return InventoryStatus.HIGH
    return InventoryStatus.OVERSTOCKED


def trend_label(acceleration: float) -> TrendLabel:
    if acceleration > TREND_LABEL_THRESHOLD:
        return TrendLabel.IMPROVING
    if acceleration < -TREND_LABEL_THRESHOLD:
        return TrendLabel.DECLINING
    return TrendLabel.STABLE


def _whole_days(days: float) -> int:
    return int(round_half_up(days, 0))


class SuggestionEngine:
    """Turns computed metrics into prioritised, actionable suggestions."""

    def generate(self, data: SuggestionInput) -> SuggestionReport:
        suggestions: List[Suggestion] = []
        for rule in (
            self._inventory_rule,
            self._performance_rule,
            self._trend_rule,
            self._pricing_rule,
            self._seasonal_rule,
            self._bundling_rule,
        ):
            suggestion = rule(data)
            if suggestion is not None:
                suggestions.append(suggestion)

        return SuggestionReport(
            suggestions=suggestions,
            performance_summary=self._performance_summary(data),
            threshold_explanation=self._threshold_explanation(data),
        )

    # ── Rules ─────────────────────────────────────────────────────

    @staticmethod
    def _inventory_rule(data: SuggestionInput) -> Optional[Suggestion]:
        days = data.days_of_stock_remaining
        if data.current_inventory <= 0:
            return Suggestion(
                SuggestionType.CRITICAL_INVENTORY,
                "Emergency restock required immediately",
                "Product is out of stock",
                Priority.URGENT,
            )
        if days <= INVENTORY_CRITICAL_LOW_DAYS:
            return Suggestion(
                SuggestionType.LOW_INVENTORY,
                f"Reorder immediately - only {_whole_days(days)} days of stock remaining",
                "Critical low inventory level",
                Priority.HIGH,
            )
        if days <= INVENTORY_LOW_DAYS:
            return Suggestion(
                SuggestionType.INVENTORY_WARNING,
                f"Plan reorder within 1 week - {_whole_days(days)} days remaining",
                "Low inventory approaching",
                Priority.MEDIUM,
            )
        if days > INVENTORY_HIGH_DAYS:
            return Suggestion(
                SuggestionType.OVERSTOCK,
                "Consider clearance strategy - excess inventory detected",
                f"{_whole_days(days)} days of stock remaining",
                Priority.MEDIUM,
            )
        return None

    @staticmethod
    def _performance_rule(data: SuggestionInput) -> Optional[Suggestion]:
        rate = data.monthly_sales_rate
        threshold = data.stale_threshold
        if rate == 0:
            return Suggestion(
                SuggestionType.NO_SALES,
                "Apply 40-50% discount or consider discontinuation",
                "No sales recorded in analysis period",
                Priority.CRITICAL,
            )
        if rate < threshold * POOR_PERFORMANCE_RATIO:
            return Suggestion(
                SuggestionType.POOR_PERFORMANCE,
                "Apply 25-35% discount and run targeted ads",
                f"Very low sales rate: {format_number(rate, 1)} units/month",
                Priority.HIGH,
            )
        if rate < threshold:
            return Suggestion(
                SuggestionType.BELOW_TARGET,
                "Apply 15-20% discount and optimize product visibility",
                f"Below target sales rate: {format_number(rate, 1)} units/month "
                f"(target: {format_threshold(threshold)})",
                Priority.MEDIUM,
            )
        if rate >= threshold * HIGH_PERFORMER_RATIO:
            return Suggestion(
                SuggestionType.HIGH_PERFORMER,
                "Test 10-15% price increase and scale marketing",
                f"Excellent sales rate: {format_number(rate, 1)} units/month",
                Priority.LOW,
            )
        return None

    @staticmethod
    def _trend_rule(data: SuggestionInput) -> Optional[Suggestion]:
        if data.sales_acceleration < -TREND_ALERT_THRESHOLD:
            return Suggestion(
                SuggestionType.DECLINING_TREND,
                "Investigate cause and implement recovery strategy",
                "Rapidly declining sales trend detected",
                Priority.HIGH,
            )
        if data.sales_acceleration > TREND_ALERT_THRESHOLD:
            return Suggestion(
                SuggestionType.POSITIVE_MOMENTUM,
                "Increase marketing budget to capitalize on momentum",
                "Strong positive sales trend detected",
                Priority.MEDIUM,
            )
        return None

    @staticmethod
    def _pricing_rule(data: SuggestionInput) -> Optional[Suggestion]:
        price = data.variant.price_value
        if data.monthly_sales_rate < data.stale_threshold or price <= 0:
            return None
        proposed = round_half_up(price + round_half_up(price * PRICE_INCREASE_RATIO))
        return Suggestion(
            SuggestionType.PRICING_OPPORTUNITY,
            f"Test price increase to ${format_number(proposed)}",
            "Strong demand indicates pricing power",
            Priority.LOW,
            proposed_price=proposed,
        )

    @staticmethod
    def _seasonal_rule(data: SuggestionInput) -> Optional[Suggestion]:
        if data.seasonality_score <= SEASONALITY_THRESHOLD:
            return None
        return Suggestion(
            SuggestionType.SEASONAL_PLANNING,
            "Plan seasonal inventory and marketing campaigns",
            "High seasonality pattern detected",
            Priority.MEDIUM,
        )

    @staticmethod
    def _bundling_rule(data: SuggestionInput) -> Optional[Suggestion]:
        if data.monthly_sales_rate >= data.stale_threshold or data.total_revenue <= 0:
            return None
        return Suggestion(
            SuggestionType.BUNDLING_OPPORTUNITY,
            "Create bundles with popular products",
            "Slow sales could benefit from bundling strategy",
            Priority.MEDIUM,
        )

    # ── Summaries ─────────────────────────────────────────────────

    @staticmethod
    def _performance_summary(data: SuggestionInput) -> Dict[str, Any]:
        stale = data.stale_analysis
        if stale is not None:
            vs_threshold = (
                f"{format_number(stale.percent_sold_per_month)}% vs "
                f"{format_threshold(stale.threshold_percent_used)}% threshold"
            )
        elif data.stale_threshold > 0:
            vs_threshold = (
                f"{format_number(data.monthly_sales_rate / data.stale_threshold * 100, 0)}% of target"
            )
        else:
            vs_threshold = "no target set"

        return {
            "monthly_sales_rate": round_half_up(data.monthly_sales_rate),
            "stale_threshold_used": data.stale_threshold,
            "vs_threshold": vs_threshold,
            "inventory_status": inventory_status(
                data.days_of_stock_remaining, data.current_inventory
            ).value,
            "trend": trend_label(data.sales_acceleration).value,
        }

    def _threshold_explanation(self, data: SuggestionInput) -> Dict[str, Any]:
        stale = data.stale_analysis
        threshold = data.stale_threshold
        threshold_text = format_threshold(threshold)

        if stale is not None:
            calculation_method = stale.calculation_method
            below = stale.is_stale
            ratio = (
                stale.percent_sold_per_month / stale.threshold_percent_used
                if stale.threshold_percent_used > 0 else 0.0
            )
            percentage_analysis = {
                "percent_sold_per_month": stale.percent_sold_per_month,
                "threshold_percent_used": stale.threshold_percent_used,
                "months_live": stale.months_live,
                "total_inventory_considered": data.current_inventory + (data.total_units_sold or 0),
            }
        else:
            calculation_method = self._rate_method_description(data)
            below = data.monthly_sales_rate < threshold
            ratio = data.monthly_sales_rate / threshold if threshold > 0 else 0.0
            percentage_analysis = None

        return {
            "stale_threshold": threshold,
            "calculation_method": calculation_method,
            "interpretation": {
                "above_threshold": (
                    f"Product is selling >{threshold_text}% of inventory per month - performing well"
                ),
                "at_threshold": (
                    f"Product is selling exactly {threshold_text}% of inventory per month "
                    "- meeting expectations"
                ),
                "below_threshold": (
                    f"Product is selling <{threshold_text}% of inventory per month - considered stale"
                ),
            },
            "current_performance": "BELOW_THRESHOLD" if below else "ABOVE_THRESHOLD",
            "performance_ratio": round_half_up(ratio),
            "percentage_based_analysis": percentage_analysis,
            "threshold_factors": self._threshold_factors(data),
        }

    @staticmethod
    def _days_live(data: SuggestionInput) -> int:
        launched_at = product_launch_date(data.product)
        if launched_at is None:
            return 0
        return ceil_days_between(launched_at, data.now or now_utc())

    def _rate_method_description(self, data: SuggestionInput) -> str:
        if data.current_inventory <= 0:
            return "Dynamic threshold based on product age and price (out of stock)"
        if self._days_live(data) <= NEW_PRODUCT_DAYS:
            return (
                "Dynamic threshold based on new product status, inventory percentage, "
                "and price point"
            )
        return (
            "Dynamic threshold based on inventory percentage remaining, price point, "
            "and product age"
        )

    def _threshold_factors(self, data: SuggestionInput) -> Dict[str, Any]:
        price = data.variant.price_value
        current = data.current_inventory

        if data.total_units_sold is not None:
            sold = data.total_units_sold
        elif data.total_revenue > 0 and price > 0:
            sold = int(round_half_up(data.total_revenue / price, 0))
        else:
            sold = 0
        initial = current + sold
        percent_remaining = int(round_half_up(current / initial * 100, 0)) if initial > 0 else 0

        price_category = PRICE_TIER_DEFAULT
        for floor, label in PRICE_TIERS:
            if price >= floor:
                price_category = label
                break

        if percent_remaining <= 0:
            inventory_category = "out_of_stock"
        else:
            inventory_category = "very_low"
            for floor, label in INVENTORY_PERCENT_TIERS:
                if percent_remaining >= floor:
                    inventory_category = label
                    break

        days_live = self._days_live(data)
        if days_live > RECENT_PRODUCT_DAYS:
            age_category = "established"
        elif days_live > NEW_PRODUCT_DAYS:
            age_category = "recent"
        else:
            age_category = "new"

        return {
            "inventory_percentage_remaining": percent_remaining,
            "inventory_category": inventory_category,
            "price_category": price_category,
            "age_category": age_category,
            "days_live": days_live,
            "estimated_initial_inventory": initial,
            "factors_considered": [
                "inventory_percentage",
                "price_point",
                "product_age",
                "estimated_sales_velocity",
            ],
        }
