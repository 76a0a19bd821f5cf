"""
Shop-wide rollups over fetched pages of products, orders and customers,
plus the LTV/CAC arithmetic.

All functions are pure; fetching lives in the services layer.
"""

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from revenue_optimizer.config.constants import (
    DEFAULT_CHURN_RATE,
    DEFAULT_CUSTOMER_LIFESPAN_MONTHS,
    LOW_STOCK_UNITS,
    LTV_CAC_BREAK_EVEN_RATIO,
    LTV_CAC_EXCELLENT_RATIO,
    LTV_CAC_GOOD_RATIO,
    LTV_CAC_GREAT_RATIO,
    LTV_CAC_WINDOW_MONTHS,
    MAXIMUM_CHURN_RATE,
    MINIMUM_CHURN_RATE,
    RECENT_ORDERS_LIMIT,
    TOP_CUSTOMERS_LIMIT,
)
from revenue_optimizer.models.shopify import Customer, Order, Product
from revenue_optimizer.utils.dates import EPOCH, parse_timestamp
from revenue_optimizer.utils.formatters import format_number, round_half_up, to_decimal, to_float


def group_counts(values: List[Optional[str]], default: str) -> Dict[str, int]:
    """Count occurrences, bucketing blank values under ``default``."""
    return dict(Counter(value or default for value in values))


# ── Products ──────────────────────────────────────────────────────

def price_range(products: List[Product]) -> Dict[str, float]:
    prices = [price for product in products for price in product.prices]
    if not prices:
        return {"min": 0, "max": 0, "average": 0}
    return {
        "min": min(prices),
        "max": max(prices),
        "average": sum(prices) / len(prices),
    }


def inventory_stats(products: List[Product]) -> Dict[str, Any]:
    quantities = [variant.stock for product in products for variant in product.variants]
    total = sum(quantities)
    return {
        "totalInventory": total,
        "averageInventoryPerVariant": total / len(quantities) if quantities else 0,
        "lowStockVariants": sum(1 for qty in quantities if qty < LOW_STOCK_UNITS),
        "outOfStockVariants": sum(1 for qty in quantities if qty == 0),
        "totalVariants": len(quantities),
    }


def product_analytics(products: List[Product]) -> Dict[str, Any]:
    """Status counts, vendor/type grouping, price range and inventory stats."""
    statuses = Counter(product.status for product in products)
    total_variants = sum(len(product.variants) for product in products)
    return {
        "totalProducts": len(products),
        "publishedProducts": statuses.get("active", 0),
        "draftProducts": statuses.get("draft", 0),
        "archivedProducts": statuses.get("archived", 0),
        "productsByVendor": group_counts([p.vendor for p in products], "Unknown"),
        "productsByType": group_counts([p.product_type for p in products], "Unknown"),
        "averageVariantsPerProduct": total_variants / len(products) if products else 0,
        "totalVariants": total_variants,
        "priceRange": price_range(products),
        "inventoryStats": inventory_stats(products),
    }


# ── Orders ────────────────────────────────────────────────────────

def order_analytics(orders: List[Order]) -> Dict[str, Any]:
    """Revenue, AOV, financial-status breakdown and the most recent orders."""
    total_revenue = sum((to_decimal(order.total_price) for order in orders), Decimal("0"))
    total_orders = len(orders)
    aov = total_revenue / total_orders if total_orders else Decimal("0")

    recent = sorted(
        orders,
        key=lambda order: parse_timestamp(order.created_at) or EPOCH,
        reverse=True,
    )[:RECENT_ORDERS_LIMIT]

    return {
        "totalOrders": total_orders,
        "totalRevenue": float(total_revenue),
        "averageOrderValue": float(aov),
        "ordersByStatus": group_counts([o.financial_status for o in orders], "unknown"),
        "recentOrders": [order.to_dict() for order in recent],
    }


# ── Customers ─────────────────────────────────────────────────────

def customer_analytics(customers: List[Customer]) -> Dict[str, Any]:
    """New vs returning split, average lifetime value and top spenders."""
    total = len(customers)
    returning = sum(1 for c in customers if (c.orders_count or 0) > 1)
    total_spent = sum((to_decimal(c.total_spent) for c in customers), Decimal("0"))

    top = sorted(customers, key=lambda c: to_float(c.total_spent), reverse=True)
    top_customers = [
        {
            "id": c.id,
            "email": c.email,
            "firstName": c.first_name,
            "lastName": c.last_name,
            "totalSpent": to_float(c.total_spent),
            "ordersCount": c.orders_count,
        }
        for c in top[:TOP_CUSTOMERS_LIMIT]
    ]

    return {
        "totalCustomers": total,
        "newCustomers": total - returning,
        "returningCustomers": returning,
        "averageLifetimeValue": float(total_spent / total) if total else 0.0,
        "topCustomers": top_customers,
        "customersByState": group_counts([c.state for c in customers], "enabled"),
    }


# ── LTV / CAC ─────────────────────────────────────────────────────

def churn_rate(total_customers: int, active_customers: int) -> float:
    """
    Estimated monthly churn: share of inactive customers spread over the
    analysis window, clamped to [MINIMUM_CHURN_RATE, MAXIMUM_CHURN_RATE].

    An estimate, not a cohort retention measurement.
    """
    if total_customers <= 0:
        return DEFAULT_CHURN_RATE
    inactive = total_customers - active_customers
    rate = inactive / total_customers / LTV_CAC_WINDOW_MONTHS
    return max(MINIMUM_CHURN_RATE, min(MAXIMUM_CHURN_RATE, rate))


@dataclass
class LtvCacResult:
    ltv: float
    cac: float
    recommendation: str
    aov: float
    purchase_frequency: float
    customer_lifespan_months: float


def ltv_cac_recommendation(ltv: float, cac: float) -> str:
    if cac == 0:
        return (
            "Please add your advertising spend to get a complete analysis of your "
            "customer acquisition costs."
        )

    ratio = ltv / cac
    ltv_text = format_number(ltv, 0)
    cac_text = format_number(cac, 0)
    if ratio >= LTV_CAC_EXCELLENT_RATIO:
        return (
            f"Excellent! Your customers are worth {ltv_text} but only cost {cac_text} to acquire. "
            "You're making great profit - consider increasing your marketing budget to grow faster."
        )
    if ratio >= LTV_CAC_GREAT_RATIO:
        return (
            f"Good news! Each customer brings {ltv_text} in value while costing {cac_text} to "
            "acquire. Your business is profitable - you can safely increase marketing spend."
        )
    if ratio >= LTV_CAC_GOOD_RATIO:
        return (
            f"Your business is making money. Customers are worth {ltv_text} and cost {cac_text} "
            "to get. Focus on keeping customers longer to increase profits."
        )
    if ratio > LTV_CAC_BREAK_EVEN_RATIO:
        return (
            f"Warning: You're barely profitable. Customers bring {ltv_text} but cost {cac_text} "
            "to acquire. Work on customer retention or reduce advertising costs."
        )
    return (
        f"Alert: You're losing money on each customer. They're worth {ltv_text} but cost "
        f"{cac_text} to acquire. Stop paid ads and focus on keeping existing customers happy."
    )


def calculate_ltv_cac(
    total_revenue: float,
    total_orders: int,
    total_customers: int,
    churn: float,
    ad_spend: float,
    new_customers: int,
) -> LtvCacResult:
    """
    LTV = AOV x purchase frequency x lifespan (1 / churn months).
    CAC = ad spend / new customers, 0 when no customers were acquired.
    """
    aov = total_revenue / total_orders if total_orders > 0 else 0.0
    frequency = total_orders / total_customers if total_customers > 0 else 0.0
    lifespan = 1 / churn if churn > 0 else float(DEFAULT_CUSTOMER_LIFESPAN_MONTHS)
    ltv = aov * frequency * lifespan
    cac = ad_spend / new_customers if new_customers > 0 else 0.0

    return LtvCacResult(
        ltv=round_half_up(ltv),
        cac=round_half_up(cac),
        recommendation=ltv_cac_recommendation(ltv, cac),
        aov=round_half_up(aov),
        purchase_frequency=round_half_up(frequency),
        customer_lifespan_months=round_half_up(lifespan),
    )


def is_active_customer(customer: Customer, active_since: datetime) -> bool:
    updated_at = parse_timestamp(customer.updated_at)
    return (
        updated_at is not None
        and updated_at >= active_since
        and (customer.orders_count or 0) > 0
    )
