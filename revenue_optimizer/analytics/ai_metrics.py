"""Feature payload sent to the strategy-prediction service.

``repeat_rate`` and ``churn_rate`` here are estimates from the sampled
orders (churn is simply ``1 - repeat_rate``), not cohort retention.
"""

from collections import Counter
from typing import Any, Dict, List, Optional

from revenue_optimizer.analytics.category_resolver import is_consumable, is_seasonal, static_category
from revenue_optimizer.models.shopify import Order, Product, Variant
from revenue_optimizer.utils.formatters import round_half_up

TRAFFIC_SOURCE = "organic"


def _target_variant(product: Product, variant_id: Any) -> Variant:
    if variant_id is not None:
        variant = product.find_variant(variant_id)
        if variant is not None:
            return variant
    return product.variants[0] if product.variants else Variant()


def calculate_ai_metrics(
    product: Product,
    orders: List[Order],
    variant_id: Optional[Any] = None,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Build the strategy-prediction payload for a product.

    Args:
        product: Product being analysed
        orders: Orders that contain the product
        variant_id: Variant whose price is reported (first variant if absent)
        category: Resolved category; falls back to the static type map

    Returns:
        Dictionary with price, category, return/repeat/churn rates,
        consumable/seasonal flags, average shipping cost and traffic source
    """
    price = _target_variant(product, variant_id).price_value

    refunded = sum(1 for order in orders if order.refunds)
    return_rate = refunded / len(orders) if orders else 0.0

    orders_per_customer = Counter(
        order.customer.id for order in orders
        if order.customer is not None and order.customer.id is not None
    )
    repeat_customers = sum(1 for count in orders_per_customer.values() if count > 1)
    repeat_rate = repeat_customers / len(orders_per_customer) if orders_per_customer else 0.0

    # Orders without a shipping price set are excluded; zero shipping is included
    shipping = [order.shipping_amount for order in orders if order.shipping_amount is not None]
    shipping_cost = sum(shipping) / len(shipping) if shipping else 0.0

    return {
        "price": price,
        "category": category or static_category(product.product_type),
        "return_rate": round_half_up(return_rate),
        "repeat_rate": round_half_up(repeat_rate),
        "churn_rate": round_half_up(1 - repeat_rate),
        "is_consumable": 1 if is_consumable(product, category) else 0,
        "is_seasonal": 1 if is_seasonal(product) else 0,
        "shipping_cost": round_half_up(shipping_cost),
        "traffic_source": TRAFFIC_SOURCE,
    }
