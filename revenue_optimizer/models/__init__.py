from revenue_optimizer.models.shopify import (
    Customer,
    LineItem,
    Order,
    Product,
    Variant,
    same_id,
)

__all__ = ["Customer", "LineItem", "Order", "Product", "Variant", "same_id"]
