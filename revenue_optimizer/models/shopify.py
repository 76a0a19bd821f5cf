"""Pydantic models for the Shopify Admin REST resources the analytics read.

Only the fields the calculators use are declared. Everything else Shopify
returns is kept (``extra="allow"``) so responses built from these models
still carry the full upstream payload. Numeric fields stay ``None`` when
Shopify sends null; callers default them at the point of arithmetic.
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

from revenue_optimizer.utils.formatters import to_float

Money = Optional[Union[str, float]]
ResourceId = Optional[Union[int, str]]


def same_id(left: Any, right: Any) -> bool:
    """Compare Shopify IDs that may arrive as int or str."""
    if left is None or right is None:
        return False
    return str(left) == str(right)


class ShopifyResource(BaseModel):
    model_config = ConfigDict(extra="allow")

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the Shopify JSON shape."""
        return self.model_dump(mode="json", exclude_unset=True)


class Variant(ShopifyResource):
    id: ResourceId = None
    product_id: ResourceId = None
    title: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    price: Money = None
    compare_at_price: Money = None
    inventory_quantity: Optional[int] = None
    inventory_item_id: ResourceId = None
    weight: Optional[float] = None
    requires_shipping: Optional[bool] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @property
    def price_value(self) -> float:
        return to_float(self.price)

    @property
    def compare_at_value(self) -> float:
        return to_float(self.compare_at_price)

    @property
    def stock(self) -> int:
        return self.inventory_quantity or 0


class Product(ShopifyResource):
    id: ResourceId = None
    title: Optional[str] = None
    body_html: Optional[str] = None
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    tags: Optional[str] = None
    status: Optional[str] = None
    published_at: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    variants: list[Variant] = []

    def find_variant(self, variant_id: Any) -> Optional[Variant]:
        for variant in self.variants:
            if same_id(variant.id, variant_id):
                return variant
        return None

    @property
    def prices(self) -> list[float]:
        """Parseable variant prices; unparseable ones are skipped."""
        return [
            to_float(v.price)
            for v in self.variants
            if v.price is not None and to_float(v.price, default=None) is not None
        ]

    @property
    def total_inventory(self) -> int:
        return sum(v.stock for v in self.variants)


class LineItem(ShopifyResource):
    product_id: ResourceId = None
    variant_id: ResourceId = None
    title: Optional[str] = None
    quantity: Optional[int] = None
    price: Money = None


class MoneyAmount(ShopifyResource):
    amount: Money = None
    currency_code: Optional[str] = None


class PriceSet(ShopifyResource):
    shop_money: Optional[MoneyAmount] = None


class OrderCustomer(ShopifyResource):
    id: ResourceId = None


class Order(ShopifyResource):
    id: ResourceId = None
    created_at: Optional[str] = None
    financial_status: Optional[str] = None
    total_price: Money = None
    line_items: list[LineItem] = []
    refunds: list[dict[str, Any]] = []
    total_shipping_price_set: Optional[PriceSet] = None
    customer: Optional[OrderCustomer] = None

    def items_for_variant(self, variant_id: Any) -> list[LineItem]:
        return [item for item in self.line_items if same_id(item.variant_id, variant_id)]

    def contains_variant(self, variant_id: Any) -> bool:
        return any(same_id(item.variant_id, variant_id) for item in self.line_items)

    def contains_product(self, product_id: Any) -> bool:
        return any(same_id(item.product_id, product_id) for item in self.line_items)

    @property
    def shipping_amount(self) -> Optional[float]:
        """Shop-currency shipping charged, or None when Shopify omitted it."""
        price_set = self.total_shipping_price_set
        if price_set is None or price_set.shop_money is None:
            return None
        if price_set.shop_money.amount is None:
            return None
        return to_float(price_set.shop_money.amount)


class Customer(ShopifyResource):
    id: ResourceId = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    orders_count: Optional[int] = None
    total_spent: Money = None
    state: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
