"""Product search parameters shared by the search service and API schema."""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ProductSearchParams(BaseModel):
    # Passed through to Shopify
    vendor: Optional[str] = None
    product_type: Optional[str] = None
    status: Optional[str] = None
    created_at_min: Optional[str] = None
    created_at_max: Optional[str] = None
    updated_at_min: Optional[str] = None
    updated_at_max: Optional[str] = None

    # Matched locally, require fetching the full catalog
    title: Optional[str] = None
    search: Optional[str] = None
    tags: Optional[str] = None
    sku: Optional[str] = None
    barcode: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    inventory_quantity_min: Optional[int] = None
    inventory_quantity_max: Optional[int] = None

    limit: Optional[int] = Field(default=None, ge=1)
    page_info: Optional[str] = None

    sort_by: Optional[Literal["title", "created_at", "updated_at", "price"]] = None
    sort_order: Literal["asc", "desc"] = "asc"

    def _numeric_filters(self):
        return (
            self.price_min,
            self.price_max,
            self.inventory_quantity_min,
            self.inventory_quantity_max,
        )

    def needs_custom_filtering(self) -> bool:
        """True when any filter has to be applied locally."""
        if any((self.search, self.title, self.sku, self.barcode, self.tags)):
            return True
        return any(value is not None for value in self._numeric_filters())

    def has_variant_criteria(self) -> bool:
        if self.sku or self.barcode:
            return True
        return any(value is not None for value in self._numeric_filters())
