"""Local product filtering, sorting and relevance scoring."""

from typing import Any, Dict, List

from revenue_optimizer.config.constants import DEFAULT_PAGE_SIZE, SHOPIFY_MAX_PAGE_SIZE
from revenue_optimizer.models.search import ProductSearchParams
from revenue_optimizer.models.shopify import Product, Variant
from revenue_optimizer.utils.dates import EPOCH, parse_timestamp

# Relevance weights
TITLE_MATCH = 10
TITLE_PREFIX = 5
VENDOR_MATCH = 3
TYPE_MATCH = 3
TAGS_MATCH = 2
VARIANT_TITLE_MATCH = 2
SKU_MATCH = 4
BARCODE_MATCH = 4
SCORE_SCALE = 10

_PASSTHROUGH_FIELDS = (
    "vendor", "product_type", "status",
    "created_at_min", "created_at_max", "updated_at_min", "updated_at_max",
)


def _contains(value: Any, term: str) -> bool:
    return bool(value) and term in str(value).lower()


def build_search_query(params: ProductSearchParams) -> Dict[str, Any]:
    """Shopify query parameters for filters Shopify can apply itself.

    Title is deliberately not sent: Shopify's title filter is
    case-sensitive, so title matching happens locally.
    """
    query: Dict[str, Any] = {
        name: getattr(params, name) for name in _PASSTHROUGH_FIELDS if getattr(params, name)
    }
    query["limit"] = min(params.limit or DEFAULT_PAGE_SIZE, SHOPIFY_MAX_PAGE_SIZE)
    if params.page_info:
        query["page_info"] = params.page_info
    return query


def variant_matches(variant: Variant, params: ProductSearchParams) -> bool:
    """True when a variant satisfies every variant-level criterion given."""
    if params.sku and not _contains(variant.sku, params.sku.lower()):
        return False
    if params.barcode and not _contains(variant.barcode, params.barcode.lower()):
        return False
    if params.price_min is not None and variant.price_value < params.price_min:
        return False
    if params.price_max is not None and variant.price_value > params.price_max:
        return False
    if params.inventory_quantity_min is not None and variant.stock < params.inventory_quantity_min:
        return False
    if params.inventory_quantity_max is not None and variant.stock > params.inventory_quantity_max:
        return False
    return True


def _matches(product: Product, params: ProductSearchParams) -> bool:
    if params.search:
        term = params.search.lower()
        fields = [product.title, product.body_html, product.vendor, product.product_type, product.tags]
        for variant in product.variants:
            fields.extend((variant.title, variant.sku, variant.barcode))
        if not any(_contains(field, term) for field in fields):
            return False

    if params.title:
        term = params.title.lower()
        if not _contains(product.title, term) and not any(
            _contains(v.title, term) for v in product.variants
        ):
            return False

    if params.tags and not _contains(product.tags, params.tags.lower()):
        return False

    if params.sku and not any(_contains(v.sku, params.sku.lower()) for v in product.variants):
        return False

    if params.barcode and not any(
        _contains(v.barcode, params.barcode.lower()) for v in product.variants
    ):
        return False

    if params.price_min is not None or params.price_max is not None:
        prices = product.prices
        if not prices:
            return False
        # Keep products whose variant price span overlaps the requested range
        if params.price_min is not None and max(prices) < params.price_min:
            return False
        if params.price_max is not None and min(prices) > params.price_max:
            return False

    if params.inventory_quantity_min is not None or params.inventory_quantity_max is not None:
        total = product.total_inventory
        if params.inventory_quantity_min is not None and total < params.inventory_quantity_min:
            return False
        if params.inventory_quantity_max is not None and total > params.inventory_quantity_max:
            return False

    return True


def apply_custom_search(products: List[Product], params: ProductSearchParams) -> List[Product]:
    return [product for product in products if _matches(product, params)]


def _sort_key(sort_by: str):
    if sort_by == "title":
        return lambda p: (p.title or "").lower()
    if sort_by in ("created_at", "updated_at"):
        return lambda p: parse_timestamp(getattr(p, sort_by)) or EPOCH
    if sort_by == "price":
        return lambda p: min(p.prices) if p.prices else 0.0
    return None


def sort_products(products: List[Product], sort_by: str, sort_order: str = "asc") -> List[Product]:
    """Stable sort by title, created_at, updated_at or lowest variant price."""
    key = _sort_key(sort_by)
    if key is None:
        return list(products)
    return sorted(products, key=key, reverse=sort_order == "desc")


def matched_fields(product: Product, term: str) -> List[str]:
    term = term.lower()
    matched = [
        name for name in ("title", "vendor", "product_type", "tags")
        if _contains(getattr(product, name), term)
    ]
    for index, variant in enumerate(product.variants):
        for name in ("title", "sku", "barcode"):
            if _contains(getattr(variant, name), term):
                matched.append(f"variants[{index}].{name}")
    return matched


def search_score(product: Product, term: str) -> float:
    term = term.lower()
    score = 0
    if _contains(product.title, term):
        score += TITLE_MATCH
    if (product.title or "").lower().startswith(term):
        score += TITLE_PREFIX
    if _contains(product.vendor, term):
        score += VENDOR_MATCH
    if _contains(product.product_type, term):
        score += TYPE_MATCH
    if _contains(product.tags, term):
        score += TAGS_MATCH
    for variant in product.variants:
        if _contains(variant.title, term):
            score += VARIANT_TITLE_MATCH
        if _contains(variant.sku, term):
            score += SKU_MATCH
        if _contains(variant.barcode, term):
            score += BARCODE_MATCH
    return score / SCORE_SCALE


def add_search_scoring(products: List[Product], term: str) -> List[Dict[str, Any]]:
    """Serialize products with ``searchScore`` and ``matchedFields``, best first."""
    scored = [
        {
            **product.to_dict(),
            "searchScore": search_score(product, term),
            "matchedFields": matched_fields(product, term),
        }
        for product in products
    ]
    return sorted(scored, key=lambda item: item["searchScore"], reverse=True)
