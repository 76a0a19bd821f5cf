"""
Product category resolution.

Order of precedence:
    1. A predefined category appearing anywhere in the product tags
    2. The external AI classifier, when configured
    3. The static product-type map (``general`` when unmapped)

Resolution never fails the parent request: AI errors fall through to the
static map.
"""

from typing import Any, Optional, Sequence

from revenue_optimizer.config.constants import (
    CATEGORY_MAPPING,
    CONSUMABLE_KEYWORDS,
    DEFAULT_CATEGORY,
    PREDEFINED_CATEGORIES,
    SEASONAL_KEYWORDS,
)
from revenue_optimizer.errors import AIServiceError
from revenue_optimizer.models.shopify import Product
from revenue_optimizer.services.ai_client import AIServiceClient
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

# Response shapes the classifier has returned, most specific first.
# Add or remove a shape by editing this list.
CATEGORY_ACCESSORS: Sequence[Sequence[Any]] = (
    ("categories_in_training_data", 0),
    ("category",),
    ("data", "category"),
    ("predicted_category",),
    ("classification",),
    ("result", "category"),
)


def _dig(obj: Any, path: Sequence[Any]) -> Any:
    for key in path:
        if isinstance(key, int):
            if not isinstance(obj, (list, tuple)) or len(obj) <= key:
                return None
        elif not isinstance(obj, dict):
            return None
        obj = obj[key] if isinstance(key, int) else obj.get(key)
    return obj


def extract_category(response: Any) -> Optional[str]:
    """First non-empty string found along ``CATEGORY_ACCESSORS``."""
    for path in CATEGORY_ACCESSORS:
        value = _dig(response, path)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def category_from_tags(tags: Optional[str]) -> Optional[str]:
    """Case-insensitive substring match of tags against the predefined list."""
    if not tags:
        return None
    tags_lower = tags.lower()
    for category in PREDEFINED_CATEGORIES:
        if category in tags_lower:
            return category
    return None


def static_category(product_type: Optional[str]) -> str:
    return CATEGORY_MAPPING.get((product_type or "").lower(), DEFAULT_CATEGORY)


def _mentions_any(keywords: Sequence[str], *texts: Optional[str]) -> bool:
    lowered = [t.lower() for t in texts if t]
    return any(keyword in text for keyword in keywords for text in lowered)


def is_consumable(product: Product, category: Optional[str] = None) -> bool:
    return _mentions_any(CONSUMABLE_KEYWORDS, category, product.product_type, product.tags)


def is_seasonal(product: Product) -> bool:
    return _mentions_any(SEASONAL_KEYWORDS, product.title, product.tags)


def classification_payload(product: Product, shop_domain: Optional[str] = None) -> dict:
    """Request body for the classifier: the product without its variants.

    Credentials are never forwarded.
    """
    product_data = product.to_dict()
    product_data.pop("variants", None)
    return {
        "data": {
            "products": [product_data],
            "count": 1,
            "searchParams": {
                "shopDomain": shop_domain,
                "title": product.title,
                "limit": 100,
            },
        },
        "searchParams": {
            "filters": {"price_range": None},
            "sorting": None,
        },
    }


class ProductCategoryResolver:
    """Resolves a product's category through tags, AI, then a static map."""

    def __init__(self, ai_client: Optional[AIServiceClient] = None):
        self.ai_client = ai_client

    async def resolve(self, product: Product, shop_domain: Optional[str] = None) -> str:
        tag_category = category_from_tags(product.tags)
        if tag_category:
            logger.info("Category found in tags", product_id=product.id, category=tag_category)
            return tag_category

        if self.ai_client is None:
            logger.warning(
                "AI_CATEGORY_API_BASE_URL not configured, using fallback category",
                product_id=product.id,
            )
            return static_category(product.product_type)

        try:
            response = await self.ai_client.classify_category(
                classification_payload(product, shop_domain)
            )
        except AIServiceError as e:
            logger.error(
                "AI category classification failed, using fallback",
                product_id=product.id,
                error=str(e),
            )
            return static_category(product.product_type)

        ai_category = extract_category(response)
        if ai_category:
            logger.info("AI classified product", product_id=product.id, category=ai_category)
            return ai_category

        logger.warning("AI service returned no usable category", product_id=product.id)
        return static_category(product.product_type)
