"""Product routes: fetch, search, counts, rollups and per-variant analytics."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from revenue_optimizer.api.errors import error_response, require_credentials
from revenue_optimizer.api.schemas import (
    ProductSearchRequest,
    ProductsRequest,
    ShopCredentials,
    VariantAnalyticsRequest,
)
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/products", tags=["products"])

# Will be set by app.py at startup
_service = None


def set_service(service):
    global _service
    _service = service


@router.post("/fetch")
async def fetch_products(body: ProductsRequest):
    require_credentials(body, {"limit": 10, "search": "optional_search_term"})
    try:
        result = await _service.get_products(
            body.shopDomain, body.accessToken, body.limit, body.pageInfo, body.search
        )
    except Exception as e:
        return error_response(e, "Failed to retrieve products")
    return {"message": "Products retrieved successfully", "data": result}


@router.post("/search")
async def search_products(body: ProductSearchRequest):
    require_credentials(body, {
        "search": "blue shirt",
        "price_min": 10,
        "price_max": 100,
        "sku": "SHIRT-L-BLUE",
        "sort_by": "price",
        "sort_order": "asc",
    })
    try:
        result = await _service.search_products(
            body.shopDomain, body.accessToken, body.search_params()
        )
    except Exception as e:
        return error_response(e, "Failed to search products")
    return {"message": "Products search completed successfully", "data": result}


@router.post("/search-variants")
async def search_variants(body: ProductSearchRequest):
    require_credentials(body)
    if not body.has_variant_criteria():
        return JSONResponse(
            status_code=400,
            content={
                "error": "Missing search criteria",
                "required": ["sku OR barcode OR price/inventory range"],
                "example": {
                    "shopDomain": "your-shop.myshopify.com",
                    "accessToken": "your_access_token_here",
                    "sku": "SHIRT-L-BLUE",
                    "barcode": "123456789012",
                },
            },
        )
    try:
        result = await _service.search_variants(
            body.shopDomain, body.accessToken, body.search_params()
        )
    except Exception as e:
        return error_response(e, "Failed to search variants")
    return {"message": "Variant search completed successfully", "data": result}


@router.post("/fetch/{product_id}")
async def fetch_product(product_id: str, body: ShopCredentials):
    require_credentials(body)
    try:
        product = await _service.get_product(body.shopDomain, body.accessToken, product_id)
    except Exception as e:
        logger.error("Failed to get product", product_id=product_id, error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve product")
    return {"message": "Product retrieved successfully", "data": product}


@router.post("/variant/{variant_id}")
async def fetch_variant(variant_id: str, body: ShopCredentials):
    require_credentials(body)
    try:
        variant = await _service.get_variant(body.shopDomain, body.accessToken, variant_id)
    except Exception as e:
        logger.error("Failed to get variant", variant_id=variant_id, error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve variant")
    return {"message": "Variant retrieved successfully", "data": variant}


@router.post("/count")
async def count_products(body: ShopCredentials):
    require_credentials(body)
    try:
        count = await _service.get_product_count(body.shopDomain, body.accessToken)
    except Exception as e:
        logger.error("Failed to get product count", error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve product count")
    return {"message": "Product count retrieved successfully", "data": {"count": count}}


@router.post("/analytics")
async def products_analytics(body: ShopCredentials):
    require_credentials(body)
    try:
        analytics = await _service.get_product_analytics(body.shopDomain, body.accessToken)
    except Exception as e:
        return error_response(e, "Failed to calculate product analytics")
    return {"message": "Product analytics calculated successfully", "data": analytics}


@router.post("/variant-analytics/{product_id}/{variant_id}")
async def variant_analytics(product_id: str, variant_id: str, body: VariantAnalyticsRequest):
    require_credentials(body, {"threshold_percent": 10})
    try:
        analytics = await _service.get_variant_analytics(
            body.shopDomain,
            body.accessToken,
            product_id,
            variant_id,
            body.threshold_percent,
        )
    except Exception as e:
        return error_response(e, "Failed to generate variant analytics")
    return {"message": "Variant analytics generated successfully", "data": analytics}


@router.post("/ai-data/{product_id}/{variant_id}")
async def ai_product_data(product_id: str, variant_id: str, body: ShopCredentials):
    require_credentials(body)
    try:
        data = await _service.get_ai_product_data(
            body.shopDomain, body.accessToken, product_id, variant_id
        )
    except Exception as e:
        return error_response(e, "Failed to generate AI product data")
    return {"message": "AI product data generated successfully", "data": data}
