"""OAuth routes: initiate, code exchange, callback, token validation, shop info."""

from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from revenue_optimizer.api.errors import error_response, require_credentials
from revenue_optimizer.api.schemas import ExchangeTokenRequest, InitiateOAuthRequest, ShopCredentials
from revenue_optimizer.errors import InvalidRequestError
from revenue_optimizer.services.auth_service import INVALID_DOMAIN_MESSAGE
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

_service = None


def set_service(service):
    global _service
    _service = service


def _shop_summary(shop_domain: str, shop: dict) -> dict:
    return {
        "domain": shop_domain,
        "name": shop.get("name"),
        "email": shop.get("email"),
        "currency": shop.get("currency"),
        "timezone": shop.get("timezone"),
        "country": shop.get("country_name"),
        "planName": shop.get("plan_name"),
    }


async def _complete_exchange(shop_domain: str, code: str) -> dict:
    access_token = await _service.exchange_code_for_token(shop_domain, code)
    shop = await _service.get_shop_info(shop_domain, access_token)
    logger.info("Token exchange completed", shop_domain=shop_domain)
    return {
        "shop": _shop_summary(shop_domain, shop),
        "accessToken": access_token,
        "tokenType": "Bearer",
        "scopes": list(_service.settings.shopify.scopes),
    }


@router.post("/initiate")
async def initiate(body: InitiateOAuthRequest):
    if not body.shopDomain:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Missing shop domain",
                "required": ["shopDomain"],
                "example": {
                    "shopDomain": "your-shop.myshopify.com",
                    "state": "optional_state_parameter",
                },
            },
        )

    if not _service.validate_shop_domain(body.shopDomain):
        return JSONResponse(
            status_code=400,
            content={
                "error": "Invalid shop domain format",
                "message": INVALID_DOMAIN_MESSAGE,
            },
        )

    auth_url = _service.generate_oauth_url(body.shopDomain, body.state)
    return {
        "message": "OAuth URL generated successfully",
        "authUrl": auth_url,
        "instructions": [
            "1. Open the authUrl in browser",
            "2. Merchant will login and authorize your app",
            "3. Shopify will redirect to callback URL with authorization code",
            "4. Use the code to get access token via /auth/exchange-token endpoint",
        ],
    }


@router.post("/exchange-token")
async def exchange_token(body: ExchangeTokenRequest):
    if not body.code or not body.shopDomain:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Missing required parameters",
                "required": ["code", "shopDomain"],
                "example": {
                    "shopDomain": "your-shop.myshopify.com",
                    "code": "authorization_code_from_callback",
                    "state": "optional_state_parameter",
                },
            },
        )

    try:
        result = await _complete_exchange(body.shopDomain, body.code)
    except InvalidRequestError as e:
        return error_response(e, "Invalid shop domain format")
    except Exception as e:
        logger.error("Token exchange failed", shop_domain=body.shopDomain, error=str(e), exc_info=True)
        return JSONResponse(
            status_code=502,
            content={
                "error": "Token exchange failed",
                "details": str(e),
                "troubleshooting": [
                    "Verify the authorization code is correct",
                    "Ensure the code has not expired (codes expire quickly)",
                    "Check that shop domain matches the one used in OAuth initiation",
                ],
            },
        )

    return {
        "message": "Access token obtained successfully",
        **result,
        "instructions": [
            "Save this access token securely",
            "Use this token in API requests to access shop data",
            "Token is valid until revoked by merchant",
        ],
    }


@router.get("/callback")
async def callback(code: Optional[str] = None, shop: Optional[str] = None, state: Optional[str] = None):
    if not code or not shop:
        return JSONResponse(
            status_code=400,
            content={
                "error": "Missing required parameters",
                "required": ["code", "shop"],
                "received": {"code": bool(code), "shop": bool(shop), "state": bool(state)},
            },
        )

    try:
        result = await _complete_exchange(shop, code)
    except InvalidRequestError as e:
        return error_response(e, "Invalid shop domain format")
    except Exception as e:
        logger.error("OAuth callback failed", shop_domain=shop, error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "OAuth callback failed", "details": str(e)},
        )

    return {
        "message": "OAuth completed successfully",
        **result,
        "instructions": [
            "Save this access token securely",
            "Use this token in API requests to access shop data",
            "For backend-only flow, use POST /auth/exchange-token endpoint",
        ],
    }


@router.post("/validate")
async def validate(body: ShopCredentials):
    require_credentials(body, {"accessToken": "shpat_xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx"})
    try:
        if not await _service.validate_access_token(body.shopDomain, body.accessToken):
            return {"message": "Access token is invalid or expired", "valid": False}
        shop = await _service.get_shop_info(body.shopDomain, body.accessToken)
    except Exception as e:
        logger.error("Token validation failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Token validation failed", "details": str(e), "valid": False},
        )

    summary = _shop_summary(body.shopDomain, shop)
    return {
        "message": "Access token is valid",
        "valid": True,
        "shop": {key: summary[key] for key in ("domain", "name", "email", "currency", "timezone")},
    }


@router.post("/shop-info")
async def shop_info(body: ShopCredentials):
    require_credentials(body)
    try:
        shop = await _service.get_shop_info(body.shopDomain, body.accessToken)
    except Exception as e:
        logger.error("Failed to get shop info", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=getattr(e, "status_code", 500),
            content={"error": "Failed to get shop information", "details": str(e)},
        )

    return {
        "message": "Shop information retrieved successfully",
        "shop": {
            "id": shop.get("id"),
            "name": shop.get("name"),
            "email": shop.get("email"),
            "domain": shop.get("domain"),
            "myshopifyDomain": shop.get("myshopify_domain"),
            "currency": shop.get("currency"),
            "timezone": shop.get("timezone"),
            "countryName": shop.get("country_name"),
            "planName": shop.get("plan_name"),
            "createdAt": shop.get("created_at"),
            "updatedAt": shop.get("updated_at"),
        },
    }


@router.get("/test")
async def test_configuration():
    return {
        "message": "OAuth configuration test",
        **_service.configuration_status(),
        "backendEndpoints": [
            "POST /api/v1/auth/initiate - Start OAuth flow",
            "POST /api/v1/auth/exchange-token - Exchange code for token",
            "POST /api/v1/auth/validate - Validate existing token",
            "GET /api/v1/auth/callback - OAuth callback (automatic)",
        ],
    }
