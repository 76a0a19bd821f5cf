"""Error payloads returned by the routes."""

from typing import Any, Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from revenue_optimizer.errors import MissingCredentialsError, RevenueOptimizerError, ShopifyAPIError

CREDENTIALS_EXAMPLE = {
    "shopDomain": "your-shop.myshopify.com",
    "accessToken": "your_access_token_here",
}


def require_credentials(body: Any, example: Optional[Dict[str, Any]] = None) -> None:
    """Raise ``MissingCredentialsError`` unless both shopDomain and accessToken are set."""
    if not body.shopDomain or not body.accessToken:
        raise MissingCredentialsError(
            ["shopDomain", "accessToken"],
            {**CREDENTIALS_EXAMPLE, **(example or {})},
        )


def error_response(exc: Exception, error: str) -> JSONResponse:
    """``{error, details}`` with the status code mapped from the exception type."""
    status_code = exc.status_code if isinstance(exc, RevenueOptimizerError) else 500
    content: Dict[str, Any] = {"error": error, "details": str(exc)}
    if isinstance(exc, ShopifyAPIError):
        content["upstream_status"] = exc.status
    return JSONResponse(status_code=status_code, content=content)


async def missing_credentials_handler(request: Request, exc: MissingCredentialsError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "Missing required credentials",
            "required": exc.required,
            "example": exc.example,
        },
    )
