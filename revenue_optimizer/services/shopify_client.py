"""
Shopify Admin REST API client.

One ``ShopifyClient`` is built per incoming request from the credentials
in that request's body and closed when the request finishes. Nothing is
cached across requests.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx

from revenue_optimizer.config.settings import Settings, settings as default_settings
from revenue_optimizer.errors import ShopifyAPIError, UpstreamError, UpstreamTimeoutError
from revenue_optimizer.services.pagination import PageCursors, extract_pagination
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_shop_domain(shop_domain: str) -> str:
    """Strip protocol and trailing slashes from a shop domain."""
    domain = shop_domain.strip()
    return domain.replace("https://", "").replace("http://", "").rstrip("/")


@dataclass
class ShopifyResponse:
    body: Dict[str, Any]
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def pagination(self) -> PageCursors:
        return extract_pagination(self.headers.get("link"))

    def resource(self, key: str) -> Any:
        """Top-level resource from the body (``products``, ``order``, ``count``...)."""
        if key not in self.body:
            raise UpstreamError(f"Shopify response missing '{key}'")
        return self.body[key]


class ShopifyClient:
    """Authenticated GET access to ``/admin/api/{version}/{path}.json``."""

    def __init__(
        self,
        shop_domain: str,
        access_token: str,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = settings or default_settings
        self.shop_domain = normalize_shop_domain(shop_domain)
        self.api_version = settings.shopify.api_version
        self.timeout = settings.http.timeout_seconds
        self.base_url = f"https://{self.shop_domain}/admin/api/{self.api_version}"
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport,
            headers={
                "X-Shopify-Access-Token": access_token,
                "Content-Type": "application/json",
            },
        )

    async def __aenter__(self) -> "ShopifyClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self):
        """Close the underlying HTTPX client."""
        await self._client.aclose()

    async def get(self, path: str, query: Optional[Dict[str, Any]] = None) -> ShopifyResponse:
        """
        GET a Shopify resource.

        Args:
            path: Resource path without version prefix or ``.json``
                (e.g. ``products``, ``products/123``, ``orders/count``)
            query: Optional query parameters; None values are dropped

        Returns:
            Parsed JSON body and response headers

        Raises:
            ShopifyAPIError: Shopify returned a non-2xx status
            UpstreamTimeoutError: No response within the configured timeout
            UpstreamError: Connection-level failure
        """
        params = {k: v for k, v in (query or {}).items() if v is not None}
        url = f"{self.base_url}/{path}.json"

        logger.debug("Shopify GET", shop_domain=self.shop_domain, path=path, params=params)

        try:
            response = await self._client.get(url, params=params)
        except httpx.TimeoutException as e:
            logger.error(
                "Shopify request timed out",
                shop_domain=self.shop_domain,
                path=path,
                timeout=self.timeout,
            )
            raise UpstreamTimeoutError("Shopify API", self.timeout) from e
        except httpx.RequestError as e:
            logger.error(
                "Shopify request failed",
                shop_domain=self.shop_domain,
                path=path,
                error=str(e),
            )
            raise UpstreamError(f"Shopify API request failed: {e}") from e

        if response.is_error:
            logger.warning(
                "Shopify API error",
                shop_domain=self.shop_domain,
                path=path,
                status=response.status_code,
            )
            raise ShopifyAPIError(response.status_code, response.reason_phrase, path)

        return ShopifyResponse(body=response.json(), headers=dict(response.headers))


def default_client_factory(shop_domain: str, access_token: str) -> ShopifyClient:
    return ShopifyClient(shop_domain, access_token)
