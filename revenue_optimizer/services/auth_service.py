"""
Shopify OAuth helpers: authorize URL, code exchange, token checks and
webhook signature verification.

Nothing here is persisted. Tokens are handed back to the caller, who sends
them with every analytics request.
"""

import base64
import hashlib
import hmac
import re
import secrets
import string
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import quote

import httpx

from revenue_optimizer.config.settings import Settings, settings as default_settings
from revenue_optimizer.errors import InvalidRequestError, UpstreamError, UpstreamTimeoutError
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

SHOP_DOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9\-]*\.myshopify\.com$")
STATE_ALPHABET = string.ascii_letters + string.digits
STATE_LENGTH = 32
INVALID_DOMAIN_MESSAGE = "Shop domain must be in format: shop-name.myshopify.com"


def generate_state(length: int = STATE_LENGTH) -> str:
    """Random alphanumeric nonce for the OAuth ``state`` parameter."""
    return "".join(secrets.choice(STATE_ALPHABET) for _ in range(length))


class AuthService:
    """OAuth and token utilities backed by the app's Shopify credentials."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Callable[[str, str], ShopifyClient] = default_client_factory,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or default_settings
        self._client_factory = client_factory
        self._transport = transport

    @staticmethod
    def validate_shop_domain(shop_domain: str) -> bool:
        return bool(shop_domain) and SHOP_DOMAIN_PATTERN.match(shop_domain) is not None

    def generate_oauth_url(self, shop_domain: str, state: Optional[str] = None) -> str:
        """
        Build the merchant-facing authorize URL.

        Args:
            shop_domain: Shop's myshopify domain
            state: Caller-supplied nonce; a random 32-character one is generated if absent

        Returns:
            ``https://{shop}/admin/oauth/authorize?...`` URL
        """
        shopify = self.settings.shopify
        nonce = state or generate_state()
        url = (
            f"https://{shop_domain}/admin/oauth/authorize?"
            f"client_id={shopify.api_key}&"
            f"scope={','.join(shopify.scopes)}&"
            f"redirect_uri={quote(shopify.callback_url, safe='')}&"
            f"state={nonce}"
        )
        logger.info("Generated OAuth URL", shop_domain=shop_domain)
        return url

    async def exchange_code_for_token(self, shop_domain: str, code: str) -> str:
        """
        Trade an authorization code for a permanent access token.

        Raises:
            InvalidRequestError: The shop domain is not a myshopify domain
            UpstreamError: Shopify rejected the code or could not be reached
            UpstreamTimeoutError: No response within the configured timeout
        """
        if not self.validate_shop_domain(shop_domain):
            logger.warning("Rejected token exchange for invalid shop domain", shop_domain=shop_domain)
            raise InvalidRequestError(INVALID_DOMAIN_MESSAGE)

        shopify = self.settings.shopify
        timeout = self.settings.http.timeout_seconds
        url = f"https://{shop_domain}/admin/oauth/access_token"

        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json={
                        "client_id": shopify.api_key,
                        "client_secret": shopify.api_secret,
                        "code": code,
                    },
                )
        except httpx.TimeoutException as e:
            logger.error("Token exchange timed out", shop_domain=shop_domain)
            raise UpstreamTimeoutError("Shopify OAuth", timeout) from e
        except httpx.RequestError as e:
            logger.error("Token exchange request failed", shop_domain=shop_domain, error=str(e))
            raise UpstreamError(f"OAuth token exchange failed: {e}") from e

        if response.is_error:
            logger.error(
                "Token exchange rejected",
                shop_domain=shop_domain,
                status=response.status_code,
            )
            raise UpstreamError(f"OAuth token exchange failed: {response.reason_phrase}")

        access_token = response.json().get("access_token")
        if not access_token:
            raise UpstreamError("OAuth token exchange failed: no access_token in response")

        logger.info("Obtained access token", shop_domain=shop_domain)
        return access_token

    async def get_shop_info(self, shop_domain: str, access_token: str) -> Dict[str, Any]:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get("shop")
        return response.resource("shop")

    async def validate_access_token(self, shop_domain: str, access_token: str) -> bool:
        """True when ``shop.json`` answers successfully with this token."""
        try:
            await self.get_shop_info(shop_domain, access_token)
        except UpstreamError as e:
            logger.warning("Access token validation failed", shop_domain=shop_domain, error=str(e))
            return False
        return True

    def verify_webhook(self, body: Union[str, bytes], signature: str) -> bool:
        """
        Check an ``X-Shopify-Hmac-Sha256`` header against the raw body.

        Returns False when no webhook secret is configured.
        """
        secret = self.settings.shopify.webhook_secret
        if not secret:
            logger.warning("Webhook secret not configured")
            return False

        payload = body.encode("utf-8") if isinstance(body, str) else body
        digest = hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).digest()
        computed = base64.b64encode(digest).decode("ascii")
        return hmac.compare_digest(computed, signature or "")

    def configuration_status(self) -> Dict[str, Any]:
        shopify = self.settings.shopify
        ready = not self.settings.validate()
        return {
            "configuration": {
                "apiKey": "Configured" if shopify.api_key else "Missing",
                "apiSecret": "Configured" if shopify.api_secret else "Missing",
                "appUrl": shopify.app_url or "Not configured",
                "callbackUrl": shopify.callback_url,
            },
            "status": "Ready" if ready else "Incomplete",
        }
