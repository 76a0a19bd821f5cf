"""Exception hierarchy shared by services and API routes."""

from typing import Optional


class RevenueOptimizerError(Exception):
    """Base class for application errors."""

    status_code = 500


class MissingCredentialsError(RevenueOptimizerError):
    """Request omitted one or more required credential fields."""

    status_code = 400

    def __init__(self, required: list[str], example: Optional[dict] = None):
        self.required = required
        self.example = example or {}
        super().__init__(f"Missing required parameters: {', '.join(required)}")


class InvalidRequestError(RevenueOptimizerError):
    status_code = 400


class UpstreamError(RevenueOptimizerError):
    """An upstream HTTP dependency failed."""

    status_code = 502


class ShopifyAPIError(UpstreamError):
    """Shopify answered with a non-2xx status."""

    def __init__(self, status: int, status_text: str, path: str = ""):
        self.status = status
        self.status_text = status_text
        self.path = path
        super().__init__(f"Shopify API error: {status} {status_text}")


class UpstreamTimeoutError(UpstreamError):
    status_code = 504

    def __init__(self, service: str, timeout: float):
        self.service = service
        self.timeout = timeout
        super().__init__(f"{service} did not respond within {timeout:g}s")


class AIServiceError(UpstreamError):
    """External classification or strategy service failed.

    Never surfaced to API callers; callers degrade to local fallbacks.
    """


class VariantNotFoundError(RevenueOptimizerError):
    status_code = 404

    def __init__(self, variant_id, product_id):
        self.variant_id = variant_id
        self.product_id = product_id
        super().__init__(f"Variant {variant_id} not found in product {product_id}")
