"""
Client for the external AI service (category classification and
pricing-strategy prediction).

Every failure mode (timeout, connection error, non-2xx, non-JSON body) is
raised as ``AIServiceError`` so callers can degrade with a single except.
"""

from typing import Any, Dict, Optional

import httpx

from revenue_optimizer.config.settings import Settings, settings as default_settings
from revenue_optimizer.errors import AIServiceError
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)


class AIServiceClient:
    """Thin async wrapper over the AI service's two POST endpoints."""

    CLASSIFY_PATH = "/classify-existing-categories"
    STRATEGY_PATH = "/predict-strategy"

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> Optional["AIServiceClient"]:
        """Build a client, or None when ``AI_CATEGORY_API_BASE_URL`` is unset."""
        settings = settings or default_settings
        if not settings.ai_service.enabled:
            return None
        return cls(settings.ai_service.base_url, timeout=settings.http.timeout_seconds)

    async def classify_category(self, payload: Dict[str, Any]) -> Any:
        return await self._post(self.CLASSIFY_PATH, payload)

    async def predict_strategy(self, payload: Dict[str, Any]) -> Any:
        return await self._post(self.STRATEGY_PATH, payload)

    async def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    json=payload,
                    headers={"accept": "application/json"},
                )
        except httpx.TimeoutException as e:
            raise AIServiceError(f"AI service timed out after {self.timeout:g}s: {path}") from e
        except httpx.RequestError as e:
            raise AIServiceError(f"AI service request failed: {e}") from e

        if response.is_error:
            raise AIServiceError(
                f"AI service error: {response.status_code} {response.reason_phrase}"
            )

        try:
            result = response.json()
        except ValueError as e:
            raise AIServiceError(f"AI service returned invalid JSON: {path}") from e

        logger.info("AI service call completed", path=path, status=response.status_code)
        return result
