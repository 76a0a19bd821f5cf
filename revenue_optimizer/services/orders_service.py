"""
Order endpoints: page fetch, single order, count and rollups.
"""

from typing import Any, Callable, Dict, Optional

from revenue_optimizer.analytics.aggregates import order_analytics
from revenue_optimizer.config.constants import DEFAULT_PAGE_SIZE, SHOPIFY_MAX_PAGE_SIZE
from revenue_optimizer.models.shopify import Order
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)


class OrdersService:
    def __init__(self, client_factory: Callable[[str, str], ShopifyClient] = default_client_factory):
        self._client_factory = client_factory

    async def get_orders(
        self,
        shop_domain: str,
        access_token: str,
        limit: int = DEFAULT_PAGE_SIZE,
        page_info: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        One page of orders.

        Args:
            shop_domain: Shop's myshopify domain
            access_token: Admin API access token
            limit: Page size, capped at 250
            page_info: Cursor from a previous response
            status: Shopify order status filter (``open``, ``closed``, ``any``...)

        Returns:
            Dictionary with ``orders``, ``pagination`` and ``count``
        """
        query: Dict[str, Any] = {"limit": min(limit, SHOPIFY_MAX_PAGE_SIZE)}
        if page_info:
            query["page_info"] = page_info
        if status:
            query["status"] = status

        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get("orders", query)
            orders = response.resource("orders")
            logger.info("Retrieved orders", shop_domain=shop_domain, count=len(orders))
            return {
                "orders": orders,
                "pagination": response.pagination.to_dict(),
                "count": len(orders),
            }
        except Exception as e:
            logger.error(
                "Failed to get orders",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def get_order(self, shop_domain: str, access_token: str, order_id: str) -> Dict[str, Any]:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get(f"orders/{order_id}")
        logger.info("Retrieved order", shop_domain=shop_domain, order_id=order_id)
        return response.resource("order")

    async def get_order_count(
        self, shop_domain: str, access_token: str, status: Optional[str] = None
    ) -> int:
        query = {"status": status} if status else None
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get("orders/count", query)
        return response.resource("count")

    async def get_order_analytics(self, shop_domain: str, access_token: str) -> Dict[str, Any]:
        """Revenue and status rollups over the most recent 250 orders of any status."""
        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get(
                    "orders", {"limit": SHOPIFY_MAX_PAGE_SIZE, "status": "any"}
                )
            orders = [Order.model_validate(o) for o in response.resource("orders")]
            analytics = order_analytics(orders)
            logger.info(
                "Calculated order analytics",
                shop_domain=shop_domain,
                order_count=len(orders),
                total_revenue=analytics["totalRevenue"],
            )
            return analytics
        except Exception as e:
            logger.error(
                "Failed to calculate order analytics",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise
