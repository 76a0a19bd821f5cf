"""
Customer endpoints: page fetch with free-text search, single customer and rollups.
"""

from typing import Any, Callable, Dict, Optional

from revenue_optimizer.analytics.aggregates import customer_analytics
from revenue_optimizer.config.constants import DEFAULT_PAGE_SIZE, SHOPIFY_MAX_PAGE_SIZE
from revenue_optimizer.models.shopify import Customer
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)


def customer_search_query(term: str) -> str:
    """Wildcard match on email, first name or last name."""
    return f"email:*{term}* OR first_name:*{term}* OR last_name:*{term}*"


class CustomersService:
    def __init__(self, client_factory: Callable[[str, str], ShopifyClient] = default_client_factory):
        self._client_factory = client_factory

    async def get_customers(
        self,
        shop_domain: str,
        access_token: str,
        limit: int = DEFAULT_PAGE_SIZE,
        page_info: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        One page of customers, optionally filtered by a search term.

        A search goes to Shopify's ``customers/search`` endpoint; otherwise
        the plain customer list is paged.

        Returns:
            Dictionary with ``customers``, ``pagination`` and ``count``
        """
        query: Dict[str, Any] = {"limit": min(limit, SHOPIFY_MAX_PAGE_SIZE)}
        if page_info:
            query["page_info"] = page_info
        path = "customers"
        if search:
            path = "customers/search"
            query["query"] = customer_search_query(search)

        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get(path, query)
            customers = response.resource("customers")
            logger.info(
                "Retrieved customers",
                shop_domain=shop_domain,
                count=len(customers),
                searched=bool(search),
            )
            return {
                "customers": customers,
                "pagination": response.pagination.to_dict(),
                "count": len(customers),
            }
        except Exception as e:
            logger.error(
                "Failed to get customers",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def get_customer(
        self, shop_domain: str, access_token: str, customer_id: str
    ) -> Dict[str, Any]:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get(f"customers/{customer_id}")
        logger.info("Retrieved customer", shop_domain=shop_domain, customer_id=customer_id)
        return response.resource("customer")

    async def get_customer_analytics(self, shop_domain: str, access_token: str) -> Dict[str, Any]:
        """New vs returning split and top spenders over the first 250 customers."""
        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get("customers", {"limit": SHOPIFY_MAX_PAGE_SIZE})
            customers = [Customer.model_validate(c) for c in response.resource("customers")]
            analytics = customer_analytics(customers)
            logger.info(
                "Calculated customer analytics",
                shop_domain=shop_domain,
                customer_count=len(customers),
            )
            return analytics
        except Exception as e:
            logger.error(
                "Failed to calculate customer analytics",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise
