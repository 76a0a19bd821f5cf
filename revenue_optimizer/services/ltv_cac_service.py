"""
LTV/CAC analysis over the last six months of paid orders and the shop's customers.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from revenue_optimizer.analytics.aggregates import calculate_ltv_cac, churn_rate, is_active_customer
from revenue_optimizer.config.constants import (
    ACTIVE_CUSTOMER_MONTHS,
    LTV_CAC_RECORD_CAP,
    LTV_CAC_WINDOW_MONTHS,
    PAID_FINANCIAL_STATUSES,
    SHOPIFY_MAX_PAGE_SIZE,
)
from revenue_optimizer.models.shopify import Customer, Order
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.dates import months_ago, now_utc, parse_timestamp
from revenue_optimizer.utils.formatters import round_half_up, to_float
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

ORDER_FIELDS = "id,total_price,financial_status"
CUSTOMER_FIELDS = "id,created_at,updated_at,last_order_id,orders_count"


@dataclass
class OrderTotals:
    total_revenue: float = 0.0
    total_orders: int = 0


@dataclass
class CustomerTotals:
    total_customers: int = 0
    new_customers: int = 0
    active_customers: int = 0


class LtvCacService:
    """Fetches the windowed order and customer data and computes LTV/CAC."""

    def __init__(self, client_factory: Callable[[str, str], ShopifyClient] = default_client_factory):
        self._client_factory = client_factory

    async def _fetch_order_totals(
        self, client: ShopifyClient, start: datetime, end: datetime
    ) -> OrderTotals:
        totals = OrderTotals()
        page_info: Optional[str] = None

        while True:
            # Shopify rejects filter params alongside page_info
            if page_info:
                query: Dict[str, Any] = {"limit": SHOPIFY_MAX_PAGE_SIZE, "page_info": page_info}
            else:
                query = {
                    "limit": SHOPIFY_MAX_PAGE_SIZE,
                    "status": "any",
                    "created_at_min": start.isoformat(),
                    "created_at_max": end.isoformat(),
                    "fields": ORDER_FIELDS,
                }
            response = await client.get("orders", query)

            for raw in response.resource("orders"):
                order = Order.model_validate(raw)
                if order.financial_status in PAID_FINANCIAL_STATUSES:
                    totals.total_revenue += to_float(order.total_price)
                    totals.total_orders += 1

            page_info = response.pagination.next_page_info
            if not page_info or totals.total_orders > LTV_CAC_RECORD_CAP:
                break

        return totals

    async def _fetch_customer_totals(
        self, client: ShopifyClient, start: datetime, end: datetime, now: datetime
    ) -> CustomerTotals:
        totals = CustomerTotals()
        active_since = months_ago(ACTIVE_CUSTOMER_MONTHS, now)
        page_info: Optional[str] = None

        while True:
            query: Dict[str, Any] = {"limit": SHOPIFY_MAX_PAGE_SIZE}
            if page_info:
                query["page_info"] = page_info
            else:
                query["fields"] = CUSTOMER_FIELDS
            response = await client.get("customers", query)

            for raw in response.resource("customers"):
                customer = Customer.model_validate(raw)
                totals.total_customers += 1
                created_at = parse_timestamp(customer.created_at)
                if created_at is not None and start <= created_at <= end:
                    totals.new_customers += 1
                if is_active_customer(customer, active_since):
                    totals.active_customers += 1

            page_info = response.pagination.next_page_info
            if not page_info or totals.total_customers > LTV_CAC_RECORD_CAP:
                break

        return totals

    async def fetch_shopify_data(
        self, shop_domain: str, access_token: str, now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Revenue, order and customer totals for the LTV/CAC window.

        Only ``paid`` and ``partially_paid`` orders count toward revenue.
        Churn is an estimate from customer activity, not a cohort measurement.

        Returns:
            ``shopify_data`` block: total_revenue, total_orders,
            total_customers, churn_rate, new_customers_acquired
        """
        now = now or now_utc()
        start = months_ago(LTV_CAC_WINDOW_MONTHS, now)

        async with self._client_factory(shop_domain, access_token) as client:
            orders = await self._fetch_order_totals(client, start, now)
            customers = await self._fetch_customer_totals(client, start, now, now)

        churn = churn_rate(customers.total_customers, customers.active_customers)
        return {
            "total_revenue": round_half_up(orders.total_revenue),
            "total_orders": orders.total_orders,
            "total_customers": customers.total_customers,
            "churn_rate": round_half_up(churn, 3),
            "new_customers_acquired": customers.new_customers,
        }

    async def analyze(
        self,
        shop_domain: str,
        access_token: str,
        ad_spend: float = 0.0,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Customer lifetime value against acquisition cost.

        Args:
            shop_domain: Shop's myshopify domain
            access_token: Admin API access token
            ad_spend: Advertising spend over the window; 0 yields ``cac = 0``
                and a prompt to supply ad spend
            now: Evaluation time override

        Returns:
            Dictionary with ltv, cac, recommendation and shopify_data
        """
        try:
            data = await self.fetch_shopify_data(shop_domain, access_token, now)
            result = calculate_ltv_cac(
                total_revenue=data["total_revenue"],
                total_orders=data["total_orders"],
                total_customers=data["total_customers"],
                churn=data["churn_rate"],
                ad_spend=ad_spend,
                new_customers=data["new_customers_acquired"],
            )
            logger.info(
                "LTV/CAC analysis completed",
                shop_domain=shop_domain,
                ltv=result.ltv,
                cac=result.cac,
                orders=data["total_orders"],
                customers=data["total_customers"],
            )
            return {
                "ltv": result.ltv,
                "cac": result.cac,
                "recommendation": result.recommendation,
                "shopify_data": data,
            }
        except Exception as e:
            logger.error(
                "LTV/CAC analysis failed",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise
