"""
Product endpoints: catalog fetch, search, rollups and per-variant analytics.
"""

from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from revenue_optimizer.analytics.ai_metrics import calculate_ai_metrics
from revenue_optimizer.analytics.aggregates import product_analytics
from revenue_optimizer.analytics.category_resolver import (
    ProductCategoryResolver,
    is_consumable,
    is_seasonal,
    static_category,
)
from revenue_optimizer.analytics.search import (
    add_search_scoring,
    apply_custom_search,
    build_search_query,
    sort_products,
    variant_matches,
)
from revenue_optimizer.analytics.stale_inventory import StaleInventoryAnalyzer
from revenue_optimizer.analytics.suggestions import SuggestionEngine, SuggestionInput
from revenue_optimizer.analytics.variant_metrics import (
    VariantMetricsCalculator,
    product_launch_date,
)
from revenue_optimizer.config.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_STALE_PERCENTAGE,
    MAX_PRODUCT_PAGES,
    ORDER_SAMPLE_LIMIT,
    SHOPIFY_MAX_PAGE_SIZE,
)
from revenue_optimizer.errors import AIServiceError, VariantNotFoundError
from revenue_optimizer.models.search import ProductSearchParams
from revenue_optimizer.models.shopify import Order, Product, Variant
from revenue_optimizer.services.ai_client import AIServiceClient
from revenue_optimizer.services.pagination import PageCursors
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.dates import now_utc, to_epoch_millis
from revenue_optimizer.utils.formatters import round_half_up
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

ClientFactory = Callable[[str, str], ShopifyClient]


def order_window(orders_sampled: int, orders_matching: int) -> Dict[str, Any]:
    """Describes the order sample that per-variant metrics were computed from."""
    return {
        "orders_sampled": orders_sampled,
        "orders_matching": orders_matching,
        "order_limit": ORDER_SAMPLE_LIMIT,
        "note": (
            f"Metrics reflect the last {orders_sampled} orders returned by Shopify "
            f"(limit {ORDER_SAMPLE_LIMIT}), not the full sales history"
        ),
    }


async def fetch_all_products(client: ShopifyClient, max_pages: int = MAX_PRODUCT_PAGES) -> List[Product]:
    """
    Page through the whole catalog, 250 products per page.

    Stops after ``max_pages`` fetches even if Shopify reports more pages.
    """
    products: List[Product] = []
    page_info: Optional[str] = None
    page_count = 0
    exhausted = False

    while page_count < max_pages:
        query: Dict[str, Any] = {"limit": SHOPIFY_MAX_PAGE_SIZE}
        if page_info:
            query["page_info"] = page_info

        response = await client.get("products", query)
        page = [Product.model_validate(p) for p in response.resource("products")]
        products.extend(page)
        page_count += 1

        logger.info(
            "Fetched product page",
            page=page_count,
            page_size=len(page),
            total_so_far=len(products),
        )

        cursors = response.pagination
        if not cursors.has_next or len(page) < SHOPIFY_MAX_PAGE_SIZE:
            exhausted = True
            break
        page_info = cursors.next_page_info

    if not exhausted:
        logger.warning("Product pagination stopped at page ceiling", max_pages=max_pages)

    return products


class ProductsService:
    """Orchestrates Shopify fetches and the product analytics pipeline."""

    def __init__(
        self,
        client_factory: ClientFactory = default_client_factory,
        ai_client: Optional[AIServiceClient] = None,
    ):
        self._client_factory = client_factory
        self.ai_client = ai_client
        self.category_resolver = ProductCategoryResolver(ai_client)
        self.metrics_calculator = VariantMetricsCalculator()
        self.stale_analyzer = StaleInventoryAnalyzer()
        self.suggestion_engine = SuggestionEngine()

    async def get_products(
        self,
        shop_domain: str,
        access_token: str,
        limit: int = DEFAULT_PAGE_SIZE,
        page_info: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Dict[str, Any]:
        """One page of products with pagination cursors."""
        query: Dict[str, Any] = {"limit": min(limit, SHOPIFY_MAX_PAGE_SIZE)}
        if page_info:
            query["page_info"] = page_info
        if search:
            query["title"] = search

        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get("products", query)
            products = response.resource("products")
            logger.info("Retrieved products", shop_domain=shop_domain, count=len(products))
            return {
                "products": products,
                "pagination": response.pagination.to_dict(),
                "count": len(products),
            }
        except Exception as e:
            logger.error(
                "Failed to get products",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def search_products(
        self,
        shop_domain: str,
        access_token: str,
        params: ProductSearchParams,
    ) -> Dict[str, Any]:
        """
        Filter, sort and score products.

        When any filter must be matched locally the full catalog is paged in
        first (bounded by ``MAX_PRODUCT_PAGES``); otherwise a single Shopify
        page is requested with the pass-through filters.

        Args:
            shop_domain: Shop's myshopify domain
            access_token: Admin API access token
            params: Search, filter, pagination and sort options

        Returns:
            Dictionary with products, count, pagination and
            ``searchedAllProducts`` telling whether the full catalog was scanned
        """
        needs_full_search = params.needs_custom_filtering()
        pagination = PageCursors()

        try:
            async with self._client_factory(shop_domain, access_token) as client:
                if needs_full_search:
                    products = await fetch_all_products(client)
                    total_before = len(products)
                    products = apply_custom_search(products, params)
                else:
                    response = await client.get("products", build_search_query(params))
                    products = [Product.model_validate(p) for p in response.resource("products")]
                    total_before = len(products)
                    pagination = response.pagination

            if params.sort_by:
                products = sort_products(products, params.sort_by, params.sort_order)

            term = params.search or params.title
            if term:
                results = add_search_scoring(products, term)
            else:
                results = [product.to_dict() for product in products]

            logger.info(
                "Product search completed",
                shop_domain=shop_domain,
                matched=len(results),
                scanned=total_before,
                full_catalog=needs_full_search,
            )
            return {
                "products": results,
                "count": len(results),
                "searchParams": params.model_dump(exclude_none=True),
                "pagination": pagination.to_dict(),
                "totalBeforeFiltering": total_before,
                "searchedAllProducts": needs_full_search,
            }
        except Exception as e:
            logger.error(
                "Advanced search failed",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def search_variants(
        self,
        shop_domain: str,
        access_token: str,
        params: ProductSearchParams,
    ) -> Dict[str, Any]:
        """Products having at least one variant that meets every variant criterion."""
        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get(
                    "products",
                    {"limit": min(params.limit or SHOPIFY_MAX_PAGE_SIZE, SHOPIFY_MAX_PAGE_SIZE)},
                )
            products = [Product.model_validate(p) for p in response.resource("products")]

            results = []
            for product in products:
                matching: List[Variant] = [v for v in product.variants if variant_matches(v, params)]
                if matching:
                    results.append({
                        **product.to_dict(),
                        "matchingVariants": [v.to_dict() for v in matching],
                    })

            logger.info(
                "Variant search completed",
                shop_domain=shop_domain,
                matched=len(results),
            )
            return {
                "products": results,
                "count": len(results),
                "searchParams": params.model_dump(exclude_none=True),
                "variantSearchResults": True,
            }
        except Exception as e:
            logger.error(
                "Variant search failed",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def get_product(self, shop_domain: str, access_token: str, product_id: str) -> Dict[str, Any]:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get(f"products/{product_id}")
        logger.info("Retrieved product", shop_domain=shop_domain, product_id=product_id)
        return response.resource("product")

    async def get_variant(self, shop_domain: str, access_token: str, variant_id: str) -> Dict[str, Any]:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get(f"variants/{variant_id}")
        logger.info("Retrieved variant", shop_domain=shop_domain, variant_id=variant_id)
        return response.resource("variant")

    async def get_product_count(self, shop_domain: str, access_token: str) -> int:
        async with self._client_factory(shop_domain, access_token) as client:
            response = await client.get("products/count")
        return response.resource("count")

    async def get_product_analytics(self, shop_domain: str, access_token: str) -> Dict[str, Any]:
        """Rollups over the first page (250) of products."""
        try:
            async with self._client_factory(shop_domain, access_token) as client:
                response = await client.get("products", {"limit": SHOPIFY_MAX_PAGE_SIZE})
            products = [Product.model_validate(p) for p in response.resource("products")]
            analytics = product_analytics(products)
            logger.info(
                "Calculated product analytics",
                shop_domain=shop_domain,
                product_count=len(products),
            )
            return analytics
        except Exception as e:
            logger.error(
                "Failed to calculate product analytics",
                shop_domain=shop_domain,
                error=str(e),
                exc_info=True,
            )
            raise

    async def _fetch_product_and_orders(
        self, shop_domain: str, access_token: str, product_id: str
    ) -> tuple[Product, List[Order]]:
        async with self._client_factory(shop_domain, access_token) as client:
            product_response = await client.get(f"products/{product_id}")
            product = Product.model_validate(product_response.resource("product"))
            orders_response = await client.get(
                "orders", {"limit": ORDER_SAMPLE_LIMIT, "status": "any"}
            )
        orders = [Order.model_validate(o) for o in orders_response.resource("orders")]
        return product, orders

    async def get_variant_analytics(
        self,
        shop_domain: str,
        access_token: str,
        product_id: str,
        variant_id: str,
        threshold_percent: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """
        Sales metrics, stale analysis and suggestions for one variant.

        Args:
            shop_domain: Shop's myshopify domain
            access_token: Admin API access token
            product_id: Parent product ID
            variant_id: Variant ID, must belong to the product
            threshold_percent: Stale threshold (percent of inventory sold
                per month), defaults to 10
            now: Evaluation time override

        Returns:
            Variant analytics report

        Raises:
            VariantNotFoundError: The variant is not part of the product
        """
        now = now or now_utc()
        threshold = DEFAULT_STALE_PERCENTAGE if threshold_percent is None else threshold_percent

        try:
            product, orders = await self._fetch_product_and_orders(
                shop_domain, access_token, product_id
            )
            variant = product.find_variant(variant_id)
            if variant is None:
                raise VariantNotFoundError(variant_id, product_id)

            variant_orders = [order for order in orders if order.contains_variant(variant.id)]
            report = self.build_variant_report(variant, product, variant_orders, threshold, now)
            report["data_window"] = order_window(len(orders), len(variant_orders))

            logger.info(
                "Generated variant analytics",
                shop_domain=shop_domain,
                product_id=product_id,
                variant_id=variant_id,
                is_stale=report["is_stale"],
                suggestions=report["intelligent_suggestions"]["total_suggestions"],
            )
            return report
        except Exception as e:
            logger.error(
                "Failed to generate variant analytics",
                shop_domain=shop_domain,
                product_id=product_id,
                variant_id=variant_id,
                error=str(e),
                exc_info=True,
            )
            raise

    def build_variant_report(
        self,
        variant: Variant,
        product: Product,
        orders: List[Order],
        threshold: float,
        now: datetime,
    ) -> Dict[str, Any]:
        """Run metrics, stale analysis and suggestions, and assemble the report."""
        metrics = self.metrics_calculator.calculate(variant, product, orders, now=now)
        stale = self.stale_analyzer.analyze(
            units_sold=metrics.units_sold,
            estimated_total_inventory=metrics.estimated_initial_inventory,
            publish_date=product_launch_date(product),
            evaluation_date=now,
            threshold_percent=threshold,
        )
        suggestions = self.suggestion_engine.generate(SuggestionInput(
            variant=variant,
            product=product,
            monthly_sales_rate=metrics.monthly_sales_rate,
            stale_threshold=threshold,
            current_inventory=metrics.current_inventory,
            days_of_stock_remaining=metrics.days_of_stock_remaining,
            total_revenue=metrics.total_revenue,
            months_live=metrics.months_live,
            sales_acceleration=metrics.sales_acceleration,
            seasonality_score=metrics.seasonality_score,
            stale_analysis=stale,
            total_units_sold=metrics.units_sold,
            now=now,
        ))

        price = variant.price_value
        compare_at = variant.compare_at_value
        return {
            "variant_id": variant.id,
            "product_id": variant.product_id or product.id,
            "sku": variant.sku,
            "price": price,
            **metrics.to_dict(),
            "current_stock_value": round_half_up(metrics.current_inventory * price),
            "is_stale": 1 if stale.is_stale else 0,
            "percent_sold_per_month": stale.percent_sold_per_month,
            "threshold_percent_used": stale.threshold_percent_used,
            "stale_analysis": stale.to_dict(),
            "product_category": static_category(product.product_type),
            "is_consumable": 1 if is_consumable(product) else 0,
            "is_seasonal": 1 if is_seasonal(product) else 0,
            "weight": variant.weight or 0,
            "requires_shipping": 1 if variant.requires_shipping else 0,
            "price_vs_compare_at": round_half_up(price / compare_at) if compare_at > 0 else 1,
            "created_timestamp": to_epoch_millis(variant.created_at),
            "intelligent_suggestions": suggestions.to_dict(),
        }

    async def get_ai_product_data(
        self,
        shop_domain: str,
        access_token: str,
        product_id: str,
        variant_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Resolve the product's category, compute AI metrics and ask the
        strategy service for a prediction.

        Returns the strategy service response as-is, or the locally computed
        metrics when the service is unavailable or fails.
        """
        try:
            product, orders = await self._fetch_product_and_orders(
                shop_domain, access_token, product_id
            )
            category = await self.category_resolver.resolve(product, shop_domain)
            product_orders = [order for order in orders if order.contains_product(product.id)]
            ai_data = calculate_ai_metrics(product, product_orders, variant_id, category)
        except Exception as e:
            logger.error(
                "Failed to generate AI product data",
                shop_domain=shop_domain,
                product_id=product_id,
                error=str(e),
                exc_info=True,
            )
            raise

        if self.ai_client is None:
            logger.warning("AI_CATEGORY_API_BASE_URL not configured, returning local AI data")
            return ai_data

        try:
            prediction = await self.ai_client.predict_strategy(ai_data)
        except AIServiceError as e:
            logger.error("Strategy prediction failed, returning local AI data", error=str(e))
            return ai_data

        logger.info("Strategy prediction completed", shop_domain=shop_domain, product_id=product_id)
        return prediction
