"""FastAPI application factory for the Revenue Model Optimizer API."""

from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from revenue_optimizer import __version__
from revenue_optimizer.api.errors import missing_credentials_handler
from revenue_optimizer.api.routes import auth, customers, health, ltv_cac, orders, products
from revenue_optimizer.config.settings import Settings, settings as default_settings
from revenue_optimizer.errors import MissingCredentialsError
from revenue_optimizer.services.ai_client import AIServiceClient
from revenue_optimizer.services.auth_service import AuthService
from revenue_optimizer.services.customers_service import CustomersService
from revenue_optimizer.services.ltv_cac_service import LtvCacService
from revenue_optimizer.services.orders_service import OrdersService
from revenue_optimizer.services.products_service import ProductsService
from revenue_optimizer.services.shopify_client import ShopifyClient, default_client_factory
from revenue_optimizer.utils.logger import get_logger, new_correlation_id

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app(
    settings: Optional[Settings] = None,
    client_factory: Callable[[str, str], ShopifyClient] = default_client_factory,
    ai_client: Optional[AIServiceClient] = None,
) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Configuration, defaults to the environment-backed singleton
        client_factory: Builds a Shopify client from request credentials
        ai_client: External AI service client; built from settings when omitted

    Returns:
        Configured FastAPI app with every router mounted under the API prefix
    """
    settings = settings or default_settings
    if ai_client is None:
        ai_client = AIServiceClient.from_settings(settings)

    app = FastAPI(
        title="Revenue Model Optimizer API",
        version=__version__,
        docs_url=f"{settings.server.api_prefix}/docs",
        redoc_url=None,
    )

    # CORS open to all origins; the dashboard is served from a separate host
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        cid = new_correlation_id(request.headers.get(REQUEST_ID_HEADER))
        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = cid
        return response

    app.add_exception_handler(MissingCredentialsError, missing_credentials_handler)

    # Wire up per-router services
    products.set_service(ProductsService(client_factory, ai_client))
    orders.set_service(OrdersService(client_factory))
    customers.set_service(CustomersService(client_factory))
    ltv_cac.set_service(LtvCacService(client_factory))
    health.set_api_prefix(settings.server.api_prefix)
    auth.set_service(AuthService(settings, client_factory))

    # Register route modules
    prefix = settings.server.api_prefix
    app.include_router(health.router, prefix=prefix)
    app.include_router(products.router, prefix=prefix)
    app.include_router(orders.router, prefix=prefix)
    app.include_router(customers.router, prefix=prefix)
    app.include_router(ltv_cac.router, prefix=prefix)
    app.include_router(auth.router, prefix=prefix)

    missing = settings.validate()
    if missing:
        logger.warning("OAuth configuration incomplete", missing=missing)

    logger.info(
        "API application created",
        api_prefix=prefix,
        ai_service_enabled=ai_client is not None,
    )
    return app
