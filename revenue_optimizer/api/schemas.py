"""Pydantic request bodies for the API routes."""

from typing import Optional

from pydantic import BaseModel, Field

from revenue_optimizer.config.constants import DEFAULT_PAGE_SIZE
from revenue_optimizer.models.search import ProductSearchParams


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------

class ShopCredentials(BaseModel):
    # Optional so a missing field yields the descriptive 400 rather than a 422
    shopDomain: Optional[str] = None
    accessToken: Optional[str] = None


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------

class ProductsRequest(ShopCredentials):
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    pageInfo: Optional[str] = None
    search: Optional[str] = None


class ProductSearchRequest(ProductSearchParams, ShopCredentials):
    def search_params(self) -> ProductSearchParams:
        return ProductSearchParams(**self.model_dump(exclude={"shopDomain", "accessToken"}))


class VariantAnalyticsRequest(ShopCredentials):
    threshold_percent: Optional[float] = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# Orders & customers
# ---------------------------------------------------------------------------

class OrdersRequest(ShopCredentials):
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    pageInfo: Optional[str] = None
    status: Optional[str] = None


class OrderCountRequest(ShopCredentials):
    status: Optional[str] = None


class CustomersRequest(ShopCredentials):
    limit: int = Field(default=DEFAULT_PAGE_SIZE, ge=1)
    pageInfo: Optional[str] = None
    search: Optional[str] = None


# ---------------------------------------------------------------------------
# LTV / CAC
# ---------------------------------------------------------------------------

class LtvCacRequest(ShopCredentials):
    adSpend: float = Field(default=0.0, ge=0)


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class InitiateOAuthRequest(BaseModel):
    shopDomain: Optional[str] = None
    state: Optional[str] = None


class ExchangeTokenRequest(BaseModel):
    shopDomain: Optional[str] = None
    code: Optional[str] = None
    state: Optional[str] = None
