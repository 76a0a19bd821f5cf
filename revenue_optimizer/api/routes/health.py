"""Liveness route."""

from fastapi import APIRouter

from revenue_optimizer import __version__
from revenue_optimizer.config.settings import DEFAULT_API_PREFIX
from revenue_optimizer.utils.dates import now_utc

router = APIRouter(tags=["health"])

# Will be set by app.py at startup
_api_prefix = DEFAULT_API_PREFIX


def set_api_prefix(prefix: str):
    global _api_prefix
    _api_prefix = prefix


@router.get("/health")
async def health():
    return {
        "status": "ok",
        "message": "Revenue Model Optimizer API is running",
        "timestamp": now_utc().isoformat(),
        "version": __version__,
        "endpoints": {
            "products": f"{_api_prefix}/products/fetch",
            "orders": f"{_api_prefix}/orders/fetch",
            "customers": f"{_api_prefix}/customers/fetch",
        },
    }
