"""Order routes: fetch, single order, count, analytics."""

from fastapi import APIRouter

from revenue_optimizer.api.errors import error_response, require_credentials
from revenue_optimizer.api.schemas import OrderCountRequest, OrdersRequest, ShopCredentials
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])

_service = None


def set_service(service):
    global _service
    _service = service


@router.post("/fetch")
async def fetch_orders(body: OrdersRequest):
    require_credentials(body, {"limit": 10, "status": "any"})
    try:
        result = await _service.get_orders(
            body.shopDomain, body.accessToken, body.limit, body.pageInfo, body.status
        )
    except Exception as e:
        return error_response(e, "Failed to retrieve orders")
    return {"message": "Orders retrieved successfully", "data": result}


@router.post("/fetch/{order_id}")
async def fetch_order(order_id: str, body: ShopCredentials):
    require_credentials(body)
    try:
        order = await _service.get_order(body.shopDomain, body.accessToken, order_id)
    except Exception as e:
        logger.error("Failed to get order", order_id=order_id, error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve order")
    return {"message": "Order retrieved successfully", "data": order}


@router.post("/count")
async def count_orders(body: OrderCountRequest):
    require_credentials(body)
    try:
        count = await _service.get_order_count(body.shopDomain, body.accessToken, body.status)
    except Exception as e:
        logger.error("Failed to get order count", error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve order count")
    return {"message": "Order count retrieved successfully", "data": {"count": count}}


@router.post("/analytics")
async def orders_analytics(body: ShopCredentials):
    require_credentials(body)
    try:
        analytics = await _service.get_order_analytics(body.shopDomain, body.accessToken)
    except Exception as e:
        return error_response(e, "Failed to calculate order analytics")
    return {"message": "Order analytics calculated successfully", "data": analytics}
