"""Customer routes: fetch with search, single customer, analytics."""

from fastapi import APIRouter

from revenue_optimizer.api.errors import error_response, require_credentials
from revenue_optimizer.api.schemas import CustomersRequest, ShopCredentials
from revenue_optimizer.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/customers", tags=["customers"])

_service = None


def set_service(service):
    global _service
    _service = service


@router.post("/fetch")
async def fetch_customers(body: CustomersRequest):
    require_credentials(body, {"limit": 10, "search": "john"})
    try:
        result = await _service.get_customers(
            body.shopDomain, body.accessToken, body.limit, body.pageInfo, body.search
        )
    except Exception as e:
        return error_response(e, "Failed to retrieve customers")
    return {"message": "Customers retrieved successfully", "data": result}


@router.post("/fetch/{customer_id}")
async def fetch_customer(customer_id: str, body: ShopCredentials):
    require_credentials(body)
    try:
        customer = await _service.get_customer(body.shopDomain, body.accessToken, customer_id)
    except Exception as e:
        logger.error("Failed to get customer", customer_id=customer_id, error=str(e), exc_info=True)
        return error_response(e, "Failed to retrieve customer")
    return {"message": "Customer retrieved successfully", "data": customer}


@router.post("/analytics")
async def customers_analytics(body: ShopCredentials):
    require_credentials(body)
    try:
        analytics = await _service.get_customer_analytics(body.shopDomain, body.accessToken)
    except Exception as e:
        return error_response(e, "Failed to calculate customer analytics")
    return {"message": "Customer analytics calculated successfully", "data": analytics}
