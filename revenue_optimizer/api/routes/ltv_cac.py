"""LTV/CAC analysis route."""

from fastapi import APIRouter

from revenue_optimizer.api.errors import error_response, require_credentials
from revenue_optimizer.api.schemas import LtvCacRequest

router = APIRouter(prefix="/ltv-cac", tags=["ltv-cac"])

_service = None


def set_service(service):
    global _service
    _service = service


@router.post("/analyze")
async def analyze(body: LtvCacRequest):
    require_credentials(body, {"adSpend": 5000})
    try:
        return await _service.analyze(body.shopDomain, body.accessToken, body.adSpend)
    except Exception as e:
        return error_response(e, "LTV/CAC Analysis Failed")
