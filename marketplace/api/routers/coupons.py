"""Coupon API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request

from marketplace.api.dependencies import CurrentUser
from marketplace.api.schemas import CouponResponse, ErrorResponse
from marketplace.application import CouponService

router = APIRouter(prefix="/coupons", tags=["Coupons"])


def get_service(request: Request) -> CouponService:
    """Get coupon service with request ID."""
    request_id = getattr(request.state, "request_id", None)
    return request.app.state.container.coupon_service(request_id=request_id)


@router.get(
    "/claim",
    response_model=CouponResponse,
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
    summary="Claim a coupon",
    description="Generate a 10% coupon valid for seven days. Coupons are not persisted.",
)
async def claim_coupon(
    user: CurrentUser,
    service: Annotated[CouponService, Depends(get_service)],
) -> CouponResponse:
    """Generate a coupon for the caller."""
    coupon = await service.claim(user.id)
    return CouponResponse(
        code=coupon.code,
        discount_percent=coupon.discount_percent,
        expires_at=coupon.expires_at,
        message=coupon.message,
    )
