"""Promotional coupon service.

Coupons are fictitious: they are generated on demand and never stored,
and a user may claim any number of them.
"""

import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from marketplace.domain.base import utcnow

logger = structlog.get_logger()

COUPON_PREFIX = "NB"
COUPON_DISCOUNT_PERCENT = 10
COUPON_VALIDITY = timedelta(days=7)


@dataclass(frozen=True)
class Coupon:
    """A generated coupon."""

    code: str
    discount_percent: int
    expires_at: datetime
    message: str


class CouponService:
    """Application service for coupon claims."""

    def __init__(self, request_id: str | None = None) -> None:
        self.request_id = request_id

    async def claim(self, user_id: str) -> Coupon:
        """Generate a coupon code of the form ``NB-10-XXXXXX``."""
        code = f"{COUPON_PREFIX}-{COUPON_DISCOUNT_PERCENT}-{secrets.token_hex(3).upper()}"
        coupon = Coupon(
            code=code,
            discount_percent=COUPON_DISCOUNT_PERCENT,
            expires_at=utcnow() + COUPON_VALIDITY,
            message=f"Coupon generated for user {user_id}. (Fictitious, not persisted)",
        )
        logger.info("Coupon claimed", user_id=user_id, code=code, request_id=self.request_id)
        return coupon
