"""Admin dashboard service."""

from dataclasses import dataclass, field
from datetime import datetime

import structlog

from marketplace.domain.base import utcnow
from marketplace.domain.repositories import ProductRepository, UserRepository
from marketplace.domain.value_objects import UserRole

logger = structlog.get_logger()


@dataclass(frozen=True)
class AdminStats:
    """Platform counters.

    Active users have confirmed their email; all others are pending.
    """

    total_users: int = 0
    sellers: int = 0
    buyers: int = 0
    active_users: int = 0
    pending_users: int = 0
    total_products: int = 0
    timestamp: datetime = field(default_factory=utcnow)


class AdminService:
    """Application service for admin statistics."""

    def __init__(
        self,
        user_repo: UserRepository,
        product_repo: ProductRepository,
        request_id: str | None = None,
    ) -> None:
        self.user_repo = user_repo
        self.product_repo = product_repo
        self.request_id = request_id

    async def get_stats(self) -> AdminStats:
        """Compute user and product counters."""
        users = await self.user_repo.find_all()
        total_products = await self.product_repo.count()

        sellers = sum(1 for u in users if u.role == UserRole.SELLER)
        buyers = sum(1 for u in users if u.role == UserRole.BUYER)
        active = sum(1 for u in users if u.email_confirmed_at is not None)

        stats = AdminStats(
            total_users=len(users),
            sellers=sellers,
            buyers=buyers,
            active_users=active,
            pending_users=len(users) - active,
            total_products=total_products,
        )
        logger.info(
            "Admin statistics calculated",
            total_users=stats.total_users,
            total_products=stats.total_products,
            request_id=self.request_id,
        )
        return stats
