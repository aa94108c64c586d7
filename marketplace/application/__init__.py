"""Application layer module.

Contains application services (use cases) that orchestrate
domain logic and the repository contracts.
"""

from marketplace.application.admin_service import AdminService, AdminStats
from marketplace.application.auth_service import AuthService, RegistrationResult
from marketplace.application.category_service import CategoryDetails, CategoryService
from marketplace.application.chat_service import ChatService
from marketplace.application.coupon_service import Coupon, CouponService
from marketplace.application.product_service import ProductService
from marketplace.application.review_service import ReviewService
from marketplace.application.seller_request_service import (
    CompensationFailurePolicy,
    SellerRequestService,
)
from marketplace.application.store_service import StoreService
from marketplace.application.user_service import UserService

__all__ = [
    "AdminService",
    "AdminStats",
    "AuthService",
    "RegistrationResult",
    "CategoryDetails",
    "CategoryService",
    "ChatService",
    "Coupon",
    "CouponService",
    "ProductService",
    "ReviewService",
    "CompensationFailurePolicy",
    "SellerRequestService",
    "StoreService",
    "UserService",
]
