"""FastAPI routers mounted under the ``/api`` prefix."""

from marketplace.api.routers.admin import router as admin_router
from marketplace.api.routers.auth import router as auth_router
from marketplace.api.routers.categories import router as categories_router
from marketplace.api.routers.chat import router as chat_router
from marketplace.api.routers.coupons import router as coupons_router
from marketplace.api.routers.products import router as products_router
from marketplace.api.routers.reviews import router as reviews_router
from marketplace.api.routers.seller_requests import router as seller_requests_router
from marketplace.api.routers.stores import router as stores_router
from marketplace.api.routers.users import router as users_router

API_ROUTERS = [
    auth_router,
    users_router,
    seller_requests_router,
    stores_router,
    categories_router,
    products_router,
    reviews_router,
    chat_router,
    admin_router,
    coupons_router,
]

__all__ = [
    "API_ROUTERS",
    "admin_router",
    "auth_router",
    "categories_router",
    "chat_router",
    "coupons_router",
    "products_router",
    "reviews_router",
    "seller_requests_router",
    "stores_router",
    "users_router",
]
