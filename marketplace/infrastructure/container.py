"""Composition root.

Builds clients, repositories and collaborators once per process and hands
out application services per request. Nothing else in the code base
constructs an adapter.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from marketplace.application import (
    AdminService,
    AuthService,
    CategoryService,
    ChatService,
    CompensationFailurePolicy,
    CouponService,
    ProductService,
    ReviewService,
    SellerRequestService,
    StoreService,
    UserService,
)
from marketplace.domain.repositories import (
    AuthRepository,
    CategoryRepository,
    ChatRepository,
    ConversationRepository,
    MessageRepository,
    ProductRepository,
    ReviewRepository,
    SellerRequestRepository,
    StoreRepository,
    UserRepository,
)
from marketplace.infrastructure.config import Settings

logger = structlog.get_logger()


@dataclass
class Container:
    """Process-wide dependencies and per-request service factories.

    Attributes:
        settings: Application settings.
        resources: Objects holding connections, released by ``close``.
    """

    settings: Settings
    seller_requests: SellerRequestRepository
    users: UserRepository
    stores: StoreRepository
    categories: CategoryRepository
    products: ProductRepository
    reviews: ReviewRepository
    conversations: ConversationRepository
    messages: MessageRepository
    auth: AuthRepository
    chat: ChatRepository
    resources: list[Any] = field(default_factory=list)

    # ------------------------------------------------------------------------
    # Services
    # ------------------------------------------------------------------------

    def seller_request_service(self, request_id: str | None = None) -> SellerRequestService:
        return SellerRequestService(
            self.seller_requests,
            self.users,
            self.auth,
            compensation_policy=CompensationFailurePolicy(
                self.settings.compensation_failure_policy
            ),
            request_id=request_id,
        )

    def store_service(self, request_id: str | None = None) -> StoreService:
        return StoreService(
            self.stores,
            max_stores_per_user=self.settings.max_stores_per_user,
            request_id=request_id,
        )

    def category_service(self, request_id: str | None = None) -> CategoryService:
        return CategoryService(self.categories, request_id=request_id)

    def product_service(self, request_id: str | None = None) -> ProductService:
        return ProductService(self.products, self.stores, self.categories, request_id=request_id)

    def review_service(self, request_id: str | None = None) -> ReviewService:
        return ReviewService(self.reviews, self.users, request_id=request_id)

    def user_service(self, request_id: str | None = None) -> UserService:
        return UserService(self.users, self.auth, request_id=request_id)

    def auth_service(self, request_id: str | None = None) -> AuthService:
        return AuthService(self.auth, self.users, request_id=request_id)

    def chat_service(self, request_id: str | None = None) -> ChatService:
        return ChatService(
            self.conversations,
            self.messages,
            self.users,
            self.chat,
            token_ttl_ms=self.settings.chat_token_ttl_ms,
            request_id=request_id,
        )

    def admin_service(self, request_id: str | None = None) -> AdminService:
        return AdminService(self.users, self.products, request_id=request_id)

    def coupon_service(self, request_id: str | None = None) -> CouponService:
        return CouponService(request_id=request_id)

    # ------------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------------

    async def close(self) -> None:
        """Release connections held by the container."""
        for resource in reversed(self.resources):
            if hasattr(resource, "aclose"):
                await resource.aclose()
            elif hasattr(resource, "dispose"):
                await resource.dispose()
        self.resources.clear()


def build_memory_container(settings: Settings | None = None) -> Container:
    """Build a container whose adapters all live in process.

    Args:
        settings: Settings to use, defaults with in-memory storage otherwise.

    Returns:
        Container with in-memory repositories, identity and pub/sub.
    """
    from marketplace.infrastructure.memory import (
        InMemoryAuthRepository,
        InMemoryCategoryRepository,
        InMemoryChatRepository,
        InMemoryConversationRepository,
        InMemoryMessageRepository,
        InMemoryProductRepository,
        InMemoryReviewRepository,
        InMemorySellerRequestRepository,
        InMemoryStoreRepository,
        InMemoryUserRepository,
    )

    return Container(
        settings=settings or Settings(storage_backend="memory"),
        seller_requests=InMemorySellerRequestRepository(),
        users=InMemoryUserRepository(),
        stores=InMemoryStoreRepository(),
        categories=InMemoryCategoryRepository(),
        products=InMemoryProductRepository(),
        reviews=InMemoryReviewRepository(),
        conversations=InMemoryConversationRepository(),
        messages=InMemoryMessageRepository(),
        auth=InMemoryAuthRepository(),
        chat=InMemoryChatRepository(),
    )


def build_container(settings: Settings) -> Container:
    """Build the container described by settings.

    ``storage_backend=memory`` keeps every adapter in process; ``sql``
    wires SQLAlchemy repositories, Supabase Auth and Ably.

    Args:
        settings: Application settings.

    Returns:
        Wired container.
    """
    if settings.storage_backend == "memory":
        logger.info("Using in-memory adapters")
        return build_memory_container(settings)

    from marketplace.infrastructure.ably_chat import AblyChatRepository, create_ably_http_client
    from marketplace.infrastructure.database import create_engine, create_session_factory
    from marketplace.infrastructure.sql_repositories import (
        SqlCategoryRepository,
        SqlConversationRepository,
        SqlMessageRepository,
        SqlProductRepository,
        SqlReviewRepository,
        SqlSellerRequestRepository,
        SqlStoreRepository,
        SqlUserRepository,
    )
    from marketplace.infrastructure.supabase_auth import (
        SupabaseAuthRepository,
        create_supabase_client,
    )

    engine = create_engine(settings)
    session_factory = create_session_factory(engine)
    ably_http = create_ably_http_client(settings)

    logger.info(
        "Using SQL storage",
        environment=settings.environment,
        supabase_url=settings.supabase_url,
    )
    return Container(
        settings=settings,
        seller_requests=SqlSellerRequestRepository(session_factory),
        users=SqlUserRepository(session_factory),
        stores=SqlStoreRepository(session_factory),
        categories=SqlCategoryRepository(session_factory),
        products=SqlProductRepository(session_factory),
        reviews=SqlReviewRepository(session_factory),
        conversations=SqlConversationRepository(session_factory),
        messages=SqlMessageRepository(session_factory),
        auth=SupabaseAuthRepository(
            create_supabase_client(settings),
            session_client_factory=lambda: create_supabase_client(settings),
        ),
        chat=AblyChatRepository(ably_http, settings.ably_api_key),
        resources=[engine, ably_http],
    )
