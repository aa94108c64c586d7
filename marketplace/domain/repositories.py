"""Repository and collaborator interfaces.

Application services depend only on these abstract classes. Concrete
adapters live in the infrastructure layer: SQLAlchemy and in-memory
repositories, the Supabase identity adapter and the Ably pub/sub adapter.

Update methods take a mapping of snake_case attribute names to new
values and return the updated entity, or None when the id is unknown.
"""

from abc import ABC, abstractmethod
from typing import Any

from marketplace.domain.entities import (
    AuthenticatedUser,
    AuthSession,
    Category,
    Conversation,
    Message,
    Product,
    Review,
    SellerRequest,
    Store,
    User,
)
from marketplace.domain.state_machines import SellerRequestStatus
from marketplace.domain.value_objects import Page, PageRequest, StoreStatus


# ============================================================================
# Seller Requests
# ============================================================================


class SellerRequestRepository(ABC):
    """Persistence contract for seller requests.

    Implementations must reject a second pending request for the same
    user with ConflictError.
    """

    @abstractmethod
    async def create(self, request: SellerRequest) -> SellerRequest: ...

    @abstractmethod
    async def find_by_id(self, request_id: str) -> SellerRequest | None: ...

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> SellerRequest | None:
        """Find the most recent request of a user."""

    @abstractmethod
    async def find_all(
        self, status: SellerRequestStatus | None = None
    ) -> list[SellerRequest]:
        """List requests newest first, optionally filtered by status."""

    @abstractmethod
    async def update_by_id(
        self, request_id: str, changes: dict[str, Any]
    ) -> SellerRequest | None: ...

    @abstractmethod
    async def delete_by_id(self, request_id: str) -> SellerRequest | None: ...


# ============================================================================
# Users
# ============================================================================


class UserRepository(ABC):
    """Persistence contract for user profiles.

    ``create`` raises ConflictError when the id is already taken.
    """

    @abstractmethod
    async def create(self, user: User) -> User: ...

    @abstractmethod
    async def find_by_id(self, user_id: str) -> User | None: ...

    @abstractmethod
    async def find_all(self) -> list[User]: ...

    @abstractmethod
    async def update_by_id(self, user_id: str, changes: dict[str, Any]) -> User | None: ...

    @abstractmethod
    async def delete_by_id(self, user_id: str) -> User | None: ...


# ============================================================================
# Stores
# ============================================================================


class StoreRepository(ABC):
    """Persistence contract for stores."""

    @abstractmethod
    async def create(self, store: Store) -> Store: ...

    @abstractmethod
    async def find_by_id(self, store_id: str) -> Store | None: ...

    @abstractmethod
    async def find_by_user_id(self, user_id: str) -> Store | None:
        """Find the first store owned by a user."""

    @abstractmethod
    async def find_all_by_user_id(self, user_id: str) -> list[Store]: ...

    @abstractmethod
    async def count_by_user_id(self, user_id: str) -> int: ...

    @abstractmethod
    async def find_all_approved(self) -> list[Store]:
        """List approved stores newest first."""

    @abstractmethod
    async def find_all_by_status(self, status: StoreStatus) -> list[Store]:
        """List stores with a status, newest first."""

    @abstractmethod
    async def update_by_id(self, store_id: str, changes: dict[str, Any]) -> Store | None: ...

    @abstractmethod
    async def update_status(
        self, store_id: str, status: StoreStatus, reason: str | None = None
    ) -> Store | None: ...

    @abstractmethod
    async def delete_by_id(self, store_id: str) -> Store | None: ...


# ============================================================================
# Categories
# ============================================================================


class CategoryRepository(ABC):
    """Persistence contract for categories.

    ``create`` and ``update_by_id`` raise ConflictError on a duplicate slug.
    """

    @abstractmethod
    async def create(self, category: Category) -> Category: ...

    @abstractmethod
    async def find_by_id(self, category_id: str) -> Category | None: ...

    @abstractmethod
    async def find_by_slug(self, slug: str) -> Category | None: ...

    @abstractmethod
    async def find_all(self) -> list[Category]:
        """List all categories sorted by level then name."""

    @abstractmethod
    async def find_main_categories(self) -> list[Category]:
        """List active top-level categories sorted by name."""

    @abstractmethod
    async def find_subcategories(
        self, parent_id: str, active_only: bool = True
    ) -> list[Category]:
        """List subcategories of a parent sorted by name."""

    @abstractmethod
    async def update_by_id(
        self, category_id: str, changes: dict[str, Any]
    ) -> Category | None: ...

    @abstractmethod
    async def delete_by_id(self, category_id: str) -> Category | None: ...


# ============================================================================
# Products
# ============================================================================


class ProductRepository(ABC):
    """Persistence contract for products."""

    @abstractmethod
    async def create(self, product: Product) -> Product: ...

    @abstractmethod
    async def find_by_id(self, product_id: str) -> Product | None: ...

    @abstractmethod
    async def find_all(
        self, filters: dict[str, Any], page: PageRequest
    ) -> Page[Product]:
        """List products matching equality filters on snake_case fields."""

    @abstractmethod
    async def find_by_store_id(self, store_id: str, page: PageRequest) -> Page[Product]: ...

    @abstractmethod
    async def count(self) -> int: ...

    @abstractmethod
    async def update_by_id(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None: ...

    @abstractmethod
    async def delete_by_id(self, product_id: str) -> Product | None: ...


# ============================================================================
# Reviews
# ============================================================================


class ReviewRepository(ABC):
    """Persistence contract for reviews."""

    @abstractmethod
    async def create(self, review: Review) -> Review: ...

    @abstractmethod
    async def find_by_id(self, review_id: str) -> Review | None: ...

    @abstractmethod
    async def find_by_user_id_and_id(self, user_id: str, review_id: str) -> Review | None: ...

    @abstractmethod
    async def find_all(self, filters: dict[str, Any]) -> list[Review]:
        """List reviews matching equality filters, newest first."""

    @abstractmethod
    async def update_by_id(self, review_id: str, changes: dict[str, Any]) -> Review | None: ...

    @abstractmethod
    async def delete_by_id(self, review_id: str) -> Review | None: ...


# ============================================================================
# Chat Persistence
# ============================================================================


class ConversationRepository(ABC):
    """Persistence contract for conversations."""

    @abstractmethod
    async def create(self, conversation: Conversation) -> Conversation: ...

    @abstractmethod
    async def find_by_id(self, conversation_id: str) -> Conversation | None: ...

    @abstractmethod
    async def find_by_participants(
        self, user_id: str, other_user_id: str
    ) -> Conversation | None: ...

    @abstractmethod
    async def find_by_user_id(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> tuple[list[Conversation], int]:
        """List a user's conversations by latest activity with the total count."""

    @abstractmethod
    async def update_last_message(
        self, conversation_id: str, message_id: str
    ) -> Conversation | None: ...

    @abstractmethod
    async def increment_unread_count(self, conversation_id: str, user_id: str) -> None: ...

    @abstractmethod
    async def reset_unread_count(self, conversation_id: str, user_id: str) -> None: ...


class MessageRepository(ABC):
    """Persistence contract for chat messages."""

    @abstractmethod
    async def create(self, message: Message) -> Message: ...

    @abstractmethod
    async def find_by_conversation_id(
        self, conversation_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Message], int]:
        """List messages oldest first with the total count."""

    @abstractmethod
    async def mark_as_read(self, conversation_id: str, reader_id: str) -> int:
        """Mark messages received by ``reader_id`` as read.

        Returns:
            Number of messages updated.
        """


# ============================================================================
# External Collaborators
# ============================================================================


class AuthRepository(ABC):
    """Identity-provider contract.

    Failures of the provider surface as UnauthorizedError for credential
    problems and InternalError otherwise.
    """

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> AuthSession: ...

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthSession: ...

    @abstractmethod
    async def sign_out(self, token: str) -> None: ...

    @abstractmethod
    async def get_user(self, token: str) -> AuthenticatedUser | None:
        """Resolve a bearer token, None when the token is invalid."""

    @abstractmethod
    async def update_user_metadata(self, user_id: str, metadata: dict[str, Any]) -> None:
        """Merge metadata into the identity record of a user."""


class ChatRepository(ABC):
    """Real-time pub/sub contract."""

    @abstractmethod
    async def publish_message(self, channel: str, data: dict[str, Any]) -> None: ...

    @abstractmethod
    async def generate_token_request(
        self, client_id: str, capabilities: dict[str, list[str]], ttl_ms: int
    ) -> dict[str, Any]: ...

    @abstractmethod
    async def get_channel_history(self, channel: str, limit: int = 50) -> list[dict[str, Any]]: ...

    @abstractmethod
    async def get_presence(self, channel: str) -> list[dict[str, Any]]: ...
