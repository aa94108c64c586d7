"""In-memory repository implementations.

Same contracts as the SQL repositories, including the one-pending-request
rule, for local development (``storage_backend=memory``) and tests. The
identity and pub/sub stand-ins keep everything in process as well.
"""

import secrets
from collections.abc import Callable, Iterable
from typing import Any, Generic, TypeVar

from marketplace.domain.base import Entity, utcnow
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
from marketplace.domain.exceptions import BadRequestError, ConflictError, UnauthorizedError
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
from marketplace.domain.state_machines import SellerRequestStatus
from marketplace.domain.value_objects import (
    IdentityRole,
    MessageStatus,
    Page,
    PageRequest,
    SortOrder,
    StoreStatus,
    new_id,
)

E = TypeVar("E", bound=Entity)


def _newest_first(items: Iterable[E]) -> list[E]:
    # Later inserts win ties on created_at.
    return sorted(reversed(list(items)), key=lambda e: e.created_at, reverse=True)


class InMemoryRepository(Generic[E]):
    """Dict-backed storage keyed by entity id."""

    def __init__(self) -> None:
        self._items: dict[str, E] = {}

    def _save(self, entity: E) -> E:
        self._items[entity.id] = entity
        return entity

    def _select(self, predicate: Callable[[E], bool] | None = None) -> list[E]:
        return [e for e in self._items.values() if predicate is None or predicate(e)]

    def _apply(self, entity_id: str, changes: dict[str, Any]) -> E | None:
        current = self._items.get(entity_id)
        if current is None:
            return None
        return self._save(current.with_changes(**changes))

    def _pop(self, entity_id: str) -> E | None:
        return self._items.pop(entity_id, None)


# ============================================================================
# Seller Requests
# ============================================================================


class InMemorySellerRequestRepository(InMemoryRepository[SellerRequest], SellerRequestRepository):
    """In-memory repository for seller requests."""

    def _pending_for(self, user_id: str, exclude: str | None = None) -> SellerRequest | None:
        return next(
            (
                r
                for r in self._items.values()
                if r.user_id == user_id and r.is_pending and r.id != exclude
            ),
            None,
        )

    async def create(self, request: SellerRequest) -> SellerRequest:
        if request.is_pending and self._pending_for(request.user_id):
            raise ConflictError(
                "User already has a pending request", details={"user_id": request.user_id}
            )
        return self._save(request)

    async def find_by_id(self, request_id: str) -> SellerRequest | None:
        return self._items.get(request_id)

    async def find_by_user_id(self, user_id: str) -> SellerRequest | None:
        matches = _newest_first(self._select(lambda r: r.user_id == user_id))
        return matches[0] if matches else None

    async def find_all(self, status: SellerRequestStatus | None = None) -> list[SellerRequest]:
        return _newest_first(self._select(lambda r: status is None or r.status == status))

    async def update_by_id(
        self, request_id: str, changes: dict[str, Any]
    ) -> SellerRequest | None:
        current = self._items.get(request_id)
        if current is None:
            return None
        if changes.get("status") == SellerRequestStatus.PENDING and self._pending_for(
            current.user_id, exclude=request_id
        ):
            raise ConflictError("User already has a pending request", details={"id": request_id})
        return self._apply(request_id, changes)

    async def delete_by_id(self, request_id: str) -> SellerRequest | None:
        return self._pop(request_id)


# ============================================================================
# Users
# ============================================================================


class InMemoryUserRepository(InMemoryRepository[User], UserRepository):
    """In-memory repository for user profiles."""

    async def create(self, user: User) -> User:
        if user.id in self._items:
            raise ConflictError("User already exists", details={"id": user.id})
        return self._save(user)

    async def find_by_id(self, user_id: str) -> User | None:
        return self._items.get(user_id)

    async def find_all(self) -> list[User]:
        return _newest_first(self._items.values())

    async def update_by_id(self, user_id: str, changes: dict[str, Any]) -> User | None:
        return self._apply(user_id, changes)

    async def delete_by_id(self, user_id: str) -> User | None:
        return self._pop(user_id)


# ============================================================================
# Stores
# ============================================================================


class InMemoryStoreRepository(InMemoryRepository[Store], StoreRepository):
    """In-memory repository for stores."""

    async def create(self, store: Store) -> Store:
        return self._save(store)

    async def find_by_id(self, store_id: str) -> Store | None:
        return self._items.get(store_id)

    async def find_by_user_id(self, user_id: str) -> Store | None:
        stores = await self.find_all_by_user_id(user_id)
        return stores[0] if stores else None

    async def find_all_by_user_id(self, user_id: str) -> list[Store]:
        return _newest_first(self._select(lambda s: s.user_id == user_id))

    async def count_by_user_id(self, user_id: str) -> int:
        return len(self._select(lambda s: s.user_id == user_id))

    async def find_all_approved(self) -> list[Store]:
        return await self.find_all_by_status(StoreStatus.APPROVED)

    async def find_all_by_status(self, status: StoreStatus) -> list[Store]:
        return _newest_first(self._select(lambda s: s.status == status))

    async def update_by_id(self, store_id: str, changes: dict[str, Any]) -> Store | None:
        return self._apply(store_id, changes)

    async def update_status(
        self, store_id: str, status: StoreStatus, reason: str | None = None
    ) -> Store | None:
        return self._apply(store_id, {"status": status, "reason": reason})

    async def delete_by_id(self, store_id: str) -> Store | None:
        return self._pop(store_id)


# ============================================================================
# Categories
# ============================================================================


class InMemoryCategoryRepository(InMemoryRepository[Category], CategoryRepository):
    """In-memory repository for categories."""

    async def create(self, category: Category) -> Category:
        if await self.find_by_slug(category.slug):
            raise ConflictError(
                "Category with this slug already exists", details={"slug": category.slug}
            )
        return self._save(category)

    async def find_by_id(self, category_id: str) -> Category | None:
        return self._items.get(category_id)

    async def find_by_slug(self, slug: str) -> Category | None:
        return next((c for c in self._items.values() if c.slug == slug), None)

    async def find_all(self) -> list[Category]:
        return sorted(self._items.values(), key=lambda c: c.name)

    async def find_main_categories(self) -> list[Category]:
        return sorted(
            self._select(lambda c: c.parent is None and c.is_active), key=lambda c: c.name
        )

    async def find_subcategories(
        self, parent_id: str, active_only: bool = True
    ) -> list[Category]:
        return sorted(
            self._select(lambda c: c.parent == parent_id and (c.is_active or not active_only)),
            key=lambda c: c.name,
        )

    async def update_by_id(
        self, category_id: str, changes: dict[str, Any]
    ) -> Category | None:
        return self._apply(category_id, changes)

    async def delete_by_id(self, category_id: str) -> Category | None:
        return self._pop(category_id)


# ============================================================================
# Products
# ============================================================================


class InMemoryProductRepository(InMemoryRepository[Product], ProductRepository):
    """In-memory repository for products."""

    SORTABLE_FIELDS = ("created_at", "updated_at", "name", "price", "stock")

    async def create(self, product: Product) -> Product:
        return self._save(product)

    async def find_by_id(self, product_id: str) -> Product | None:
        return self._items.get(product_id)

    async def find_all(self, filters: dict[str, Any], page: PageRequest) -> Page[Product]:
        matches = self._select(
            lambda p: all(getattr(p, name) == value for name, value in filters.items())
        )
        return self._page(matches, page)

    async def find_by_store_id(self, store_id: str, page: PageRequest) -> Page[Product]:
        return self._page(self._select(lambda p: p.store_id == store_id), page)

    async def count(self) -> int:
        return len(self._items)

    async def update_by_id(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None:
        return self._apply(product_id, changes)

    async def delete_by_id(self, product_id: str) -> Product | None:
        return self._pop(product_id)

    def _page(self, products: list[Product], page: PageRequest) -> Page[Product]:
        sort_by = page.sort_by if page.sort_by in self.SORTABLE_FIELDS else "created_at"
        ordered = sorted(
            products,
            key=lambda p: getattr(p, sort_by),
            reverse=page.sort_order == SortOrder.DESC,
        )
        return Page(
            items=ordered[page.offset : page.offset + page.limit],
            total_items=len(products),
            current_page=page.page,
            limit=page.limit,
        )


# ============================================================================
# Reviews
# ============================================================================


class InMemoryReviewRepository(InMemoryRepository[Review], ReviewRepository):
    """In-memory repository for reviews."""

    async def create(self, review: Review) -> Review:
        return self._save(review)

    async def find_by_id(self, review_id: str) -> Review | None:
        return self._items.get(review_id)

    async def find_by_user_id_and_id(self, user_id: str, review_id: str) -> Review | None:
        review = self._items.get(review_id)
        return review if review and review.user_id == user_id else None

    async def find_all(self, filters: dict[str, Any]) -> list[Review]:
        return _newest_first(
            self._select(lambda r: all(getattr(r, k) == v for k, v in filters.items()))
        )

    async def update_by_id(self, review_id: str, changes: dict[str, Any]) -> Review | None:
        return self._apply(review_id, changes)

    async def delete_by_id(self, review_id: str) -> Review | None:
        return self._pop(review_id)


# ============================================================================
# Chat
# ============================================================================


class InMemoryConversationRepository(InMemoryRepository[Conversation], ConversationRepository):
    """In-memory repository for conversations."""

    async def create(self, conversation: Conversation) -> Conversation:
        first, second = conversation.participants
        if await self.find_by_participants(first, second):
            raise ConflictError("Conversation already exists")
        return self._save(conversation)

    async def find_by_id(self, conversation_id: str) -> Conversation | None:
        return self._items.get(conversation_id)

    async def find_by_participants(
        self, user_id: str, other_user_id: str
    ) -> Conversation | None:
        pair = {user_id, other_user_id}
        return next((c for c in self._items.values() if set(c.participants) == pair), None)

    async def find_by_user_id(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> tuple[list[Conversation], int]:
        matches = sorted(
            reversed(self._select(lambda c: user_id in c.participants)),
            key=lambda c: c.updated_at,
            reverse=True,
        )
        return matches[offset : offset + limit], len(matches)

    async def update_last_message(
        self, conversation_id: str, message_id: str
    ) -> Conversation | None:
        return self._apply(
            conversation_id, {"last_message": message_id, "last_message_at": utcnow()}
        )

    async def increment_unread_count(self, conversation_id: str, user_id: str) -> None:
        current = self._items.get(conversation_id)
        if current is not None:
            counts = {**current.unread_count, user_id: current.unread_for(user_id) + 1}
            self._apply(conversation_id, {"unread_count": counts})

    async def reset_unread_count(self, conversation_id: str, user_id: str) -> None:
        current = self._items.get(conversation_id)
        if current is not None:
            self._apply(conversation_id, {"unread_count": {**current.unread_count, user_id: 0}})


class InMemoryMessageRepository(InMemoryRepository[Message], MessageRepository):
    """In-memory repository for chat messages."""

    async def create(self, message: Message) -> Message:
        return self._save(message)

    async def find_by_conversation_id(
        self, conversation_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Message], int]:
        matches = sorted(
            self._select(lambda m: m.conversation_id == conversation_id),
            key=lambda m: m.created_at,
        )
        return matches[offset : offset + limit], len(matches)

    async def mark_as_read(self, conversation_id: str, reader_id: str) -> int:
        unread = self._select(
            lambda m: m.conversation_id == conversation_id
            and m.receiver_id == reader_id
            and m.status != MessageStatus.READ
        )
        for message in unread:
            self._apply(message.id, {"status": MessageStatus.READ})
        return len(unread)


# ============================================================================
# Identity and Pub/Sub Stand-ins
# ============================================================================


class InMemoryAuthRepository(AuthRepository):
    """Identity provider held in process.

    Passwords are kept as given; this adapter is for development and tests.
    """

    def __init__(self) -> None:
        self._accounts: dict[str, dict[str, Any]] = {}
        self._tokens: dict[str, str] = {}

    def register_account(
        self,
        user_id: str,
        email: str | None = None,
        role: IdentityRole | str | None = None,
        password: str = "",
    ) -> None:
        """Seed an identity record directly."""
        metadata = {"role": IdentityRole(role).value} if role else {}
        self._accounts[user_id] = {
            "email": email,
            "password": password,
            "metadata": metadata,
            "email_confirmed_at": None,
        }

    def issue_token(self, user_id: str) -> str:
        """Open a session for a known account and return its token."""
        token = secrets.token_urlsafe(24)
        self._tokens[token] = user_id
        return token

    def metadata_of(self, user_id: str) -> dict[str, Any]:
        """Current identity metadata of an account."""
        return dict(self._accounts[user_id]["metadata"])

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any]
    ) -> AuthSession:
        if any(a["email"] == email for a in self._accounts.values()):
            raise BadRequestError("User already registered")
        user_id = new_id()
        self._accounts[user_id] = {
            "email": email,
            "password": password,
            "metadata": dict(metadata),
            "email_confirmed_at": None,
        }
        return AuthSession(user_id=user_id, access_token=self.issue_token(user_id), email=email)

    async def sign_in(self, email: str, password: str) -> AuthSession:
        for user_id, account in self._accounts.items():
            if account["email"] == email and account["password"] == password:
                return AuthSession(
                    user_id=user_id,
                    access_token=self.issue_token(user_id),
                    expires_in=3600,
                    email=email,
                )
        raise UnauthorizedError("Invalid login credentials")

    async def sign_out(self, token: str) -> None:
        self._tokens.pop(token, None)

    async def get_user(self, token: str) -> AuthenticatedUser | None:
        user_id = self._tokens.get(token)
        account = self._accounts.get(user_id) if user_id else None
        if account is None:
            return None
        role = account["metadata"].get("role")
        return AuthenticatedUser(
            id=user_id,
            email=account["email"],
            role=IdentityRole.parse(role),
            email_confirmed_at=account["email_confirmed_at"],
        )

    async def update_user_metadata(self, user_id: str, metadata: dict[str, Any]) -> None:
        account = self._accounts.get(user_id)
        if account is None:
            raise BadRequestError("User not found in identity provider", details={"id": user_id})
        account["metadata"] = {**account["metadata"], **metadata}


class InMemoryChatRepository(ChatRepository):
    """Pub/sub stand-in that records published messages per channel."""

    def __init__(self) -> None:
        self.published: list[tuple[str, dict[str, Any]]] = []

    async def publish_message(self, channel: str, data: dict[str, Any]) -> None:
        self.published.append((channel, data))

    async def generate_token_request(
        self, client_id: str, capabilities: dict[str, list[str]], ttl_ms: int
    ) -> dict[str, Any]:
        return {
            "keyName": "memory",
            "clientId": client_id,
            "capability": capabilities,
            "ttl": ttl_ms,
            "timestamp": int(utcnow().timestamp() * 1000),
            "nonce": secrets.token_hex(8),
        }

    async def get_channel_history(self, channel: str, limit: int = 50) -> list[dict[str, Any]]:
        history = [data for name, data in self.published if name == channel]
        return list(reversed(history))[:limit]

    async def get_presence(self, channel: str) -> list[dict[str, Any]]:
        return []
