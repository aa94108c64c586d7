"""SQLAlchemy repository implementations.

Each repository opens one session per operation from a shared session
factory, so every write commits on its own.
"""

from dataclasses import fields
from enum import Enum
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import and_, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.domain.base import Entity, utcnow
from marketplace.domain.entities import (
    Category,
    Conversation,
    Message,
    Product,
    Review,
    SellerRequest,
    Store,
    User,
)
from marketplace.domain.exceptions import ConflictError
from marketplace.domain.repositories import (
    CategoryRepository,
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
    MessageStatus,
    Page,
    PageRequest,
    SortOrder,
    StoreStatus,
)
from marketplace.infrastructure.models import (
    CategoryModel,
    ConversationModel,
    MessageModel,
    ProductModel,
    ReviewModel,
    SellerRequestModel,
    StoreModel,
    UserModel,
    participants_key,
)

logger = structlog.get_logger()

E = TypeVar("E", bound=Entity)


def _column_value(value: Any) -> Any:
    """Convert an entity attribute to its column representation."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, tuple):
        return list(value)
    return value


def _row_values(entity: Entity) -> dict[str, Any]:
    return {f.name: _column_value(getattr(entity, f.name)) for f in fields(entity)}


class SqlRepository(Generic[E]):
    """Shared CRUD helpers over one model class."""

    model: type

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize repository with a session factory.

        Args:
            session_factory: Async SQLAlchemy session factory.
        """
        self.session_factory = session_factory

    async def _insert(self, values: dict[str, Any]) -> E:
        async with self.session_factory() as session:
            row = self.model(**values)
            session.add(row)
            await session.commit()
            await session.refresh(row)
            return row.to_entity()

    async def _get(self, entity_id: str) -> E | None:
        async with self.session_factory() as session:
            row = await session.get(self.model, entity_id)
            return row.to_entity() if row else None

    async def _first(self, *conditions: Any) -> E | None:
        async with self.session_factory() as session:
            query = (
                select(self.model)
                .where(and_(*conditions))
                .order_by(self.model.created_at.desc())
                .limit(1)
            )
            row = (await session.execute(query)).scalar_one_or_none()
            return row.to_entity() if row else None

    async def _list(self, *conditions: Any, order_by: Any = None) -> list[E]:
        async with self.session_factory() as session:
            query = select(self.model)
            if conditions:
                query = query.where(and_(*conditions))
            query = query.order_by(
                order_by if order_by is not None else self.model.created_at.desc()
            )
            rows = (await session.execute(query)).scalars().all()
            return [row.to_entity() for row in rows]

    async def _update(self, entity_id: str, changes: dict[str, Any]) -> E | None:
        async with self.session_factory() as session:
            row = await session.get(self.model, entity_id)
            if row is None:
                return None
            for name, value in changes.items():
                setattr(row, name, _column_value(value))
            row.updated_at = changes.get("updated_at") or utcnow()
            await session.commit()
            await session.refresh(row)
            return row.to_entity()

    async def _delete(self, entity_id: str) -> E | None:
        async with self.session_factory() as session:
            row = await session.get(self.model, entity_id)
            if row is None:
                return None
            entity = row.to_entity()
            await session.delete(row)
            await session.commit()
            return entity


# ============================================================================
# Seller Requests
# ============================================================================


class SqlSellerRequestRepository(SqlRepository[SellerRequest], SellerRequestRepository):
    """Seller requests in SQL. The pending rule is a partial unique index."""

    model = SellerRequestModel

    async def create(self, request: SellerRequest) -> SellerRequest:
        try:
            return await self._insert(_row_values(request))
        except IntegrityError:
            raise ConflictError(
                "User already has a pending request", details={"user_id": request.user_id}
            ) from None

    async def find_by_id(self, request_id: str) -> SellerRequest | None:
        return await self._get(request_id)

    async def find_by_user_id(self, user_id: str) -> SellerRequest | None:
        return await self._first(SellerRequestModel.user_id == user_id)

    async def find_all(self, status: SellerRequestStatus | None = None) -> list[SellerRequest]:
        if status is None:
            return await self._list()
        return await self._list(SellerRequestModel.status == SellerRequestStatus(status).value)

    async def update_by_id(
        self, request_id: str, changes: dict[str, Any]
    ) -> SellerRequest | None:
        try:
            return await self._update(request_id, changes)
        except IntegrityError:
            raise ConflictError(
                "User already has a pending request", details={"id": request_id}
            ) from None

    async def delete_by_id(self, request_id: str) -> SellerRequest | None:
        return await self._delete(request_id)


# ============================================================================
# Users
# ============================================================================


class SqlUserRepository(SqlRepository[User], UserRepository):
    """User profiles in SQL."""

    model = UserModel

    async def create(self, user: User) -> User:
        try:
            return await self._insert(_row_values(user))
        except IntegrityError:
            raise ConflictError("User already exists", details={"id": user.id}) from None

    async def find_by_id(self, user_id: str) -> User | None:
        return await self._get(user_id)

    async def find_all(self) -> list[User]:
        return await self._list()

    async def update_by_id(self, user_id: str, changes: dict[str, Any]) -> User | None:
        return await self._update(user_id, changes)

    async def delete_by_id(self, user_id: str) -> User | None:
        return await self._delete(user_id)


# ============================================================================
# Stores
# ============================================================================


class SqlStoreRepository(SqlRepository[Store], StoreRepository):
    """Stores in SQL."""

    model = StoreModel

    async def create(self, store: Store) -> Store:
        return await self._insert(_row_values(store))

    async def find_by_id(self, store_id: str) -> Store | None:
        return await self._get(store_id)

    async def find_by_user_id(self, user_id: str) -> Store | None:
        return await self._first(StoreModel.user_id == user_id)

    async def find_all_by_user_id(self, user_id: str) -> list[Store]:
        return await self._list(StoreModel.user_id == user_id)

    async def count_by_user_id(self, user_id: str) -> int:
        async with self.session_factory() as session:
            query = select(func.count()).select_from(StoreModel).where(
                StoreModel.user_id == user_id
            )
            return (await session.execute(query)).scalar_one()

    async def find_all_approved(self) -> list[Store]:
        return await self._list(StoreModel.status == StoreStatus.APPROVED.value)

    async def find_all_by_status(self, status: StoreStatus) -> list[Store]:
        return await self._list(StoreModel.status == StoreStatus(status).value)

    async def update_by_id(self, store_id: str, changes: dict[str, Any]) -> Store | None:
        return await self._update(store_id, changes)

    async def update_status(
        self, store_id: str, status: StoreStatus, reason: str | None = None
    ) -> Store | None:
        return await self._update(store_id, {"status": status, "reason": reason})

    async def delete_by_id(self, store_id: str) -> Store | None:
        return await self._delete(store_id)


# ============================================================================
# Categories
# ============================================================================


class SqlCategoryRepository(SqlRepository[Category], CategoryRepository):
    """Categories in SQL."""

    model = CategoryModel

    async def create(self, category: Category) -> Category:
        try:
            return await self._insert(_row_values(category))
        except IntegrityError:
            raise ConflictError(
                "Category with this slug already exists", details={"slug": category.slug}
            ) from None

    async def find_by_id(self, category_id: str) -> Category | None:
        return await self._get(category_id)

    async def find_by_slug(self, slug: str) -> Category | None:
        return await self._first(CategoryModel.slug == slug)

    async def find_all(self) -> list[Category]:
        return await self._list(order_by=CategoryModel.name.asc())

    async def find_main_categories(self) -> list[Category]:
        return await self._list(
            CategoryModel.parent.is_(None),
            CategoryModel.is_active.is_(True),
            order_by=CategoryModel.name.asc(),
        )

    async def find_subcategories(
        self, parent_id: str, active_only: bool = True
    ) -> list[Category]:
        conditions = [CategoryModel.parent == parent_id]
        if active_only:
            conditions.append(CategoryModel.is_active.is_(True))
        return await self._list(*conditions, order_by=CategoryModel.name.asc())

    async def update_by_id(
        self, category_id: str, changes: dict[str, Any]
    ) -> Category | None:
        return await self._update(category_id, changes)

    async def delete_by_id(self, category_id: str) -> Category | None:
        return await self._delete(category_id)


# ============================================================================
# Products
# ============================================================================


class SqlProductRepository(SqlRepository[Product], ProductRepository):
    """Products in SQL with filtered, sorted pages."""

    model = ProductModel

    SORTABLE_FIELDS = ("created_at", "updated_at", "name", "price", "stock")

    async def create(self, product: Product) -> Product:
        return await self._insert(_row_values(product))

    async def find_by_id(self, product_id: str) -> Product | None:
        return await self._get(product_id)

    async def find_all(self, filters: dict[str, Any], page: PageRequest) -> Page[Product]:
        conditions = [
            getattr(ProductModel, name) == _column_value(value)
            for name, value in filters.items()
        ]
        return await self._page(conditions, page)

    async def find_by_store_id(self, store_id: str, page: PageRequest) -> Page[Product]:
        return await self._page([ProductModel.store_id == store_id], page)

    async def count(self) -> int:
        async with self.session_factory() as session:
            return (await session.execute(select(func.count()).select_from(ProductModel))).scalar_one()

    async def update_by_id(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None:
        return await self._update(product_id, changes)

    async def delete_by_id(self, product_id: str) -> Product | None:
        return await self._delete(product_id)

    async def _page(self, conditions: list[Any], page: PageRequest) -> Page[Product]:
        sort_name = page.sort_by if page.sort_by in self.SORTABLE_FIELDS else "created_at"
        sort_column = getattr(ProductModel, sort_name)
        order = sort_column.asc() if page.sort_order == SortOrder.ASC else sort_column.desc()

        async with self.session_factory() as session:
            count_query = select(func.count()).select_from(ProductModel)
            query = select(ProductModel)
            if conditions:
                count_query = count_query.where(and_(*conditions))
                query = query.where(and_(*conditions))
            total = (await session.execute(count_query)).scalar_one()
            rows = (
                await session.execute(query.order_by(order).offset(page.offset).limit(page.limit))
            ).scalars().all()

        return Page(
            items=[row.to_entity() for row in rows],
            total_items=total,
            current_page=page.page,
            limit=page.limit,
        )


# ============================================================================
# Reviews
# ============================================================================


class SqlReviewRepository(SqlRepository[Review], ReviewRepository):
    """Reviews in SQL."""

    model = ReviewModel

    async def create(self, review: Review) -> Review:
        return await self._insert(_row_values(review))

    async def find_by_id(self, review_id: str) -> Review | None:
        return await self._get(review_id)

    async def find_by_user_id_and_id(self, user_id: str, review_id: str) -> Review | None:
        return await self._first(ReviewModel.id == review_id, ReviewModel.user_id == user_id)

    async def find_all(self, filters: dict[str, Any]) -> list[Review]:
        conditions = [getattr(ReviewModel, name) == value for name, value in filters.items()]
        return await self._list(*conditions)

    async def update_by_id(self, review_id: str, changes: dict[str, Any]) -> Review | None:
        return await self._update(review_id, changes)

    async def delete_by_id(self, review_id: str) -> Review | None:
        return await self._delete(review_id)


# ============================================================================
# Chat
# ============================================================================


class SqlConversationRepository(SqlRepository[Conversation], ConversationRepository):
    """Conversations in SQL."""

    model = ConversationModel

    async def create(self, conversation: Conversation) -> Conversation:
        first, second = conversation.participants
        return await self._insert(
            {
                "id": conversation.id,
                "participant_one": first,
                "participant_two": second,
                "participants_key": participants_key(first, second),
                "last_message": conversation.last_message,
                "last_message_at": conversation.last_message_at,
                "unread_count": dict(conversation.unread_count),
                "meta": dict(conversation.metadata),
                "created_at": conversation.created_at,
                "updated_at": conversation.updated_at,
            }
        )

    async def find_by_id(self, conversation_id: str) -> Conversation | None:
        return await self._get(conversation_id)

    async def find_by_participants(
        self, user_id: str, other_user_id: str
    ) -> Conversation | None:
        return await self._first(
            ConversationModel.participants_key == participants_key(user_id, other_user_id)
        )

    async def find_by_user_id(
        self, user_id: str, limit: int = 20, offset: int = 0
    ) -> tuple[list[Conversation], int]:
        condition = or_(
            ConversationModel.participant_one == user_id,
            ConversationModel.participant_two == user_id,
        )
        async with self.session_factory() as session:
            total = (
                await session.execute(
                    select(func.count()).select_from(ConversationModel).where(condition)
                )
            ).scalar_one()
            rows = (
                await session.execute(
                    select(ConversationModel)
                    .where(condition)
                    .order_by(ConversationModel.updated_at.desc())
                    .offset(offset)
                    .limit(limit)
                )
            ).scalars().all()
        return [row.to_entity() for row in rows], total

    async def update_last_message(
        self, conversation_id: str, message_id: str
    ) -> Conversation | None:
        return await self._update(
            conversation_id, {"last_message": message_id, "last_message_at": utcnow()}
        )

    async def increment_unread_count(self, conversation_id: str, user_id: str) -> None:
        await self._adjust_unread(conversation_id, user_id, reset=False)

    async def reset_unread_count(self, conversation_id: str, user_id: str) -> None:
        await self._adjust_unread(conversation_id, user_id, reset=True)

    async def _adjust_unread(self, conversation_id: str, user_id: str, reset: bool) -> None:
        async with self.session_factory() as session:
            row = await session.get(ConversationModel, conversation_id, with_for_update=True)
            if row is None:
                return
            counts = dict(row.unread_count or {})
            counts[user_id] = 0 if reset else counts.get(user_id, 0) + 1
            row.unread_count = counts
            await session.commit()


class SqlMessageRepository(SqlRepository[Message], MessageRepository):
    """Chat messages in SQL."""

    model = MessageModel

    async def create(self, message: Message) -> Message:
        values = _row_values(message)
        values["meta"] = values.pop("metadata")
        return await self._insert(values)

    async def find_by_conversation_id(
        self, conversation_id: str, limit: int = 50, offset: int = 0
    ) -> tuple[list[Message], int]:
        condition = MessageModel.conversation_id == conversation_id
        async with self.session_factory() as session:
            total = (
                await session.execute(
                    select(func.count()).select_from(MessageModel).where(condition)
                )
            ).scalar_one()
            rows = (
                await session.execute(
                    select(MessageModel)
                    .where(condition)
                    .order_by(MessageModel.created_at.asc())
                    .offset(offset)
                    .limit(limit)
                )
            ).scalars().all()
        return [row.to_entity() for row in rows], total

    async def mark_as_read(self, conversation_id: str, reader_id: str) -> int:
        async with self.session_factory() as session:
            rows = (
                await session.execute(
                    select(MessageModel).where(
                        and_(
                            MessageModel.conversation_id == conversation_id,
                            MessageModel.receiver_id == reader_id,
                            MessageModel.status != MessageStatus.READ.value,
                        )
                    )
                )
            ).scalars().all()
            for row in rows:
                row.status = MessageStatus.READ.value
            await session.commit()
            return len(rows)
