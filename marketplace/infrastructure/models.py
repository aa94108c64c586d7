"""SQLAlchemy models for database tables.

Provides ORM models for users, seller requests, stores, categories,
products, reviews and chat, each convertible to its domain entity.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB

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
from marketplace.domain.state_machines import SellerRequestStatus
from marketplace.domain.value_objects import (
    MessageStatus,
    MessageType,
    ProductStatus,
    StoreStatus,
    UserRole,
)
from marketplace.infrastructure.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _aware(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps read back from SQLite."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimestampMixin:
    """created_at / updated_at columns."""

    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now, onupdate=_now)

    def _timestamps(self) -> dict[str, Any]:
        return {
            "created_at": _aware(self.created_at),
            "updated_at": _aware(self.updated_at),
        }


# ============================================================================
# User Models
# ============================================================================


class UserModel(TimestampMixin, Base):
    """Business profile of a user, keyed by the identity-provider subject."""

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    profile_pic_url = Column(String(1000), nullable=True)
    is_approved_seller = Column(Boolean, nullable=False, default=False)
    email = Column(String(255), nullable=True, index=True)
    role = Column(String(20), nullable=False, default="buyer", index=True)
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)

    def to_entity(self) -> User:
        return User(
            id=self.id,
            name=self.name,
            last_name=self.last_name,
            phone_number=self.phone_number,
            address=self.address,
            profile_pic_url=self.profile_pic_url,
            is_approved_seller=self.is_approved_seller,
            email=self.email,
            role=UserRole(self.role),
            email_confirmed_at=_aware(self.email_confirmed_at),
            **self._timestamps(),
        )


class SellerRequestModel(TimestampMixin, Base):
    """Seller request model.

    At most one pending request per user is enforced by a partial unique
    index.
    """

    __tablename__ = "seller_requests"
    __table_args__ = (
        Index(
            "uq_seller_requests_user_pending",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    message = Column(String(500), nullable=False, default="")
    admin_comment = Column(String(500), nullable=False, default="")

    def to_entity(self) -> SellerRequest:
        return SellerRequest(
            id=self.id,
            user_id=self.user_id,
            status=SellerRequestStatus(self.status),
            message=self.message or "",
            admin_comment=self.admin_comment or "",
            **self._timestamps(),
        )


# ============================================================================
# Catalog Models
# ============================================================================


class StoreModel(TimestampMixin, Base):
    """Store model."""

    __tablename__ = "stores"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    store_name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    logo = Column(String(1000), nullable=True)
    status = Column(String(20), nullable=False, default="Pending", index=True)
    reason = Column(Text, nullable=True)

    def to_entity(self) -> Store:
        return Store(
            id=self.id,
            user_id=self.user_id,
            store_name=self.store_name,
            description=self.description,
            logo=self.logo,
            status=StoreStatus(self.status),
            reason=self.reason,
            **self._timestamps(),
        )


class CategoryModel(TimestampMixin, Base):
    """Category model. Subcategories reference their parent."""

    __tablename__ = "categories"

    id = Column(String(36), primary_key=True)
    name = Column(String(255), nullable=False)
    slug = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True, default="")
    parent = Column(String(36), ForeignKey("categories.id"), nullable=True, index=True)
    level = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    def to_entity(self) -> Category:
        return Category(
            id=self.id,
            name=self.name,
            slug=self.slug,
            description=self.description,
            parent=self.parent,
            level=self.level,
            is_active=self.is_active,
            **self._timestamps(),
        )


class ProductModel(TimestampMixin, Base):
    """Product model with denormalized category names."""

    __tablename__ = "products"

    id = Column(String(36), primary_key=True)
    name = Column(String(500), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Float, nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    category_id = Column(String(36), nullable=False, index=True)
    category_name = Column(String(255), nullable=False)
    sub_category_id = Column(String(36), nullable=True, index=True)
    sub_category_name = Column(String(255), nullable=True)
    seller_id = Column(String(64), nullable=False, index=True)
    store_id = Column(String(36), ForeignKey("stores.id", ondelete="CASCADE"), nullable=False, index=True)
    main_image_url = Column(String(1000), nullable=False)
    image_urls = Column(JSONType, nullable=False, default=list)
    status = Column(String(20), nullable=False, default="Active", index=True)

    def to_entity(self) -> Product:
        return Product(
            id=self.id,
            name=self.name,
            description=self.description or "",
            price=self.price,
            stock=self.stock,
            category_id=self.category_id,
            category_name=self.category_name,
            sub_category_id=self.sub_category_id,
            sub_category_name=self.sub_category_name,
            seller_id=self.seller_id,
            store_id=self.store_id,
            main_image_url=self.main_image_url,
            image_urls=tuple(self.image_urls or ()),
            status=ProductStatus(self.status),
            **self._timestamps(),
        )


class ReviewModel(TimestampMixin, Base):
    """Review model."""

    __tablename__ = "reviews"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    commentary = Column(String(1000), nullable=False)
    score = Column(Integer, nullable=False, index=True)

    def to_entity(self) -> Review:
        return Review(
            id=self.id,
            user_id=self.user_id,
            commentary=self.commentary,
            score=self.score,
            **self._timestamps(),
        )


# ============================================================================
# Chat Models
# ============================================================================


def participants_key(user_id: str, other_id: str) -> str:
    """Order-independent key of a two-party conversation."""
    return ":".join(sorted((user_id, other_id)))


class ConversationModel(TimestampMixin, Base):
    """Conversation model.

    The participant pair is unique regardless of order.
    """

    __tablename__ = "conversations"

    id = Column(String(36), primary_key=True)
    participant_one = Column(String(64), nullable=False, index=True)
    participant_two = Column(String(64), nullable=False, index=True)
    participants_key = Column(String(140), nullable=False, unique=True)
    last_message = Column(String(36), nullable=True)
    last_message_at = Column(DateTime(timezone=True), nullable=True, index=True)
    unread_count = Column(JSONType, nullable=False, default=dict)
    meta = Column("metadata", JSONType, nullable=False, default=dict)

    def to_entity(self) -> Conversation:
        return Conversation(
            id=self.id,
            participants=(self.participant_one, self.participant_two),
            last_message=self.last_message,
            last_message_at=_aware(self.last_message_at),
            unread_count=dict(self.unread_count or {}),
            metadata=dict(self.meta or {}),
            **self._timestamps(),
        )


class MessageModel(TimestampMixin, Base):
    """Chat message model."""

    __tablename__ = "messages"
    __table_args__ = (Index("ix_messages_conversation_created", "conversation_id", "created_at"),)

    id = Column(String(36), primary_key=True)
    conversation_id = Column(
        String(36),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sender_id = Column(String(64), nullable=False)
    receiver_id = Column(String(64), nullable=False, index=True)
    content = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default="text")
    status = Column(String(20), nullable=False, default="sent")
    meta = Column("metadata", JSONType, nullable=False, default=dict)

    def to_entity(self) -> Message:
        return Message(
            id=self.id,
            conversation_id=self.conversation_id,
            sender_id=self.sender_id,
            receiver_id=self.receiver_id,
            content=self.content,
            type=MessageType(self.type),
            status=MessageStatus(self.status),
            metadata=dict(self.meta or {}),
            **self._timestamps(),
        )
