"""Domain entities.

Immutable marketplace records. Each entity has a ``create`` factory that
validates raw input and applies defaults; updates go through
``with_changes`` or an entity-specific method returning a new value.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Self

from marketplace.domain.base import Entity
from marketplace.domain.exceptions import BadRequestError
from marketplace.domain.state_machines import SellerRequestStatus
from marketplace.domain.value_objects import (
    IdentityRole,
    MessageStatus,
    MessageType,
    ProductStatus,
    StoreStatus,
    UserRole,
    new_id,
)

DEFAULT_PROFILE_PIC_URL = "https://api.dicebear.com/9.x/lorelei/svg"

SELLER_REQUEST_TEXT_MAX_LENGTH = 500
REVIEW_COMMENTARY_MAX_LENGTH = 1000
MAX_PRODUCT_IMAGES = 5
MESSAGE_CONTENT_MAX_LENGTH = 5000


def _require_text(value: Any, message: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequestError(message)
    return value


# ============================================================================
# Seller Request
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class SellerRequest(Entity):
    """A user's petition to become a marketplace seller."""

    user_id: str
    status: SellerRequestStatus = SellerRequestStatus.PENDING
    message: str = ""
    admin_comment: str = ""

    @classmethod
    def create(cls, user_id: str, message: str | None = None, id: str | None = None) -> Self:
        """Create a new pending seller request.

        Args:
            user_id: ID of the requesting user.
            message: Optional rationale from the user.
            id: Optional identifier, generated when omitted.

        Returns:
            New SellerRequest.

        Raises:
            BadRequestError: If user_id is empty or message is too long.
        """
        _require_text(user_id, "Seller request must have a valid userId.")
        message = (message or "").strip()
        if len(message) > SELLER_REQUEST_TEXT_MAX_LENGTH:
            raise BadRequestError(
                f"Message must be at most {SELLER_REQUEST_TEXT_MAX_LENGTH} characters."
            )
        return cls(id=id or new_id(), user_id=user_id, message=message)

    @property
    def is_pending(self) -> bool:
        """Whether the request still awaits review."""
        return self.status == SellerRequestStatus.PENDING


# ============================================================================
# User
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class User(Entity):
    """Business profile of a marketplace user.

    The id is shared with the identity-provider subject.
    """

    name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    address: str | None = None
    profile_pic_url: str | None = DEFAULT_PROFILE_PIC_URL
    is_approved_seller: bool = False
    email: str | None = None
    role: UserRole = UserRole.BUYER
    email_confirmed_at: datetime | None = None

    @classmethod
    def create(
        cls,
        id: str,
        role: UserRole | str = UserRole.BUYER,
        profile_pic_url: str | None = DEFAULT_PROFILE_PIC_URL,
        **fields: Any,
    ) -> Self:
        """Create a user profile.

        Args:
            id: Identity-provider subject.
            role: Profile role.
            profile_pic_url: Avatar URL, a generated avatar by default.
            **fields: Remaining profile fields.

        Returns:
            New User.

        Raises:
            BadRequestError: If the id is empty or the role is unknown.
        """
        if not isinstance(id, str) or not id.strip():
            raise BadRequestError("User ID must be a non-empty string")
        try:
            role = UserRole(role)
        except ValueError:
            raise BadRequestError("Role must be one of: buyer, seller, admin") from None
        if profile_pic_url is None:
            profile_pic_url = DEFAULT_PROFILE_PIC_URL
        return cls(id=id, role=role, profile_pic_url=profile_pic_url, **fields)


# ============================================================================
# Store
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Store(Entity):
    """A seller's storefront."""

    user_id: str
    store_name: str
    description: str | None = ""
    logo: str | None = None
    status: StoreStatus = StoreStatus.PENDING
    reason: str | None = None

    @classmethod
    def create(
        cls,
        user_id: str,
        store_name: str,
        description: str | None = "",
        logo: str | None = None,
        id: str | None = None,
    ) -> Self:
        """Create a new store pending moderation.

        Raises:
            BadRequestError: If owner or name is missing.
        """
        if not user_id or not store_name:
            raise BadRequestError("userId and storeName are required to create a store.")
        return cls(
            id=id or new_id(),
            user_id=user_id,
            store_name=store_name,
            description=description,
            logo=logo,
        )


# ============================================================================
# Category
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Category(Entity):
    """Product category. Level 0 is a main category, level 1 a subcategory."""

    name: str
    slug: str
    description: str | None = ""
    parent: str | None = None
    level: int = 0
    is_active: bool = True

    @classmethod
    def create(
        cls,
        name: str,
        slug: str,
        description: str | None = "",
        parent: str | None = None,
        is_active: bool = True,
        id: str | None = None,
    ) -> Self:
        """Create a category.

        Raises:
            BadRequestError: If name or slug is missing.
        """
        if not name or not slug or not slug.strip():
            raise BadRequestError("Name and slug are required")
        return cls(
            id=id or new_id(),
            name=name.strip(),
            slug=slug.strip().lower(),
            description=description,
            parent=parent or None,
            level=1 if parent else 0,
            is_active=is_active,
        )

    @property
    def is_main(self) -> bool:
        """Whether this is a top-level category."""
        return self.level == 0


# ============================================================================
# Product
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Product(Entity):
    """A product listed in a store."""

    name: str
    description: str
    price: float
    stock: int
    category_id: str
    category_name: str
    seller_id: str
    store_id: str
    main_image_url: str
    sub_category_id: str | None = None
    sub_category_name: str | None = None
    image_urls: tuple[str, ...] = ()
    status: ProductStatus = ProductStatus.ACTIVE

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        price: float,
        stock: int,
        category_id: str,
        category_name: str,
        seller_id: str,
        store_id: str,
        main_image_url: str,
        sub_category_id: str | None = None,
        sub_category_name: str | None = None,
        image_urls: list[str] | tuple[str, ...] = (),
        id: str | None = None,
    ) -> Self:
        """Create a product.

        Raises:
            BadRequestError: If a required field is missing or a number
                is negative.
        """
        if (
            not name
            or price is None
            or stock is None
            or not category_id
            or not category_name
            or not seller_id
            or not store_id
            or not main_image_url
        ):
            raise BadRequestError(
                "Missing required fields for creating a product. All fields including "
                "categoryId, categoryName, and storeId are required."
            )
        if price < 0 or stock < 0:
            raise BadRequestError("Price and stock must be non-negative.")
        return cls(
            id=id or new_id(),
            name=name.strip(),
            description=description,
            price=price,
            stock=stock,
            category_id=category_id,
            category_name=category_name,
            sub_category_id=sub_category_id or None,
            sub_category_name=sub_category_name or None,
            seller_id=seller_id,
            store_id=store_id,
            main_image_url=main_image_url,
            image_urls=tuple(image_urls)[:MAX_PRODUCT_IMAGES],
        )


# ============================================================================
# Review
# ============================================================================


def _validate_score(score: Any, message: str) -> int:
    if isinstance(score, bool) or not isinstance(score, (int, float)) or not 1 <= score <= 5:
        raise BadRequestError(message)
    return score


@dataclass(frozen=True, kw_only=True)
class Review(Entity):
    """A user's review with a 1 to 5 score."""

    user_id: str
    commentary: str
    score: int

    @classmethod
    def create(cls, user_id: str, commentary: str, score: int, id: str | None = None) -> Self:
        """Create a review.

        Raises:
            BadRequestError: If any field is invalid.
        """
        _require_text(user_id, "Review must have a valid userId.")
        _require_text(commentary, "Review must have a commentary.")
        _validate_score(score, "Review score must be a number between 1 and 5.")
        commentary = commentary.strip()
        if len(commentary) > REVIEW_COMMENTARY_MAX_LENGTH:
            raise BadRequestError(
                f"Commentary must be at most {REVIEW_COMMENTARY_MAX_LENGTH} characters."
            )
        return cls(id=id or new_id(), user_id=user_id, commentary=commentary, score=score)

    def update(self, commentary: str | None = None, score: int | None = None) -> Self:
        """Return an updated copy of this review.

        Args:
            commentary: New commentary, unchanged when None.
            score: New score, unchanged when None.

        Returns:
            New Review.

        Raises:
            BadRequestError: If a provided value is invalid.
        """
        changes: dict[str, Any] = {}
        if commentary is not None:
            changes["commentary"] = _require_text(
                commentary, "Commentary must be a non-empty string."
            ).strip()
        if score is not None:
            changes["score"] = _validate_score(score, "Score must be a number between 1 and 5.")
        if not changes:
            return self
        return self.with_changes(**changes)


# ============================================================================
# Chat
# ============================================================================


@dataclass(frozen=True, kw_only=True)
class Conversation(Entity):
    """A two-party conversation."""

    participants: tuple[str, ...]
    last_message: str | None = None
    last_message_at: datetime | None = None
    unread_count: dict[str, int] = field(default_factory=dict, hash=False)
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(cls, participants: list[str] | tuple[str, ...], id: str | None = None) -> Self:
        """Create a conversation between distinct participants.

        Raises:
            BadRequestError: If fewer than two distinct participants are given.
        """
        if len(set(participants)) < 2:
            raise BadRequestError("A conversation needs two distinct participants.")
        return cls(id=id or new_id(), participants=tuple(participants))

    def other_participant(self, user_id: str) -> str | None:
        """Get the participant that is not ``user_id``."""
        return next((p for p in self.participants if p != user_id), None)

    def unread_for(self, user_id: str) -> int:
        """Unread message count for a participant."""
        return self.unread_count.get(user_id, 0)


def validate_message(content: Any, type: MessageType | str | None) -> MessageType:
    """Check message content and type before anything is stored.

    Returns:
        The parsed message type, text when none is given.

    Raises:
        BadRequestError: If content is blank or too long, or the type is unknown.
    """
    _require_text(content, "Message content is required.")
    if len(content) > MESSAGE_CONTENT_MAX_LENGTH:
        raise BadRequestError(
            f"Message content cannot exceed {MESSAGE_CONTENT_MAX_LENGTH} characters."
        )
    try:
        return MessageType(type or MessageType.TEXT)
    except ValueError:
        raise BadRequestError("Message type must be one of: text, image, file") from None


@dataclass(frozen=True, kw_only=True)
class Message(Entity):
    """A chat message."""

    conversation_id: str
    sender_id: str
    receiver_id: str
    content: str
    type: MessageType = MessageType.TEXT
    status: MessageStatus = MessageStatus.SENT
    metadata: dict[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def create(
        cls,
        conversation_id: str,
        sender_id: str,
        receiver_id: str,
        content: str,
        type: MessageType | str = MessageType.TEXT,
        metadata: dict[str, Any] | None = None,
        id: str | None = None,
    ) -> Self:
        """Create a message.

        Raises:
            BadRequestError: If content is empty or the type is unknown.
        """
        type = validate_message(content, type)
        return cls(
            id=id or new_id(),
            conversation_id=conversation_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            type=type,
            metadata=metadata or {},
        )


# ============================================================================
# Identity
# ============================================================================


@dataclass(frozen=True)
class AuthenticatedUser:
    """Principal resolved from a bearer token by the identity provider.

    Attributes:
        id: Identity-provider subject.
        email: Account email.
        role: Identity role claim, app metadata taking precedence over
            user metadata.
        email_confirmed_at: When the email was confirmed, if ever.
    """

    id: str
    email: str | None = None
    role: IdentityRole | None = None
    email_confirmed_at: datetime | None = None

    def has_role(self, *roles: IdentityRole) -> bool:
        """Check the role claim against allowed roles."""
        return self.role is not None and self.role in roles

    @property
    def is_admin(self) -> bool:
        """Whether the caller holds the Admin claim."""
        return self.role == IdentityRole.ADMIN


@dataclass(frozen=True)
class AuthSession:
    """Session returned by the identity provider on sign-in or sign-up."""

    user_id: str
    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None
    email: str | None = None
