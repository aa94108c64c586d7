"""API schemas for the marketplace API.

Pydantic models for request/response validation and serialization. Field
names are snake_case in Python and camelCase on the wire.

Request bodies leave business rules (required fields, allowed values) to
the application DTOs so that those failures keep their domain messages;
pydantic only checks types here.
"""

from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model using camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_input(self) -> dict[str, Any]:
        """Dump the fields the client actually sent, keyed by wire name."""
        return self.model_dump(by_alias=True, exclude_unset=True)


# ============================================================================
# Common Schemas
# ============================================================================


class ErrorResponse(BaseModel):
    """Standard error response.

    All API errors follow this format for consistency.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | list[Any] = Field(
        default_factory=dict, description="Additional error details"
    )
    request_id: str | None = Field(default=None, description="Request ID for correlation")
    stack: str | None = Field(default=None, description="Traceback, debug mode only")


class MessageResponse(BaseModel):
    """Plain acknowledgement."""

    message: str


class DataResponse(BaseModel, Generic[T]):
    """Envelope used by the chat endpoints."""

    success: bool = True
    data: T


class PaginatedResponse(CamelModel, Generic[T]):
    """A page of items with pagination metadata."""

    data: list[T]
    total_items: int
    total_pages: int
    current_page: int
    has_next_page: bool
    has_prev_page: bool


# ============================================================================
# Auth Schemas
# ============================================================================


class RegisterRequest(CamelModel):
    """Account registration."""

    email: str = Field(..., min_length=3, description="Account email")
    password: str = Field(..., min_length=6, description="Account password")
    role: str | None = Field(default=None, description="buyer, seller or admin")


class LoginRequest(CamelModel):
    """Email and password sign-in."""

    email: str
    password: str


class TokenSchema(CamelModel):
    """Session tokens issued by the identity provider."""

    access_token: str | None = None
    refresh_token: str | None = None
    expires_in: int | None = None


class LoginResponse(CamelModel):
    """Successful sign-in."""

    message: str = "Login successful"
    token: TokenSchema


# ============================================================================
# User Schemas
# ============================================================================


class UserCreateRequest(CamelModel):
    """User profile creation."""

    id: str | None = None
    name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    address: str | None = None
    profile_pic_url: str | None = None
    is_approved_seller: bool | None = None
    email: str | None = None
    role: str | None = None


class UserUpdateRequest(CamelModel):
    """User profile update."""

    name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    address: str | None = None
    profile_pic_url: str | None = None
    is_approved_seller: bool | None = None


class UserResponse(CamelModel):
    """User profile."""

    id: str
    name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    address: str | None = None
    profile_pic_url: str | None = None
    is_approved_seller: bool = False
    email: str | None = None
    role: str
    created_at: datetime
    updated_at: datetime


class RegisterResponse(CamelModel):
    """Successful registration."""

    message: str = "User registered successfully"
    user: UserResponse


# ============================================================================
# Seller Request Schemas
# ============================================================================


class SellerRequestCreateRequest(CamelModel):
    """Petition to become a seller."""

    message: str | None = Field(default=None, max_length=500)


class SellerRequestStatusRequest(CamelModel):
    """Admin decision on a seller request."""

    status: str | None = Field(default=None, description="approved or rejected")
    admin_comment: str | None = Field(default=None, max_length=500)


class SellerRequestResponse(CamelModel):
    """Seller request."""

    id: str
    user_id: str
    status: str
    message: str
    admin_comment: str
    created_at: datetime
    updated_at: datetime


class SellerRequestMissingResponse(CamelModel):
    """Returned when the caller never submitted a seller request."""

    status: str = "not_found"
    message: str = "No seller request found for this user"


class SellerRequestDeletedResponse(CamelModel):
    """Acknowledgement of a deleted seller request."""

    message: str = "Seller request deleted successfully"
    data: SellerRequestResponse


# ============================================================================
# Store Schemas
# ============================================================================


class StoreCreateRequest(CamelModel):
    """Store creation. The owner is the caller."""

    store_name: str | None = None
    description: str | None = None
    logo: str | None = None


class StoreUpdateRequest(CamelModel):
    """Store update."""

    store_name: str | None = None
    description: str | None = None
    logo: str | None = None


class StoreStatusRequest(CamelModel):
    """Store moderation."""

    status: str | None = None
    reason: str | None = None


class StoreResponse(CamelModel):
    """Store."""

    id: str
    user_id: str
    store_name: str
    description: str | None = None
    logo: str | None = None
    status: str
    reason: str | None = None
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Category Schemas
# ============================================================================


class CategoryCreateRequest(CamelModel):
    """Category creation."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None
    parent: str | None = None


class CategoryUpdateRequest(CamelModel):
    """Category update."""

    name: str | None = None
    slug: str | None = None
    description: str | None = None
    is_active: bool | None = None


class CategoryResponse(CamelModel):
    """Category with the name of its parent."""

    id: str
    name: str
    slug: str
    description: str | None = None
    parent: str | None = None
    parent_name: str | None = None
    level: int
    is_active: bool
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Product Schemas
# ============================================================================


class ProductCreateRequest(CamelModel):
    """Product creation in one of the caller's stores."""

    name: str | None = None
    description: str | None = None
    price: float | None = None
    stock: int | None = None
    category_id: str | None = None
    sub_category_id: str | None = None
    store_id: str | None = None
    main_image_url: str | None = None
    image_urls: list[str] | None = None


class ProductUpdateRequest(CamelModel):
    """Product update."""

    name: str | None = None
    description: str | None = None
    price: float | None = None
    stock: int | None = None
    category_id: str | None = None
    sub_category_id: str | None = None
    main_image_url: str | None = None
    image_urls: list[str] | None = None
    status: str | None = None


class ProductResponse(CamelModel):
    """Product."""

    id: str
    name: str
    description: str
    price: float
    stock: int
    category_id: str
    category_name: str
    sub_category_id: str | None = None
    sub_category_name: str | None = None
    seller_id: str
    store_id: str
    main_image_url: str
    image_urls: list[str] = Field(default_factory=list)
    status: str
    created_at: datetime
    updated_at: datetime


# ============================================================================
# Review Schemas
# ============================================================================


class ReviewCreateRequest(CamelModel):
    """Review creation. The author defaults to the caller."""

    user_id: str | None = None
    commentary: str | None = None
    score: int | None = None


class ReviewUpdateRequest(CamelModel):
    """Review update."""

    commentary: str | None = None
    score: int | None = None


class ReviewResponse(CamelModel):
    """Review."""

    id: str
    user_id: str
    commentary: str
    score: int
    created_at: datetime
    updated_at: datetime


class ReviewEnvelope(CamelModel):
    """Single review with an acknowledgement."""

    message: str
    review: ReviewResponse


class ReviewListResponse(CamelModel):
    """Reviews with their count."""

    message: str = "Reviews retrieved successfully"
    reviews: list[ReviewResponse]
    count: int


# ============================================================================
# Chat Schemas
# ============================================================================


class SendMessageRequest(CamelModel):
    """New chat message."""

    receiver_id: str | None = None
    content: str | None = None
    type: str | None = None
    metadata: dict[str, Any] | None = None


class ParticipantSchema(CamelModel):
    """Basic public info about a chat participant."""

    id: str
    name: str | None = None
    last_name: str | None = None
    profile_pic_url: str | None = None
    email: str | None = None
    is_approved_seller: bool | None = None


class MessageSchema(CamelModel):
    """Chat message with sender and receiver info."""

    id: str
    conversation_id: str
    sender: ParticipantSchema
    receiver: ParticipantSchema
    content: str
    type: str
    status: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class ConversationSchema(CamelModel):
    """Conversation seen by the caller."""

    id: str
    participants: list[ParticipantSchema]
    last_message: str | None = None
    last_message_at: datetime | None = None
    unread_count: int = 0
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class MessagePageSchema(CamelModel):
    """A window of conversation messages."""

    messages: list[MessageSchema]
    total: int
    has_more: bool


class ConversationPageSchema(CamelModel):
    """A window of the caller's conversations."""

    conversations: list[ConversationSchema]
    total: int
    has_more: bool


class ReadReceiptSchema(CamelModel):
    """Outcome of marking a conversation as read."""

    success: bool = True
    updated_count: int


# ============================================================================
# Admin and Coupon Schemas
# ============================================================================


class AdminStatsResponse(CamelModel):
    """Platform counters."""

    total_users: int
    sellers: int
    buyers: int
    active_users: int
    pending_users: int
    total_products: int
    timestamp: datetime


class CouponResponse(CamelModel):
    """Generated coupon."""

    code: str
    discount_percent: int
    expires_at: datetime
    message: str
