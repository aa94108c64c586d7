"""Domain layer - Entities, value objects, state machines, repository contracts.

This module exports the core marketplace building blocks:

- **Entities**: Immutable records built by validating factories
  (SellerRequest, User, Store, Category, Product, Review, Conversation, Message)
- **Value Objects**: Roles, statuses and pagination values
- **State Machines**: SellerRequestStatus transitions
- **Repositories**: Abstract persistence and collaborator contracts
- **Exceptions**: The closed set of domain error variants

Example usage:
    from marketplace.domain import SellerRequest, SellerRequestStatus

    request = SellerRequest.create(user_id="user-1", message="I sell lamps")
    assert request.status == SellerRequestStatus.PENDING
"""

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
from marketplace.domain.exceptions import (
    BadRequestError,
    CompensationFailedError,
    ConflictError,
    DomainError,
    ForbiddenError,
    InternalError,
    InvalidStateTransitionError,
    NotFoundError,
    UnauthorizedError,
)
from marketplace.domain.state_machines import (
    SellerRequestStatus,
    validate_seller_request_transition,
)
from marketplace.domain.value_objects import (
    IdentityRole,
    MessageStatus,
    MessageType,
    Page,
    PageRequest,
    ProductStatus,
    SortOrder,
    StoreStatus,
    UserRole,
)

__all__ = [
    # Entities
    "AuthenticatedUser",
    "AuthSession",
    "Category",
    "Conversation",
    "Message",
    "Product",
    "Review",
    "SellerRequest",
    "Store",
    "User",
    # Exceptions
    "BadRequestError",
    "CompensationFailedError",
    "ConflictError",
    "DomainError",
    "ForbiddenError",
    "InternalError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "UnauthorizedError",
    # State machines
    "SellerRequestStatus",
    "validate_seller_request_transition",
    # Value objects
    "IdentityRole",
    "MessageStatus",
    "MessageType",
    "Page",
    "PageRequest",
    "ProductStatus",
    "SortOrder",
    "StoreStatus",
    "UserRole",
]
