"""Value objects for the domain layer.

Enumerations, identifier helpers and pagination values shared by the
marketplace aggregates.
"""

from dataclasses import dataclass, field
from enum import Enum
from math import ceil
from typing import Generic, TypeVar
from uuid import uuid4

T = TypeVar("T")


def new_id() -> str:
    """Generate an opaque identifier for a new record.

    Returns:
        Random UUID4 as string.
    """
    return str(uuid4())


# ============================================================================
# Roles
# ============================================================================


class UserRole(str, Enum):
    """Role stored on the user profile record.

    The identity provider keeps its own capitalized copy of the role,
    see IdentityRole.
    """

    BUYER = "buyer"
    SELLER = "seller"
    ADMIN = "admin"

    def to_identity_role(self) -> "IdentityRole":
        """Get the identity-provider spelling of this role.

        Returns:
            Matching IdentityRole.
        """
        return IdentityRole(self.value.capitalize())


class IdentityRole(str, Enum):
    """Role claim stored in identity-provider metadata."""

    BUYER = "Buyer"
    SELLER = "Seller"
    ADMIN = "Admin"

    @classmethod
    def parse(cls, value: object) -> "IdentityRole | None":
        """Read a role claim, None when absent or unknown."""
        try:
            return cls(value)
        except ValueError:
            return None


# ============================================================================
# Statuses
# ============================================================================


class StoreStatus(str, Enum):
    """Store moderation status."""

    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    SUSPENDED = "Suspended"


class ProductStatus(str, Enum):
    """Product listing status."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"
    OUT_OF_STOCK = "OutOfStock"
    DELETED = "Deleted"


class MessageType(str, Enum):
    """Chat message content type."""

    TEXT = "text"
    IMAGE = "image"
    FILE = "file"


class MessageStatus(str, Enum):
    """Chat message delivery status."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"


# ============================================================================
# Pagination
# ============================================================================


class SortOrder(str, Enum):
    """Sort direction."""

    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class PageRequest:
    """Pagination and sort parameters.

    Attributes:
        page: Page number (1-indexed).
        limit: Items per page.
        sort_by: Sort field (snake_case attribute name).
        sort_order: Sort direction.
    """

    page: int = 1
    limit: int = 10
    sort_by: str = "created_at"
    sort_order: SortOrder = SortOrder.DESC

    @property
    def offset(self) -> int:
        """Number of items to skip."""
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class Page(Generic[T]):
    """A page of results with totals."""

    items: list[T] = field(default_factory=list)
    total_items: int = 0
    current_page: int = 1
    limit: int = 10

    @property
    def total_pages(self) -> int:
        """Total number of pages."""
        if self.limit <= 0:
            return 0
        return ceil(self.total_items / self.limit)

    @property
    def has_next_page(self) -> bool:
        """Whether a page follows this one."""
        return self.current_page < self.total_pages

    @property
    def has_prev_page(self) -> bool:
        """Whether a page precedes this one."""
        return self.current_page > 1
