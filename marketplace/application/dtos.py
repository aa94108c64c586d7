"""Input data transfer objects.

Each DTO is built from a raw camelCase mapping (the request body as the
client sent it, absent keys left out). Defaults apply only when a key is
absent; an explicit null is kept as a value unless noted otherwise.
Response shaping lives with the API converters.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Self

from marketplace.domain.entities import Category, Review, SellerRequest, Store, User
from marketplace.domain.exceptions import BadRequestError
from marketplace.domain.state_machines import SellerRequestStatus
from marketplace.domain.value_objects import StoreStatus, UserRole


def _present(data: Mapping[str, Any], keys: Mapping[str, str]) -> dict[str, Any]:
    """Translate present camelCase keys to snake_case attribute names."""
    return {attr: data[key] for key, attr in keys.items() if key in data}


# ============================================================================
# Seller Requests
# ============================================================================


@dataclass(frozen=True)
class CreateSellerRequestDTO:
    """Seller request creation input."""

    message: str = ""

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        return cls(message=data.get("message") or "")

    def to_entity(self, user_id: str) -> SellerRequest:
        return SellerRequest.create(user_id=user_id, message=self.message)


@dataclass(frozen=True)
class UpdateSellerRequestStatusDTO:
    """Admin decision on a seller request."""

    status: SellerRequestStatus
    admin_comment: str = ""

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If the status is not approved or rejected.
        """
        try:
            status = SellerRequestStatus(data.get("status"))
        except ValueError:
            status = None
        if status not in (SellerRequestStatus.APPROVED, SellerRequestStatus.REJECTED):
            raise BadRequestError("Status must be either 'approved' or 'rejected'")
        return cls(status=status, admin_comment=data.get("adminComment") or "")


# ============================================================================
# Stores
# ============================================================================


@dataclass(frozen=True)
class CreateStoreDTO:
    """Store creation input."""

    user_id: str
    store_name: str
    description: str | None = ""
    logo: str | None = None

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If userId or storeName is missing.
        """
        if not data.get("userId") or not data.get("storeName"):
            raise BadRequestError("userId and storeName are required to create a store.")
        return cls(
            user_id=data["userId"],
            store_name=data["storeName"],
            description=data["description"] if "description" in data else "",
            logo=data.get("logo"),
        )

    def to_entity(self) -> Store:
        return Store.create(
            user_id=self.user_id,
            store_name=self.store_name,
            description=self.description,
            logo=self.logo,
        )


_STORE_UPDATE_FIELDS = {"storeName": "store_name", "description": "description", "logo": "logo"}


@dataclass(frozen=True)
class UpdateStoreDTO:
    """Store update input holding only the fields that were provided."""

    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If no updatable field is present, or storeName
                is null or blank.
        """
        changes = _present(data, _STORE_UPDATE_FIELDS)
        if not changes:
            raise BadRequestError(
                "At least one field (storeName, description, logo) must be provided for an update."
            )
        if "store_name" in changes:
            name = changes["store_name"]
            if not isinstance(name, str) or not name.strip():
                raise BadRequestError("storeName cannot be empty.")
        return cls(changes=changes)


@dataclass(frozen=True)
class UpdateStoreStatusDTO:
    """Admin moderation input. An empty reason is stored as null."""

    status: StoreStatus
    reason: str | None = None

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If the status is not a valid store status.
        """
        try:
            status = StoreStatus(data.get("status"))
        except ValueError:
            valid = ", ".join(s.value for s in StoreStatus)
            raise BadRequestError(f"Invalid status. Must be one of: {valid}") from None
        return cls(status=status, reason=data.get("reason") or None)


# ============================================================================
# Categories
# ============================================================================


@dataclass(frozen=True)
class CreateCategoryDTO:
    """Category creation input. Slug is normalized to lowercase."""

    name: str
    slug: str
    description: str | None = ""
    parent: str | None = None

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If name or slug is missing.
        """
        if not data.get("name") or not data.get("slug"):
            raise BadRequestError("Name and slug are required")
        return cls(
            name=data["name"],
            slug=str(data["slug"]).strip().lower(),
            description=data["description"] if "description" in data else "",
            parent=data.get("parent") or None,
        )

    @property
    def level(self) -> int:
        return 1 if self.parent else 0

    def to_entity(self) -> Category:
        return Category.create(
            name=self.name,
            slug=self.slug,
            description=self.description,
            parent=self.parent,
        )


_CATEGORY_UPDATE_FIELDS = {
    "name": "name",
    "slug": "slug",
    "description": "description",
    "isActive": "is_active",
}


@dataclass(frozen=True)
class UpdateCategoryDTO:
    """Category update input."""

    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If no updatable field is present.
        """
        changes = _present(data, _CATEGORY_UPDATE_FIELDS)
        if not changes:
            raise BadRequestError("At least one field must be provided for update")
        if "slug" in changes:
            changes["slug"] = str(changes["slug"]).strip().lower()
        return cls(changes=changes)


# ============================================================================
# Reviews
# ============================================================================


@dataclass(frozen=True)
class CreateReviewDTO:
    """Review creation input."""

    user_id: str
    commentary: str
    score: int

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            user_id=data.get("userId"),
            commentary=data.get("commentary"),
            score=data.get("score"),
        )

    def to_entity(self) -> Review:
        return Review.create(user_id=self.user_id, commentary=self.commentary, score=self.score)


@dataclass(frozen=True)
class UpdateReviewDTO:
    """Review update input."""

    commentary: str | None = None
    score: int | None = None

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        return cls(commentary=data.get("commentary"), score=data.get("score"))


# ============================================================================
# Users
# ============================================================================


@dataclass(frozen=True)
class CreateUserDTO:
    """User profile creation input."""

    id: str
    name: str | None = None
    last_name: str | None = None
    phone_number: str | None = None
    address: str | None = None
    profile_pic_url: str | None = None
    is_approved_seller: bool = False
    email: str | None = None
    role: UserRole | str = UserRole.BUYER

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If the id is missing.
        """
        user_id = data.get("id")
        if not isinstance(user_id, str) or not user_id.strip():
            raise BadRequestError("User ID (id) is required and must be a non-empty string")
        is_approved_seller = data.get("isApprovedSeller")
        return cls(
            id=user_id,
            name=data.get("name"),
            last_name=data.get("lastName"),
            phone_number=data.get("phoneNumber"),
            address=data.get("address"),
            profile_pic_url=data.get("profilePicUrl"),
            is_approved_seller=False if is_approved_seller is None else is_approved_seller,
            email=data.get("email"),
            role=data.get("role") or UserRole.BUYER,
        )

    def to_entity(self) -> User:
        return User.create(
            id=self.id,
            role=self.role,
            profile_pic_url=self.profile_pic_url,
            name=self.name,
            last_name=self.last_name,
            phone_number=self.phone_number,
            address=self.address,
            is_approved_seller=self.is_approved_seller,
            email=self.email,
        )


USER_UPDATE_FIELDS = {
    "name": "name",
    "lastName": "last_name",
    "phoneNumber": "phone_number",
    "address": "address",
    "profilePicUrl": "profile_pic_url",
    "isApprovedSeller": "is_approved_seller",
}


@dataclass(frozen=True)
class UpdateUserDTO:
    """User profile update input."""

    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If no allowed field is present.
        """
        changes = _present(data, USER_UPDATE_FIELDS)
        if not changes:
            raise BadRequestError(
                "No valid fields provided for update. Allowed: "
                + ", ".join(USER_UPDATE_FIELDS)
            )
        return cls(changes=changes)


# ============================================================================
# Products
# ============================================================================


_PRODUCT_UPDATE_FIELDS = {
    "name": "name",
    "description": "description",
    "price": "price",
    "stock": "stock",
    "categoryId": "category_id",
    "subCategoryId": "sub_category_id",
    "mainImageUrl": "main_image_url",
    "imageUrls": "image_urls",
    "status": "status",
}


@dataclass(frozen=True)
class UpdateProductDTO:
    """Product update input."""

    changes: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_input(cls, data: Mapping[str, Any]) -> Self:
        """Build from raw input.

        Raises:
            BadRequestError: If no updatable field is present.
        """
        changes = _present(data, _PRODUCT_UPDATE_FIELDS)
        if not changes:
            raise BadRequestError("At least one field must be provided for update.")
        return cls(changes=changes)
