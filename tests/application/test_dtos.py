"""Tests for input DTOs."""

import pytest

from marketplace.api.routers.categories import category_to_response
from marketplace.api.routers.reviews import review_to_response
from marketplace.api.routers.stores import store_to_response
from marketplace.application.category_service import CategoryDetails
from marketplace.application.dtos import (
    CreateCategoryDTO,
    CreateReviewDTO,
    CreateSellerRequestDTO,
    CreateStoreDTO,
    CreateUserDTO,
    UpdateCategoryDTO,
    UpdateSellerRequestStatusDTO,
    UpdateStoreDTO,
    UpdateStoreStatusDTO,
    UpdateUserDTO,
)
from marketplace.domain import BadRequestError, SellerRequestStatus, StoreStatus, UserRole


class TestSellerRequestDTOs:
    """Tests for seller request DTOs."""

    def test_message_defaults_to_empty(self) -> None:
        """Absent and null messages become empty strings."""
        assert CreateSellerRequestDTO.from_input({}).message == ""
        assert CreateSellerRequestDTO.from_input({"message": None}).message == ""

    @pytest.mark.parametrize("status", ["approved", "rejected"])
    def test_decision_statuses_accepted(self, status: str) -> None:
        """Only decisions are valid admin input."""
        dto = UpdateSellerRequestStatusDTO.from_input({"status": status, "adminComment": "ok"})

        assert dto.status == SellerRequestStatus(status)
        assert dto.admin_comment == "ok"

    @pytest.mark.parametrize("status", ["pending", "APPROVED", "", None])
    def test_other_statuses_rejected(self, status) -> None:
        """Pending, unknown or missing statuses are rejected."""
        with pytest.raises(BadRequestError, match="either 'approved' or 'rejected'"):
            UpdateSellerRequestStatusDTO.from_input({"status": status})

    def test_admin_comment_defaults_to_empty(self) -> None:
        """A null comment is stored as empty string."""
        dto = UpdateSellerRequestStatusDTO.from_input({"status": "approved", "adminComment": None})
        assert dto.admin_comment == ""


class TestStoreDTOs:
    """Tests for store DTOs."""

    def test_description_defaults_only_when_absent(self) -> None:
        """An explicit null description is kept."""
        absent = CreateStoreDTO.from_input({"userId": "u-1", "storeName": "Lamps"})
        null = CreateStoreDTO.from_input(
            {"userId": "u-1", "storeName": "Lamps", "description": None}
        )

        assert absent.description == ""
        assert null.description is None
        assert absent.logo is None

    def test_create_requires_owner_and_name(self) -> None:
        """userId and storeName are required."""
        with pytest.raises(BadRequestError, match="userId and storeName"):
            CreateStoreDTO.from_input({"storeName": "Lamps"})

    def test_update_keeps_only_known_fields(self) -> None:
        """Unknown keys are ignored and known ones are renamed."""
        dto = UpdateStoreDTO.from_input({"storeName": "New", "status": "Approved"})
        assert dto.changes == {"store_name": "New"}

    def test_update_requires_a_field(self) -> None:
        """An empty update is rejected."""
        with pytest.raises(BadRequestError, match="At least one field"):
            UpdateStoreDTO.from_input({})

    @pytest.mark.parametrize("name", [None, "", "   "])
    def test_update_rejects_empty_name(self, name) -> None:
        """A store name cannot be cleared."""
        with pytest.raises(BadRequestError, match="storeName cannot be empty"):
            UpdateStoreDTO.from_input({"storeName": name})

    def test_update_allows_null_description(self) -> None:
        """Description and logo may be cleared."""
        dto = UpdateStoreDTO.from_input({"description": None, "logo": None})
        assert dto.changes == {"description": None, "logo": None}

    def test_status_empty_reason_becomes_null(self) -> None:
        """An empty moderation reason is stored as null."""
        dto = UpdateStoreStatusDTO.from_input({"status": "Rejected", "reason": ""})

        assert dto.status == StoreStatus.REJECTED
        assert dto.reason is None

    def test_status_unknown_rejected(self) -> None:
        """Unknown store statuses list the valid values."""
        with pytest.raises(BadRequestError, match="Pending, Approved, Rejected, Suspended"):
            UpdateStoreStatusDTO.from_input({"status": "Closed"})


class TestCategoryDTOs:
    """Tests for category DTOs."""

    def test_slug_normalized(self) -> None:
        """Slugs are trimmed and lowercased."""
        dto = CreateCategoryDTO.from_input({"name": "Home", "slug": " Home-Decor "})

        assert dto.slug == "home-decor"
        assert dto.level == 0

    def test_parent_sets_level(self) -> None:
        """A parent makes the category a subcategory."""
        assert CreateCategoryDTO.from_input({"name": "a", "slug": "a", "parent": "p"}).level == 1

    def test_description_defaults_only_when_absent(self) -> None:
        """An explicit null description is kept."""
        absent = CreateCategoryDTO.from_input({"name": "Home", "slug": "home"})
        null = CreateCategoryDTO.from_input({"name": "Home", "slug": "home", "description": None})

        assert absent.description == ""
        assert null.description is None
        assert null.to_entity().description is None

    def test_update_maps_active_flag(self) -> None:
        """isActive maps to is_active."""
        dto = UpdateCategoryDTO.from_input({"isActive": False, "slug": "NEW"})
        assert dto.changes == {"is_active": False, "slug": "new"}


class TestUserDTOs:
    """Tests for user DTOs."""

    def test_create_defaults(self) -> None:
        """Role defaults to buyer and the seller flag to false."""
        dto = CreateUserDTO.from_input({"id": "u-1", "isApprovedSeller": None})

        assert dto.role == UserRole.BUYER
        assert dto.is_approved_seller is False

    @pytest.mark.parametrize("user_id", [None, "", "   ", 42])
    def test_create_requires_string_id(self, user_id) -> None:
        """The id must be a non-empty string."""
        with pytest.raises(BadRequestError, match="User ID \\(id\\) is required"):
            CreateUserDTO.from_input({"id": user_id})

    def test_update_whitelist(self) -> None:
        """Only profile fields may be updated."""
        dto = UpdateUserDTO.from_input({"lastName": "Doe", "role": "admin"})
        assert dto.changes == {"last_name": "Doe"}

    def test_update_without_allowed_fields(self) -> None:
        """The error lists the allowed fields."""
        with pytest.raises(BadRequestError, match="Allowed: name, lastName"):
            UpdateUserDTO.from_input({"role": "admin"})


class TestResponseRoundTrip:
    """Create input through the DTO and out through the response converter."""

    @pytest.mark.parametrize(
        ("extra", "description", "logo"),
        [
            ({}, "", None),
            ({"description": None, "logo": None}, None, None),
            (
                {"description": "Lamps and shades", "logo": "https://img/l.png"},
                "Lamps and shades",
                "https://img/l.png",
            ),
        ],
    )
    def test_store(self, extra: dict, description, logo) -> None:
        """Store fields survive and defaults apply only to absent keys."""
        dto = CreateStoreDTO.from_input({"userId": "u-1", "storeName": "Lamps", **extra})
        entity = dto.to_entity()

        wire = store_to_response(entity).model_dump(by_alias=True)

        assert wire["userId"] == "u-1"
        assert wire["storeName"] == "Lamps"
        assert wire["description"] == description
        assert wire["logo"] == logo
        assert wire["status"] == "Pending"

    @pytest.mark.parametrize(
        ("extra", "description"),
        [({}, ""), ({"description": None}, None), ({"description": "Rooms"}, "Rooms")],
    )
    def test_category(self, extra: dict, description) -> None:
        """Category fields survive and defaults apply only to absent keys."""
        dto = CreateCategoryDTO.from_input({"name": "Home", "slug": "Home", **extra})
        entity = dto.to_entity()

        wire = category_to_response(CategoryDetails(category=entity)).model_dump(by_alias=True)

        assert wire["name"] == "Home"
        assert wire["slug"] == "home"
        assert wire["description"] == description
        assert wire["parent"] is None
        assert wire["isActive"] is True

    def test_review(self) -> None:
        """Review fields survive unchanged."""
        entity = CreateReviewDTO.from_input(
            {"userId": "u-1", "commentary": "Great lamp", "score": 4}
        ).to_entity()

        wire = review_to_response(entity).model_dump(by_alias=True)

        assert (wire["userId"], wire["commentary"], wire["score"]) == ("u-1", "Great lamp", 4)
