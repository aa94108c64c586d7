"""Tests for store, category and product endpoints."""

import pytest
from fastapi.testclient import TestClient

from marketplace.domain import UserRole


@pytest.fixture
def category_ids(client: TestClient, admin_headers: dict) -> tuple[str, str]:
    """A main category and one subcategory."""
    main = client.post(
        "/api/categories", json={"name": "Lighting", "slug": "lighting"}, headers=admin_headers
    ).json()
    sub = client.post(
        "/api/categories",
        json={"name": "Desk", "slug": "desk", "parent": main["id"]},
        headers=admin_headers,
    ).json()
    return main["id"], sub["id"]


@pytest.fixture
def store_id(client: TestClient, seller_headers: dict, admin_headers: dict) -> str:
    """An approved store of seller-1."""
    store = client.post(
        "/api/stores", json={"storeName": "Lamp Shop"}, headers=seller_headers
    ).json()
    client.patch(
        f"/api/stores/admin/{store['id']}/status",
        json={"status": "Approved"},
        headers=admin_headers,
    )
    return store["id"]


def _create_product(
    client: TestClient, headers: dict, store_id: str, category_id: str, **overrides
):
    body = {
        "name": "Desk Lamp",
        "description": "Bright",
        "price": 25.0,
        "stock": 3,
        "storeId": store_id,
        "categoryId": category_id,
        "mainImageUrl": "https://img/lamp.png",
    }
    body.update(overrides)
    return client.post("/api/products", json=body, headers=headers)


class TestStores:
    """Tests for /api/stores."""

    def test_create_pending_for_caller(self, client: TestClient, seller_headers: dict) -> None:
        """Stores belong to the caller and start pending."""
        response = client.post(
            "/api/stores",
            json={"storeName": "Lamp Shop", "userId": "someone-else"},
            headers=seller_headers,
        )

        assert response.status_code == 201
        data = response.json()
        assert data["userId"] == "seller-1"
        assert data["status"] == "Pending"
        assert data["description"] == ""

    def test_buyers_cannot_create(self, client: TestClient, buyer_headers: dict) -> None:
        """Only sellers may open stores."""
        response = client.post("/api/stores", json={"storeName": "x"}, headers=buyer_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Insufficient permissions."

    def test_missing_role_claim_forbidden(
        self, client: TestClient, roleless_headers: dict
    ) -> None:
        """A caller without any role claim is forbidden."""
        response = client.post("/api/stores", json={"storeName": "x"}, headers=roleless_headers)
        assert response.status_code == 403

    def test_store_limit(self, client: TestClient, seller_headers: dict) -> None:
        """The third store is rejected."""
        for name in ("One", "Two"):
            client.post("/api/stores", json={"storeName": name}, headers=seller_headers)

        response = client.post("/api/stores", json={"storeName": "Three"}, headers=seller_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "User has reached the maximum limit of 2 stores."

    def test_public_list_shows_approved_only(
        self, client: TestClient, seller_headers: dict, store_id: str
    ) -> None:
        """Pending stores stay hidden from the public list."""
        client.post("/api/stores", json={"storeName": "Second"}, headers=seller_headers)

        public = client.get("/api/stores").json()
        mine = client.get("/api/stores/me", headers=seller_headers).json()

        assert [s["id"] for s in public] == [store_id]
        assert len(mine) == 2

    def test_moderation(
        self, client: TestClient, admin_headers: dict, seller_headers: dict
    ) -> None:
        """Admins list pending stores and reject with a reason."""
        store = client.post(
            "/api/stores", json={"storeName": "Lamp Shop"}, headers=seller_headers
        ).json()

        pending = client.get("/api/stores/admin/pending", headers=admin_headers).json()
        rejected = client.patch(
            f"/api/stores/admin/{store['id']}/status",
            json={"status": "Rejected", "reason": ""},
            headers=admin_headers,
        )
        by_status = client.get("/api/stores/admin/status/Rejected", headers=admin_headers)

        assert [s["id"] for s in pending] == [store["id"]]
        assert rejected.json()["status"] == "Rejected"
        assert rejected.json()["reason"] is None
        assert [s["id"] for s in by_status.json()] == [store["id"]]

    def test_moderation_invalid_status(
        self, client: TestClient, admin_headers: dict, store_id: str
    ) -> None:
        """Unknown statuses are rejected with the valid values."""
        response = client.patch(
            f"/api/stores/admin/{store_id}/status",
            json={"status": "Closed"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"].startswith("Invalid status. Must be one of:")

    def test_update_and_delete_by_other_seller(
        self, client: TestClient, store_id: str, make_account
    ) -> None:
        """Other sellers cannot edit or delete the store."""
        other = make_account("seller-2", role=UserRole.SELLER)

        update = client.put(f"/api/stores/{store_id}", json={"storeName": "x"}, headers=other)
        delete = client.delete(f"/api/stores/{store_id}", headers=other)

        assert update.status_code == 403
        assert delete.status_code == 403

    def test_owner_cannot_clear_name(
        self, client: TestClient, seller_headers: dict, store_id: str
    ) -> None:
        """A null store name is a bad request and leaves the store unchanged."""
        response = client.put(
            f"/api/stores/{store_id}", json={"storeName": None}, headers=seller_headers
        )

        assert response.status_code == 400
        assert response.json()["message"] == "storeName cannot be empty."
        assert client.get(f"/api/stores/{store_id}").json()["storeName"]

    def test_owner_deletes(self, client: TestClient, seller_headers: dict, store_id: str) -> None:
        """Owners can delete their store."""
        response = client.delete(f"/api/stores/{store_id}", headers=seller_headers)

        assert response.status_code == 204
        assert client.get(f"/api/stores/{store_id}").status_code == 404


class TestCategories:
    """Tests for /api/categories."""

    def test_tree(self, client: TestClient, category_ids: tuple[str, str]) -> None:
        """Main categories and subcategories are listed separately."""
        main_id, sub_id = category_ids

        mains = client.get("/api/categories/main").json()
        subs = client.get(f"/api/categories/{main_id}/subcategories").json()

        assert [c["id"] for c in mains] == [main_id]
        assert [c["id"] for c in subs] == [sub_id]
        assert subs[0]["parentName"] == "Lighting"
        assert subs[0]["level"] == 1

    def test_create_requires_admin(self, client: TestClient, seller_headers: dict) -> None:
        """Sellers cannot create categories."""
        response = client.post(
            "/api/categories", json={"name": "x", "slug": "x"}, headers=seller_headers
        )
        assert response.status_code == 403

    def test_duplicate_slug(
        self, client: TestClient, admin_headers: dict, category_ids: tuple[str, str]
    ) -> None:
        """Duplicate slugs are a 400 conflict."""
        response = client.post(
            "/api/categories", json={"name": "Lights", "slug": "Lighting"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "CONFLICT"

    def test_delete_parent_refused(
        self, client: TestClient, admin_headers: dict, category_ids: tuple[str, str]
    ) -> None:
        """Parents with subcategories cannot be deleted."""
        main_id, sub_id = category_ids

        refused = client.delete(f"/api/categories/{main_id}", headers=admin_headers)
        deleted = client.delete(f"/api/categories/{sub_id}", headers=admin_headers)

        assert refused.status_code == 400
        assert refused.json()["message"] == "Cannot delete category with subcategories"
        assert deleted.status_code == 204

    def test_deactivate(
        self, client: TestClient, admin_headers: dict, category_ids: tuple[str, str]
    ) -> None:
        """Inactive main categories drop out of the main list."""
        main_id, _ = category_ids

        response = client.put(
            f"/api/categories/{main_id}", json={"isActive": False}, headers=admin_headers
        )

        assert response.json()["isActive"] is False
        assert client.get("/api/categories/main").json() == []


class TestProducts:
    """Tests for /api/products."""

    def test_create(
        self,
        client: TestClient,
        seller_headers: dict,
        store_id: str,
        category_ids: tuple[str, str],
    ) -> None:
        """Products carry denormalized category names."""
        main_id, sub_id = category_ids

        response = _create_product(
            client, seller_headers, store_id, main_id, subCategoryId=sub_id
        )

        assert response.status_code == 201
        data = response.json()
        assert data["categoryName"] == "Lighting"
        assert data["subCategoryName"] == "Desk"
        assert data["sellerId"] == "seller-1"
        assert data["status"] == "Active"
        assert data["imageUrls"] == []

    def test_pending_store_rejected(
        self,
        client: TestClient,
        seller_headers: dict,
        category_ids: tuple[str, str],
    ) -> None:
        """Unapproved stores cannot list products."""
        store = client.post(
            "/api/stores", json={"storeName": "New"}, headers=seller_headers
        ).json()

        response = _create_product(client, seller_headers, store["id"], category_ids[0])

        assert response.status_code == 400
        assert "Store must be Approved." in response.json()["message"]

    def test_pagination_and_sort(
        self,
        client: TestClient,
        seller_headers: dict,
        store_id: str,
        category_ids: tuple[str, str],
    ) -> None:
        """Pages report totals and honor sortBy."""
        for price in (30, 10, 20):
            _create_product(client, seller_headers, store_id, category_ids[0], price=price)

        response = client.get("/api/products?limit=2&sortBy=price&order=asc")

        data = response.json()
        assert [p["price"] for p in data["data"]] == [10, 20]
        assert data["totalItems"] == 3
        assert data["totalPages"] == 2
        assert data["currentPage"] == 1
        assert data["hasNextPage"] is True
        assert data["hasPrevPage"] is False

    def test_limit_bounds(self, client: TestClient) -> None:
        """Limits above 100 fail validation."""
        assert client.get("/api/products?limit=101").status_code == 422

    def test_filter_by_store(
        self,
        client: TestClient,
        seller_headers: dict,
        store_id: str,
        category_ids: tuple[str, str],
    ) -> None:
        """Store products are listed by store id."""
        _create_product(client, seller_headers, store_id, category_ids[0])

        by_query = client.get(f"/api/products?storeId={store_id}").json()
        by_path = client.get(f"/api/products/store/{store_id}").json()

        assert by_query["totalItems"] == 1
        assert by_path["totalItems"] == 1

    def test_update_and_delete(
        self,
        client: TestClient,
        seller_headers: dict,
        admin_headers: dict,
        store_id: str,
        category_ids: tuple[str, str],
    ) -> None:
        """Owners update; admins may delete."""
        product = _create_product(client, seller_headers, store_id, category_ids[0]).json()

        updated = client.put(
            f"/api/products/{product['id']}", json={"stock": 0}, headers=seller_headers
        )
        deleted = client.delete(f"/api/products/{product['id']}", headers=admin_headers)

        assert updated.json()["stock"] == 0
        assert deleted.status_code == 204
        assert client.get(f"/api/products/{product['id']}").status_code == 404

    def test_buyer_cannot_create(
        self, client: TestClient, buyer_headers: dict, store_id: str
    ) -> None:
        """Buyers cannot list products."""
        response = _create_product(client, buyer_headers, store_id, "cat")
        assert response.status_code == 403
