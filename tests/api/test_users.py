"""Tests for auth, user, review, admin and coupon endpoints."""

import re

from fastapi.testclient import TestClient


class TestAuth:
    """Tests for /api/auth."""

    def test_register_login_logout(self, client: TestClient) -> None:
        """A registered account can log in and out."""
        registered = client.post(
            "/api/auth/register", json={"email": "ada@example.com", "password": "secret1"}
        )
        login = client.post(
            "/api/auth/login", json={"email": "ada@example.com", "password": "secret1"}
        )
        token = login.json()["token"]["accessToken"]
        headers = {"Authorization": f"Bearer {token}"}
        logout = client.post("/api/auth/logout", headers=headers)

        assert registered.status_code == 201
        assert registered.json()["message"] == "User registered successfully"
        assert registered.json()["user"]["role"] == "buyer"
        assert login.json()["message"] == "Login successful"
        assert login.json()["token"]["expiresIn"] == 3600
        assert logout.json() == {"message": "Logged out successfully"}
        assert client.get("/api/users/profile", headers=headers).status_code == 401

    def test_register_short_password(self, client: TestClient) -> None:
        """Passwords shorter than six characters fail validation."""
        response = client.post(
            "/api/auth/register", json={"email": "ada@example.com", "password": "123"}
        )

        assert response.status_code == 422
        assert response.json()["details"][0]["field"] == "password"

    def test_register_unknown_role(self, client: TestClient) -> None:
        """Roles outside buyer, seller and admin are rejected."""
        response = client.post(
            "/api/auth/register",
            json={"email": "ada@example.com", "password": "secret1", "role": "root"},
        )
        assert response.status_code == 400

    def test_login_bad_credentials(self, client: TestClient) -> None:
        """Unknown credentials are unauthorized."""
        response = client.post("/api/auth/login", json={"email": "x@example.com", "password": "x"})

        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHORIZED"

    def test_logout_requires_token(self, client: TestClient) -> None:
        """Logging out needs a bearer token."""
        assert client.post("/api/auth/logout").status_code == 401


class TestUsers:
    """Tests for /api/users."""

    def test_profile_includes_identity_email(
        self, client: TestClient, buyer_headers: dict
    ) -> None:
        """The profile email comes from the identity provider."""
        response = client.get("/api/users/profile", headers=buyer_headers)

        assert response.status_code == 200
        assert response.json()["id"] == "buyer-1"
        assert response.json()["email"] == "buyer-1@example.com"

    def test_create_and_get(self, client: TestClient, buyer_headers: dict) -> None:
        """Profiles get the default avatar and buyer role."""
        created = client.post(
            "/api/users", json={"id": "user-9", "name": "Ada"}, headers=buyer_headers
        )
        fetched = client.get("/api/users/user-9", headers=buyer_headers)

        assert created.status_code == 201
        assert fetched.json()["role"] == "buyer"
        assert fetched.json()["profilePicUrl"]
        assert fetched.json()["isApprovedSeller"] is False

    def test_create_duplicate(self, client: TestClient, buyer_headers: dict) -> None:
        """Existing ids are rejected."""
        response = client.post("/api/users", json={"id": "buyer-1"}, headers=buyer_headers)

        assert response.status_code == 400
        assert response.json()["message"] == "User with ID 'buyer-1' already exists"

    def test_create_without_id(self, client: TestClient, buyer_headers: dict) -> None:
        """The id is required."""
        response = client.post("/api/users", json={"name": "Ada"}, headers=buyer_headers)

        assert response.status_code == 400
        assert response.json()["message"].startswith("User ID (id) is required")

    def test_update_ignores_role(self, client: TestClient, buyer_headers: dict) -> None:
        """Role cannot be changed through the profile endpoint."""
        response = client.put(
            "/api/users/buyer-1", json={"role": "admin"}, headers=buyer_headers
        )

        assert response.status_code == 400
        assert "No valid fields provided for update" in response.json()["message"]

    def test_update_and_delete(self, client: TestClient, buyer_headers: dict) -> None:
        """Profiles can be edited and removed."""
        updated = client.put(
            "/api/users/buyer-1", json={"lastName": "Lovelace"}, headers=buyer_headers
        )
        deleted = client.delete("/api/users/buyer-1", headers=buyer_headers)

        assert updated.json()["lastName"] == "Lovelace"
        assert deleted.status_code == 204
        assert client.get("/api/users/buyer-1", headers=buyer_headers).status_code == 404


class TestReviews:
    """Tests for /api/reviews."""

    def test_create_defaults_author_to_caller(
        self, client: TestClient, buyer_headers: dict
    ) -> None:
        """Omitting userId reviews as the caller."""
        response = client.post(
            "/api/reviews", json={"commentary": "Great", "score": 5}, headers=buyer_headers
        )

        assert response.status_code == 201
        assert response.json()["message"] == "Review created successfully"
        assert response.json()["review"]["userId"] == "buyer-1"

    def test_create_for_other_user_forbidden(
        self, client: TestClient, buyer_headers: dict
    ) -> None:
        """Callers cannot review on behalf of someone else."""
        response = client.post(
            "/api/reviews",
            json={"userId": "seller-1", "commentary": "Great", "score": 5},
            headers=buyer_headers,
        )

        assert response.status_code == 403
        assert response.json()["message"] == "Not authorized to create review for this user"

    def test_invalid_score(self, client: TestClient, buyer_headers: dict) -> None:
        """Scores outside 1 to 5 are rejected."""
        response = client.post(
            "/api/reviews", json={"commentary": "Great", "score": 7}, headers=buyer_headers
        )
        assert response.status_code == 400

    def test_list_and_filter(
        self, client: TestClient, buyer_headers: dict, seller_headers: dict
    ) -> None:
        """Reviews are public and filterable by author."""
        client.post("/api/reviews", json={"commentary": "a", "score": 5}, headers=buyer_headers)
        client.post("/api/reviews", json={"commentary": "b", "score": 3}, headers=seller_headers)

        everything = client.get("/api/reviews").json()
        mine = client.get("/api/reviews?userId=buyer-1").json()

        assert everything["count"] == 2
        assert mine["count"] == 1
        assert mine["reviews"][0]["commentary"] == "a"

    def test_only_author_edits_and_deletes(
        self, client: TestClient, buyer_headers: dict, seller_headers: dict
    ) -> None:
        """Other users get 403 on update and 404 on delete."""
        review = client.post(
            "/api/reviews", json={"commentary": "ok", "score": 3}, headers=buyer_headers
        ).json()["review"]
        url = f"/api/reviews/{review['id']}"

        assert client.put(url, json={"score": 1}, headers=seller_headers).status_code == 403
        assert client.delete(url, headers=seller_headers).status_code == 404

        updated = client.put(url, json={"score": 4}, headers=buyer_headers)
        deleted = client.delete(url, headers=buyer_headers)

        assert updated.json()["review"]["score"] == 4
        assert deleted.json() == {"message": "Review deleted successfully"}


class TestAdminAndCoupons:
    """Tests for /api/admin and /api/coupons."""

    def test_stats(
        self,
        client: TestClient,
        admin_headers: dict,
        seller_headers: dict,
        buyer_headers: dict,
    ) -> None:
        """Admins see user and product counters."""
        response = client.get("/api/admin/stats", headers=admin_headers)

        data = response.json()
        assert data["totalUsers"] == 3
        assert data["sellers"] == 1
        assert data["buyers"] == 1
        assert data["pendingUsers"] == 3
        assert data["totalProducts"] == 0
        assert "timestamp" in data

    def test_stats_requires_admin(self, client: TestClient, seller_headers: dict) -> None:
        """Sellers cannot read statistics."""
        response = client.get("/api/admin/stats", headers=seller_headers)

        assert response.status_code == 403
        assert response.json()["message"] == "Admin access only."

    def test_claim_coupon(self, client: TestClient, buyer_headers: dict) -> None:
        """Any authenticated user can claim a coupon."""
        response = client.get("/api/coupons/claim", headers=buyer_headers)

        data = response.json()
        assert re.fullmatch(r"NB-10-[0-9A-F]{6}", data["code"])
        assert data["discountPercent"] == 10
        assert "expiresAt" in data
