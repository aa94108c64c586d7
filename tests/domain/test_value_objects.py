"""Tests for domain value objects."""

from marketplace.domain import IdentityRole, Page, PageRequest, UserRole


class TestRoles:
    """Tests for role value objects."""

    def test_user_role_to_identity_role(self) -> None:
        """Profile roles map to the capitalized identity claim."""
        assert UserRole.SELLER.to_identity_role() == IdentityRole.SELLER
        assert UserRole.ADMIN.to_identity_role().value == "Admin"

    def test_identity_role_parse(self) -> None:
        """Unknown or missing claims parse to None."""
        assert IdentityRole.parse("Seller") == IdentityRole.SELLER
        assert IdentityRole.parse("seller") is None
        assert IdentityRole.parse(None) is None


class TestPagination:
    """Tests for PageRequest and Page."""

    def test_offset(self) -> None:
        """Offset skips previous pages."""
        assert PageRequest(page=3, limit=10).offset == 20

    def test_page_metadata(self) -> None:
        """Page derives totals and navigation flags."""
        page = Page(items=[1, 2], total_items=25, current_page=2, limit=10)

        assert page.total_pages == 3
        assert page.has_next_page
        assert page.has_prev_page

    def test_last_page(self) -> None:
        """The last page has no next page."""
        page = Page(items=[1], total_items=21, current_page=3, limit=10)

        assert page.total_pages == 3
        assert not page.has_next_page

    def test_empty_page(self) -> None:
        """Empty result has zero pages."""
        page = Page()

        assert page.total_pages == 0
        assert not page.has_next_page
        assert not page.has_prev_page
