"""Category application service.

Manages the two-level category tree: main categories (level 0) and
their subcategories (level 1).
"""

from dataclasses import dataclass
from typing import Any

import structlog

from marketplace.domain.entities import Category
from marketplace.domain.exceptions import BadRequestError, ConflictError, NotFoundError
from marketplace.domain.repositories import CategoryRepository
from marketplace.application.dtos import CreateCategoryDTO, UpdateCategoryDTO

logger = structlog.get_logger()


@dataclass(frozen=True)
class CategoryDetails:
    """Category together with the name of its parent."""

    category: Category
    parent_name: str | None = None


class CategoryService:
    """Application service for categories."""

    def __init__(
        self,
        category_repo: CategoryRepository,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            category_repo: Category repository.
            request_id: Request ID for correlation.
        """
        self.category_repo = category_repo
        self.request_id = request_id

    async def create(self, data: dict[str, Any]) -> CategoryDetails:
        """Create a main category or a subcategory.

        Raises:
            BadRequestError: If input is incomplete or the parent is invalid.
            ConflictError: If the slug is taken.
        """
        dto = CreateCategoryDTO.from_input(data)

        if await self.category_repo.find_by_slug(dto.slug) is not None:
            raise ConflictError(
                "Category with this slug already exists", details={"slug": dto.slug}
            )

        parent: Category | None = None
        if dto.parent:
            parent = await self.category_repo.find_by_id(dto.parent)
            if parent is None:
                raise BadRequestError("Parent category not found", details={"parent": dto.parent})
            if not parent.is_main:
                raise BadRequestError(
                    "Cannot create subcategory of another subcategory",
                    details={"parent": dto.parent},
                )

        category = await self.category_repo.create(dto.to_entity())
        logger.info(
            "Category created",
            category_id=category.id,
            slug=category.slug,
            level=category.level,
            request_id=self.request_id,
        )
        return CategoryDetails(category, parent.name if parent else None)

    async def get_all(self) -> list[CategoryDetails]:
        """List every category."""
        categories = await self.category_repo.find_all()
        names = {c.id: c.name for c in categories}
        return [CategoryDetails(c, names.get(c.parent) if c.parent else None) for c in categories]

    async def get_main_categories(self) -> list[CategoryDetails]:
        """List active main categories sorted by name."""
        return [CategoryDetails(c) for c in await self.category_repo.find_main_categories()]

    async def get_subcategories(self, parent_id: str) -> list[CategoryDetails]:
        """List active subcategories of a main category.

        Raises:
            NotFoundError: If the parent does not exist.
        """
        parent = await self._get(parent_id)
        subcategories = await self.category_repo.find_subcategories(parent.id)
        return [CategoryDetails(c, parent.name) for c in subcategories]

    async def get_by_id(self, category_id: str) -> CategoryDetails:
        """Get a category.

        Raises:
            NotFoundError: If the category does not exist.
        """
        return await self._details(await self._get(category_id))

    async def update(self, category_id: str, data: dict[str, Any]) -> CategoryDetails:
        """Update name, slug, description or active flag.

        Raises:
            BadRequestError: If no updatable field is present.
            NotFoundError: If the category does not exist.
            ConflictError: If the new slug is taken.
        """
        dto = UpdateCategoryDTO.from_input(data)
        current = await self._get(category_id)

        slug = dto.changes.get("slug")
        if slug and slug != current.slug:
            if await self.category_repo.find_by_slug(slug) is not None:
                raise ConflictError(
                    "Category with this slug already exists", details={"slug": slug}
                )

        updated = await self.category_repo.update_by_id(category_id, dto.changes)
        if updated is None:
            raise NotFoundError("Category not found", details={"id": category_id})

        logger.info(
            "Category updated",
            category_id=category_id,
            fields=sorted(dto.changes),
            request_id=self.request_id,
        )
        return await self._details(updated)

    async def delete(self, category_id: str) -> CategoryDetails:
        """Delete a category without subcategories.

        Raises:
            NotFoundError: If the category does not exist.
            BadRequestError: If the category still has subcategories.
        """
        category = await self._get(category_id)
        if category.is_main and await self.category_repo.find_subcategories(
            category.id, active_only=False
        ):
            raise BadRequestError(
                "Cannot delete category with subcategories", details={"id": category_id}
            )

        deleted = await self.category_repo.delete_by_id(category_id)
        if deleted is None:
            raise NotFoundError("Category not found", details={"id": category_id})

        logger.info("Category deleted", category_id=category_id, request_id=self.request_id)
        return await self._details(deleted)

    async def _get(self, category_id: str) -> Category:
        category = await self.category_repo.find_by_id(category_id)
        if category is None:
            raise NotFoundError("Category not found", details={"id": category_id})
        return category

    async def _details(self, category: Category) -> CategoryDetails:
        if not category.parent:
            return CategoryDetails(category)
        parent = await self.category_repo.find_by_id(category.parent)
        return CategoryDetails(category, parent.name if parent else None)
