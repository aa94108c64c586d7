"""Product application service.

Handles product listings:
- Sellers publish products in their own approved stores
- Category and subcategory references are validated and denormalized
- Public browsing with filters and pagination
"""

from typing import Any

import structlog

from marketplace.domain.entities import MAX_PRODUCT_IMAGES, AuthenticatedUser, Category, Product
from marketplace.domain.exceptions import BadRequestError, ForbiddenError, NotFoundError
from marketplace.domain.repositories import CategoryRepository, ProductRepository, StoreRepository
from marketplace.domain.value_objects import Page, PageRequest, ProductStatus, StoreStatus
from marketplace.application.dtos import UpdateProductDTO

logger = structlog.get_logger()

PRODUCT_FILTER_FIELDS = ("store_id", "category_id", "sub_category_id", "status")


class ProductService:
    """Application service for products."""

    def __init__(
        self,
        product_repo: ProductRepository,
        store_repo: StoreRepository,
        category_repo: CategoryRepository,
        request_id: str | None = None,
    ) -> None:
        """Initialize service.

        Args:
            product_repo: Product repository.
            store_repo: Store repository.
            category_repo: Category repository.
            request_id: Request ID for correlation.
        """
        self.product_repo = product_repo
        self.store_repo = store_repo
        self.category_repo = category_repo
        self.request_id = request_id

    async def create(self, seller: AuthenticatedUser, data: dict[str, Any]) -> Product:
        """Publish a product in one of the seller's stores.

        Args:
            seller: Authenticated seller.
            data: Raw camelCase product body.

        Returns:
            The created product.

        Raises:
            BadRequestError: If required references are missing, the store
                is not approved or the category tree is inconsistent.
            NotFoundError: If the store does not exist.
            ForbiddenError: If the store belongs to someone else.
        """
        if not data.get("mainImageUrl"):
            raise BadRequestError("Main product image is required")
        if not data.get("storeId"):
            raise BadRequestError("Store ID is required. Products must be associated with a store.")
        if not data.get("categoryId"):
            raise BadRequestError(
                "Category ID is required. Products must be associated with a category."
            )

        store = await self.store_repo.find_by_id(data["storeId"])
        if store is None:
            raise NotFoundError("Store not found.", details={"store_id": data["storeId"]})
        if store.user_id != seller.id:
            logger.warning(
                "Store ownership validation failed",
                store_id=store.id,
                seller_id=seller.id,
                request_id=self.request_id,
            )
            raise ForbiddenError("You can only create products for your own stores.")
        if store.status != StoreStatus.APPROVED:
            raise BadRequestError(
                f"Cannot create products for a store with status: {store.status.value}. "
                "Store must be Approved.",
                details={"store_id": store.id, "status": store.status.value},
            )

        category = await self._active_category(data["categoryId"], "Category")
        subcategory = None
        if data.get("subCategoryId"):
            subcategory = await self._subcategory_of(data["subCategoryId"], category.id)

        image_urls = list(data.get("imageUrls") or [])[:MAX_PRODUCT_IMAGES]
        product = Product.create(
            name=data.get("name"),
            description=data.get("description") or "",
            price=data.get("price"),
            stock=data.get("stock", 0),
            category_id=category.id,
            category_name=category.name,
            sub_category_id=subcategory.id if subcategory else None,
            sub_category_name=subcategory.name if subcategory else None,
            seller_id=seller.id,
            store_id=store.id,
            main_image_url=data["mainImageUrl"],
            image_urls=image_urls,
        )
        created = await self.product_repo.create(product)

        logger.info(
            "Product created",
            product_id=created.id,
            store_id=store.id,
            seller_id=seller.id,
            request_id=self.request_id,
        )
        return created

    async def get_all(self, filters: dict[str, Any], page: PageRequest) -> Page[Product]:
        """Browse products.

        Only active products are listed unless a status filter is given.

        Args:
            filters: Equality filters; unknown keys and empty values are dropped.
            page: Pagination and sort parameters.
        """
        clean = {k: v for k, v in filters.items() if k in PRODUCT_FILTER_FIELDS and v}
        try:
            clean["status"] = ProductStatus(clean.get("status", ProductStatus.ACTIVE))
        except ValueError:
            valid = ", ".join(s.value for s in ProductStatus)
            raise BadRequestError(f"Status must be one of: {valid}") from None
        return await self.product_repo.find_all(clean, page)

    async def get_by_id(self, product_id: str) -> Product:
        """Get a product.

        Raises:
            NotFoundError: If the product does not exist.
        """
        product = await self.product_repo.find_by_id(product_id)
        if product is None:
            raise NotFoundError("Product not found", details={"id": product_id})
        return product

    async def get_store_products(self, store_id: str, page: PageRequest) -> Page[Product]:
        """List the products of a store.

        Raises:
            NotFoundError: If the store does not exist.
        """
        if await self.store_repo.find_by_id(store_id) is None:
            raise NotFoundError("Store not found", details={"store_id": store_id})
        return await self.product_repo.find_by_store_id(store_id, page)

    async def update(
        self, product_id: str, data: dict[str, Any], actor: AuthenticatedUser
    ) -> Product:
        """Update a product.

        Changing the category without naming a subcategory clears the
        subcategory.

        Raises:
            NotFoundError: If the product does not exist.
            ForbiddenError: If the actor neither owns the product nor is admin.
            BadRequestError: If no field is given or references are invalid.
        """
        current = await self._get_modifiable(product_id, actor)
        changes = dict(UpdateProductDTO.from_input(data).changes)

        if changes.get("category_id"):
            category = await self._active_category(changes["category_id"], "Category")
            changes["category_name"] = category.name
            if not changes.get("sub_category_id"):
                changes["sub_category_id"] = None
                changes["sub_category_name"] = None

        if changes.get("sub_category_id"):
            target_category = changes.get("category_id") or current.category_id
            subcategory = await self._subcategory_of(changes["sub_category_id"], target_category)
            changes["sub_category_name"] = subcategory.name

        if "status" in changes:
            try:
                changes["status"] = ProductStatus(changes["status"])
            except ValueError:
                valid = ", ".join(s.value for s in ProductStatus)
                raise BadRequestError(f"Status must be one of: {valid}") from None
        if "image_urls" in changes:
            changes["image_urls"] = tuple(changes["image_urls"] or ())[:MAX_PRODUCT_IMAGES]
        for field_name in ("price", "stock"):
            if field_name in changes and (changes[field_name] is None or changes[field_name] < 0):
                raise BadRequestError(f"{field_name.capitalize()} must be a non-negative number.")

        updated = await self.product_repo.update_by_id(product_id, changes)
        if updated is None:
            raise NotFoundError("Product not found", details={"id": product_id})

        logger.info(
            "Product updated",
            product_id=product_id,
            fields=sorted(changes),
            request_id=self.request_id,
        )
        return updated

    async def delete(self, product_id: str, actor: AuthenticatedUser) -> Product:
        """Delete a product.

        Raises:
            NotFoundError: If the product does not exist.
            ForbiddenError: If the actor neither owns the product nor is admin.
        """
        await self._get_modifiable(product_id, actor)
        deleted = await self.product_repo.delete_by_id(product_id)
        if deleted is None:
            raise NotFoundError("Product not found", details={"id": product_id})

        logger.info("Product deleted", product_id=product_id, request_id=self.request_id)
        return deleted

    async def _get_modifiable(self, product_id: str, actor: AuthenticatedUser) -> Product:
        product = await self.get_by_id(product_id)
        if not actor.is_admin and product.seller_id != actor.id:
            raise ForbiddenError("You are not allowed to modify this product.")
        return product

    async def _active_category(self, category_id: str, label: str) -> Category:
        category = await self.category_repo.find_by_id(category_id)
        if category is None or not category.is_active:
            raise BadRequestError(
                f"{label} not found or inactive.", details={"category_id": category_id}
            )
        return category

    async def _subcategory_of(self, subcategory_id: str, category_id: str) -> Category:
        subcategory = await self._active_category(subcategory_id, "Subcategory")
        if subcategory.parent != category_id:
            raise BadRequestError(
                "Subcategory does not belong to the selected category.",
                details={"sub_category_id": subcategory_id, "category_id": category_id},
            )
        return subcategory
