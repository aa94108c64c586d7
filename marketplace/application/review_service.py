"""Review application service."""

from typing import Any

import structlog

from marketplace.domain.entities import Review
from marketplace.domain.exceptions import ForbiddenError, NotFoundError
from marketplace.domain.repositories import ReviewRepository, UserRepository
from marketplace.application.dtos import CreateReviewDTO, UpdateReviewDTO

logger = structlog.get_logger()

REVIEW_FILTER_FIELDS = ("user_id", "score")


class ReviewService:
    """Application service for user reviews."""

    def __init__(
        self,
        review_repo: ReviewRepository,
        user_repo: UserRepository,
        request_id: str | None = None,
    ) -> None:
        self.review_repo = review_repo
        self.user_repo = user_repo
        self.request_id = request_id

    async def create(self, data: dict[str, Any]) -> Review:
        """Create a review for an existing user.

        Raises:
            BadRequestError: If the review is invalid.
            NotFoundError: If the author does not exist.
        """
        dto = CreateReviewDTO.from_input(data)
        review = dto.to_entity()
        if await self.user_repo.find_by_id(review.user_id) is None:
            raise NotFoundError("User not found", details={"user_id": review.user_id})

        created = await self.review_repo.create(review)
        logger.info(
            "Review created",
            review_id=created.id,
            user_id=created.user_id,
            score=created.score,
            request_id=self.request_id,
        )
        return created

    async def get_all(self, filters: dict[str, Any] | None = None) -> list[Review]:
        """List reviews, optionally filtered by author or score."""
        clean = {
            k: v for k, v in (filters or {}).items() if k in REVIEW_FILTER_FIELDS and v is not None
        }
        return await self.review_repo.find_all(clean)

    async def get_by_id(self, review_id: str) -> Review:
        """Get a review.

        Raises:
            NotFoundError: If the review does not exist.
        """
        review = await self.review_repo.find_by_id(review_id)
        if review is None:
            raise NotFoundError("Review not found", details={"id": review_id})
        return review

    async def update(self, review_id: str, user_id: str, data: dict[str, Any]) -> Review:
        """Update commentary or score of the caller's own review.

        Raises:
            NotFoundError: If the review does not exist.
            ForbiddenError: If the review belongs to another user.
            BadRequestError: If a new value is invalid.
        """
        current = await self.get_by_id(review_id)
        if current.user_id != user_id:
            raise ForbiddenError("Not authorized to update this review")

        dto = UpdateReviewDTO.from_input(data)
        revised = current.update(commentary=dto.commentary, score=dto.score)
        if revised is current:
            return current

        updated = await self.review_repo.update_by_id(
            review_id,
            {
                "commentary": revised.commentary,
                "score": revised.score,
                "updated_at": revised.updated_at,
            },
        )
        if updated is None:
            raise NotFoundError("Review not found", details={"id": review_id})

        logger.info("Review updated", review_id=review_id, request_id=self.request_id)
        return updated

    async def delete(self, review_id: str, user_id: str) -> bool:
        """Delete the caller's own review.

        Returns:
            True if a review was deleted.

        Raises:
            NotFoundError: If the review does not exist or belongs to someone else.
        """
        review = await self.review_repo.find_by_user_id_and_id(user_id, review_id)
        if review is None:
            raise NotFoundError("Review not found or not authorized to delete")

        deleted = await self.review_repo.delete_by_id(review_id)
        logger.info("Review deleted", review_id=review_id, request_id=self.request_id)
        return deleted is not None
