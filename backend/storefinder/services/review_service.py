"""
StoreFinder Backend — Review Service
====================================

Adds a review to a store on behalf of the requester. Reviews show up on
the store page (attached by the repository) and feed the top-stores ranking.
"""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from storefinder.database import database_errors
from storefinder.exceptions import NotFoundError, ValidationError
from storefinder.models import Review, Store, User
from storefinder.schemas.store import ReviewForm
from storefinder.services.store_repository import store_repository

logger = logging.getLogger(__name__)

MIN_RATING = 1
MAX_RATING = 5


class ReviewService:

    @staticmethod
    def validate(form: ReviewForm) -> None:
        if form.rating is None or not MIN_RATING <= form.rating <= MAX_RATING:
            raise ValidationError(
                message=f"Please rate the store from {MIN_RATING} to {MAX_RATING} stars!",
                field="rating",
                context={"rating": form.rating},
            )
        if not form.text:
            raise ValidationError(message="Your review must have text!", field="text")

    async def add_review(
        self,
        db: AsyncSession,
        store_id: uuid.UUID,
        form: ReviewForm,
        author: User,
    ) -> Store:
        """
        Save a review and return the reviewed store (for the redirect).

        Raises:
            ValidationError: rating outside 1-5 or empty text
            NotFoundError: no store with `store_id`
        """
        self.validate(form)

        with database_errors("save the review", store_id=str(store_id)):
            store = await store_repository.find_by_id(db, store_id)
            if store is None:
                raise NotFoundError(resource="store", resource_id=str(store_id))

            review = Review(
                store_id=store.id,
                author_id=author.id,
                rating=form.rating,
                text=form.text,
            )
            db.add(review)
            await db.flush()

        logger.info("Review %s saved for store %s (rating=%d)", review.id, store.id, review.rating)
        return store


# ── Singleton Instance ────────────────────────────────────────────────────
review_service = ReviewService()
