"""
Review service for submitting and listing reviews.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from stayhub.models.review import Review
from stayhub.repositories.listing import ListingRepository
from stayhub.repositories.review import ReviewRepository
from stayhub.schemas.review import ReviewCreate
from stayhub.services.auth import RequestIdentity
from stayhub.utils.exceptions import ListingNotFoundError
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewService:
    """Reviews are insert-only and shown newest first."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.review_repo = ReviewRepository(db_session)
        self.listing_repo = ListingRepository(db_session)

    async def submit_review(self, data: ReviewCreate, identity: RequestIdentity) -> Review:
        """
        Submit a review for an existing listing.
        The author email comes from the account row, or from the token when the row is missing.

        Raises:
            ListingNotFoundError: If the listing does not exist
        """
        if not await self.listing_repo.exists(data.hotel_id):
            raise ListingNotFoundError(str(data.hotel_id))

        review = await self.review_repo.create({
            "hotel_id": data.hotel_id,
            "user_id": identity.account_id,
            "rating": data.rating,
            "comment": data.comment,
            "user_email": identity.email,
        })

        logger.info(f"Review {review.id} submitted by {review.user_email} for listing {data.hotel_id}")
        return review

    async def list_reviews(self, hotel_id: uuid.UUID) -> List[Review]:
        """Reviews of a listing, newest first."""
        return await self.review_repo.list_for_listing(hotel_id)
