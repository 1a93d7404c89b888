"""
Review repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import delete
from stayhub.repositories.base import BaseRepository
from stayhub.models.review import Review
from typing import List
import uuid
import logging

logger = logging.getLogger(__name__)


class ReviewRepository(BaseRepository[Review]):
    """Repository for insert-only reviews."""

    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)

    async def list_for_listing(self, hotel_id: uuid.UUID) -> List[Review]:
        """Reviews of one listing, newest first."""
        return await self.get_multi(filters={"hotel_id": hotel_id}, newest_first=True)

    async def delete_for_listing(self, hotel_id: uuid.UUID, commit: bool = True) -> int:
        """
        Remove every review attached to a listing.

        Args:
            hotel_id: Listing whose reviews are removed
            commit: Commit immediately; pass False to batch with the listing delete

        Returns:
            Number of reviews removed
        """
        try:
            result = await self.db.execute(delete(Review).where(Review.hotel_id == hotel_id))
            if commit:
                await self.db.commit()
            logger.debug(f"Removed {result.rowcount} reviews for listing {hotel_id}")
            return result.rowcount
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to remove reviews for listing {hotel_id}: {e}")
            raise
