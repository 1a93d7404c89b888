"""
Listing repository with owner and location-prefix queries.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from stayhub.repositories.base import BaseRepository
from stayhub.models.listing import Listing
from typing import List
import uuid
import logging

logger = logging.getLogger(__name__)

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the value is matched literally."""
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


class ListingRepository(BaseRepository[Listing]):
    """Repository for listing reads and writes."""

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def list_all(self) -> List[Listing]:
        """Every listing, newest first."""
        return await self.get_multi(newest_first=True)

    async def list_by_owner(self, owner_id: uuid.UUID) -> List[Listing]:
        """Listings owned by one account, newest first."""
        return await self.get_multi(filters={"user_id": owner_id}, newest_first=True)

    async def search_by_location_prefix(self, prefix: str) -> List[Listing]:
        """
        Case-insensitive prefix match on the free-text location.

        Args:
            prefix: Leading text of the location; wildcards are matched literally

        Returns:
            Matching listings, newest first
        """
        try:
            pattern = f"{escape_like(prefix)}%"
            query = (
                select(Listing)
                .where(Listing.location.ilike(pattern, escape=LIKE_ESCAPE))
                .order_by(Listing.created_at.desc(), Listing.id)
            )
            result = await self.db.execute(query)
            listings = list(result.scalars().all())
            logger.debug(f"Location search '{prefix}' matched {len(listings)} listings")
            return listings
        except Exception as e:
            logger.error(f"Failed to search listings by location '{prefix}': {e}")
            raise
