"""
Review model for guest ratings and comments on listings.
"""

from sqlalchemy import String, Text, Integer, ForeignKey, Index, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from stayhub.database import Base
import uuid
from typing import Optional


class Review(Base):
    """Insert-only review attached to one listing and one author account."""

    __tablename__ = "reviews"

    hotel_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the reviewed listing"
    )

    # Token subject of the author; not constrained to an existing account row
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        nullable=False,
        index=True,
        comment="ID of the author account"
    )

    rating: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment="Star rating from 1 to 5"
    )

    comment: Mapped[str] = mapped_column(
        Text,
        nullable=False
    )

    user_email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Author email captured at write time for display"
    )

    def __repr__(self) -> str:
        """String representation of the review."""
        return f"<Review(id={self.id}, hotel_id={self.hotel_id}, rating={self.rating})>"


# Listing detail pages read reviews newest first
hotel_created_index = Index(
    'idx_reviews_hotel_created',
    Review.hotel_id,
    Review.created_at.desc()
)
