"""
Listing model for rentable properties (hotels, apartments, dormitories).
Handles listing data with resolved coordinates, image URLs and ownership.
"""

from sqlalchemy import String, Text, Numeric, ForeignKey, Index, JSON, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from stayhub.database import Base
from decimal import Decimal
import uuid
from typing import List, Optional


class Listing(Base):
    """
    Listing model owned by exactly one landlord account.
    Additional images are kept as an ordered list of public URLs.
    """

    __tablename__ = "listings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the landlord who owns this listing"
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Listing name"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True
    )

    price: Mapped[Decimal] = mapped_column(
        Numeric(precision=12, scale=2),
        nullable=False,
        comment="Price, currency-agnostic"
    )

    location: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        index=True,
        comment="Free-text address as entered by the landlord"
    )

    latitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=7),
        nullable=True,
        comment="Geocoded latitude"
    )

    longitude: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=7),
        nullable=True,
        comment="Geocoded longitude"
    )

    # Image URLs
    frontdisplay: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        comment="Primary display image URL"
    )

    room: Mapped[Optional[str]] = mapped_column(
        String(1024),
        nullable=True,
        comment="Room image URL"
    )

    others: Mapped[List[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Additional image URLs in upload order"
    )

    def __repr__(self) -> str:
        """String representation of the listing."""
        return f"<Listing(id={self.id}, name={self.name[:30]}, price={self.price})>"

    @property
    def image_urls(self) -> List[str]:
        """All stored image URLs for this listing."""
        urls = [url for url in (self.frontdisplay, self.room) if url]
        urls.extend(self.others or [])
        return urls


# Owner dashboards list newest first
owner_created_index = Index(
    'idx_listings_owner_created',
    Listing.user_id,
    Listing.created_at.desc()
)
