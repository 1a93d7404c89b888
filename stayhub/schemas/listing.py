"""
Pydantic schemas for listing requests and responses.
Handles listing form fields, partial updates and read payloads.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
import uuid


class ListingCreate(BaseModel):
    """Listing fields submitted with the create form."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Listing name",
        examples=["Seaside Dormitory"]
    )
    description: Optional[str] = Field(
        None,
        max_length=5000,
        examples=["Air-conditioned rooms near the business district."]
    )
    price: Decimal = Field(
        ...,
        gt=0,
        max_digits=12,
        decimal_places=2,
        description="Price, currency-agnostic",
        examples=[2500.00]
    )
    location: str = Field(
        ...,
        min_length=1,
        max_length=512,
        description="Free-text address resolved to coordinates",
        examples=["Bonifacio Global City, Taguig"]
    )

    @field_validator("name", "location")
    @classmethod
    def strip_required_text(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Field cannot be blank")
        return v

    @field_validator("description")
    @classmethod
    def strip_description(cls, v):
        if v is None:
            return v
        return v.strip() or None


class ListingUpdate(BaseModel):
    """Partial listing update; only fields that are present are overwritten."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=5000)
    price: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    def has_changes(self) -> bool:
        """Check whether any field was supplied."""
        return bool(self.model_dump(exclude_none=True))


class ListingResponse(BaseModel):
    """Listing as returned by every read endpoint."""

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    description: Optional[str] = None
    price: float
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    frontdisplay: Optional[str] = None
    room: Optional[str] = None
    others: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ListingCreatedResponse(BaseModel):
    """Create acknowledgement with the stored listing."""

    message: str = Field(default="Hotel added successfully")
    hotel: ListingResponse


class ListingUpdatedResponse(BaseModel):
    message: str = Field(default="Hotel updated successfully")
    hotel: ListingResponse


class OwnerListingsResponse(BaseModel):
    """Listings owned by one landlord, newest first."""

    hotels: List[ListingResponse]
