"""
Pydantic schemas for review submission and display.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
import uuid


class ReviewCreate(BaseModel):
    """Review submission schema."""

    hotel_id: uuid.UUID = Field(..., description="ID of the reviewed listing")
    rating: Optional[int] = Field(
        None,
        ge=1,
        le=5,
        description="Star rating from 1 to 5",
        examples=[5]
    )
    comment: str = Field(
        ...,
        min_length=1,
        max_length=5000,
        examples=["Clean rooms and a helpful host."]
    )

    @field_validator("comment")
    @classmethod
    def strip_comment(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Comment cannot be empty")
        return v


class ReviewResponse(BaseModel):
    """Review as displayed on a listing page."""

    id: uuid.UUID
    hotel_id: uuid.UUID
    user_id: uuid.UUID
    user_email: str
    rating: Optional[int] = None
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True
