"""
Pydantic schemas for account requests and responses.
Handles registration, login, landlord approval and profile payloads.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from stayhub.models.account import AccountRole
import uuid


class AccountRegister(BaseModel):
    """Registration fields submitted alongside the optional verification images."""

    email: EmailStr = Field(
        ...,
        description="Account email address",
        examples=["landlord@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Account password"
    )
    full_name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Account holder's full name",
        examples=["Juan Dela Cruz"]
    )
    contact_number: Optional[str] = Field(
        None,
        max_length=50,
        examples=["+63 912 345 6789"]
    )
    gender: Optional[str] = Field(None, max_length=50)
    role: AccountRole = Field(
        default=AccountRole.USER,
        description="User or Landlord; matched case-insensitively"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()

    @field_validator("full_name")
    @classmethod
    def strip_full_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Full name cannot be empty")
        return v

    @field_validator("role", mode="before")
    @classmethod
    def parse_role(cls, v):
        """Accept role names in any letter case."""
        if isinstance(v, AccountRole):
            return v
        return AccountRole.parse(v)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(
        ...,
        description="Account email address",
        examples=["landlord@example.com"]
    )
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="Account password"
    )

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class AccountResponse(BaseModel):
    """Public account profile (never includes the password hash)."""

    id: uuid.UUID
    email: str
    full_name: str
    contact_number: Optional[str] = None
    gender: Optional[str] = None
    role: AccountRole
    is_approved: bool
    profile_image_url: Optional[str] = None
    id_image_url: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class RegisterResponse(BaseModel):
    """Registration acknowledgement."""

    success: bool = True
    message: str = Field(default="User registered successfully!")


class LoginResponse(BaseModel):
    """Login response carrying the profile and a bearer token."""

    success: bool = True
    message: str = Field(default="Login successful!")
    user: AccountResponse
    token: str = Field(..., description="JWT access token")


class ApprovalResponse(BaseModel):
    """Landlord approval acknowledgement."""

    success: bool = True
    message: str = Field(default="Landlord approved successfully.")


class PendingLandlordsResponse(BaseModel):
    """Landlords awaiting approval, oldest first."""

    success: bool = True
    landlords: List[AccountResponse]


class ProfileResponse(BaseModel):
    user: AccountResponse
