"""
Pydantic schemas for request/response validation.
"""

from stayhub.schemas.account import (
    AccountRegister,
    LoginRequest,
    AccountResponse,
    RegisterResponse,
    LoginResponse,
    ApprovalResponse,
    PendingLandlordsResponse,
    ProfileResponse,
)
from stayhub.schemas.listing import (
    ListingCreate,
    ListingUpdate,
    ListingResponse,
    ListingCreatedResponse,
    ListingUpdatedResponse,
    OwnerListingsResponse,
)
from stayhub.schemas.review import ReviewCreate, ReviewResponse

__all__ = [
    "AccountRegister",
    "LoginRequest",
    "AccountResponse",
    "RegisterResponse",
    "LoginResponse",
    "ApprovalResponse",
    "PendingLandlordsResponse",
    "ProfileResponse",
    "ListingCreate",
    "ListingUpdate",
    "ListingResponse",
    "ListingCreatedResponse",
    "ListingUpdatedResponse",
    "OwnerListingsResponse",
    "ReviewCreate",
    "ReviewResponse",
]
