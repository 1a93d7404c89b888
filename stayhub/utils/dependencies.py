"""
FastAPI dependency injection utilities for authentication, services and database sessions.
Provides reusable dependencies for route protection and identity extraction.
"""

from functools import lru_cache
from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from stayhub.database import get_db
from stayhub.models.account import Account
from stayhub.services.auth import AuthService, RequestIdentity
from stayhub.services.geocoding import GeocodingService
from stayhub.services.listing import ListingService
from stayhub.services.review import ReviewService
from stayhub.services.storage import StorageService
from stayhub.utils.exceptions import UnauthorizedError, InsufficientPermissionsError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_storage_service() -> StorageService:
    """Object storage rooted at the configured storage directory."""
    return StorageService.from_settings()


@lru_cache()
def get_geocoding_service() -> GeocodingService:
    """Shared geocoding client."""
    return GeocodingService.from_settings()


async def get_auth_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service)
) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session
        storage: Object storage for verification images

    Returns:
        AuthService instance
    """
    return AuthService(db, storage=storage)


async def get_listing_service(
    db: AsyncSession = Depends(get_db),
    storage: StorageService = Depends(get_storage_service),
    geocoder: GeocodingService = Depends(get_geocoding_service)
) -> ListingService:
    """
    Get listing service instance.

    Args:
        db: Database session
        storage: Object storage for listing images
        geocoder: Address geocoder

    Returns:
        ListingService instance
    """
    return ListingService(db, storage=storage, geocoder=geocoder)


async def get_review_service(db: AsyncSession = Depends(get_db)) -> ReviewService:
    return ReviewService(db)


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> RequestIdentity:
    """
    Resolve the caller from the bearer token.

    Raises:
        UnauthorizedError: If no token is provided
        InvalidTokenError: If the token is invalid
        TokenExpiredError: If the token is expired
    """
    if not credentials:
        raise UnauthorizedError("Authentication token required")

    return await auth_service.resolve_identity(credentials.credentials)


async def get_current_account(
    identity: RequestIdentity = Depends(get_current_identity)
) -> Account:
    """
    Get the caller's account row.

    Raises:
        UnauthorizedError: If the token's account no longer exists
    """
    if identity.account is None:
        raise UnauthorizedError("Account for this token no longer exists")

    return identity.account


async def get_current_admin(
    current_account: Account = Depends(get_current_account)
) -> Account:
    """
    Get the caller's account, requiring the admin role.

    Raises:
        InsufficientPermissionsError: If the caller is not an admin
    """
    if not current_account.is_admin:
        raise InsufficientPermissionsError("access admin resources")

    return current_account
