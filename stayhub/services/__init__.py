"""
Service layer for business logic implementation.
Contains services for accounts, listings, reviews, storage, geocoding and error handling.
"""

from .auth import AuthService, RequestIdentity
from .listing import ListingService
from .review import ReviewService
from .storage import StorageService
from .geocoding import GeocodingService, Coordinates
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "RequestIdentity",
    "ListingService",
    "ReviewService",
    "StorageService",
    "GeocodingService",
    "Coordinates",
    "ErrorHandlerService",
]
