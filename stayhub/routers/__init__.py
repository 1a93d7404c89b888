"""
API route handlers for the StayHub Listing API.
"""

from .accounts import router as accounts_router
from .admin import router as admin_router, verification_router
from .listings import router as listings_router
from .reviews import router as reviews_router

__all__ = ["accounts_router", "admin_router", "listings_router", "reviews_router", "verification_router"]
