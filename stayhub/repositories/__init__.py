"""
Repository layer for data access operations.
"""

from stayhub.repositories.base import BaseRepository
from stayhub.repositories.account import AccountRepository
from stayhub.repositories.listing import ListingRepository
from stayhub.repositories.review import ReviewRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "ListingRepository",
    "ReviewRepository",
]
