"""
Database models for the StayHub Listing API.
Includes Account, Listing, and Review models.
"""

from stayhub.models.account import Account, AccountRole
from stayhub.models.listing import Listing
from stayhub.models.review import Review

__all__ = [
    "Account",
    "AccountRole",
    "Listing",
    "Review",
]
