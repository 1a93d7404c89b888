"""
StayHub Listing API.
Property-listing marketplace backend: accounts, landlord approval, listings, search and reviews.
"""

__version__ = "1.0.0"
