"""
Database models for the Rental Listing API.
Includes User and Property models and the like association between them.
"""

from rental_api.models.like import property_likes
from rental_api.models.user import User, UserRole
from rental_api.models.property import Property

__all__ = [
    "property_likes",
    "User",
    "UserRole",
    "Property",
]
