"""
API routers for the Rental Listing API.
"""

from . import auth, properties

__all__ = ["auth", "properties"]
