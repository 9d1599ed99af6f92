"""
Repository layer for data access operations.
Provides abstraction over database operations with async SQLAlchemy.
"""

from .base import BaseRepository
from .user import UserRepository
from .property import PropertyRepository, PropertySearchFilters, PropertyQueryBuilder, SORTABLE_FIELDS

__all__ = [
    "BaseRepository",
    "UserRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "PropertyQueryBuilder",
    "SORTABLE_FIELDS",
]
