"""
Service layer for business logic.
"""

from .auth import AuthService
from .media import MediaService
from .property import PropertyService
from .error_handler import ErrorHandlerService

__all__ = ["AuthService", "MediaService", "PropertyService", "ErrorHandlerService"]
