"""
Custom exception classes for the Rental Listing API.
Provides structured error handling with appropriate HTTP status codes.
"""

from typing import Any, Dict, Optional, List
from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError


class APIException(HTTPException):
    """
    Base API exception class.

    Operational errors carry a message that is safe to show to clients.
    Subclasses that wrap programming errors set ``is_operational = False``.
    """

    is_operational = True

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

    @property
    def status(self) -> str:
        """'fail' for client errors, 'error' for server errors."""
        return "fail" if 400 <= self.status_code < 500 else "error"


class ValidationError(APIException):
    """Validation error exception."""

    def __init__(
        self,
        detail: str,
        field_errors: Optional[List[Dict[str, str]]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or []


class NotFoundError(APIException):
    """Resource not found exception."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        detail = f"{resource} not found"
        if resource_id:
            detail += f" with ID: {resource_id}"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND"
        )


class UnauthorizedError(APIException):
    """Authentication required exception."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class ForbiddenError(APIException):
    """Access forbidden exception."""

    def __init__(self, detail: str = "Access forbidden"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(APIException):
    """Resource conflict exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT"
        )


class BadRequestError(APIException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="BAD_REQUEST"
        )


class UnsupportedMediaTypeError(APIException):
    """Uploaded file does not belong to the MIME class its field accepts."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=detail,
            error_code="UNSUPPORTED_MEDIA_TYPE"
        )


class InternalServerError(APIException):
    """Internal server error exception."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            error_code="INTERNAL_SERVER_ERROR"
        )


# Authentication specific exceptions
class InvalidCredentialsError(UnauthorizedError):
    """Invalid login credentials exception."""

    def __init__(self, detail: str = "Incorrect email or password"):
        super().__init__(detail)


class TokenExpiredError(UnauthorizedError):
    """JWT token expired exception."""

    def __init__(self, detail: str = "Your token has expired. Please log in again"):
        super().__init__(detail)


class InvalidTokenError(UnauthorizedError):
    """Invalid JWT token exception."""

    def __init__(self, detail: str = "Invalid token. Please log in again"):
        super().__init__(detail)


class InsufficientPermissionsError(ForbiddenError):
    """Insufficient permissions exception."""

    def __init__(self, action: str):
        super().__init__(f"You do not have permission to {action}")


# Property specific exceptions
class PropertyNotFoundError(NotFoundError):
    """Property not found exception."""

    def __init__(self, property_id: str):
        super().__init__("Property", property_id)


class DuplicateResourceError(ConflictError):
    """Duplicate resource exception."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} with identifier '{identifier}' already exists")


# File upload exceptions
class FileSizeExceededError(BadRequestError):
    """File size exceeded exception."""

    def __init__(self, filename: str, max_size: int):
        max_mb = max_size / (1024 * 1024)
        super().__init__(f"File '{filename}' exceeds the maximum allowed size of {max_mb:.0f}MB")


def classify_integrity_error(exception: IntegrityError) -> Optional[str]:
    """
    Classify an integrity error by the constraint that failed.

    Args:
        exception: SQLAlchemy integrity error

    Returns:
        "unique", "foreign key", "not null", "check" or None
    """
    error_msg = str(exception.orig).lower()

    if "unique" in error_msg or "duplicate" in error_msg:
        return "unique"
    if "foreign key" in error_msg:
        return "foreign key"
    if "not null" in error_msg:
        return "not null"
    if "check constraint" in error_msg:
        return "check"

    return None
