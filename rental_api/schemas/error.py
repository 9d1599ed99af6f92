"""
Error response schemas for API documentation and consistent error formatting.
Provides standardized error response models for OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import List, Optional, Any, Dict


class ErrorDetail(BaseModel):
    """Schema for individual error detail."""

    field: Optional[str] = Field(None, description="Field name that caused the error", examples=["email"])
    message: str = Field(..., description="Human-readable error message", examples=["Invalid email format"])
    type: Optional[str] = Field(None, description="Error type identifier", examples=["value_error"])
    input: Optional[Any] = Field(None, description="Input value that caused the error")


class ErrorResponse(BaseModel):
    """Schema for standardized error responses."""

    code: str = Field(..., description="Error code identifier", examples=["VALIDATION_ERROR"])
    message: str = Field(..., description="Human-readable error message", examples=["Request validation failed"])
    timestamp: str = Field(..., description="Error timestamp in ISO format", examples=["2024-01-01T00:00:00Z"])
    request_id: Optional[str] = Field(None, description="Unique request identifier for tracking", examples=["abc12345"])
    details: Optional[List[ErrorDetail]] = Field(None, description="Detailed error information for validation errors")


class APIErrorResponse(BaseModel):
    """Schema for API error response wrapper."""

    status: str = Field(..., description="'fail' for client errors, 'error' for server errors", examples=["fail"])
    error: ErrorResponse = Field(..., description="Error information")


def _example(status: str, code: str, message: str) -> Dict[str, Any]:
    return {
        "status": status,
        "error": {
            "code": code,
            "message": message,
            "timestamp": "2024-01-01T00:00:00Z",
            "request_id": "abc12345"
        }
    }


# Common error response examples for documentation
COMMON_ERROR_RESPONSES = {
    400: ("Bad Request - Invalid request parameters", _example("fail", "VALIDATION_ERROR", "Request validation failed")),
    401: ("Unauthorized - Authentication required", _example("fail", "UNAUTHORIZED", "Authentication required")),
    403: ("Forbidden - Insufficient permissions", _example("fail", "FORBIDDEN", "You do not have permission to perform this action")),
    404: ("Not Found - Resource does not exist", _example("fail", "NOT_FOUND", "Property not found with ID: 123e4567-e89b-12d3-a456-426614174000")),
    409: ("Conflict - Resource already exists", _example("fail", "CONFLICT", "You have already liked this property")),
    415: ("Unsupported Media Type - Wrong file type for field", _example("fail", "UNSUPPORTED_MEDIA_TYPE", "Invalid file type for 'featured_image': video/mp4. Only image files are allowed")),
    500: ("Internal Server Error", _example("error", "INTERNAL_SERVER_ERROR", "An unexpected error occurred. Please try again later.")),
}


def get_error_responses(*status_codes: int) -> Dict[int, Dict[str, Any]]:
    """
    Get error response schemas for specific status codes.

    Args:
        status_codes: HTTP status codes to include

    Returns:
        Dictionary of error response schemas
    """
    responses = {}
    for code in status_codes:
        if code not in COMMON_ERROR_RESPONSES:
            continue
        description, example = COMMON_ERROR_RESPONSES[code]
        responses[code] = {
            "description": description,
            "model": APIErrorResponse,
            "content": {"application/json": {"example": example}}
        }
    return responses


def get_auth_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get authentication and authorization error response schemas."""
    return get_error_responses(400, 401, 403, 409, 500)


def get_crud_error_responses() -> Dict[int, Dict[str, Any]]:
    """Get error response schemas for CRUD operations."""
    return get_error_responses(400, 401, 404, 409, 415, 500)
