"""
Pydantic schemas for request/response validation.
"""

from .user import UserResponse, UserEnvelope, UserListResponse, RoleUpdateRequest
from .auth import RegisterRequest, LoginRequest, UpdateProfileRequest, AuthResponse, LogoutResponse
from .property import (
    PropertyForm,
    PropertyUpdateForm,
    PropertyResponse,
    PropertyEnvelope,
    PropertyListResponse,
    MessageResponse,
)
from .error import ErrorDetail, ErrorResponse, APIErrorResponse

__all__ = [
    "UserResponse",
    "UserEnvelope",
    "UserListResponse",
    "RoleUpdateRequest",
    "RegisterRequest",
    "LoginRequest",
    "UpdateProfileRequest",
    "AuthResponse",
    "LogoutResponse",
    "PropertyForm",
    "PropertyUpdateForm",
    "PropertyResponse",
    "PropertyEnvelope",
    "PropertyListResponse",
    "MessageResponse",
    "ErrorDetail",
    "ErrorResponse",
    "APIErrorResponse",
]
