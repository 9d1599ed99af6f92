"""
Pydantic schemas for user requests and responses.
"""

from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime
from rental_api.models.user import UserRole


class UserResponse(BaseModel):
    """User response schema (excluding sensitive data)."""

    id: str = Field(
        ...,
        description="User's unique identifier",
        examples=["123e4567-e89b-12d3-a456-426614174000"]
    )
    name: str = Field(..., description="User's display name", examples=["Jane Doe"])
    email: EmailStr = Field(..., description="User's email address", examples=["jane@example.com"])
    role: UserRole = Field(..., description="User's role", examples=["customer"])
    created_at: Optional[datetime] = Field(None, description="Account creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    class Config:
        from_attributes = True


class UserEnvelope(BaseModel):
    """Single user wrapped in the response envelope."""

    status: str = "success"
    user: UserResponse


class UserListResponse(BaseModel):
    """All users, as returned to administrators."""

    status: str = "success"
    results: int = Field(..., description="Number of users returned")
    users: List[UserResponse]


class RoleUpdateRequest(BaseModel):
    """Schema for an administrator changing a user's role."""

    role: UserRole = Field(..., description="New role", examples=["admin"])
