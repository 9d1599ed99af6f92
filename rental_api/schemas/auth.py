"""
Pydantic schemas for authentication requests and responses.
Handles registration, login and profile update payloads.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional
from rental_api.models.user import UserRole
from rental_api.schemas.user import UserResponse


class RegisterRequest(BaseModel):
    """Registration request schema. Used for customers and administrators."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "name": "Jane Doe",
                "email": "jane@example.com",
                "password": "securepassword123",
                "passwordConfirm": "securepassword123"
            }
        }
    )

    name: str = Field(..., min_length=1, max_length=255, description="User's display name")
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=1, max_length=128, description="User's password")
    password_confirm: str = Field(
        ...,
        alias="passwordConfirm",
        description="Must repeat the password exactly"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Strip surrounding whitespace from the name."""
        if not v.strip():
            raise ValueError("Name cannot be empty")
        return v.strip()


class LoginRequest(BaseModel):
    """Login request schema."""

    email: str = Field(..., min_length=1, description="User's email address", examples=["jane@example.com"])
    password: str = Field(..., min_length=1, description="User's password", examples=["securepassword123"])

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class UpdateProfileRequest(BaseModel):
    """
    Self-service profile update. Every field is optional; ``role`` is only
    honoured when the caller is an administrator.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1, max_length=128)
    password_confirm: Optional[str] = Field(None, alias="passwordConfirm")
    role: Optional[UserRole] = None


class AuthResponse(BaseModel):
    """Token plus user, returned by register, login and profile update."""

    status: str = "success"
    token: str = Field(..., description="JWT access token")
    user: UserResponse


class LogoutResponse(BaseModel):
    status: str = "success"
    token: Optional[str] = None
