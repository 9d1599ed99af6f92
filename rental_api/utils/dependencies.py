"""
FastAPI dependency injection utilities for authentication and services.
Provides reusable dependencies for route protection and user extraction.
"""

from typing import Optional
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from rental_api.config import settings
from rental_api.database import get_db
from rental_api.models.user import User, UserRole
from rental_api.services.auth import AuthService
from rental_api.services.property import PropertyService
from rental_api.utils.exceptions import UnauthorizedError, InsufficientPermissionsError


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


async def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    """
    Get authentication service instance.

    Args:
        db: Database session

    Returns:
        AuthService instance
    """
    return AuthService(db)


async def get_property_service(db: AsyncSession = Depends(get_db)) -> PropertyService:
    """
    Get property service instance.

    Args:
        db: Database session

    Returns:
        PropertyService instance
    """
    return PropertyService(db)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> User:
    """
    Get current authenticated user from JWT token and attach it to the request.

    Args:
        request: Incoming request; ``request.state.user`` is set on success
        credentials: HTTP Bearer credentials
        auth_service: Authentication service

    Returns:
        Current User object

    Raises:
        UnauthorizedError: If no token provided
        InvalidTokenError: If token is invalid or its user is gone
        TokenExpiredError: If token is expired
    """
    if not credentials:
        raise UnauthorizedError("You are not logged in. Please log in to get access")

    user = await auth_service.get_current_user(credentials.credentials)
    request.state.user = user
    return user


def require_role(required_role: UserRole):
    """
    Create a dependency that requires a specific user role.

    Args:
        required_role: Required user role

    Returns:
        Dependency function
    """
    async def role_dependency(
        current_user: User = Depends(get_current_user)
    ) -> User:
        if current_user.role != required_role:
            raise InsufficientPermissionsError("perform this action")
        return current_user

    return role_dependency


async def get_optional_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[User]:
    """
    Get current user if a token is provided, otherwise return None.

    A token that is present but invalid is still rejected.
    """
    if not credentials:
        return None
    return await get_current_user(request, credentials, auth_service)


async def get_admin_registration_guard(
    current_user: Optional[User] = Depends(get_optional_current_user)
) -> Optional[User]:
    """
    Gate administrator registration.

    Open registration can be enabled through settings; otherwise the caller
    must be an authenticated administrator.
    """
    if settings.allow_open_admin_registration:
        return current_user

    if current_user is None:
        raise UnauthorizedError("You are not logged in. Please log in to get access")

    if current_user.role != UserRole.ADMIN:
        raise InsufficientPermissionsError("register administrators")

    return current_user
