"""
Authentication API endpoints for registration, login, profile and user administration.
"""

from fastapi import APIRouter, Depends, Response, status
from typing import Optional
from uuid import UUID

from rental_api.models.user import User, UserRole
from rental_api.services.auth import AuthService
from rental_api.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    UpdateProfileRequest,
    AuthResponse,
    LogoutResponse
)
from rental_api.schemas.user import UserResponse, UserEnvelope, UserListResponse, RoleUpdateRequest
from rental_api.schemas.error import get_auth_error_responses
from rental_api.utils.dependencies import (
    get_auth_service,
    get_current_user,
    get_admin_registration_guard,
    require_role
)


router = APIRouter(prefix="/auth", tags=["Authentication"])


def _auth_response(user: User, token: str) -> AuthResponse:
    return AuthResponse(token=token, user=UserResponse.model_validate(user.to_dict()))


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a customer account",
    responses=get_auth_error_responses()
)
async def register(
    register_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Create a customer account and return a token for it.

    Raises:
        ValidationError: If the passwords do not match
        DuplicateResourceError: If the email is already registered
    """
    user, token = await auth_service.register(register_data)
    return _auth_response(user, token)


@router.post(
    "/register-admin",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register an administrator account",
    description="Requires an administrator token unless open admin registration is enabled.",
    responses=get_auth_error_responses()
)
async def register_admin(
    register_data: RegisterRequest,
    _: Optional[User] = Depends(get_admin_registration_guard),
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    user, token = await auth_service.register_admin(register_data)
    return _auth_response(user, token)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns a JWT token",
    responses=get_auth_error_responses()
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    """
    Raises:
        InvalidCredentialsError: If credentials are invalid
    """
    user, token = await auth_service.login(email=login_data.email, password=login_data.password)
    return _auth_response(user, token)


@router.get(
    "/logout",
    response_model=LogoutResponse,
    summary="Log out",
    description="Tokens are stateless; clients discard theirs. Returns a null token."
)
async def logout(current_user: User = Depends(get_current_user)) -> LogoutResponse:
    return LogoutResponse(token=None)


@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Get current user information"
)
async def get_me(current_user: User = Depends(get_current_user)) -> UserEnvelope:
    return UserEnvelope(user=UserResponse.model_validate(current_user.to_dict()))


@router.patch(
    "/update-profile",
    response_model=AuthResponse,
    summary="Update own profile",
    description="Change name, email or password. Only administrators may change a role.",
    responses=get_auth_error_responses()
)
async def update_profile(
    profile_data: UpdateProfileRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> AuthResponse:
    user, token = await auth_service.update_profile(current_user, profile_data)
    return _auth_response(user, token)


@router.get(
    "/users",
    response_model=UserListResponse,
    summary="List all users",
    responses=get_auth_error_responses()
)
async def list_users(
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserListResponse:
    users = await auth_service.list_users()
    return UserListResponse(
        results=len(users),
        users=[UserResponse.model_validate(user.to_dict()) for user in users]
    )


@router.patch(
    "/users/{user_id}",
    response_model=UserEnvelope,
    summary="Change a user's role",
    responses=get_auth_error_responses()
)
async def update_user_role(
    user_id: UUID,
    role_data: RoleUpdateRequest,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserEnvelope:
    user = await auth_service.update_user_role(user_id, role_data.role, current_user)
    return UserEnvelope(user=UserResponse.model_validate(user.to_dict()))


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a user",
    responses=get_auth_error_responses()
)
async def delete_user(
    user_id: UUID,
    current_user: User = Depends(require_role(UserRole.ADMIN)),
    auth_service: AuthService = Depends(get_auth_service)
) -> Response:
    await auth_service.delete_user(user_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
