"""
Authentication service for registration, login, token verification and user administration.
"""

from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from rental_api.repositories.user import UserRepository
from rental_api.models.user import User, UserRole
from rental_api.schemas.auth import RegisterRequest, UpdateProfileRequest
from rental_api.utils.auth import create_access_token, verify_token
from rental_api.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    NotFoundError,
    ValidationError,
)
from jose import JWTError, ExpiredSignatureError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing user accounts, tokens and roles.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    @staticmethod
    def create_token(user: User) -> str:
        return create_access_token(user_id=user.id)

    async def register(self, data: RegisterRequest, role: UserRole = UserRole.CUSTOMER) -> Tuple[User, str]:
        """
        Register a new account with a fixed role and issue a token.

        Args:
            data: Registration payload
            role: Role assigned to the account; never taken from the payload

        Returns:
            Tuple of (user, access_token)

        Raises:
            ValidationError: If the passwords differ or the email is invalid
            DuplicateResourceError: If the email is already registered
        """
        if data.password != data.password_confirm:
            raise ValidationError("Passwords do not match")

        try:
            user = await self.user_repo.create_user({
                "name": data.name,
                "email": data.email,
                "password": data.password,
                "role": role,
            })
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Registered {role.value} account: {user.email} (ID: {user.id})")
        return user, self.create_token(user)

    async def register_admin(self, data: RegisterRequest) -> Tuple[User, str]:
        """Register an administrator account."""
        return await self.register(data, role=UserRole.ADMIN)

    async def login(self, email: str, password: str) -> Tuple[User, str]:
        """
        Authenticate user with email and password and issue a token.

        Raises:
            ValidationError: If email or password is missing
            InvalidCredentialsError: If credentials are invalid
        """
        if not email or not email.strip() or not password:
            raise ValidationError("Please provide email and password")

        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        return user, self.create_token(user)

    async def get_current_user(self, token: str) -> User:
        """
        Resolve the user a token was issued for.

        Args:
            token: JWT access token

        Returns:
            Current User object

        Raises:
            InvalidTokenError: If the token is malformed or its user no longer exists
            TokenExpiredError: If the token is expired
        """
        try:
            token_payload = verify_token(token)
            user_id = uuid.UUID(token_payload.user_id)
        except ExpiredSignatureError:
            raise TokenExpiredError()
        except (JWTError, ValueError) as e:
            logger.warning(f"Rejected invalid token: {e}")
            raise InvalidTokenError()

        user = await self.user_repo.get_by_id(user_id)
        if not user:
            logger.warning(f"Token presented for missing user {user_id}")
            raise InvalidTokenError("The user belonging to this token no longer exists")

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Raises:
            NotFoundError: If user not found
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

    async def update_profile(self, current_user: User, data: UpdateProfileRequest) -> Tuple[User, str]:
        """
        Update the caller's own profile and issue a fresh token.

        The role is only changed when the caller is an administrator.

        Raises:
            ValidationError: If a new password is not confirmed
            DuplicateResourceError: If the new email belongs to another user
        """
        updates = {}

        if data.name:
            updates["name"] = data.name.strip()

        if data.email and data.email.lower() != current_user.email:
            updates["email"] = data.email

        if data.password:
            if data.password != data.password_confirm:
                raise ValidationError("Passwords do not match")
            updates["password"] = data.password

        if data.role and current_user.is_admin:
            updates["role"] = data.role

        if updates:
            try:
                current_user = await self.user_repo.update_user(current_user, updates)
            except ValueError as e:
                raise ValidationError(str(e))

        return current_user, self.create_token(current_user)

    async def list_users(self) -> List[User]:
        return await self.user_repo.list_users()

    async def update_user_role(self, user_id: uuid.UUID, new_role: UserRole, current_user: User) -> User:
        """
        Change another user's role. Callers are gated to administrators by the router.

        Raises:
            NotFoundError: If user doesn't exist
        """
        target_user = await self.get_user_by_id(user_id)
        updated_user = await self.user_repo.update_user_role(target_user, new_role)

        logger.info(f"User role updated by {current_user.email}: {user_id} -> {new_role.value}")
        return updated_user

    async def delete_user(self, user_id: uuid.UUID, current_user: Optional[User] = None) -> None:
        """
        Delete a user and their likes.

        Raises:
            NotFoundError: If user doesn't exist
        """
        deleted = await self.user_repo.delete_user(user_id)
        if not deleted:
            raise NotFoundError("User", str(user_id))

        actor = current_user.email if current_user else "system"
        logger.info(f"User {user_id} deleted by {actor}")
