"""
User repository for authentication and user management operations.
Provides secure user operations with password handling and role-based access.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.exc import IntegrityError
from rental_api.repositories.base import BaseRepository
from rental_api.models.user import User, UserRole
from rental_api.models.like import property_likes
from rental_api.utils.exceptions import DuplicateResourceError
from typing import Optional, List, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication and authorization support.
    Email uniqueness is left to the database constraint and reported as a conflict.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: name, email, password
                      Optional: role (defaults to CUSTOMER)

        Returns:
            Created user instance

        Raises:
            ValueError: If the email or password is invalid
            DuplicateResourceError: If the email is already registered
        """
        data = dict(user_data)
        email = User.validate_email_format(data["email"])
        hashed_password = User.hash_password(data.pop("password"))

        create_data = {
            "name": data["name"],
            "email": email,
            "hashed_password": hashed_password,
            "role": data.get("role") or UserRole.CUSTOMER,
        }

        try:
            created_user = await self.create(create_data)
        except IntegrityError:
            logger.warning(f"Registration rejected, email already in use: {email}")
            raise DuplicateResourceError("User", email)

        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address.

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        try:
            normalized_email = email.lower().strip()
            result = await self.db.execute(select(User).where(User.email == normalized_email))
            user = result.scalar_one_or_none()

            if user:
                logger.debug(f"Retrieved user by email: {email}")
            else:
                logger.debug(f"User with email {email} not found")

            return user
        except Exception as e:
            logger.error(f"Failed to get user by email {email}: {e}")
            raise

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Args:
            email: User's email address
            password: Plain text password

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def update_user(self, user: User, update_data: Dict[str, Any]) -> User:
        """
        Update user fields, hashing a new password and normalizing a new email.

        Raises:
            ValueError: If the new email or password is invalid
            DuplicateResourceError: If the new email belongs to another user
        """
        data = dict(update_data)
        if "email" in data:
            data["email"] = User.validate_email_format(data["email"])
        if "password" in data:
            data["hashed_password"] = User.hash_password(data.pop("password"))

        try:
            updated_user = await self.update(user, data)
        except IntegrityError:
            raise DuplicateResourceError("User", data.get("email", ""))

        logger.info(f"Updated user {updated_user.id}")
        return updated_user

    async def update_user_role(self, user: User, new_role: UserRole) -> User:
        """
        Change a user's role.

        Args:
            user: User to update
            new_role: Role to assign

        Returns:
            Updated user instance
        """
        updated_user = await self.update(user, {"role": new_role})
        logger.info(f"Updated user {user.id} role to {new_role.value}")
        return updated_user

    async def list_users(self, skip: int = 0, limit: int = 100) -> List[User]:
        """Users ordered by name."""
        return await self.get_multi(skip=skip, limit=limit, order_by="name")

    async def delete_user(self, user_id: uuid.UUID) -> bool:
        """
        Delete a user together with every like the user has given.

        Args:
            user_id: UUID of the user to delete

        Returns:
            True if user was deleted, False if not found
        """
        try:
            await self.db.execute(
                delete(property_likes).where(property_likes.c.user_id == user_id)
            )
            result = await self.db.execute(delete(User).where(User.id == user_id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete user {user_id}: {e}")
            raise

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted user {user_id} and their likes")
        return deleted
