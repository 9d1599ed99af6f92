"""
Property service for managing rental listings.
Handles CRUD with media uploads, search, and likes.
"""

from typing import Optional, List, Dict, Any, Tuple
from fastapi import UploadFile
from sqlalchemy.ext.asyncio import AsyncSession
from rental_api.config import settings
from rental_api.repositories.property import PropertyRepository, PropertySearchFilters, SORTABLE_FIELDS
from rental_api.models.property import Property
from rental_api.models.user import User
from rental_api.schemas.property import PropertyForm, PropertyUpdateForm
from rental_api.services.media import MediaService
from rental_api.utils.exceptions import InternalServerError, PropertyNotFoundError
from rental_api.utils.validators import ValidationUtils
import uuid
import logging

logger = logging.getLogger(__name__)

FLAG_FIELDS = ("is_featured", "is_active")


class PropertyService:
    """
    Property service for managing property listings.

    Any authenticated user may create, update or delete any property;
    there is no ownership model.
    """

    def __init__(self, db_session: AsyncSession, media_service: Optional[MediaService] = None):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.media = media_service or MediaService()

    @staticmethod
    def _form_values(form, exclude_none: bool) -> Dict[str, Any]:
        """Typed column values from a form, with amenities and flags parsed."""
        data = form.model_dump(exclude={"amenities", *FLAG_FIELDS}, exclude_none=exclude_none)

        amenities = ValidationUtils.parse_amenities(form.amenities)
        if amenities is not None:
            data["amenities"] = amenities

        for flag in FLAG_FIELDS:
            value = ValidationUtils.coerce_bool(getattr(form, flag))
            if value is not None:
                data[flag] = value

        return data

    async def get_property(self, property_id: uuid.UUID) -> Property:
        """
        Raises:
            PropertyNotFoundError: If property doesn't exist
        """
        property_obj = await self.property_repo.get_property_with_details(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))
        return property_obj

    async def create_property(
        self,
        property_data: PropertyForm,
        uploads: Dict[str, List[UploadFile]],
        current_user: User
    ) -> Property:
        """
        Create a property listing with its uploaded media.

        Files are validated before any is written and removed again when the
        database insert fails.

        Raises:
            ValidationError: If amenities cannot be parsed
            UnsupportedMediaTypeError: If an upload is of the wrong type
        """
        create_data = self._form_values(property_data, exclude_none=True)

        stored = await self.media.save_uploads(uploads)
        featured = stored.get("featured_image", [])
        create_data["featured_image"] = featured[0] if featured else None
        create_data["gallery_images"] = stored.get("gallery_images", [])
        create_data["videos"] = stored.get("videos", [])

        try:
            property_obj = await self.property_repo.create_property(create_data)
        except Exception:
            self.media.delete_files(path for paths in stored.values() for path in paths)
            raise

        logger.info(f"Property created by {current_user.email}: {property_obj.name} (ID: {property_obj.id})")
        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdateForm,
        uploads: Dict[str, List[UploadFile]],
        current_user: User
    ) -> Property:
        """
        Update a property. New gallery images and videos are appended; a new
        featured image replaces the old one, which is removed after commit.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            InternalServerError: If the database write fails
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        update_data = self._form_values(property_data, exclude_none=True)

        stored = await self.media.save_uploads(uploads)
        replaced_featured = None
        if stored.get("featured_image"):
            replaced_featured = property_obj.featured_image
            update_data["featured_image"] = stored["featured_image"][0]
        if stored.get("gallery_images"):
            update_data["gallery_images"] = list(property_obj.gallery_images or []) + stored["gallery_images"]
        if stored.get("videos"):
            update_data["videos"] = list(property_obj.videos or []) + stored["videos"]

        try:
            updated = await self.property_repo.update_property(property_obj, update_data)
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}", exc_info=True)
            self.media.delete_files(path for paths in stored.values() for path in paths)
            raise InternalServerError("Error updating the property in the database")

        if replaced_featured:
            self.media.delete_files([replaced_featured])

        logger.info(f"Property {property_id} updated by {current_user.email}")
        return updated

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Delete a property. Its media files are removed before the record.

        Raises:
            PropertyNotFoundError: If property doesn't exist
        """
        property_obj = await self.property_repo.get_by_id(property_id)
        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        self.media.delete_files(property_obj.media_paths)
        await self.property_repo.delete_property(property_id)

        logger.info(f"Property {property_id} deleted by {current_user.email}")

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        page: Optional[int] = None,
        limit: Optional[int] = None,
        sort_by: Optional[str] = None,
        order: Optional[str] = None
    ) -> Tuple[List[Property], int, int, int]:
        """
        Search properties with filtering, sorting and pagination.

        Returns:
            Tuple of (properties, total count, page, limit)

        Raises:
            ValidationError: If sort, pagination or price parameters are invalid
        """
        sort_field, sort_order = ValidationUtils.validate_sort_parameters(sort_by, order, SORTABLE_FIELDS)
        page, limit = ValidationUtils.validate_pagination(
            page, limit, default_limit=settings.default_page_size, max_limit=settings.max_page_size
        )
        ValidationUtils.validate_price_range(filters.min_price, filters.max_price)

        properties, total = await self.property_repo.search_properties(
            filters,
            skip=(page - 1) * limit,
            limit=limit,
            sort_by=sort_field,
            order=sort_order
        )
        return properties, total, page, limit

    async def like_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Raises:
            PropertyNotFoundError: If property doesn't exist
            ConflictError: If the user already likes the property
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))
        await self.property_repo.add_like(current_user.id, property_id)

    async def unlike_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Raises:
            PropertyNotFoundError: If property doesn't exist
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))
        await self.property_repo.remove_like(current_user.id, property_id)

    async def get_liked_properties(
        self,
        current_user: User,
        page: Optional[int] = None,
        limit: Optional[int] = None
    ) -> Tuple[List[Property], int, int, int]:
        """
        Returns:
            Tuple of (properties, total count, page, limit)
        """
        page, limit = ValidationUtils.validate_pagination(
            page, limit, default_limit=settings.default_page_size, max_limit=settings.max_page_size
        )
        properties, total = await self.property_repo.get_liked_properties(
            current_user.id, skip=(page - 1) * limit, limit=limit
        )
        return properties, total, page, limit
