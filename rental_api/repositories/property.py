"""
Property repository for managing rental listings with search, filtering and likes.
Provides the query builder behind the listing endpoints.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func, asc, desc, cast, delete, insert, String
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from rental_api.repositories.base import BaseRepository
from rental_api.models.property import Property
from rental_api.models.like import property_likes
from rental_api.utils.exceptions import ConflictError, PropertyNotFoundError, classify_integrity_error
from typing import Optional, List, Dict, Any, Tuple
from decimal import Decimal
import json
import uuid
import logging

logger = logging.getLogger(__name__)


# Columns clients may sort listings by
SORTABLE_FIELDS = [
    "name",
    "city",
    "state",
    "beds",
    "baths",
    "square_meters",
    "price_per_night",
    "price_per_month",
    "created_at",
    "updated_at",
]


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        beds: Optional[int] = None,
        baths: Optional[int] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        is_featured: Optional[bool] = None,
        is_active: Optional[bool] = None,
        amenities: Optional[List[str]] = None
    ):
        self.search = search
        self.city = city
        self.state = state
        self.beds = beds
        self.baths = baths
        self.min_price = min_price
        self.max_price = max_price
        self.is_featured = is_featured
        self.is_active = is_active
        self.amenities = amenities or []


class PropertyQueryBuilder:
    """
    Builds listing queries from search filters, a sort and a page window.

    Conditions are shared by the row query and the count query so the
    reported total always matches the filtered set.
    """

    def __init__(self, filters: PropertySearchFilters):
        self.filters = filters

    def build_conditions(self) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Returns:
            List of SQLAlchemy conditions
        """
        filters = self.filters
        conditions = []

        # Text search across name, description and address
        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Property.name.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.address.ilike(search_term)
                )
            )

        if filters.city:
            conditions.append(Property.city == filters.city)
        if filters.state:
            conditions.append(Property.state == filters.state)
        if filters.beds is not None:
            conditions.append(Property.beds == filters.beds)
        if filters.baths is not None:
            conditions.append(Property.baths == filters.baths)

        # Inclusive monthly price bounds
        if filters.min_price is not None:
            conditions.append(Property.price_per_month >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price_per_month <= filters.max_price)

        if filters.is_featured is not None:
            conditions.append(Property.is_featured == filters.is_featured)
        if filters.is_active is not None:
            conditions.append(Property.is_active == filters.is_active)

        # Overlap: any requested amenity appears in the stored JSON list
        if filters.amenities:
            amenities_text = cast(Property.amenities, String)
            conditions.append(
                or_(*[
                    amenities_text.contains(json.dumps(amenity), autoescape=True)
                    for amenity in filters.amenities
                ])
            )

        return conditions

    def build_query(self, sort_by: str = "name", order: str = "asc", skip: int = 0, limit: int = 10):
        """Row query with filters, ordering and pagination applied."""
        query = select(Property).options(selectinload(Property.liked_by_users))

        conditions = self.build_conditions()
        if conditions:
            query = query.where(and_(*conditions))

        sort_column = getattr(Property, sort_by)
        direction = desc if order == "desc" else asc
        # Tie-break on id so pages are stable
        query = query.order_by(direction(sort_column), Property.id)

        return query.offset(skip).limit(limit)

    def build_count_query(self):
        """Count query sharing the row query's filters."""
        query = select(func.count(Property.id))

        conditions = self.build_conditions()
        if conditions:
            query = query.where(and_(*conditions))

        return query


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management with search, filtering and likes.
    Like rows are written with explicit statements against the association table.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property.

        Args:
            property_data: Dictionary containing property information

        Returns:
            Created property with its likes loaded
        """
        created_property = await self.create(property_data)
        logger.info(f"Created property: {created_property.name} (ID: {created_property.id})")
        return await self.get_property_with_details(created_property.id, refresh=True)

    async def update_property(self, property_obj: Property, update_data: Dict[str, Any]) -> Property:
        """
        Apply changes to a property and reload it with its likes.
        """
        updated = await self.update(property_obj, update_data)
        logger.info(f"Updated property {updated.id}")
        return await self.get_property_with_details(updated.id, refresh=True)

    async def get_property_with_details(self, property_id: uuid.UUID, refresh: bool = False) -> Optional[Property]:
        """
        Get property with the users who liked it.

        Args:
            property_id: UUID of the property
            refresh: Overwrite any copy already held by the session

        Returns:
            Property with loaded relationships or None if not found
        """
        try:
            query = (
                select(Property)
                .options(selectinload(Property.liked_by_users))
                .where(Property.id == property_id)
            )
            if refresh:
                query = query.execution_options(populate_existing=True)

            result = await self.db.execute(query)
            property_obj = result.scalar_one_or_none()

            if property_obj:
                logger.debug(f"Retrieved property with details: {property_id}")

            return property_obj
        except Exception as e:
            logger.error(f"Failed to get property with details {property_id}: {e}")
            raise

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 10,
        sort_by: str = "name",
        order: str = "asc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering, sorting and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            sort_by: Field to order by, one of SORTABLE_FIELDS
            order: 'asc' or 'desc'

        Returns:
            Tuple of (properties list, total count)
        """
        if sort_by not in SORTABLE_FIELDS:
            raise ValueError(f"Unsupported sort field: {sort_by}")

        try:
            builder = PropertyQueryBuilder(filters)

            count_result = await self.db.execute(builder.build_count_query())
            total_count = count_result.scalar()

            result = await self.db.execute(builder.build_query(sort_by, order, skip, limit))
            properties = result.scalars().all()

            logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to search properties: {e}")
            raise

    async def delete_property(self, property_id: uuid.UUID) -> bool:
        """
        Delete a property and every like it received in one transaction.

        Returns:
            True if the property was deleted, False if not found
        """
        try:
            await self.db.execute(
                delete(property_likes).where(property_likes.c.property_id == property_id)
            )
            result = await self.db.execute(delete(Property).where(Property.id == property_id))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to delete property {property_id}: {e}")
            raise

        deleted = result.rowcount > 0
        if deleted:
            logger.info(f"Deleted property {property_id}")
        return deleted

    async def add_like(self, user_id: uuid.UUID, property_id: uuid.UUID) -> None:
        """
        Record that a user likes a property.

        Raises:
            ConflictError: If the user already likes the property
            PropertyNotFoundError: If the property disappeared before the insert
        """
        try:
            await self.db.execute(
                insert(property_likes).values(user_id=user_id, property_id=property_id)
            )
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            constraint = classify_integrity_error(e)
            if constraint == "unique":
                logger.debug(f"Duplicate like from user {user_id} on property {property_id}")
                raise ConflictError("You have already liked this property")
            if constraint == "foreign key":
                logger.warning(f"Like for missing property {property_id} from user {user_id}")
                raise PropertyNotFoundError(str(property_id))
            logger.error(f"Failed to like property {property_id} for user {user_id}: {e}")
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to like property {property_id} for user {user_id}: {e}")
            raise

        logger.info(f"User {user_id} liked property {property_id}")

    async def remove_like(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Remove a like. Removing a like that does not exist is not an error.

        Returns:
            True if a like row was removed
        """
        try:
            result = await self.db.execute(
                delete(property_likes).where(
                    and_(
                        property_likes.c.user_id == user_id,
                        property_likes.c.property_id == property_id
                    )
                )
            )
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to unlike property {property_id} for user {user_id}: {e}")
            raise

        removed = result.rowcount > 0
        if removed:
            logger.info(f"User {user_id} unliked property {property_id}")
        return removed

    async def is_liked(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(property_likes).where(
                and_(
                    property_likes.c.user_id == user_id,
                    property_likes.c.property_id == property_id
                )
            )
        )
        return result.scalar() > 0

    async def get_liked_properties(
        self,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 10
    ) -> Tuple[List[Property], int]:
        """
        Get the properties a user has liked, ordered by name.

        Returns:
            Tuple of (properties list, total count)
        """
        try:
            liked_by_user = property_likes.c.user_id == user_id

            count_result = await self.db.execute(
                select(func.count()).select_from(property_likes).where(liked_by_user)
            )
            total_count = count_result.scalar()

            query = (
                select(Property)
                .join(property_likes, property_likes.c.property_id == Property.id)
                .where(liked_by_user)
                .options(selectinload(Property.liked_by_users))
                .order_by(Property.name, Property.id)
                .offset(skip)
                .limit(limit)
            )
            result = await self.db.execute(query)
            properties = result.scalars().all()

            logger.debug(f"Retrieved {len(properties)} liked properties for user {user_id}")
            return list(properties), total_count
        except Exception as e:
            logger.error(f"Failed to get liked properties for user {user_id}: {e}")
            raise
