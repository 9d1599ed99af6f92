"""
Unit tests for repository classes.
Tests CRUD operations, search, filtering and the like association.
"""

import pytest
import uuid
from decimal import Decimal
from unittest.mock import AsyncMock

from sqlalchemy.exc import IntegrityError

from rental_api.models.user import User, UserRole
from rental_api.models.property import Property
from rental_api.repositories.user import UserRepository
from rental_api.repositories.property import (
    PropertyRepository,
    PropertySearchFilters,
    PropertyQueryBuilder,
)
from rental_api.utils.exceptions import ConflictError, DuplicateResourceError, PropertyNotFoundError
from tests.conftest import UserFactory, PropertyFactory


class TestUserRepository:
    """Test cases for UserRepository."""

    async def test_create_user_normalizes_email(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="New.User@Example.com")
        assert user.email == "new.user@example.com"

    async def test_create_user_duplicate_email(self, user_repository: UserRepository, test_customer: User):
        with pytest.raises(DuplicateResourceError) as exc_info:
            await UserFactory.create_user(user_repository, email="CUSTOMER@example.com")

        assert exc_info.value.status_code == 409
        assert await user_repository.count() == 1

    async def test_create_user_invalid_email(self, user_repository: UserRepository):
        with pytest.raises(ValueError):
            await UserFactory.create_user(user_repository, email="not-an-email")

    async def test_get_by_email_is_case_insensitive(self, user_repository: UserRepository, test_customer: User):
        found = await user_repository.get_by_email("  Customer@Example.com ")
        assert found is not None
        assert found.id == test_customer.id

    async def test_authenticate_user(self, user_repository: UserRepository, test_customer: User):
        assert (await user_repository.authenticate_user("customer@example.com", "testpassword123")).id == test_customer.id
        assert await user_repository.authenticate_user("customer@example.com", "wrong") is None
        assert await user_repository.authenticate_user("nobody@example.com", "testpassword123") is None

    async def test_update_user_hashes_new_password(self, user_repository: UserRepository, test_customer: User):
        updated = await user_repository.update_user(test_customer, {"password": "brandnew456"})

        assert updated.verify_password("brandnew456")
        assert not updated.verify_password("testpassword123")

    async def test_update_user_email_taken(
        self,
        user_repository: UserRepository,
        test_customer: User,
        test_admin: User
    ):
        with pytest.raises(DuplicateResourceError):
            await user_repository.update_user(test_customer, {"email": "admin@example.com"})

    async def test_update_user_role(self, user_repository: UserRepository, test_customer: User):
        updated = await user_repository.update_user_role(test_customer, UserRole.ADMIN)
        assert updated.role == UserRole.ADMIN

    async def test_list_users_ordered_by_name(self, user_repository: UserRepository):
        for name in ["Mona", "Ali", "Youssef"]:
            await UserFactory.create_user(user_repository, name=name)

        users = await user_repository.list_users()
        assert [user.name for user in users] == ["Ali", "Mona", "Youssef"]

    async def test_delete_user_removes_likes(
        self,
        user_repository: UserRepository,
        property_repository: PropertyRepository,
        test_customer: User,
        test_property: Property
    ):
        user_id, property_id = test_customer.id, test_property.id
        await property_repository.add_like(user_id, property_id)

        assert await user_repository.delete_user(user_id) is True
        assert await user_repository.get_by_id(user_id) is None
        assert not await property_repository.is_liked(user_id, property_id)

        reloaded = await property_repository.get_property_with_details(property_id, refresh=True)
        assert reloaded.liked_by_users == []

    async def test_delete_missing_user(self, user_repository: UserRepository):
        assert await user_repository.delete_user(uuid.uuid4()) is False


class TestPropertyRepository:
    """Test cases for PropertyRepository."""

    @pytest.fixture
    async def listings(self, property_repository: PropertyRepository):
        """A small catalogue spread over two cities and a price range."""
        catalogue = [
            dict(name="Alpha Studio", city="Cairo", beds=1, price_per_month=Decimal("900.00"), amenities=["wifi"]),
            dict(name="Bravo Flat", city="Cairo", beds=2, price_per_month=Decimal("1000.00"), amenities=["pool", "gym"]),
            dict(name="Charlie House", city="Giza", beds=3, price_per_month=Decimal("1500.00"), is_featured=True),
            dict(name="Delta Villa", city="Giza", beds=4, price_per_month=Decimal("2000.00"), amenities=["pool"]),
            dict(name="Echo Penthouse", city="Cairo", beds=3, price_per_month=Decimal("2500.00"), is_active=False,
                 description="Rooftop terrace with a view"),
        ]
        return [await PropertyFactory.create_property(property_repository, **listing) for listing in catalogue]

    async def search_names(self, property_repository: PropertyRepository, **kwargs):
        sort_by = kwargs.pop("sort_by", "name")
        order = kwargs.pop("order", "asc")
        properties, total = await property_repository.search_properties(
            PropertySearchFilters(**kwargs), sort_by=sort_by, order=order, limit=100
        )
        return [property_obj.name for property_obj in properties], total

    async def test_create_property_loads_likes(self, property_repository: PropertyRepository):
        property_obj = await PropertyFactory.create_property(property_repository, name="Fresh Listing")

        assert property_obj.name == "Fresh Listing"
        assert property_obj.liked_by_users == []

    async def test_price_range_is_inclusive(self, property_repository: PropertyRepository, listings):
        names, total = await self.search_names(
            property_repository, min_price=Decimal("1000"), max_price=Decimal("2000")
        )

        assert names == ["Bravo Flat", "Charlie House", "Delta Villa"]
        assert total == 3

    async def test_text_search_matches_description(self, property_repository: PropertyRepository, listings):
        names, _ = await self.search_names(property_repository, search="rooftop")
        assert names == ["Echo Penthouse"]

    async def test_exact_filters(self, property_repository: PropertyRepository, listings):
        names, _ = await self.search_names(property_repository, city="Giza", beds=4)
        assert names == ["Delta Villa"]

    async def test_flag_filters(self, property_repository: PropertyRepository, listings):
        featured, _ = await self.search_names(property_repository, is_featured=True)
        inactive, _ = await self.search_names(property_repository, is_active=False)

        assert featured == ["Charlie House"]
        assert inactive == ["Echo Penthouse"]

    async def test_amenities_overlap(self, property_repository: PropertyRepository, listings):
        names, _ = await self.search_names(property_repository, amenities=["gym", "sauna"])
        assert names == ["Bravo Flat"]

        names, _ = await self.search_names(property_repository, amenities=["pool"])
        assert names == ["Bravo Flat", "Delta Villa"]

    async def test_sort_descending(self, property_repository: PropertyRepository, listings):
        names, _ = await self.search_names(property_repository, sort_by="price_per_month", order="desc")
        assert names[0] == "Echo Penthouse"
        assert names[-1] == "Alpha Studio"

    async def test_pagination_reports_total(self, property_repository: PropertyRepository, listings):
        properties, total = await property_repository.search_properties(
            PropertySearchFilters(), skip=2, limit=2
        )

        assert total == 5
        assert [property_obj.name for property_obj in properties] == ["Charlie House", "Delta Villa"]

    async def test_unknown_sort_field(self, property_repository: PropertyRepository):
        with pytest.raises(ValueError, match="Unsupported sort field"):
            await property_repository.search_properties(PropertySearchFilters(), sort_by="hashed_password")

    def test_query_builder_without_filters(self):
        assert PropertyQueryBuilder(PropertySearchFilters()).build_conditions() == []

    async def test_duplicate_like_conflicts(
        self,
        property_repository: PropertyRepository,
        test_customer: User,
        test_property: Property
    ):
        # The failed insert rolls back and expires loaded instances
        user_id, property_id = test_customer.id, test_property.id
        await property_repository.add_like(user_id, property_id)

        with pytest.raises(ConflictError, match="already liked"):
            await property_repository.add_like(user_id, property_id)

        assert await property_repository.is_liked(user_id, property_id)

    @pytest.mark.parametrize("message, expected", [
        (
            "insert or update on table \"property_likes\" violates foreign key constraint",
            PropertyNotFoundError,
        ),
        (
            "duplicate key value violates unique constraint \"property_likes_pkey\"",
            ConflictError,
        ),
    ])
    async def test_like_integrity_errors_are_classified(self, message, expected):
        session = AsyncMock()
        session.execute.side_effect = IntegrityError("INSERT", {}, Exception(message))
        repository = PropertyRepository(session)

        with pytest.raises(expected):
            await repository.add_like(uuid.uuid4(), uuid.uuid4())

        session.rollback.assert_awaited_once()

    async def test_remove_missing_like(
        self,
        property_repository: PropertyRepository,
        test_customer: User,
        test_property: Property
    ):
        assert await property_repository.remove_like(test_customer.id, test_property.id) is False

    async def test_liked_properties_for_user(
        self,
        property_repository: PropertyRepository,
        test_customer: User,
        listings
    ):
        for property_obj in (listings[3], listings[0]):
            await property_repository.add_like(test_customer.id, property_obj.id)

        liked, total = await property_repository.get_liked_properties(test_customer.id)

        assert total == 2
        assert [property_obj.name for property_obj in liked] == ["Alpha Studio", "Delta Villa"]

    async def test_delete_property_removes_likes(
        self,
        property_repository: PropertyRepository,
        test_customer: User,
        test_property: Property
    ):
        await property_repository.add_like(test_customer.id, test_property.id)

        assert await property_repository.delete_property(test_property.id) is True
        assert await property_repository.get_by_id(test_property.id) is None
        assert not await property_repository.is_liked(test_customer.id, test_property.id)
