"""
Test configuration and fixtures for the rental listing API.
Provides database fixtures, test data factories, and common test utilities.
"""

import os
import tempfile

# Settings are read at import time, so the environment is prepared first
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "testing"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="rental-api-uploads-")
os.environ["JWT_SECRET_KEY"] = "test-secret-key-that-is-at-least-32-characters"
os.environ["CREATE_TABLES_ON_STARTUP"] = "false"

import io
import uuid
from decimal import Decimal
from pathlib import Path
from typing import AsyncGenerator, List, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from starlette.datastructures import Headers, UploadFile

from rental_api.main import app
from rental_api.database import Base, build_engine_options, get_db
from rental_api.models.user import User, UserRole
from rental_api.models.property import Property
from rental_api.repositories.user import UserRepository
from rental_api.repositories.property import PropertyRepository
from rental_api.utils.auth import create_access_token


TEST_DATABASE_URL = os.environ["DATABASE_URL"]


@pytest.fixture
async def test_engine():
    """Fresh in-memory database with every table created."""
    engine = create_async_engine(TEST_DATABASE_URL, **build_engine_options(TEST_DATABASE_URL))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker:
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async test client; every request gets its own session on the test database."""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as async_client:
        yield async_client

    app.dependency_overrides.clear()


# Repository fixtures
@pytest.fixture
def user_repository(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def property_repository(db_session: AsyncSession) -> PropertyRepository:
    return PropertyRepository(db_session)


# Test data factories
class UserFactory:
    """Factory for creating test users."""

    @staticmethod
    def create_user_data(
        email: str = None,
        password: str = "testpassword123",
        name: str = "Test User",
        role: UserRole = UserRole.CUSTOMER
    ) -> dict:
        return {
            "email": email or f"test{uuid.uuid4().hex[:8]}@example.com",
            "password": password,
            "name": name,
            "role": role,
        }

    @staticmethod
    async def create_user(user_repo: UserRepository, **kwargs) -> User:
        """Create a test user in the database."""
        return await user_repo.create_user(UserFactory.create_user_data(**kwargs))


class PropertyFactory:
    """Factory for creating test properties."""

    @staticmethod
    def create_property_data(
        name: str = "Test Property",
        description: str = "A bright flat close to the river",
        address: str = "12 Nile Street",
        city: str = "Cairo",
        state: str = "Cairo Governorate",
        neighborhood: str = "Zamalek",
        beds: int = 2,
        baths: int = 1,
        price_per_month: Decimal = Decimal("1500.00"),
        amenities: Optional[List[str]] = None,
        **extra
    ) -> dict:
        data = {
            "name": name,
            "description": description,
            "address": address,
            "city": city,
            "state": state,
            "neighborhood": neighborhood,
            "beds": beds,
            "baths": baths,
            "price_per_month": price_per_month,
            "amenities": amenities if amenities is not None else ["wifi"],
        }
        data.update(extra)
        return data

    @staticmethod
    async def create_property(property_repo: PropertyRepository, **kwargs) -> Property:
        """Create a test property in the database."""
        return await property_repo.create_property(PropertyFactory.create_property_data(**kwargs))


# Common test fixtures
@pytest.fixture
async def test_customer(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="customer@example.com",
        name="Casey Customer"
    )


@pytest.fixture
async def test_admin(user_repository: UserRepository) -> User:
    return await UserFactory.create_user(
        user_repository,
        email="admin@example.com",
        name="Alex Admin",
        role=UserRole.ADMIN
    )


@pytest.fixture
async def test_property(property_repository: PropertyRepository) -> Property:
    return await PropertyFactory.create_property(property_repository)


@pytest.fixture
def customer_headers(test_customer: User) -> dict:
    return auth_headers(test_customer)


@pytest.fixture
def admin_headers(test_admin: User) -> dict:
    return auth_headers(test_admin)


# Utility functions for tests
def auth_headers(user: User) -> dict:
    """Bearer header for a user."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


def make_image_bytes(image_format: str = "JPEG", color=(200, 120, 40)) -> bytes:
    """Encode a small solid-colour image."""
    buffer = io.BytesIO()
    Image.new("RGB", (16, 16), color).save(buffer, format=image_format)
    return buffer.getvalue()


def make_upload(
    data: bytes,
    filename: str,
    content_type: str,
    declare_size: bool = True
) -> UploadFile:
    """UploadFile as the multipart parser would hand it over."""
    return UploadFile(
        file=io.BytesIO(data),
        filename=filename,
        size=len(data) if declare_size else None,
        headers=Headers({"content-type": content_type})
    )


def stored_files(root) -> set:
    """Every file currently below an upload directory."""
    return {path for path in Path(root).rglob("*") if path.is_file()}
