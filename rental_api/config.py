"""
Configuration management using Pydantic settings.
Handles database URL, JWT secrets, upload storage and environment variables.
"""

from pydantic import field_validator, ValidationInfo
from pydantic_settings import BaseSettings
from typing import List
from functools import lru_cache
import os


DEFAULT_DATABASE_URL = "postgresql+asyncpg://postgres:postgres@db:5432/rental_listings"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application configuration
    app_name: str = "Rental Listing API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Individual database components, used when DATABASE_URL is not set
    postgres_db: str = "rental_listings"
    postgres_user: str = "postgres"
    postgres_password: str = "postgres"
    postgres_host: str = "db"
    postgres_port: int = 5432

    database_url: str = DEFAULT_DATABASE_URL
    create_tables_on_startup: bool = True

    # JWT configuration
    jwt_secret_key: str = "your-secret-key-change-in-production"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24

    # Media upload configuration
    upload_dir: str = "./uploads"
    media_url_prefix: str = "/uploads"
    max_file_size: int = 50 * 1024 * 1024  # 50MB

    # API configuration
    api_prefix: str = "/api"
    cors_origins: List[str] = ["*"]
    allow_open_admin_registration: bool = False

    # Pagination defaults
    default_page_size: int = 10
    max_page_size: int = 100

    # Server configuration
    host: str = "0.0.0.0"
    port: int = 3000

    @field_validator("database_url", mode="before")
    @classmethod
    def validate_database_url(cls, v, info: ValidationInfo):
        """Build database URL from components if not provided directly."""
        if not v or v == DEFAULT_DATABASE_URL:
            values = info.data
            user = values.get("postgres_user", "postgres")
            password = values.get("postgres_password", "postgres")
            host = values.get("postgres_host", "db")
            port = values.get("postgres_port", 5432)
            db = values.get("postgres_db", "rental_listings")
            return f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{db}"

        # Ensure async driver is used
        if v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        if v.startswith("sqlite://"):
            return v.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return v

    @field_validator("jwt_secret_key", mode="before")
    @classmethod
    def validate_jwt_secret_key(cls, v):
        """Validate JWT secret key strength."""
        if not v:
            raise ValueError("JWT_SECRET_KEY is required")
        if len(v) < 32 and v != "your-secret-key-change-in-production":
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long")
        return v

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v):
        """Validate environment setting."""
        allowed_envs = ["development", "testing", "staging", "production"]
        if v not in allowed_envs:
            raise ValueError(f"Environment must be one of: {allowed_envs}")
        return v

    @field_validator("upload_dir", mode="before")
    @classmethod
    def create_upload_directory(cls, v):
        """Ensure the upload directory exists."""
        if v and not os.path.exists(v):
            os.makedirs(v, exist_ok=True)
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == "testing"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == "production"

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
        "validate_default": True,
    }


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.
    This ensures we only create one instance of settings throughout the app lifecycle.
    """
    return Settings()


# Global settings instance
settings = get_settings()
