"""
Property model for rental listings.
Handles property data with location, pricing, media paths and likes.
"""

from sqlalchemy import String, Text, Integer, Numeric, Boolean, JSON, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from rental_api.database import Base
from rental_api.models.like import property_likes
from rental_api.utils.file_utils import build_media_url
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from rental_api.models.user import User


SQUARE_FEET_PER_METER = 10.764


class Property(Base):
    """
    Property model for managing rental listings.
    Media columns hold paths relative to the upload directory.
    """

    __tablename__ = "properties"

    # Basic property information
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        comment="Property listing name"
    )

    slug: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        comment="Optional unique URL slug"
    )

    description: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Detailed property description"
    )

    # Location information
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    city: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    state: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    neighborhood: Mapped[str] = mapped_column(String(255), nullable=False)
    floor: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Layout and size
    beds: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    baths: Mapped[int] = mapped_column(Integer, nullable=False)
    guest_wc: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    square_meters: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Pricing information
    price_per_night: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=True
    )

    price_per_month: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        index=True,
        comment="Monthly rent, used by price range filters"
    )

    amenities: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)

    # Media paths relative to the upload directory
    featured_image: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    gallery_images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    videos: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Status flags
    is_featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    liked_by_users: Mapped[List["User"]] = relationship(
        "User",
        secondary=property_likes,
        viewonly=True,
        lazy="selectin",
        order_by="User.name"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, name={self.name[:30]}, price_per_month={self.price_per_month})>"

    @property
    def square_feet(self) -> float:
        """Floor area converted from square meters."""
        return round((self.square_meters or 0) * SQUARE_FEET_PER_METER, 2)

    @property
    def media_paths(self) -> List[str]:
        """Every stored media path: featured image, gallery and videos."""
        paths = []
        if self.featured_image:
            paths.append(self.featured_image)
        paths.extend(self.gallery_images or [])
        paths.extend(self.videos or [])
        return paths

    def to_dict(self, media_base_url: Optional[str] = None) -> dict:
        """
        Convert property to dictionary.

        Args:
            media_base_url: Scheme and host used to turn stored media paths
                into absolute URLs. Paths are returned unchanged when omitted.

        Returns:
            Dictionary representation of property
        """
        def media(path):
            return build_media_url(media_base_url, path) if media_base_url else path

        return {
            "id": str(self.id),
            "name": self.name,
            "slug": self.slug,
            "description": self.description,
            "address": self.address,
            "unit_number": self.unit_number,
            "city": self.city,
            "state": self.state,
            "neighborhood": self.neighborhood,
            "floor": self.floor,
            "beds": self.beds,
            "baths": self.baths,
            "guest_wc": self.guest_wc,
            "square_meters": self.square_meters,
            "square_feet": self.square_feet,
            "price_per_night": self.price_per_night,
            "price_per_month": self.price_per_month,
            "amenities": self.amenities,
            "featured_image": media(self.featured_image) if self.featured_image else None,
            "gallery_images": [media(path) for path in self.gallery_images or []],
            "videos": [media(path) for path in self.videos or []],
            "is_featured": self.is_featured,
            "is_active": self.is_active,
            "liked_by": [
                {"id": str(user.id), "name": user.name} for user in self.liked_by_users
            ],
            "likes_count": len(self.liked_by_users),
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


# Composite index for the common "active listings in a city by price" search
city_price_index = Index(
    "idx_properties_city_price",
    Property.city,
    Property.price_per_month,
    Property.is_active
)
