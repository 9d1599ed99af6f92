"""
Pydantic schemas for property requests and responses.
Form schemas carry multipart values as received; response schemas mirror Property.to_dict.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from decimal import Decimal


class PropertyForm(BaseModel):
    """
    Property fields submitted with a create request.

    ``amenities`` and the status flags stay raw strings here; the property
    service parses them because forms may send JSON or comma-separated text.
    """

    name: str = Field(..., min_length=1, max_length=255, examples=["Sunny Garden Flat"])
    slug: Optional[str] = Field(None, max_length=255)
    description: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1, max_length=255, examples=["12 Nile Street"])
    unit_number: Optional[str] = Field(None, max_length=50)
    city: str = Field(..., min_length=1, max_length=120, examples=["Cairo"])
    state: str = Field(..., min_length=1, max_length=120)
    neighborhood: str = Field(..., min_length=1, max_length=255, examples=["Zamalek"])
    floor: Optional[str] = Field(None, max_length=50)
    beds: int = Field(..., ge=0)
    baths: int = Field(..., ge=0)
    guest_wc: Optional[int] = Field(None, ge=0)
    square_meters: Optional[int] = Field(None, ge=0)
    price_per_night: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price_per_month: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2, examples=["1500.00"])
    amenities: Optional[str] = Field(
        None,
        description="JSON array or comma-separated list",
        examples=['["wifi", "pool"]', "wifi, pool"]
    )
    is_featured: Optional[str] = Field(None, examples=["true"])
    is_active: Optional[str] = Field(None, examples=["true"])

    @field_validator('name', 'address', 'city', 'state', 'neighborhood')
    @classmethod
    def strip_text(cls, v):
        """Reject values that are only whitespace."""
        if not v.strip():
            raise ValueError("Field cannot be empty")
        return v.strip()


class PropertyUpdateForm(BaseModel):
    """Property fields submitted with an update request; only sent fields change."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1, max_length=255)
    unit_number: Optional[str] = Field(None, max_length=50)
    city: Optional[str] = Field(None, min_length=1, max_length=120)
    state: Optional[str] = Field(None, min_length=1, max_length=120)
    neighborhood: Optional[str] = Field(None, min_length=1, max_length=255)
    floor: Optional[str] = Field(None, max_length=50)
    beds: Optional[int] = Field(None, ge=0)
    baths: Optional[int] = Field(None, ge=0)
    guest_wc: Optional[int] = Field(None, ge=0)
    square_meters: Optional[int] = Field(None, ge=0)
    price_per_night: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price_per_month: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    amenities: Optional[str] = None
    is_featured: Optional[str] = None
    is_active: Optional[str] = None


class LikedByUser(BaseModel):
    id: str
    name: str


class PropertyResponse(BaseModel):
    """Schema for property response with media URLs and likes."""

    id: str = Field(..., examples=["123e4567-e89b-12d3-a456-426614174000"])
    name: str
    slug: Optional[str] = None
    description: str
    address: str
    unit_number: Optional[str] = None
    city: str
    state: str
    neighborhood: str
    floor: Optional[str] = None
    beds: int
    baths: int
    guest_wc: Optional[int] = None
    square_meters: int = 0
    square_feet: float = Field(0, description="Floor area in square feet")
    price_per_night: Optional[float] = None
    price_per_month: float
    amenities: Optional[List[str]] = None
    featured_image: Optional[str] = Field(None, description="Absolute URL of the featured image")
    gallery_images: List[str] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    is_featured: bool
    is_active: bool
    liked_by: List[LikedByUser] = Field(default_factory=list)
    likes_count: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PropertyData(BaseModel):
    property: PropertyResponse


class PropertyEnvelope(BaseModel):
    """Single property wrapped in the response envelope."""

    status: str = "success"
    data: PropertyData


class PropertyListData(BaseModel):
    properties: List[PropertyResponse]


class PropertyListResponse(BaseModel):
    """Schema for paginated property list response."""

    status: str = "success"
    results: int = Field(..., description="Total number of matching properties")
    page: int = Field(..., description="Current page number")
    limit: int = Field(..., description="Page size")
    data: PropertyListData


class MessageResponse(BaseModel):
    status: str = "success"
    message: str
