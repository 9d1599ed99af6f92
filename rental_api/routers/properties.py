"""
Property API endpoints for CRUD with media uploads, search, filtering and likes.
"""

from fastapi import APIRouter, Depends, File, Form, Query, Request, Response, UploadFile, status
from typing import Dict, List, Optional
from decimal import Decimal
from uuid import UUID

from rental_api.models.property import Property
from rental_api.models.user import User
from rental_api.repositories.property import PropertySearchFilters
from rental_api.services.property import PropertyService
from rental_api.schemas.property import (
    PropertyForm,
    PropertyUpdateForm,
    PropertyResponse,
    PropertyEnvelope,
    PropertyListResponse,
    MessageResponse
)
from rental_api.schemas.error import get_crud_error_responses
from rental_api.utils.dependencies import get_current_user, get_property_service
from rental_api.utils.validators import ValidationUtils


router = APIRouter(prefix="/properties", tags=["Properties"])


def _serialize(property_obj: Property, request: Request) -> PropertyResponse:
    """Render a property with media paths turned into absolute URLs."""
    return PropertyResponse.model_validate(property_obj.to_dict(media_base_url=str(request.base_url)))


def _envelope(property_obj: Property, request: Request) -> PropertyEnvelope:
    return PropertyEnvelope(data={"property": _serialize(property_obj, request)})


def _list_response(properties: List[Property], total: int, page: int, limit: int, request: Request) -> PropertyListResponse:
    return PropertyListResponse(
        results=total,
        page=page,
        limit=limit,
        data={"properties": [_serialize(property_obj, request) for property_obj in properties]}
    )


async def media_uploads(
    featured_image: Optional[List[UploadFile]] = File(None, description="One image"),
    gallery_images: Optional[List[UploadFile]] = File(None, description="Up to 10 images"),
    gallery_images_list: Optional[List[UploadFile]] = File(None, alias="gallery_images[]"),
    videos: Optional[List[UploadFile]] = File(None, description="Up to 3 videos"),
    videos_list: Optional[List[UploadFile]] = File(None, alias="videos[]")
) -> Dict[str, List[UploadFile]]:
    """Uploaded files keyed by field; bracketed array field names are merged in."""
    return {
        "featured_image": featured_image or [],
        "gallery_images": (gallery_images or []) + (gallery_images_list or []),
        "videos": (videos or []) + (videos_list or []),
    }


async def property_form(
    name: str = Form(...),
    description: str = Form(...),
    address: str = Form(...),
    city: str = Form(...),
    state: str = Form(...),
    neighborhood: str = Form(...),
    beds: int = Form(...),
    baths: int = Form(...),
    price_per_month: Decimal = Form(...),
    slug: Optional[str] = Form(None),
    unit_number: Optional[str] = Form(None),
    floor: Optional[str] = Form(None),
    guest_wc: Optional[int] = Form(None),
    square_meters: Optional[int] = Form(None),
    price_per_night: Optional[Decimal] = Form(None),
    amenities: Optional[str] = Form(None),
    is_featured: Optional[str] = Form(None),
    is_active: Optional[str] = Form(None)
) -> PropertyForm:
    return PropertyForm(
        name=name, description=description, address=address, city=city, state=state,
        neighborhood=neighborhood, beds=beds, baths=baths, price_per_month=price_per_month,
        slug=slug, unit_number=unit_number, floor=floor, guest_wc=guest_wc,
        square_meters=square_meters, price_per_night=price_per_night, amenities=amenities,
        is_featured=is_featured, is_active=is_active
    )


async def property_update_form(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    address: Optional[str] = Form(None),
    city: Optional[str] = Form(None),
    state: Optional[str] = Form(None),
    neighborhood: Optional[str] = Form(None),
    beds: Optional[int] = Form(None),
    baths: Optional[int] = Form(None),
    price_per_month: Optional[Decimal] = Form(None),
    slug: Optional[str] = Form(None),
    unit_number: Optional[str] = Form(None),
    floor: Optional[str] = Form(None),
    guest_wc: Optional[int] = Form(None),
    square_meters: Optional[int] = Form(None),
    price_per_night: Optional[Decimal] = Form(None),
    amenities: Optional[str] = Form(None),
    is_featured: Optional[str] = Form(None),
    is_active: Optional[str] = Form(None)
) -> PropertyUpdateForm:
    return PropertyUpdateForm(
        name=name, description=description, address=address, city=city, state=state,
        neighborhood=neighborhood, beds=beds, baths=baths, price_per_month=price_per_month,
        slug=slug, unit_number=unit_number, floor=floor, guest_wc=guest_wc,
        square_meters=square_meters, price_per_night=price_per_night, amenities=amenities,
        is_featured=is_featured, is_active=is_active
    )


@router.get(
    "",
    response_model=PropertyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List properties with search and filtering",
    description="Get paginated list of properties with optional search filters",
    responses=get_crud_error_responses()
)
async def list_properties(
    request: Request,
    search: Optional[str] = Query(None, description="Search name, description and address"),
    city: Optional[str] = Query(None, description="Exact city"),
    state: Optional[str] = Query(None, description="Exact state"),
    beds: Optional[int] = Query(None, ge=0, description="Exact number of beds"),
    baths: Optional[int] = Query(None, ge=0, description="Exact number of baths"),
    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum monthly price"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum monthly price"),
    is_featured: Optional[bool] = Query(None, description="Filter by featured flag"),
    is_active: Optional[bool] = Query(None, description="Filter by active flag"),
    amenities: Optional[str] = Query(None, description="Comma-separated amenities, any match"),
    sort_by: Optional[str] = Query(None, description="Sort field, defaults to name"),
    order: Optional[str] = Query(None, description="Sort order (asc/desc)"),
    page: Optional[int] = Query(None, description="Page number (starts from 1)"),
    limit: Optional[int] = Query(None, description="Number of properties per page"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    filters = PropertySearchFilters(
        search=search,
        city=city,
        state=state,
        beds=beds,
        baths=baths,
        min_price=min_price,
        max_price=max_price,
        is_featured=is_featured,
        is_active=is_active,
        amenities=ValidationUtils.parse_amenities(amenities)
    )

    properties, total, page, limit = await property_service.search_properties(
        filters, page=page, limit=limit, sort_by=sort_by, order=order
    )
    return _list_response(properties, total, page, limit, request)


@router.get(
    "/likedProperties",
    response_model=PropertyListResponse,
    summary="List properties liked by the current user",
    responses=get_crud_error_responses()
)
async def list_liked_properties(
    request: Request,
    page: Optional[int] = Query(None, description="Page number (starts from 1)"),
    limit: Optional[int] = Query(None, description="Number of properties per page"),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    properties, total, page, limit = await property_service.get_liked_properties(
        current_user, page=page, limit=limit
    )
    return _list_response(properties, total, page, limit, request)


@router.post(
    "",
    response_model=PropertyEnvelope,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a property from multipart form data with optional media uploads.",
    responses=get_crud_error_responses()
)
async def create_property(
    request: Request,
    property_data: PropertyForm = Depends(property_form),
    uploads: Dict[str, List[UploadFile]] = Depends(media_uploads),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyEnvelope:
    """
    Raises:
        ValidationError: If property data or amenities are invalid
        UnsupportedMediaTypeError: If an upload does not match its field
    """
    property_obj = await property_service.create_property(property_data, uploads, current_user)
    return _envelope(property_obj, request)


@router.get(
    "/{property_id}",
    response_model=PropertyEnvelope,
    summary="Get property by ID",
    responses=get_crud_error_responses()
)
async def get_property(
    request: Request,
    property_id: UUID,
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyEnvelope:
    property_obj = await property_service.get_property(property_id)
    return _envelope(property_obj, request)


@router.patch(
    "/{property_id}",
    response_model=PropertyEnvelope,
    summary="Update property",
    description="Only submitted fields change. New gallery images and videos are appended.",
    responses=get_crud_error_responses()
)
async def update_property(
    request: Request,
    property_id: UUID,
    property_data: PropertyUpdateForm = Depends(property_update_form),
    uploads: Dict[str, List[UploadFile]] = Depends(media_uploads),
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyEnvelope:
    property_obj = await property_service.update_property(property_id, property_data, uploads, current_user)
    return _envelope(property_obj, request)


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete property",
    description="Deletes the property and its stored media files.",
    responses=get_crud_error_responses()
)
async def delete_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{property_id}/like",
    response_model=MessageResponse,
    summary="Like a property",
    responses=get_crud_error_responses()
)
async def like_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.like_property(property_id, current_user)
    return MessageResponse(message="Property liked successfully")


@router.delete(
    "/{property_id}/unlike",
    response_model=MessageResponse,
    summary="Unlike a property",
    responses=get_crud_error_responses()
)
async def unlike_property(
    property_id: UUID,
    current_user: User = Depends(get_current_user),
    property_service: PropertyService = Depends(get_property_service)
) -> MessageResponse:
    await property_service.unlike_property(property_id, current_user)
    return MessageResponse(message="Property unliked successfully")
