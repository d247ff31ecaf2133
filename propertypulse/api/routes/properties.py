"""Property-related API routes."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Path, Query, Request
from fastapi.responses import RedirectResponse

from ...config import settings
from ...exceptions import InvalidRequest
from ...models.property_models import PropertyPage, PropertySchema
from ...services.property_service import PropertyService
from ...services.submission import read_submission
from ..auth import get_caller_id
from ..dependencies import get_property_service

router = APIRouter()


@router.get("", response_model=PropertyPage)
async def list_properties(
    page: Optional[str] = Query(None, description="Page number (1-based)"),
    page_size: Optional[str] = Query(None, alias="pageSize", description="Properties per page"),
    service: PropertyService = Depends(get_property_service),
):
    """List properties with pagination.

    Non-numeric page parameters fall back to page 1 with the default page size.

    Returns:
        PropertyPage: Total count and the requested page of properties
    """
    return service.list_properties(page, page_size)


@router.post("", response_model=PropertySchema)
async def create_property(
    request: Request,
    caller: Optional[str] = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    """Create a property from a multipart submission.

    Redirects to the property page when a site URL is configured, otherwise
    returns the created property.
    """
    submission = read_submission(await request.form())
    created = await service.create_property(submission, caller, timeout=settings.storage.upload_timeout)

    if settings.api.site_url:
        return RedirectResponse(
            f"{settings.api.site_url.rstrip('/')}/properties/{created.id}", status_code=303
        )
    return PropertySchema.model_validate(created)


@router.get("/featured", response_model=List[PropertySchema])
async def list_featured_properties(service: PropertyService = Depends(get_property_service)):
    """Get properties flagged as featured."""
    return [PropertySchema.model_validate(p) for p in service.list_featured()]


@router.get("/search", response_model=List[PropertySchema])
async def search_properties(
    location: Optional[str] = Query(None, description="Text to find in name, description or address"),
    property_type: Optional[str] = Query(None, alias="propertyType", description="Property type, or All"),
    service: PropertyService = Depends(get_property_service),
):
    """Search properties by location text and property type.

    Both parameters match as case-insensitive literal substrings.
    """
    return [PropertySchema.model_validate(p) for p in service.search_properties(location, property_type)]


@router.get("/user", response_model=List[PropertySchema], include_in_schema=False)
async def list_properties_without_user():
    raise InvalidRequest("User ID is required")


@router.get("/user/{user_id}", response_model=List[PropertySchema])
async def list_user_properties(
    user_id: str = Path(..., description="Owner user ID"),
    service: PropertyService = Depends(get_property_service),
):
    """Get the properties created by a user."""
    return [PropertySchema.model_validate(p) for p in service.list_by_owner(user_id)]


@router.get("/{property_id}", response_model=PropertySchema)
async def get_property(
    property_id: str = Path(..., description="Property ID"),
    service: PropertyService = Depends(get_property_service),
):
    """Get a specific property by ID.

    Raises:
        NotFound: If the property does not exist
    """
    return PropertySchema.model_validate(service.get_property(property_id))


@router.put("/{property_id}", response_model=PropertySchema)
async def update_property(
    request: Request,
    property_id: str = Path(..., description="Property ID"),
    caller: Optional[str] = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    """Update a property owned by the caller from a multipart submission."""
    submission = read_submission(await request.form())
    updated = await service.update_property(
        property_id, submission, caller, timeout=settings.storage.upload_timeout
    )
    return PropertySchema.model_validate(updated)


@router.delete("/{property_id}")
async def delete_property(
    property_id: str = Path(..., description="Property ID"),
    caller: Optional[str] = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    """Delete a property owned by the caller.

    Returns:
        dict: Success message
    """
    service.delete_property(property_id, caller)
    return {"message": "Property deleted successfully"}
