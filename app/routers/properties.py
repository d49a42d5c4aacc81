from typing import Annotated, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Response, UploadFile, status
from fastapi_limiter.depends import RateLimiter
from structlog import get_logger

from app.config import settings
from app.core.errors import CatalogError, NotFoundError, UploadFailure, ValidationFailure
from app.dependencies.auth import get_caller_id
from app.dependencies.services import get_property_service
from app.models import ImageType
from app.schemas.image import ImageResponse, ImageUpload
from app.schemas.property import PropertyCreate, PropertyResponse, PropertyStatistics, PropertyUpdate
from app.schemas.search import Page, PageRequest, PropertySearchCriteria, UnitSearchCriteria
from app.schemas.unit import UnitCreate, UnitResponse, UnitUpdate
from app.services.properties import PropertyService

logger = get_logger()
router = APIRouter(prefix="/api/v1/properties", tags=["properties"])

def limited(times: int, seconds: int = 60) -> list:
    if not settings.RATE_LIMIT_ENABLED:
        return []
    return [Depends(RateLimiter(times=times, seconds=seconds))]

def page_request(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    sort: Optional[str] = Query("createdAt", max_length=50),
    order: Optional[str] = Query("desc", max_length=10),
) -> PageRequest:
    return PageRequest(page=page, limit=limit, sort=sort, order=order)

def http_error(e: Exception, detail: str, **context) -> HTTPException:
    """Map a service failure to a response; backend error text never reaches the caller."""
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, ValidationFailure):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    if isinstance(e, UploadFailure):
        logger.error(detail, error=str(e), **context)
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=e.message)
    if isinstance(e, CatalogError):
        logger.error(detail, error=str(e), **context)
    else:
        logger.error(detail, error=str(e), exc_info=True, **context)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)

def reject_inverted_ranges(criteria) -> None:
    inverted = criteria.inverted_ranges()
    if inverted:
        logger.warning("Invalid search ranges", errors=inverted)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="; ".join(inverted))

@router.post("", response_model=PropertyResponse, status_code=status.HTTP_201_CREATED, dependencies=limited(10))
async def create_property(
    request: PropertyCreate,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    logger.info("Received create property request", owner_id=caller_id, units=len(request.units))
    try:
        return await service.create_property(request, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to create property", owner_id=caller_id)

@router.get("/search", response_model=Page[PropertyResponse], dependencies=limited(30))
async def search_properties(
    criteria: Annotated[PropertySearchCriteria, Query()],
    page: PageRequest = Depends(page_request),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    logger.info("Received search request", user_id=caller_id, query_params=criteria.model_dump(mode="json", exclude_none=True))
    reject_inverted_ranges(criteria)
    try:
        results = await service.search_properties(criteria, page)
        logger.info("Search completed", user_id=caller_id, result_count=len(results.items), total=results.total)
        return results
    except Exception as e:
        raise http_error(e, "Search failed", user_id=caller_id)

@router.get("/mine", response_model=Page[PropertyResponse], dependencies=limited(30))
async def list_my_properties(
    page: PageRequest = Depends(page_request),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.list_by_owner(caller_id, page)
    except Exception as e:
        raise http_error(e, "Failed to list properties", owner_id=caller_id)

@router.get("/statistics", response_model=PropertyStatistics, dependencies=limited(30))
async def get_statistics(
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.get_statistics(caller_id)
    except Exception as e:
        raise http_error(e, "Failed to compute statistics", owner_id=caller_id)

@router.get("/owner/{owner_id}/statistics", response_model=PropertyStatistics, dependencies=limited(30))
async def get_owner_statistics(
    owner_id: str,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.get_statistics(owner_id)
    except Exception as e:
        raise http_error(e, "Failed to compute statistics", owner_id=owner_id, user_id=caller_id)

@router.get("/owner/{owner_id}", response_model=Page[PropertyResponse], dependencies=limited(30))
async def list_by_owner(
    owner_id: str,
    page: PageRequest = Depends(page_request),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.list_by_owner(owner_id, page)
    except Exception as e:
        raise http_error(e, "Failed to list properties", owner_id=owner_id, user_id=caller_id)

@router.get("/{property_id}", response_model=PropertyResponse, dependencies=limited(60))
async def get_property(
    property_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.get_property(property_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to fetch property", property_id=str(property_id))

@router.patch("/{property_id}", response_model=PropertyResponse, dependencies=limited(20))
async def update_property(
    property_id: UUID,
    request: PropertyUpdate,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.update_property(property_id, caller_id, request)
    except Exception as e:
        raise http_error(e, "Failed to update property", property_id=str(property_id))

@router.delete("/{property_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=limited(10))
async def delete_property(
    property_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        await service.delete_property(property_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to delete property", property_id=str(property_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# Units

@router.post(
    "/{property_id}/units", response_model=UnitResponse, status_code=status.HTTP_201_CREATED,
    dependencies=limited(20),
)
async def create_unit(
    property_id: UUID,
    request: UnitCreate,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.create_unit(property_id, caller_id, request)
    except Exception as e:
        raise http_error(e, "Failed to create unit", property_id=str(property_id))

@router.get("/{property_id}/units", response_model=Page[UnitResponse], dependencies=limited(30))
async def search_units(
    property_id: UUID,
    criteria: Annotated[UnitSearchCriteria, Query()],
    page: PageRequest = Depends(page_request),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    reject_inverted_ranges(criteria)
    try:
        return await service.search_units(property_id, caller_id, criteria, page)
    except Exception as e:
        raise http_error(e, "Unit search failed", property_id=str(property_id))

@router.get("/{property_id}/units/{unit_id}", response_model=UnitResponse, dependencies=limited(60))
async def get_unit(
    property_id: UUID,
    unit_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.get_unit(property_id, unit_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to fetch unit", property_id=str(property_id), unit_id=str(unit_id))

@router.patch("/{property_id}/units/{unit_id}", response_model=UnitResponse, dependencies=limited(20))
async def update_unit(
    property_id: UUID,
    unit_id: UUID,
    request: UnitUpdate,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.update_unit(property_id, unit_id, caller_id, request)
    except Exception as e:
        raise http_error(e, "Failed to update unit", property_id=str(property_id), unit_id=str(unit_id))

@router.delete(
    "/{property_id}/units/{unit_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=limited(10)
)
async def delete_unit(
    property_id: UUID,
    unit_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        await service.delete_unit(property_id, unit_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to delete unit", property_id=str(property_id), unit_id=str(unit_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# Images

@router.post(
    "/{property_id}/images", response_model=ImageResponse, status_code=status.HTTP_201_CREATED,
    dependencies=limited(10),
)
async def upload_image(
    property_id: UUID,
    file: UploadFile = File(...),
    unit_id: Optional[UUID] = Form(None),
    image_type: ImageType = Form(ImageType.OTHER),
    alt_text: Optional[str] = Form(None, max_length=255),
    description: Optional[str] = Form(None, max_length=500),
    room_type: Optional[str] = Form(None, max_length=100),
    is_primary: bool = Form(False),
    is_featured: bool = Form(False),
    is_360_degree: bool = Form(False),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    spec = ImageUpload(
        unit_id=unit_id, image_type=image_type, alt_text=alt_text, description=description, room_type=room_type,
        is_primary=is_primary, is_featured=is_featured, is_360_degree=is_360_degree,
    )
    try:
        content = await file.read()
        return await service.upload_image(property_id, caller_id, content, file.filename, file.content_type, spec)
    except Exception as e:
        raise http_error(e, "Failed to upload image", property_id=str(property_id), filename=file.filename)

@router.post(
    "/{property_id}/images/batch", response_model=List[ImageResponse], status_code=status.HTTP_201_CREATED,
    dependencies=limited(5),
)
async def upload_images_batch(
    property_id: UUID,
    files: List[UploadFile] = File(...),
    image_type: ImageType = Form(ImageType.INTERIOR),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    uploaded = []
    try:
        for file in files:
            content = await file.read()
            if not content:
                continue
            uploaded.append(
                await service.upload_image(
                    property_id, caller_id, content, file.filename, file.content_type,
                    ImageUpload(image_type=image_type),
                )
            )
    except Exception as e:
        raise http_error(e, "Failed to upload images", property_id=str(property_id), uploaded=len(uploaded))
    if not uploaded:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No files provided")
    logger.info("Batch upload completed", property_id=str(property_id), uploaded=len(uploaded))
    return uploaded

@router.get("/{property_id}/images", response_model=List[ImageResponse], dependencies=limited(60))
async def list_images(
    property_id: UUID,
    unit_id: Optional[UUID] = Query(None),
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.list_images(property_id, caller_id, unit_id=unit_id)
    except Exception as e:
        raise http_error(e, "Failed to list images", property_id=str(property_id))

@router.put("/{property_id}/images/{image_id}/primary", response_model=ImageResponse, dependencies=limited(20))
async def set_primary_image(
    property_id: UUID,
    image_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        return await service.set_primary_image(property_id, image_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to set primary image", property_id=str(property_id), image_id=str(image_id))

@router.delete(
    "/{property_id}/images/{image_id}", status_code=status.HTTP_204_NO_CONTENT, dependencies=limited(10)
)
async def delete_image(
    property_id: UUID,
    image_id: UUID,
    caller_id: str = Depends(get_caller_id),
    service: PropertyService = Depends(get_property_service),
):
    try:
        await service.delete_image(property_id, image_id, caller_id)
    except Exception as e:
        raise http_error(e, "Failed to delete image", property_id=str(property_id), image_id=str(image_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
