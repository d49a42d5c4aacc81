from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.models import ImageType


class ImageFields(BaseModel):
    image_type: ImageType = ImageType.OTHER
    thumbnail_url: Optional[str] = Field(None, max_length=1000)
    alt_text: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, max_length=500)
    file_size_bytes: Optional[int] = Field(None, ge=0)
    width_pixels: Optional[int] = Field(None, ge=0)
    height_pixels: Optional[int] = Field(None, ge=0)
    format: Optional[str] = Field(None, max_length=20)
    is_primary: bool = False
    is_featured: bool = False
    is_360_degree: bool = False
    room_type: Optional[str] = Field(None, max_length=100)
    meta_data: Optional[Dict[str, Any]] = None


class ImageCreate(ImageFields):
    """Metadata for an image whose bytes already live in the image store."""

    image_url: str = Field(..., max_length=1000)
    display_order: Optional[int] = Field(None, ge=0)


class ImageUpload(ImageFields):
    """Metadata accompanying an uploaded file; ``unit_id`` binds it to a unit instead of the property."""

    unit_id: Optional[UUID] = None


class ImageResponse(BaseModel):
    id: UUID
    property_id: Optional[UUID] = None
    unit_id: Optional[UUID] = None
    image_url: str
    thumbnail_url: Optional[str] = None
    alt_text: Optional[str] = None
    description: Optional[str] = None
    image_type: ImageType
    file_size_bytes: Optional[int] = None
    width_pixels: Optional[int] = None
    height_pixels: Optional[int] = None
    format: Optional[str] = None
    display_order: int
    is_primary: bool
    is_featured: bool
    is_360_degree: bool
    room_type: Optional[str] = None
    meta_data: Optional[Dict[str, Any]] = None
    created_at: datetime

    class Config:
        from_attributes = True
