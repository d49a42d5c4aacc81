from datetime import date
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from app.models import PropertyStatus, PropertyType, UnitStatus

T = TypeVar("T")

class PageRequest(BaseModel):
    page: int = Field(1, ge=1, description="1-based page number")
    limit: int = Field(20, ge=1, le=100)
    sort: Optional[str] = Field("createdAt", max_length=50, description="camelCase or snake_case field name")
    order: Optional[str] = Field("desc", max_length=10, description="asc or desc, case-insensitive")

class Page(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    limit: int
    pages: int

# (min, max) field pairs that must not be inverted when both are given
RANGE_PAIRS = (
    ("min_rent", "max_rent"),
    ("min_security_deposit", "max_security_deposit"),
    ("min_bedrooms", "max_bedrooms"),
    ("min_bathrooms", "max_bathrooms"),
    ("min_square_footage", "max_square_footage"),
    ("min_lease_months", "max_lease_months"),
    ("min_view_count", "max_view_count"),
    ("available_from", "available_to"),
    ("created_from", "created_to"),
    ("updated_from", "updated_to"),
    ("min_sqft", "max_sqft"),
)

class _RangeChecked(BaseModel):
    def inverted_ranges(self) -> List[str]:
        """Names of (min, max) pairs where min is greater than max."""
        bad = []
        for low_name, high_name in RANGE_PAIRS:
            low = getattr(self, low_name, None)
            high = getattr(self, high_name, None)
            if low is not None and high is not None and low > high:
                bad.append(f"{low_name} cannot be greater than {high_name}")
        return bad

class PropertySearchCriteria(_RangeChecked):
    owner_id: Optional[str] = None
    status: Optional[PropertyStatus] = None
    property_type: Optional[PropertyType] = None

    city: Optional[str] = Field(None, max_length=100)
    state: Optional[str] = Field(None, max_length=50)
    zip_code: Optional[str] = Field(None, max_length=20)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    radius_miles: Optional[float] = Field(None, gt=0, le=1000)

    min_rent: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"))
    max_rent: Optional[Decimal] = Field(None, ge=0, le=Decimal("999999.99"))
    min_security_deposit: Optional[Decimal] = Field(None, ge=0)
    max_security_deposit: Optional[Decimal] = Field(None, ge=0)

    min_bedrooms: Optional[int] = Field(None, ge=0, le=20)
    max_bedrooms: Optional[int] = Field(None, ge=0, le=20)
    min_bathrooms: Optional[float] = Field(None, ge=0, le=20)
    max_bathrooms: Optional[float] = Field(None, ge=0, le=20)
    min_square_footage: Optional[Decimal] = Field(None, ge=0)
    max_square_footage: Optional[Decimal] = Field(None, ge=0)

    utilities_included: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    furnished: Optional[bool] = None
    parking_available: Optional[bool] = None
    smoke_free: Optional[bool] = None
    is_available: Optional[bool] = None
    is_featured: Optional[bool] = None

    available_from: Optional[date] = None
    available_to: Optional[date] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    updated_from: Optional[date] = None
    updated_to: Optional[date] = None

    min_credit_score: Optional[int] = Field(None, ge=300, le=850)
    min_income_multiple: Optional[Decimal] = Field(None, ge=1, le=10)
    min_lease_months: Optional[int] = Field(None, ge=1, le=60)
    max_lease_months: Optional[int] = Field(None, ge=1, le=60)
    min_view_count: Optional[int] = Field(None, ge=0)
    max_view_count: Optional[int] = Field(None, ge=0)

    search_keyword: Optional[str] = Field(None, max_length=255)
    tags: Optional[List[str]] = None

    has_images: Optional[bool] = None
    has_360_images: Optional[bool] = None
    has_security_deposit: Optional[bool] = None
    has_pet_deposit: Optional[bool] = None
    has_application_fee: Optional[bool] = None

    elevator_building: Optional[bool] = None
    heating_type: Optional[str] = Field(None, max_length=100)
    cooling_type: Optional[str] = Field(None, max_length=100)
    air_conditioning: Optional[bool] = None
    energy_efficiency_rating: Optional[str] = Field(None, max_length=10)

    class Config:
        json_schema_extra = {
            "example": {
                "city": "austin",
                "status": "published",
                "property_type": "apartment",
                "min_rent": 1000,
                "max_rent": 2500,
                "min_bedrooms": 2,
                "pet_friendly": True,
                "search_keyword": "loft",
                "tags": ["downtown"],
            }
        }

class UnitSearchCriteria(_RangeChecked):
    status: Optional[UnitStatus] = None
    min_rent: Optional[Decimal] = Field(None, ge=0)
    max_rent: Optional[Decimal] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0, le=20)
    max_bedrooms: Optional[int] = Field(None, ge=0, le=20)
    min_bathrooms: Optional[float] = Field(None, ge=0, le=20)
    max_bathrooms: Optional[float] = Field(None, ge=0, le=20)
    min_sqft: Optional[Decimal] = Field(None, ge=0)
    max_sqft: Optional[Decimal] = Field(None, ge=0)
    floor_number: Optional[int] = None
    furnished: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    parking_assigned: Optional[bool] = None
    is_available: Optional[bool] = None
    available_from: Optional[date] = None
    search_keyword: Optional[str] = Field(None, max_length=255)
