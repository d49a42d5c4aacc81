from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models import PropertyStatus, PropertyType
from app.schemas.image import ImageCreate, ImageResponse
from app.schemas.unit import UnitCreate, UnitResponse, check_lease_bounds

Money = Optional[Decimal]


def _reject_nulls(model: BaseModel, required) -> None:
    cleared = sorted(name for name in set(required) & model.model_fields_set if getattr(model, name) is None)
    if cleared:
        raise ValueError(f"fields cannot be null: {', '.join(cleared)}")


class AddressIn(BaseModel):
    street_address: str = Field(..., min_length=1, max_length=255)
    street_address_2: Optional[str] = Field(None, max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    state: str = Field(..., min_length=1, max_length=50)
    zip_code: str = Field(..., min_length=1, max_length=20)
    country: str = Field("United States", max_length=50)
    county: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50)


ADDRESS_REQUIRED = ("street_address", "city", "state", "zip_code", "country")


class AddressPatch(BaseModel):
    street_address: Optional[str] = Field(None, min_length=1, max_length=255)
    street_address_2: Optional[str] = Field(None, max_length=255)
    city: Optional[str] = Field(None, min_length=1, max_length=100)
    state: Optional[str] = Field(None, min_length=1, max_length=50)
    zip_code: Optional[str] = Field(None, min_length=1, max_length=20)
    country: Optional[str] = Field(None, max_length=50)
    county: Optional[str] = Field(None, max_length=100)
    timezone: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="after")
    def _no_null_required(self):
        _reject_nulls(self, ADDRESS_REQUIRED)
        return self


class AddressOut(BaseModel):
    street_address: str
    street_address_2: Optional[str] = None
    city: str
    state: str
    zip_code: str
    country: str
    county: Optional[str] = None
    timezone: Optional[str] = None


class Details(BaseModel):
    """Structural details; every field is optional, on create and on update."""

    total_sqft: Money = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=20)
    half_bathrooms: Optional[Decimal] = Field(None, ge=0, le=20)
    kitchen_type: Optional[str] = Field(None, max_length=50)
    heating_type: Optional[str] = Field(None, max_length=100)
    cooling_type: Optional[str] = Field(None, max_length=100)
    air_conditioning: Optional[bool] = None
    elevator_building: Optional[bool] = None
    garage_spaces: Optional[int] = Field(None, ge=0)
    covered_parking_spaces: Optional[int] = Field(None, ge=0)
    outdoor_space: Optional[str] = Field(None, max_length=100)
    storage_areas: Optional[str] = Field(None, max_length=500)
    energy_efficiency_rating: Optional[str] = Field(None, max_length=10)
    year_built: Optional[int] = Field(None, ge=1600, le=2100)
    last_renovation_year: Optional[int] = Field(None, ge=1600, le=2100)
    hoa_fees: Money = Field(None, ge=0)


class PropertyFields(BaseModel):
    listing_price: Money = Field(None, ge=0)
    monthly_rent: Money = Field(None, ge=0)
    security_deposit: Money = Field(None, ge=0)
    pet_deposit: Money = Field(None, ge=0)
    application_fee: Money = Field(None, ge=0)

    utilities_included: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    furnished: Optional[bool] = None
    parking_available: Optional[bool] = None
    smoke_free: Optional[bool] = None

    available_from: Optional[datetime] = None
    lease_min_months: Optional[int] = Field(None, ge=1, le=60)
    lease_max_months: Optional[int] = Field(None, ge=1, le=60)
    background_check_required: Optional[bool] = None
    credit_score_minimum: Optional[int] = Field(None, ge=300, le=850)
    income_multiple: Optional[Decimal] = Field(None, ge=1, le=10)

    featured_until: Optional[datetime] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    google_maps_url: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = None
    meta_data: Optional[Dict[str, Any]] = None

    @model_validator(mode="after")
    def _lease_bounds(self):
        check_lease_bounds(self.lease_min_months, self.lease_max_months)
        return self


class PropertyCreate(PropertyFields):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1, max_length=500)
    property_type: PropertyType
    status: PropertyStatus = PropertyStatus.DRAFT
    address: AddressIn
    details: Optional[Details] = None
    is_available: bool = True
    is_featured: bool = False
    tags: List[str] = Field(default_factory=list)
    units: List[UnitCreate] = Field(default_factory=list)
    images: List[ImageCreate] = Field(default_factory=list)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Maple Court",
                "description": "Two-unit house near the park",
                "property_type": "house",
                "address": {"street_address": "12 Maple St", "city": "Austin", "state": "TX", "zip_code": "78701"},
                "monthly_rent": 1300,
                "units": [{"unit_number": "A", "monthly_rent": 1200}, {"monthly_rent": 1300}],
                "tags": ["downtown"],
            }
        }


PROPERTY_REQUIRED = ("name", "description", "property_type", "status", "address", "is_available", "is_featured")

# Request flags that move counters instead of being written as columns
COUNTER_FLAGS = (
    "increment_view_count", "increment_inquiry_count", "increment_favorite_count",
    "decrement_view_count", "decrement_inquiry_count", "decrement_favorite_count",
)


class PropertyUpdate(PropertyFields):
    """
    Partial update. Fields left out of the payload are untouched, an explicit
    null clears a nullable field, and ``tags`` replaces the whole tag set.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    property_type: Optional[PropertyType] = None
    status: Optional[PropertyStatus] = None
    address: Optional[AddressPatch] = None
    details: Optional[Details] = None
    is_available: Optional[bool] = None
    is_featured: Optional[bool] = None
    tags: Optional[List[str]] = None

    increment_view_count: bool = False
    increment_inquiry_count: bool = False
    increment_favorite_count: bool = False
    decrement_view_count: bool = False
    decrement_inquiry_count: bool = False
    decrement_favorite_count: bool = False

    @model_validator(mode="after")
    def _no_null_required(self):
        _reject_nulls(self, PROPERTY_REQUIRED)
        return self

    def column_changes(self) -> Dict[str, Any]:
        """Flat column -> value mapping of everything the caller sent, nested groups included."""
        changes = self.model_dump(exclude_unset=True, exclude={"address", "details", "tags", *COUNTER_FLAGS})
        if self.address is not None:
            changes.update(self.address.model_dump(exclude_unset=True))
        if self.details is not None:
            changes.update(self.details.model_dump(exclude_unset=True))
        return changes


class PropertyResponse(BaseModel):
    id: UUID
    owner_id: str
    name: str
    description: str
    property_type: PropertyType
    status: PropertyStatus
    address: AddressOut
    details: Details
    listing_price: Money = None
    monthly_rent: Money = None
    security_deposit: Money = None
    pet_deposit: Money = None
    application_fee: Money = None
    utilities_included: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    furnished: Optional[bool] = None
    parking_available: Optional[bool] = None
    smoke_free: Optional[bool] = None
    available_from: Optional[datetime] = None
    is_available: bool
    lease_min_months: Optional[int] = None
    lease_max_months: Optional[int] = None
    background_check_required: Optional[bool] = None
    credit_score_minimum: Optional[int] = None
    income_multiple: Optional[Decimal] = None
    view_count: int
    inquiry_count: int
    favorite_count: int
    is_featured: bool
    featured_until: Optional[datetime] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    google_maps_url: Optional[str] = None
    notes: Optional[str] = None
    meta_data: Optional[Dict[str, Any]] = None
    tags: List[str] = []
    units: List[UnitResponse] = []
    images: List[ImageResponse] = []
    occupancy_rate: float = 0.0
    total_monthly_revenue: Decimal = Decimal("0")
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PropertyStatistics(BaseModel):
    owner_id: str
    total_properties: int
    by_status: Dict[PropertyStatus, int]
    total_units: int
    total_monthly_revenue: Decimal
    average_occupancy_rate: float
