from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.models import UnitStatus

Money = Optional[Decimal]


def check_lease_bounds(low: Optional[int], high: Optional[int]) -> None:
    if low is not None and high is not None and low > high:
        raise ValueError("minimum lease months cannot exceed maximum lease months")


class UnitFields(BaseModel):
    unit_number: Optional[str] = Field(None, max_length=20, description="Auto-assigned when omitted")
    floor_number: Optional[int] = None
    building_section: Optional[str] = Field(None, max_length=50)
    sqft: Money = Field(None, ge=0)
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[Decimal] = Field(None, ge=0, le=20)
    half_bathrooms: Optional[Decimal] = Field(None, ge=0, le=20)
    monthly_rent: Money = Field(None, ge=0)
    security_deposit: Money = Field(None, ge=0)
    pet_deposit: Money = Field(None, ge=0)
    application_fee: Money = Field(None, ge=0)
    hold_deposit: Money = Field(None, ge=0)
    utilities_included: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    furnished: Optional[bool] = None
    parking_assigned: Optional[bool] = None
    storage_assigned: Optional[bool] = None
    balcony: Optional[bool] = None
    available_from: Optional[datetime] = None
    minimum_lease_months: Optional[int] = Field(None, ge=1, le=60)
    maximum_lease_months: Optional[int] = Field(None, ge=1, le=60)
    background_check_required: Optional[bool] = None
    credit_score_minimum: Optional[int] = Field(None, ge=300, le=850)
    income_multiple_required: Optional[Decimal] = Field(None, ge=1, le=10)
    is_premium: Optional[bool] = None
    premium_until: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _lease_bounds(self):
        check_lease_bounds(self.minimum_lease_months, self.maximum_lease_months)
        return self


class UnitCreate(UnitFields):
    status: UnitStatus = UnitStatus.AVAILABLE
    is_available: bool = True


# Columns that reject an explicit null on update
UNIT_REQUIRED = {"unit_number", "status", "is_available", "is_premium"}


class UnitUpdate(UnitFields):
    """Only fields present in the payload are written; an explicit null clears a nullable field."""

    status: Optional[UnitStatus] = None
    is_available: Optional[bool] = None

    @model_validator(mode="after")
    def _no_null_required(self):
        cleared = sorted(name for name in UNIT_REQUIRED & self.model_fields_set if getattr(self, name) is None)
        if cleared:
            raise ValueError(f"fields cannot be null: {', '.join(cleared)}")
        return self

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class UnitResponse(BaseModel):
    id: UUID
    property_id: UUID
    unit_number: str
    floor_number: Optional[int] = None
    building_section: Optional[str] = None
    sqft: Money = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[Decimal] = None
    half_bathrooms: Optional[Decimal] = None
    monthly_rent: Money = None
    security_deposit: Money = None
    pet_deposit: Money = None
    application_fee: Money = None
    hold_deposit: Money = None
    utilities_included: Optional[bool] = None
    pet_friendly: Optional[bool] = None
    furnished: Optional[bool] = None
    parking_assigned: Optional[bool] = None
    storage_assigned: Optional[bool] = None
    balcony: Optional[bool] = None
    available_from: Optional[datetime] = None
    minimum_lease_months: Optional[int] = None
    maximum_lease_months: Optional[int] = None
    background_check_required: Optional[bool] = None
    credit_score_minimum: Optional[int] = None
    income_multiple_required: Optional[Decimal] = None
    is_available: bool
    is_premium: bool
    premium_until: Optional[datetime] = None
    notes: Optional[str] = None
    status: UnitStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
