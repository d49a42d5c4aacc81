import enum
import uuid

from sqlalchemy import Boolean, Column, DateTime, Enum, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.models import Base
from app.models.tracking import TrackedMixin


class UnitStatus(str, enum.Enum):
    AVAILABLE = "available"
    RENTED = "rented"
    UNDER_CONTRACT = "under-contract"
    MAINTENANCE = "maintenance"
    MODEL_UNIT = "model-unit"
    RESERVED = "reserved"
    INACTIVE = "inactive"


class PropertyUnit(TrackedMixin, Base):
    __tablename__ = "property_units"
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid(as_uuid=True), ForeignKey("properties.id"), nullable=False, index=True)
    unit_number = Column(String(20), nullable=False, index=True)
    floor_number = Column(Integer)
    building_section = Column(String(50))
    sqft = Column(Numeric(10, 2))
    bedrooms = Column(Integer)
    bathrooms = Column(Numeric(4, 1))
    half_bathrooms = Column(Numeric(4, 1))

    monthly_rent = Column(Numeric(10, 2))
    security_deposit = Column(Numeric(10, 2))
    pet_deposit = Column(Numeric(10, 2))
    application_fee = Column(Numeric(8, 2))
    hold_deposit = Column(Numeric(8, 2))

    utilities_included = Column(Boolean)
    pet_friendly = Column(Boolean)
    furnished = Column(Boolean)
    parking_assigned = Column(Boolean)
    storage_assigned = Column(Boolean)
    balcony = Column(Boolean)

    available_from = Column(DateTime(timezone=True))
    minimum_lease_months = Column(Integer)
    maximum_lease_months = Column(Integer)
    background_check_required = Column(Boolean)
    credit_score_minimum = Column(Integer)
    income_multiple_required = Column(Numeric(4, 2))

    is_available = Column(Boolean, nullable=False, default=True)
    is_premium = Column(Boolean, nullable=False, default=False)
    premium_until = Column(DateTime(timezone=True))
    notes = Column(Text)
    status = Column(
        Enum(UnitStatus, name="unitstatus", values_callable=lambda e: [m.value for m in e]),
        nullable=False, default=UnitStatus.AVAILABLE, server_default=UnitStatus.AVAILABLE.value, index=True,
    )

    property = relationship("Property", back_populates="units")
    images = relationship("PropertyImage", back_populates="unit", foreign_keys="PropertyImage.unit_id")

    def __repr__(self):
        return f"<PropertyUnit(id={self.id}, unit_number='{self.unit_number}', status='{self.status}')>"
