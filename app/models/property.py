import enum
import uuid

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, DateTime, Enum, Float, ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

# Import Base from the common models file
from app.models import Base
from app.models.tracking import TrackedMixin


class PropertyType(str, enum.Enum):
    APARTMENT = "apartment"
    HOUSE = "house"
    CONDO = "condo"
    TOWNHOUSE = "townhouse"
    STUDIO = "studio"
    DUPLEX = "duplex"
    TRIPLEX = "triplex"
    FOURPLEX = "fourplex"
    COMMERCIAL = "commercial"
    OFFICE = "office"
    RETAIL = "retail"
    WAREHOUSE = "warehouse"
    MIXED_USE = "mixed-use"


class PropertyStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    RENTED = "rented"
    MAINTENANCE = "maintenance"
    UNDER_REVIEW = "under-review"
    ARCHIVED = "archived"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# JSONB on Postgres, plain JSON elsewhere (tests run on SQLite)
JsonColumn = JSON().with_variant(JSONB(), "postgresql")

# Embedded value objects stored as plain columns on the properties table
ADDRESS_FIELDS = (
    "street_address", "street_address_2", "city", "state", "zip_code", "country", "county", "timezone",
)
DETAIL_FIELDS = (
    "total_sqft", "bedrooms", "bathrooms", "half_bathrooms", "kitchen_type", "heating_type", "cooling_type",
    "air_conditioning", "elevator_building", "garage_spaces", "covered_parking_spaces", "outdoor_space",
    "storage_areas", "energy_efficiency_rating", "year_built", "last_renovation_year", "hoa_fees",
)


class Property(TrackedMixin, Base):
    __tablename__ = "properties"
    __table_args__ = (
        CheckConstraint(
            "view_count >= 0 AND inquiry_count >= 0 AND favorite_count >= 0", name="ck_properties_counters"
        ),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    owner_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(500), nullable=False)
    property_type = Column(
        Enum(PropertyType, name="propertytype", values_callable=_enum_values), nullable=False, index=True
    )
    status = Column(
        Enum(PropertyStatus, name="propertystatus", values_callable=_enum_values),
        nullable=False, default=PropertyStatus.DRAFT, server_default=PropertyStatus.DRAFT.value, index=True,
    )

    # Address
    street_address = Column(String(255), nullable=False)
    street_address_2 = Column(String(255))
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(50), nullable=False)
    zip_code = Column(String(20), nullable=False, index=True)
    country = Column(String(50), nullable=False, default="United States")
    county = Column(String(100))
    timezone = Column(String(50))

    # Structural details
    total_sqft = Column(Numeric(10, 2))
    bedrooms = Column(Integer)
    bathrooms = Column(Numeric(4, 1))
    half_bathrooms = Column(Numeric(4, 1))
    kitchen_type = Column(String(50))
    heating_type = Column(String(100))
    cooling_type = Column(String(100))
    air_conditioning = Column(Boolean)
    elevator_building = Column(Boolean)
    garage_spaces = Column(Integer)
    covered_parking_spaces = Column(Integer)
    outdoor_space = Column(String(100))
    storage_areas = Column(String(500))
    energy_efficiency_rating = Column(String(10))
    year_built = Column(Integer)
    last_renovation_year = Column(Integer)
    hoa_fees = Column(Numeric(10, 2))

    # Financials
    listing_price = Column(Numeric(12, 2))
    monthly_rent = Column(Numeric(12, 2))
    security_deposit = Column(Numeric(12, 2))
    pet_deposit = Column(Numeric(12, 2))
    application_fee = Column(Numeric(8, 2))

    # Amenities
    utilities_included = Column(Boolean)
    pet_friendly = Column(Boolean)
    furnished = Column(Boolean)
    parking_available = Column(Boolean)
    smoke_free = Column(Boolean)

    available_from = Column(DateTime(timezone=True))
    is_available = Column(Boolean, nullable=False, default=True)
    lease_min_months = Column(Integer)
    lease_max_months = Column(Integer)
    background_check_required = Column(Boolean)
    credit_score_minimum = Column(Integer)
    income_multiple = Column(Numeric(4, 2))

    # Engagement counters, only ever changed through atomic UPDATEs
    view_count = Column(Integer, nullable=False, default=0, server_default="0")
    inquiry_count = Column(Integer, nullable=False, default=0, server_default="0")
    favorite_count = Column(Integer, nullable=False, default=0, server_default="0")

    is_featured = Column(Boolean, nullable=False, default=False)
    featured_until = Column(DateTime(timezone=True))
    latitude = Column(Float)
    longitude = Column(Float)
    google_maps_url = Column(String(1000))
    notes = Column(Text)
    meta_data = Column(JsonColumn)

    units = relationship("PropertyUnit", back_populates="property")
    images = relationship("PropertyImage", back_populates="property", foreign_keys="PropertyImage.property_id")
    tag_rows = relationship("PropertyTag", back_populates="property", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Property(id={self.id}, name='{self.name}', status='{self.status}')>"


class PropertyTag(Base):
    __tablename__ = "property_tags"
    __table_args__ = (UniqueConstraint("property_id", "tag", name="uq_property_tags_property_tag"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Uuid(as_uuid=True), ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    tag = Column(String(50), nullable=False, index=True)

    property = relationship("Property", back_populates="tag_rows")
