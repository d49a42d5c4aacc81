import enum
import uuid

from sqlalchemy import BigInteger, Boolean, CheckConstraint, Column, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import relationship

from app.models import Base
from app.models.property import JsonColumn
from app.models.tracking import TrackedMixin


class ImageType(str, enum.Enum):
    EXTERIOR = "exterior"
    INTERIOR = "interior"
    FLOOR_PLAN = "floor-plan"
    VIEW_360 = "360-view"
    VIDEO_SNAPSHOT = "video-snapshot"
    MAP_SCREENSHOT = "map-screenshot"
    THIRD_PARTY = "third-party"
    OTHER = "other"


class PropertyImage(TrackedMixin, Base):
    __tablename__ = "property_images"
    # An image belongs to a property or to one of its units, never both
    __table_args__ = (
        CheckConstraint(
            "(property_id IS NULL) <> (unit_id IS NULL)", name="ck_property_images_single_owner"
        ),
    )
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    property_id = Column(Uuid(as_uuid=True), ForeignKey("properties.id"), nullable=True, index=True)
    unit_id = Column(Uuid(as_uuid=True), ForeignKey("property_units.id"), nullable=True, index=True)
    image_url = Column(String(1000), nullable=False)
    thumbnail_url = Column(String(1000))
    alt_text = Column(String(255))
    description = Column(String(500))
    image_type = Column(
        Enum(ImageType, name="imagetype", values_callable=lambda e: [m.value for m in e]), nullable=False
    )
    file_size_bytes = Column(BigInteger)
    width_pixels = Column(Integer)
    height_pixels = Column(Integer)
    format = Column(String(20))
    display_order = Column(Integer, nullable=False, default=0, index=True)
    is_primary = Column(Boolean, nullable=False, default=False)
    is_featured = Column(Boolean, nullable=False, default=False)
    is_360_degree = Column(Boolean, nullable=False, default=False)
    room_type = Column(String(100))
    meta_data = Column(JsonColumn)

    property = relationship("Property", back_populates="images", foreign_keys=[property_id])
    unit = relationship("PropertyUnit", back_populates="images", foreign_keys=[unit_id])

    def __repr__(self):
        return f"<PropertyImage(id={self.id}, primary={self.is_primary}, url='{self.image_url}')>"
