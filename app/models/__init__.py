from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import declarative_base

# Define a common Base for all models
# This creates the Base class once.
Base = declarative_base(cls=AsyncAttrs)

# Import models AFTER Base is defined
# This ensures models inherit from the *same* Base instance
from . import property
from . import unit
from . import image

from .image import ImageType, PropertyImage
from .property import Property, PropertyStatus, PropertyTag, PropertyType
from .unit import PropertyUnit, UnitStatus
