"""
Error taxonomy for the catalog core.

Routers translate these into HTTP responses; the message carried by each
error is safe to show to callers and never contains backend error text.
"""


class CatalogError(Exception):
    """Base class for every error the catalog core raises on purpose."""

    default_message = "Property catalog error"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class NotFoundError(CatalogError):
    # Also raised when the entity exists but belongs to someone else
    default_message = "Not found or access denied"


class PropertyNotFoundError(NotFoundError):
    default_message = "Property not found or access denied"


class UnitNotFoundError(NotFoundError):
    default_message = "Unit not found or access denied"


class ImageNotFoundError(NotFoundError):
    default_message = "Image not found or access denied"


class ValidationFailure(CatalogError):
    default_message = "Invalid property data"


class StorageFailure(CatalogError):
    default_message = "Storage operation failed"


class UploadFailure(CatalogError):
    default_message = "Image upload failed"
