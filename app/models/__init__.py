"""SQLAlchemy models for the property catalog."""
from app.models.enums import ListingKind, PropertyStatus
from app.models.property_model import Property

__all__ = [
    "ListingKind",
    "Property",
    "PropertyStatus",
]
