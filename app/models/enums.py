"""Enumerations shared by the ORM model and the pydantic schemas."""
from enum import Enum


class ListingKind(str, Enum):
    RENT = "rent"
    SALE = "sale"


class PropertyStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"
    ARCHIVED = "archived"
