"""Pydantic schemas for Property records.

PropertyRead is the shape held in the in-memory catalog and returned to
privileged viewers. PropertyPublicRead is the projection every other caller
gets: no full address, no contacts, no visibility flag.
"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from urllib.parse import urlparse
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from app.models.enums import ListingKind, PropertyStatus


def _check_uri(value: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError(f"'{value}' is not a well-formed http(s) URI")
    return value


class PropertyBase(BaseModel):
    """Mutable fields shared by create, full update and read."""
    title: str = Field(..., min_length=1, max_length=500)
    public_address: str = Field(..., min_length=1, max_length=500)
    full_address: Optional[str] = Field(None, max_length=500)

    price: Decimal = Field(..., gt=0)
    listing_kind: ListingKind
    bedroom_count: int = Field(0, ge=0)
    bathroom_count: int = Field(0, ge=0)
    area_sq_meters: float = Field(..., gt=0)

    primary_image_ref: str
    additional_image_refs: List[str] = []
    description: Optional[str] = None

    status: PropertyStatus = PropertyStatus.ACTIVE
    is_public: bool = True
    featured: bool = False

    contact_phone: Optional[str] = Field(None, max_length=50)
    contact_email: Optional[str] = Field(None, max_length=255)

    @field_validator("title", "public_address", mode="before")
    @classmethod
    def strip_required_text(cls, v):
        if isinstance(v, str):
            v = v.strip()
        return v

    @field_validator("primary_image_ref")
    @classmethod
    def validate_primary_image(cls, v: str) -> str:
        return _check_uri(v.strip())

    @field_validator("additional_image_refs")
    @classmethod
    def validate_additional_images(cls, v: List[str]) -> List[str]:
        return [_check_uri(ref.strip()) for ref in v]


class PropertyDraft(PropertyBase):
    """Schema for creating a property (the store assigns the id)."""
    pass


class PropertyUpdate(PropertyBase):
    """Full replacement of every mutable field."""
    pass


class PropertyRead(PropertyBase):
    """Canonical record as confirmed by the store. Frozen: catalog consumers never mutate it."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    full_address: Optional[str] = Field(None, validate_default=True)
    version: int = 1
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("full_address")
    @classmethod
    def default_full_address(cls, v: Optional[str], info: ValidationInfo) -> Optional[str]:
        return v or info.data.get("public_address")


class PropertyPublicRead(BaseModel):
    """Listing as rendered to non-privileged callers."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    public_address: str
    price: Decimal
    listing_kind: ListingKind
    bedroom_count: int
    bathroom_count: int
    area_sq_meters: float
    primary_image_ref: str
    additional_image_refs: List[str] = []
    description: Optional[str] = None
    status: PropertyStatus
    featured: bool = False


class StatusChange(BaseModel):
    status: PropertyStatus
