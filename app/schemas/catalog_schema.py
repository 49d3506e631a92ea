"""Pydantic schemas for catalog queries: filter criteria, pages, import summaries."""
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import ListingKind, PropertyStatus

T = TypeVar("T")

# Selects in the UI send "all" for "no constraint"
_UNCONSTRAINED = ("all", "")


class FilterCriteria(BaseModel):
    """Numeric and categorical constraints. None means unconstrained; 0 is a real bound."""
    model_config = ConfigDict(frozen=True)

    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    min_bedrooms: Optional[int] = Field(None, ge=0)
    min_bathrooms: Optional[int] = Field(None, ge=0)
    min_area: Optional[float] = Field(None, ge=0)
    max_area: Optional[float] = Field(None, ge=0)
    listing_kind: Optional[ListingKind] = None
    status: Optional[PropertyStatus] = None
    is_public: Optional[bool] = None
    featured: Optional[bool] = None

    @field_validator("listing_kind", "status", "is_public", "featured", mode="before")
    @classmethod
    def all_means_unconstrained(cls, v):
        if isinstance(v, str) and v.strip().lower() in _UNCONSTRAINED:
            return None
        return v

    def is_empty(self) -> bool:
        return not self.model_dump(exclude_none=True)


class Page(BaseModel, Generic[T]):
    """One page of an ordered result set."""
    items: List[T]
    page: int
    page_size: Optional[int] = None
    total: int
    pages: int


class SearchPage(Page[T], Generic[T]):
    """Search result page plus suggestions shown when the search finds little."""
    recommendations: List[T] = []


class ImportSummary(BaseModel):
    success_count: int = 0
    error_count: int = 0
