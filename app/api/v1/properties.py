"""Public listings API — search and browse active, public properties; submit a property for review.
/api/v1/properties"""
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.api.deps import filter_criteria, get_catalog
from app.api.responses import ok, page_meta
from app.config import settings
from app.core.exceptions import NotFoundError
from app.models.enums import PropertyStatus
from app.schemas.base_schema import ApiResponse
from app.schemas.catalog_schema import FilterCriteria, SearchPage
from app.schemas.property_schema import PropertyDraft, PropertyPublicRead, PropertyRead
from app.services.catalog_service import CatalogSynchronizer
from app.services.catalog_view import CatalogView

router = APIRouter()

_PUBLIC_BASE = FilterCriteria(status=PropertyStatus.ACTIVE, is_public=True)


def public_view(catalog: CatalogSynchronizer) -> CatalogView:
    return CatalogView(
        catalog,
        page_size=settings.public_page_size,
        privileged=False,
        base_criteria=_PUBLIC_BASE,
    )


def _public(records: List[PropertyRead]) -> List[PropertyPublicRead]:
    return [PropertyPublicRead.model_validate(record.model_dump()) for record in records]


@router.get("", response_model=ApiResponse[SearchPage[PropertyPublicRead]])
async def search_properties(
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
    criteria: FilterCriteria = Depends(filter_criteria),
    q: Optional[str] = Query(None, description="Free text on title, address and description"),
    page: int = Query(1),
):
    """Search public listings, newest first. Fixed page size; out-of-range pages clamp.

    When fewer than SEARCH_RECOMMENDATIONS listings match, other public
    listings are suggested in `recommendations`.
    """
    view = public_view(catalog)
    view.apply_filters(criteria)
    view.set_search_query(q)
    result = view.get_page(page)

    data = SearchPage[PropertyPublicRead](
        items=_public(result.items),
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        pages=result.pages,
        recommendations=_public(view.recommendations(settings.search_recommendations)),
    )
    return ok(data, "Properties found", request, meta=page_meta(result))


@router.get("/featured", response_model=ApiResponse[List[PropertyPublicRead]])
async def featured_properties(
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
    limit: int = Query(settings.featured_limit, ge=1, le=50),
):
    """Featured public listings, newest first."""
    view = public_view(catalog)
    view.apply_filters(FilterCriteria(featured=True))
    return ok(_public(view.top(limit)), "Featured properties", request)


@router.post("/submissions", response_model=ApiResponse[PropertyPublicRead], status_code=201)
async def submit_property(
    payload: PropertyDraft,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    """Owner submission. Stored as pending; it only shows up once an admin activates it."""
    record = await catalog.submit_for_review(payload)
    return ok(PropertyPublicRead.model_validate(record.model_dump()), "Property submitted for review", request)


@router.get("/{property_id}", response_model=ApiResponse[PropertyPublicRead])
async def get_public_property(
    property_id: UUID,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    """Single public listing. Private or inactive records answer 404."""
    record = catalog.get(property_id)
    if not record.is_public or record.status != PropertyStatus.ACTIVE:
        raise NotFoundError(f"Property {property_id} not found")
    return ok(PropertyPublicRead.model_validate(record.model_dump()), "Property retrieved successfully", request)
