"""Admin properties API — privileged listing, single-property writes, bulk import/export.
/api/v1/admin/properties"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from fastapi.responses import Response

from app.api.deps import admin_filter_criteria, get_catalog
from app.api.responses import ok, page_meta
from app.config import settings
from app.schemas.base_schema import ApiResponse
from app.schemas.catalog_schema import FilterCriteria, ImportSummary, Page
from app.schemas.property_schema import PropertyDraft, PropertyRead, PropertyUpdate, StatusChange
from app.services.catalog_service import CatalogSynchronizer
from app.services.catalog_view import CatalogView
from app.services.export_service import content_disposition
from app.services.import_service import BulkImportReconciler

router = APIRouter()


def admin_view(
    catalog: CatalogSynchronizer,
    criteria: FilterCriteria,
    q: Optional[str],
    page_size: Optional[int] = None,
) -> CatalogView:
    view = CatalogView(catalog, page_size=page_size or settings.admin_page_size, privileged=True)
    view.apply_filters(criteria)
    view.set_search_query(q)
    return view


@router.get("", response_model=ApiResponse[Page[PropertyRead]])
async def list_properties(
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
    criteria: FilterCriteria = Depends(admin_filter_criteria),
    q: Optional[str] = Query(None),
    page: int = Query(1),
    page_size: Optional[int] = Query(None, ge=1, le=500),
):
    """Every property, public or not. Uncapped unless page_size is given."""
    result = admin_view(catalog, criteria, q, page_size).get_page(page)
    return ok(result, "Properties listed successfully", request, meta=page_meta(result))


@router.get("/export")
async def export_properties(
    catalog: CatalogSynchronizer = Depends(get_catalog),
    criteria: FilterCriteria = Depends(admin_filter_criteria),
    q: Optional[str] = Query(None),
    filename: str = Query("imoveis"),
):
    """Download the currently filtered view as .xlsx."""
    export = admin_view(catalog, criteria, q).export_current_view(filename)
    return Response(
        content=export.content,
        media_type=export.media_type,
        headers={"Content-Disposition": content_disposition(export.filename)},
    )


@router.post("/import", response_model=ApiResponse[ImportSummary])
async def import_properties(
    request: Request,
    file: UploadFile = File(...),
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    """Create one property per workbook row; report aggregate counts."""
    data = await file.read()
    summary = await BulkImportReconciler(catalog).import_workbook(data)
    return ok(
        summary,
        f"Import completed: {summary.success_count} created, {summary.error_count} failed",
        request,
    )


@router.post("/reload", response_model=ApiResponse[dict])
async def reload_catalog(request: Request, catalog: CatalogSynchronizer = Depends(get_catalog)):
    """Replace the in-memory catalog with a fresh read from the store."""
    records = await catalog.load()
    return ok({"total": len(records)}, "Catalog reloaded", request)


@router.get("/{property_id}", response_model=ApiResponse[PropertyRead])
async def get_property(
    property_id: UUID,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    return ok(catalog.get(property_id), "Property retrieved successfully", request)


@router.post("", response_model=ApiResponse[PropertyRead], status_code=201)
async def create_property(
    payload: PropertyDraft,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    record = await catalog.create(payload)
    return ok(record, "Property created successfully", request)


@router.put("/{property_id}", response_model=ApiResponse[PropertyRead])
async def update_property(
    property_id: UUID,
    payload: PropertyUpdate,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    """Replace every mutable field of a property."""
    record = await catalog.update(property_id, payload)
    return ok(record, "Property updated successfully", request)


@router.post("/{property_id}/visibility", response_model=ApiResponse[PropertyRead])
async def toggle_visibility(
    property_id: UUID,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    record = await catalog.toggle_visibility(property_id)
    return ok(record, "Visibility updated successfully", request)


@router.post("/{property_id}/featured", response_model=ApiResponse[PropertyRead])
async def toggle_featured(
    property_id: UUID,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    record = await catalog.toggle_featured(property_id)
    return ok(record, "Featured flag updated successfully", request)


@router.put("/{property_id}/status", response_model=ApiResponse[PropertyRead])
async def change_status(
    property_id: UUID,
    payload: StatusChange,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    record = await catalog.change_status(property_id, payload.status)
    return ok(record, "Status updated successfully", request)


@router.delete("/{property_id}", response_model=ApiResponse[None], status_code=200)
async def delete_property(
    property_id: UUID,
    request: Request,
    catalog: CatalogSynchronizer = Depends(get_catalog),
):
    """Hard delete. Archiving is a status change, not a delete."""
    await catalog.delete(property_id)
    return ok(None, "Property deleted successfully", request)
