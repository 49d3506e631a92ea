# app/api/responses.py
from typing import Any, Optional
from fastapi import Request
from app.schemas.base_schema import ApiResponse, Meta
from app.schemas.catalog_schema import Page


def ok(
    data: Any,
    message: str,
    request: Optional[Request] = None,
    meta: Optional[dict] = None,
) -> ApiResponse:
    """Wrap a successful response in the standard ApiResponse envelope."""
    return ApiResponse(
        success=True,
        data=data,
        meta=meta,
        message=message,
        errors=None,
        trace_id=getattr(request.state, "trace_id", "") if request else "",
    )


def page_meta(page: Page) -> dict:
    return Meta(page=page.page, page_size=page.page_size, total=page.total, pages=page.pages).model_dump()
