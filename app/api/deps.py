"""API dependencies — catalog access, filter parsing, and API key authentication.

Admin routes require the X-API-Key header; the key is configured through
API_KEY in .env. Public listing routes need no key.
"""
import secrets
from decimal import Decimal
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Query, Request, Security, status
from fastapi.security import APIKeyHeader
from pydantic import ValidationError as PydanticValidationError

from app.config import settings
from app.core.exceptions import ValidationError
from app.schemas.catalog_schema import FilterCriteria
from app.services.catalog_service import CatalogSynchronizer, validation_messages


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

def get_catalog(request: Request) -> CatalogSynchronizer:
    """The process-wide catalog built in the application lifespan."""
    return request.app.state.catalog


def filter_criteria(
    min_price: Optional[Decimal] = Query(None),
    max_price: Optional[Decimal] = Query(None),
    min_bedrooms: Optional[int] = Query(None),
    min_bathrooms: Optional[int] = Query(None),
    min_area: Optional[float] = Query(None),
    max_area: Optional[float] = Query(None),
    listing_kind: Optional[str] = Query(None, description="rent, sale or all"),
    featured: Optional[str] = Query(None, description="true, false or all"),
) -> FilterCriteria:
    """Criteria every caller may use."""
    return _build_criteria(
        min_price=min_price, max_price=max_price,
        min_bedrooms=min_bedrooms, min_bathrooms=min_bathrooms,
        min_area=min_area, max_area=max_area,
        listing_kind=listing_kind, featured=featured,
    )


def admin_filter_criteria(
    base: FilterCriteria = Depends(filter_criteria),
    status_filter: Optional[str] = Query(None, alias="status", description="active, pending, archived or all"),
    is_public: Optional[str] = Query(None, description="true, false or all"),
) -> FilterCriteria:
    """Public criteria plus the status and visibility constraints of the admin table."""
    return _build_criteria(**base.model_dump(exclude_none=True), status=status_filter, is_public=is_public)


def _build_criteria(**values) -> FilterCriteria:
    try:
        return FilterCriteria.model_validate(values)
    except PydanticValidationError as e:
        raise ValidationError("Filtros inválidos", detail=validation_messages(e)) from e


# ---------------------------------------------------------------------------
# API Key authentication
# ---------------------------------------------------------------------------

_api_key_header = APIKeyHeader(
    name="X-API-Key",
    auto_error=False,  # False para retornar 401 customizado em vez de 403
    description="API key de administração. Configurada via API_KEY no .env",
)


async def verify_api_key(
    api_key: Annotated[str | None, Security(_api_key_header)],
) -> str:
    """Valida o header X-API-Key com comparação constant-time.

    Raises:
        HTTPException 401: se a key estiver ausente ou incorreta.
        HTTPException 500: se API_KEY não estiver configurada no servidor.
    """
    if not settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Servidor não configurado corretamente (API_KEY em falta).",
        )

    if not api_key or not secrets.compare_digest(api_key, settings.api_key):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="API key inválida ou ausente. Usa o header X-API-Key.",
            headers={"WWW-Authenticate": "ApiKey"},
        )

    return api_key


RequireApiKey = Depends(verify_api_key)
