"""FastAPI application factory and startup configuration.

Public listing routes are open; admin routes carry RequireApiKey as a router
dependency so /health and /docs stay public.
"""
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import settings
from app.schemas.base_schema import ApiResponse
from app.core.exceptions import (
    AppException,
    ConflictError,
    ExportError,
    NotFoundError,
    ParseError,
    RemoteError,
    ValidationError,
)
from app.core.logging import get_logger, set_correlation_id, setup_logging
from app.api.v1.properties import router as properties_router
from app.api.v1.admin_properties import router as admin_properties_router
from app.api.deps import RequireApiKey
from app.api.responses import ok
from app.database import async_session_factory
from app.services.catalog_service import CatalogSynchronizer
from app.store.sql_store import SqlCatalogStore

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan — build the catalog and mirror the store into memory."""
    setup_logging()
    logger.info("Starting %s v%s", settings.app_name, settings.app_version)

    if not settings.api_key:
        logger.warning(
            "API_KEY não configurada — endpoints de administração desprotegidos. "
            "Define API_KEY no .env antes de ir a produção."
        )

    catalog = CatalogSynchronizer(SqlCatalogStore(async_session_factory))
    app.state.catalog = catalog
    try:
        await catalog.load()
    except RemoteError as e:
        logger.warning(
            "Initial catalog load failed: %s. Catalog starts empty until POST /reload succeeds.",
            e.message,
        )

    yield

    logger.info("Shutting down %s", settings.app_name)


_ERROR_STATUS = (
    (NotFoundError, 404),
    (ConflictError, 409),
    (ValidationError, 422),
    (ParseError, 422),
    (ExportError, 422),
    (RemoteError, 502),
    (AppException, 400),
)


def _error_response(request: Request, status_code: int, exc: AppException) -> JSONResponse:
    errors = exc.detail if isinstance(exc.detail, list) else [exc.message]
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            success=False,
            data=None,
            message=exc.message,
            errors=errors,
            trace_id=getattr(request.state, "trace_id", None) or "",
        ).model_dump(),
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Property catalog API — search listings, manage the catalog, bulk import and export.",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @application.middleware("http")
    async def add_trace_id(request: Request, call_next):
        request.state.trace_id = set_correlation_id(str(uuid4()))
        response = await call_next(request)
        response.headers["X-Trace-Id"] = request.state.trace_id
        return response

    @application.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        trace_id = getattr(request.state, "trace_id", None)
        logger.exception("Unhandled exception [trace_id=%s]", trace_id, exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=ApiResponse(
                success=False,
                data=None,
                message="Erro interno",
                errors=["Internal server error"],
                trace_id=trace_id or "",
            ).model_dump(),
        )

    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        # most specific class first
        for exc_class, status_code in _ERROR_STATUS:
            if isinstance(exc, exc_class):
                return _error_response(request, status_code, exc)
        return _error_response(request, 400, exc)

    _auth = [RequireApiKey]

    application.include_router(properties_router, prefix="/api/v1/properties", tags=["properties"])
    application.include_router(
        admin_properties_router,
        prefix="/api/v1/admin/properties",
        tags=["admin"],
        dependencies=_auth,
    )

    @application.get("/health", tags=["system"])
    async def health_check(request: Request):
        from sqlalchemy import text

        db_status = "ok"
        try:
            async with async_session_factory() as session:
                await session.execute(text("SELECT 1"))
        except Exception as e:
            db_status = f"error: {str(e)}"

        catalog = getattr(request.app.state, "catalog", None)
        return ok(
            {
                "status": "healthy" if db_status == "ok" else "unhealthy",
                "version": settings.app_version,
                "database": db_status,
                "catalog_size": len(catalog) if catalog is not None else 0,
            },
            "Health check completed",
            request,
        )

    return application


app = create_app()
