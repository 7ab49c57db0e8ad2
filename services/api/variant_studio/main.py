"""FastAPI application entry point.

Variant Studio API - product variant builder for the catalog admin.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from variant_studio.routes import api_router
from variant_studio.schemas.common import ErrorDetail, ErrorResponse
from variant_studio.services.catalog_client import ExternalServiceError
from variant_studio.services.validation import VariantValidationError
from variant_studio.settings import get_settings
from variant_studio.stores.redis import init_redis, close_redis

logger = logging.getLogger("uvicorn.error")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    # Initialize Redis (reference cache is optional; skip if unavailable)
    try:
        await init_redis()
    except Exception:
        logger.exception("Redis init failed")

    yield

    # Shutdown
    await close_redis()


def _error(status_code: int, code: str, message: str, detail: dict | None = None) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, detail=detail))
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app() -> FastAPI:
    """Create and configure FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Product variant builder: expand color groups, collapse stored variants",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(VariantValidationError)
    async def validation_exception_handler(request: Request, exc: VariantValidationError) -> JSONResponse:
        """Invalid variant data: report every issue so the editor can highlight it."""
        detail: dict = {"issues": [issue.to_dict() for issue in exc.issues]}
        if exc.partial:
            detail["partial"] = exc.partial
        return _error(422, "VARIANT_VALIDATION_FAILED", str(exc), detail)

    @app.exception_handler(ExternalServiceError)
    async def external_exception_handler(request: Request, exc: ExternalServiceError) -> JSONResponse:
        logger.warning(f"Catalog backend error on {request.url.path}: {exc.message}")
        return _error(
            502,
            "EXTERNAL_SERVICE_ERROR",
            exc.message,
            {"statusCode": exc.status_code, "upstream": exc.detail, "partial": exc.partial},
        )

    # Exception handler for structured error format
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler returning structured error format."""
        logger.exception(f"Unhandled error on {request.url.path}")
        return _error(500, "INTERNAL_ERROR", str(exc) if settings.debug else "Internal server error")

    # Health check endpoint
    @app.get("/health", tags=["health"])
    async def health_check() -> dict[str, bool]:
        """Health check endpoint."""
        return {"ok": True}

    # Include API routes
    app.include_router(api_router)

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "variant_studio.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
