"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
Using an application factory pattern (create_app function) because:
- Easier to test with different configurations
- Explicit about initialization order

For local development:
    uvicorn multimedia.main:app --reload

For production:
    gunicorn multimedia.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.routes import assets, health, options
from .api.schemas import ErrorDetail, ValidationErrorResponse
from .config.settings import get_settings
from .core.assets.errors import (
    AssetError,
    AssetNotFoundError,
    AssetValidationError,
    IngestionError,
    InvalidArgumentError,
    ObjectNotFoundError,
    PersistError,
    StorageError,
    UploadTooLargeError,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)

# Most specific first; the first isinstance match wins
_ERROR_STATUS: list[tuple[type[AssetError], int]] = [
    (AssetValidationError, 422),
    (AssetNotFoundError, status.HTTP_404_NOT_FOUND),
    (ObjectNotFoundError, status.HTTP_404_NOT_FOUND),
    (UploadTooLargeError, 413),
    (IngestionError, status.HTTP_400_BAD_REQUEST),
    (StorageError, status.HTTP_502_BAD_GATEWAY),
    (PersistError, status.HTTP_502_BAD_GATEWAY),
    (InvalidArgumentError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def status_for_error(exc: AssetError) -> int:
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Logs startup configuration and reports missing settings. The
    uploader itself is built per request, so misconfiguration also
    surfaces on /health/ready.
    """
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "Multimedia API starting",
        extra={
            "version": settings.api_version,
            "mock_mode": {
                "storage": settings.storage_mock_mode,
                "metadata": settings.metadata_mock_mode,
            }
        }
    )

    missing_fields = settings.validate_required_fields()
    if missing_fields:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing_fields}
        )

    yield

    logger.info("Multimedia API shutting down")


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application. Called once at
    startup, or per test with different settings.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        description="""
        Storage of multimedia assets.

        Payloads are kept in S3 and described by records in DynamoDB.

        ## Authentication

        All /api/v1 endpoints require an API key in the `X-API-Key` header.

        ## Workflow

        1. **Upload**: `POST /api/v1/assets` (multipart, field `file`)
        2. **Look up**: `GET /api/v1/assets/{asset_id}` or `GET /api/v1/assets?ids=a,b`
        3. **Download**: `GET /api/v1/assets/{asset_id}/content`
        4. **Delete**: `DELETE /api/v1/assets/{asset_id}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        assets.router,
        prefix="/api/v1/assets",
        tags=["Assets"],
    )

    app.include_router(
        options.router,
        prefix="/api/v1/options",
        tags=["Page Options"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "message": "Multimedia Asset API",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(AssetError)
    async def asset_error_handler(request: Request, exc: AssetError):
        """Map asset-layer failures to HTTP responses."""
        status_code = status_for_error(exc)

        if status_code >= 500:
            logger.error(
                "Asset operation failed",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "error": str(exc),
                },
            )

        if isinstance(exc, AssetValidationError):
            body = ValidationErrorResponse(
                detail=str(exc),
                errors=[ErrorDetail(field=v.field, message=v.message) for v in exc.violations],
            )
            return JSONResponse(status_code=status_code, content=body.model_dump())

        content = {"detail": str(exc)}
        if isinstance(exc, InvalidArgumentError):
            content["detail"] = "Service is misconfigured."

        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Prevents stack traces from leaking to clients. The full error
        is logged server-side.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    logger.info(
        "FastAPI application created",
        extra={
            "title": settings.api_title,
            "version": settings.api_version,
        }
    )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "multimedia.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
