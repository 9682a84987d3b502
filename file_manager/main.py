"""
File Manager API

FastAPI application entry point: upload, list, download and delete files
stored in an S3 (or S3-compatible) bucket.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from file_manager import __version__
from file_manager.api.errors import register_error_handlers
from file_manager.api.files import router as files_router
from file_manager.api.limits import UploadSizeLimitMiddleware
from file_manager.api.middleware import log_requests
from file_manager.config import Settings, get_settings
from file_manager.storage import StorageGateway


# =============================================================================
# Structlog Configuration
# =============================================================================
def configure_logging(settings: Settings) -> None:
    """
    Configure structlog for JSON logging with ISO timestamps.

    All logs are output as JSON with consistent fields:
    - timestamp: ISO 8601 format
    - level: log level (info, warning, error, etc.)
    - event: log message
    - Additional context fields (request_id, method, path, s3_key, etc.)
    """
    # Shared processors for all loggers
    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to use structlog formatter
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.JSONRenderer(default=str),
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(settings.LOG_LEVEL.upper())

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("s3transfer").setLevel(logging.WARNING)


# =============================================================================
# Sentry Configuration
# =============================================================================
def configure_sentry(settings: Settings) -> None:
    """
    Initialize Sentry error tracking if SENTRY_DSN is configured.
    """
    if not settings.SENTRY_DSN:
        return

    logger = structlog.get_logger()
    try:
        import sentry_sdk
        from sentry_sdk.integrations.fastapi import FastApiIntegration

        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            integrations=[FastApiIntegration(transaction_style="endpoint")],
            traces_sample_rate=0.1,
            environment="development" if settings.DEBUG else "production",
        )
        logger.info("sentry_initialized", dsn_prefix=settings.SENTRY_DSN[:20] + "...")
    except Exception as e:
        logger.warning("sentry_init_failed", error=str(e))


# =============================================================================
# Application Lifespan
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler for startup and shutdown events.
    """
    settings: Settings = app.state.settings
    configure_logging(settings)
    configure_sentry(settings)

    logger = structlog.get_logger()
    logger.info(
        "application_startup",
        app_name="File Manager API",
        bucket=settings.S3_BUCKET_NAME,
        region=settings.AWS_REGION,
        endpoint_url=settings.S3_ENDPOINT_URL,
        debug=settings.DEBUG,
    )

    yield

    logger.info("application_shutdown")


# =============================================================================
# Service metadata
# =============================================================================
SERVICE_INFO = {
    "name": "File Manager API",
    "version": __version__,
    "description": "File management API - upload, list, download and delete",
    "endpoints": {
        "POST /upload": "Upload a file",
        "GET /files": "List files",
        "GET /files/:filename": "Download a file",
        "DELETE /files/:filename": "Delete a file",
    },
}


# =============================================================================
# FastAPI Application
# =============================================================================
def create_app(
    settings: Optional[Settings] = None,
    storage: Optional[StorageGateway] = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration; loaded from the environment when omitted
        storage: Storage gateway; built from settings when omitted
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="File Manager API",
        description="Upload, list, download and delete files in an S3 bucket",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
    )
    app.state.settings = settings
    app.state.storage = storage or StorageGateway(settings)

    # Added first so it sits innermost, inside the request logger
    app.add_middleware(
        UploadSizeLimitMiddleware,
        max_file_bytes=settings.MAX_UPLOAD_SIZE_BYTES,
        overhead_bytes=settings.UPLOAD_BODY_OVERHEAD_BYTES,
        debug=settings.DEBUG,
    )
    app.middleware("http")(log_requests)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    @app.get("/", tags=["Meta"])
    async def service_info() -> JSONResponse:
        """Describe the service and its endpoints."""
        return JSONResponse(content=SERVICE_INFO)

    @app.get("/health", tags=["Health"])
    async def health_check() -> JSONResponse:
        """
        Health check endpoint for load balancers and monitoring.

        Returns:
            JSON response with status "ok"
        """
        return JSONResponse(content={"status": "ok"}, status_code=200)

    app.include_router(files_router)
    return app


app = create_app()


def run() -> None:
    """Start the server with uvicorn on HOST:PORT."""
    import uvicorn

    settings = get_settings()
    uvicorn.run("file_manager.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
