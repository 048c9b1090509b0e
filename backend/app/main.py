"""
Site Content API — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Logging → GZip → CORS    │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────┐ ┌──────────────┐ ┌─────────┐  │
    │  │ /E, /E/{id}  x 8 │ │ /files/...   │ │ /health │  │
    │  └──────────────────┘ └──────────────┘ └─────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation/Rejected→400 │ NotFound→404 │ 405       │
    │  Upload/Database/unexpected→500                     │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → storage directory (local backend)
    Shutdown: dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import (
    DatabaseError,
    MethodNotAllowedError,
    NotFoundError,
    ObjectStorageError,
    RecordRejectedError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import content, files, health

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, before any other initialization.

    Format: 2024-01-15T12:00:00 [INFO] app.services.entity_service: Created taglines id=3
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Site Content API %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks and reads still work without storage
        logger.error("Configuration error: %s", str(e))
        logger.error("Uploads will fail until the configuration is fixed.")

    if settings.storage_backend == "local":
        storage = Path(settings.storage_root)
        storage.mkdir(parents=True, exist_ok=True)
        logger.info("Local object store: %s", storage.resolve())
    else:
        logger.info("Supabase object store: %s", settings.supabase_url or "<unset>")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Site Content API shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

        ValidationError        → 400 validation_error
        RecordRejectedError    → 400 database_error (database message passed through)
        NotFoundError          → 404 not_found
        MethodNotAllowedError  → 405 method_not_allowed (+ Allow header)
        ObjectStorageError     → 500 upload_failed
        DatabaseError          → 500 server_error (generic message)
        Exception (fallback)   → 500 internal_server_error
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, details=exc.context)

    @app.exception_handler(RecordRejectedError)
    async def handle_record_rejected(request: Request, exc: RecordRejectedError):
        logger.warning(
            "[%s] Database rejected request: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(400, "database_error", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(MethodNotAllowedError)
    async def handle_method_not_allowed(request: Request, exc: MethodNotAllowedError):
        return _error_response(
            405,
            "method_not_allowed",
            exc.message,
            details={"allowed": exc.allowed},
            headers={"Allow": ", ".join(exc.allowed)},
        )

    @app.exception_handler(ObjectStorageError)
    async def handle_object_storage_error(request: Request, exc: ObjectStorageError):
        logger.error(
            "[%s] Object storage error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(500, "upload_failed", exc.message)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """Assemble middleware, exception handlers and routers into a new app."""
    app = FastAPI(
        title="Site Content API",
        description=(
            "CRUD backend for website content: taglines, services, portfolios, blog posts, "
            "testimonials, client logos and Instagram links. Images are uploaded to object "
            "storage and referenced by public URL."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials="*" not in settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Allow"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(files.router)
    app.include_router(content.router)

    return app


app = create_app()
