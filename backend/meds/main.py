"""
MEDS Backend — FastAPI Application Factory
============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`meds serve`, or `uvicorn meds.main:app`) and the test suite.
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌────────────────────────────────────────────────────────────┐
    │                        FastAPI App                         │
    │                                                            │
    │  Middleware Chain:                                         │
    │  ┌────────────┐ ┌────────────┐ ┌─────────────┐ ┌────────┐  │
    │  │ Request ID │→│ Access Log │→│ Login Limit │→│CORS/GZip│ │
    │  └────────────┘ └────────────┘ └─────────────┘ └────────┘  │
    │                                                            │
    │  Routes:                                                   │
    │  /health  /api/collections/users/auth-*                    │
    │  /api/collections/{collection}/records[/{id}]              │
    │  /api/queue/*  /api/encounters/*  /api/settings/current    │
    │  /  → built frontend (SPA fallback)                        │
    │                                                            │
    │  Exception Handlers:                                       │
    │  MedsError → its status_code │ request validation → 400    │
    │  anything else → 500                                       │
    └────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (warn on development defaults)
    3. Create the data directory
    4. Wait for the database (retried with backoff)

    Shutdown:
    1. Dispose database engine (close all connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from meds import __version__
from meds.config import settings
from meds.database import dispose_engine, wait_for_database
from meds.exceptions import ConflictError, MedsError, RateLimitExceededError
from meds.middleware.logging import RequestLoggingMiddleware
from meds.middleware.rate_limit import RateLimitMiddleware
from meds.middleware.request_id import RequestIDMiddleware, request_id_var
from meds.routes import auth, encounters, health, queue, records
from meds.routes import settings as settings_routes
from meds.routes.frontend import SPAStaticFiles, resolve_frontend_dir

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the whole process: one stdout handler, one format.

    Format: 2026-01-05T14:02:11 [INFO] meds.access: GET /api/... 200 12.4ms ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request noise from libraries; meds.access already logs each request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("MEDS Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Clinics often run offline on a laptop; keep serving but make it loud
        logger.warning("%s", str(e))

    data_dir = Path(settings.data_dir)
    data_dir.mkdir(parents=True, exist_ok=True)
    logger.info("Data directory: %s", data_dir.resolve())

    await wait_for_database()
    logger.info("Database reachable (%s)", "SQLite" if settings.is_sqlite else "PostgreSQL")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("MEDS Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "details": details or None,
            "request_id": request_id_var.get("") or None,
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error bodies.

    Handler hierarchy:
        MedsError 4xx             → its status_code, message and context as details
        MedsError 5xx             → its status_code, generic message (context logged only)
        RequestValidationError    → 400 with one entry per invalid field
        IntegrityError            → 409, same body as ConflictError
        Exception (fallback)      → 500, traceback logged
    """

    @app.exception_handler(MedsError)
    async def handle_meds_error(request: Request, exc: MedsError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context
            )
            return _error_response(exc.status_code, exc.error_code, exc.message)

        logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return _error_response(
            exc.status_code, exc.error_code, exc.message, exc.context, headers
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err["loc"] if p != "body"), "message": err["msg"]}
            for err in exc.errors()
        ]
        return _error_response(
            400, "validation_error", "Failed to process the request.", {"errors": errors}
        )

    @app.exception_handler(IntegrityError)
    async def handle_integrity_error(request: Request, exc: IntegrityError):
        # Constraint violations that escaped the service-level checks
        logger.warning("[%s] Integrity error: %s", request_id_var.get(""), exc.orig)
        conflict = ConflictError(message="The change conflicts with existing records.")
        return _error_response(conflict.status_code, conflict.error_code, conflict.message)

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

def create_app(frontend_dir: Optional[str] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        frontend_dir: Built frontend to serve; defaults to settings.frontend_dir
                      and then the usual build directories.
    """
    app = FastAPI(
        title="MEDS API",
        description=(
            "Clinic management backend: patients, encounters, medication "
            "disbursement, the visit queue and survey data."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → RateLimit → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(health.router)
    # Before records: its paths share the /api/collections/users prefix
    app.include_router(auth.router)
    app.include_router(records.router)
    app.include_router(queue.router)
    app.include_router(encounters.router)
    app.include_router(settings_routes.router)

    # ── Frontend (last: the "/" mount would shadow anything after it) ─────
    build_dir = resolve_frontend_dir(frontend_dir)
    if build_dir is not None:
        logger.info("Serving frontend from %s", build_dir)
        app.mount("/", SPAStaticFiles(directory=str(build_dir), html=True), name="frontend")

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `meds.main:app` to be importable
app = create_app()
