"""
CaterHub Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app(settings) returns a configured FastAPI
       instance. The Database, TokenService, AuthService and ImageStorage
       are built from the settings and hung on `app.state`, so tests can
       build an app against a throwaway database and storage directory.
Who:   uvicorn (`uvicorn caterhub.main:app`) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌────────────┐  │
    │  │ Rate Limit │→│ Req ID   │→│ Logging │→│ GZip, CORS │  │
    │  └────────────┘ └──────────┘ └─────────┘ └────────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  /auth/*   /caterer/{dishes,packages,packages/items,     │
    │            metadata,dashboard}   /health   /files/*      │
    │                                                          │
    │  Exception Handlers:                                     │
    │  CaterHubError → its status/code │ request validation →  │
    │  400 │ HTTPException → envelope │ anything else → 500    │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (logged, not fatal)
    3. Seed lookup tables when SEED_ON_STARTUP is true
    Shutdown:
    1. Dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from caterhub import __version__
from caterhub.config import DEFAULT_JWT_SECRET, Settings, settings as default_settings
from caterhub.database import Database
from caterhub.exceptions import CaterHubError, RateLimitExceededError
from caterhub.middleware.logging import RequestLoggingMiddleware
from caterhub.middleware.rate_limit import RateLimitMiddleware
from caterhub.middleware.request_id import RequestIDMiddleware, request_id_var
from caterhub.routes import (
    auth,
    dashboard,
    dishes,
    files,
    health,
    metadata,
    package_items,
    packages,
)
from caterhub.security import TokenService
from caterhub.seed import seed_lookups
from caterhub.services.auth_service import AuthService
from caterhub.services.image_storage import ImageStorage

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger once for the whole process.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (the container runtime collects it)
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("CaterHub Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise
    if settings.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning("Running with the placeholder JWT secret (DEBUG logging only)")

    if settings.seed_on_startup:
        database: Database = app.state.db
        async with database.session_factory() as session:
            async with session.begin():
                await seed_lookups(session)

    logger.info("Image storage: %s", app.state.image_storage.storage_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("CaterHub Backend shutting down...")
    await app.state.db.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": {
                "code": code,
                "message": message,
                "details": details or None,
                "request_id": request_id_var.get("") or None,
            },
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error envelopes.

    Handler hierarchy:
        CaterHubError (and subclasses) → exc.status_code / exc.code
        RequestValidationError         → 400 validation_error
        HTTPException (404/405 routing)→ its status, envelope body
        Exception (fallback)           → 500 internal_server_error

    Security: 5xx responses never carry exception text, context, SQL or
    stack traces. Those are logged server-side only.
    """

    @app.exception_handler(CaterHubError)
    async def handle_caterhub_error(request: Request, exc: CaterHubError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
            return _error_response(exc.status_code, exc.code, exc.message)

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        headers = None
        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}
        return _error_response(exc.status_code, exc.code, exc.message, exc.context, headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()))
        message = f"Invalid value for {field}: {first.get('msg', 'invalid')}" if field else "Invalid request"
        logger.warning("[%s] Request validation error: %s", request_id_var.get(""), message)
        return _error_response(400, "validation_error", message, {"field": field} if field else None)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        code = "not_found" if exc.status_code == 404 else "http_error"
        return _error_response(
            exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration to build the app from; defaults to the
                  environment-derived `caterhub.config.settings`

    Returns:
        Fully configured FastAPI instance. Note that the lifespan (seeding,
        engine disposal) only runs under a server or a lifespan-aware client.
    """
    settings = settings or default_settings

    app = FastAPI(
        title="CaterHub API",
        description=(
            "Catering marketplace backend: caterers manage dishes, package items "
            "and packages, browse lookup metadata and see dashboard figures."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Per-app services ──────────────────────────────────────────────────
    tokens = TokenService.from_settings(settings)
    app.state.settings = settings
    app.state.db = Database(settings)
    app.state.tokens = tokens
    app.state.auth_service = AuthService(tokens, bcrypt_rounds=settings.bcrypt_rounds)
    app.state.image_storage = ImageStorage.from_settings(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in REVERSE order of addition:
    # RateLimit → RequestID → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(dishes.router)
    # Before packages: /caterer/packages/items must not match /caterer/packages/{id}
    app.include_router(package_items.router)
    app.include_router(packages.router)
    app.include_router(metadata.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)
    app.include_router(files.router)

    return app


# uvicorn expects `caterhub.main:app` to be importable
app = create_app()
