"""
GrantIQ FastAPI Application
Main entry point for the grant application assistant API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend.api import (
    ai_critique,
    analysis,
    applications,
    attachments,
    auth,
    budgets,
    grant_builder,
    grants,
    health,
    letters,
    mechanisms,
    references,
    regulatory,
    resubmission,
    review,
    sections,
)
from backend.core.config import settings
from backend.core.sentry import capture_exception, init_sentry
from backend.database import close_db, init_db

# =============================================================================
# Logging Configuration
# =============================================================================

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# =============================================================================
# Lifespan Events
# =============================================================================

INSECURE_SECRET_KEYS = {
    "CHANGE-THIS-IN-PRODUCTION-REQUIRED",
    "secret",
    "changeme",
}


def validate_security_settings() -> None:
    """
    Validate critical security settings at startup.
    Raises RuntimeError if insecure configuration detected in production.
    """
    is_production = settings.environment.lower() in ("production", "prod")
    warnings = []
    errors = []

    if settings.secret_key in INSECURE_SECRET_KEYS or len(settings.secret_key) < 32:
        msg = "SECRET_KEY is insecure or too short (minimum 32 characters required)"
        if is_production:
            errors.append(msg)
        else:
            warnings.append(msg)

    if is_production and settings.debug:
        errors.append("DEBUG mode must be disabled in production (set DEBUG=false)")

    if not settings.anthropic_api_key and not settings.openai_api_key:
        warnings.append("No LLM API key configured - AI features will return fallbacks")

    for warning in warnings:
        logger.warning(f"SECURITY WARNING: {warning}")

    if errors:
        for error in errors:
            logger.error(f"SECURITY ERROR: {error}")
        raise RuntimeError(f"Cannot start in production with insecure configuration: {'; '.join(errors)}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Handle application startup and shutdown events.

    Startup:
    - Validate security settings
    - Create tables if needed (dev only)

    Shutdown:
    - Close database connections
    """
    logger.info(f"Starting {settings.app_name} API...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Version: {settings.app_version}")

    validate_security_settings()

    if init_sentry():
        logger.info("Sentry error tracking enabled")
    else:
        logger.info("Sentry error tracking disabled (no DSN configured)")

    # In production the schema comes from alembic migrations
    if settings.debug:
        await init_db()
        logger.info("Database initialized successfully")

    health.mark_startup_complete()
    logger.info("Application startup complete")

    yield

    logger.info(f"Shutting down {settings.app_name} API...")
    await close_db()
    logger.info("Database connections closed")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="GrantIQ API",
    description="""
    Grant Application Assistant API

    GrantIQ helps researchers draft, check and assemble NIH, SBIR and STTR
    applications.

    ## Features

    - **Applications**: Sections and attachments seeded from the funding mechanism
    - **Compliance**: Page limits, required headings and export gating
    - **Aims Architecture**: Structural scoring, dependency analysis and risk flags
    - **Budgets**: Program caps, fringe and indirect rates, CSV/JSON export
    - **AI Writing**: Critiques, rewrites, reviewer simulation, letters and builder drafts
    - **References**: PubMed and Crossref verification

    ## Authentication

    Most endpoints require JWT authentication. Use the `/api/auth/login` endpoint
    to obtain access and refresh tokens.
    """,
    version=settings.app_version,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
    openapi_url="/openapi.json" if settings.debug else None,
    lifespan=lifespan,
)

# =============================================================================
# CORS Middleware
# =============================================================================

allowed_origins = [origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()]
if settings.frontend_url not in allowed_origins:
    allowed_origins.append(settings.frontend_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": True,
            "message": exc.detail,
            "status_code": exc.status_code,
        },
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unexpected error: {exc}")

    event_id = capture_exception(
        exc,
        extra={
            "request_url": str(request.url),
            "request_method": request.method,
            "request_path": request.url.path,
        },
    )

    # Don't expose internal errors in production
    if settings.debug:
        detail = str(exc)
    else:
        detail = f"Internal server error (ref: {event_id})" if event_id else "Internal server error"

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": True,
            "message": detail,
            "status_code": 500,
            "error_id": event_id,
        },
    )


# =============================================================================
# API Routers
# =============================================================================

# Public endpoints
app.include_router(health.router)
app.include_router(mechanisms.router)

app.include_router(auth.router)
app.include_router(applications.router)
app.include_router(sections.router)
app.include_router(attachments.router)
app.include_router(budgets.router)
app.include_router(review.router)
app.include_router(ai_critique.router)
app.include_router(grant_builder.router)
app.include_router(letters.router)
app.include_router(references.router)
app.include_router(grants.router)
app.include_router(regulatory.router)
app.include_router(resubmission.router)
app.include_router(analysis.router)


# =============================================================================
# Root Endpoint
# =============================================================================


@app.get(
    "/",
    tags=["Root"],
    summary="API root",
    description="Welcome endpoint with API information.",
)
async def root() -> dict[str, Any]:
    """API root endpoint."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Grant Application Assistant API",
        "docs_url": "/docs" if settings.debug else None,
        "health_url": "/health",
        "readiness_url": "/health/ready",
    }


# For running with uvicorn directly
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "backend.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="debug" if settings.debug else "info",
    )
