"""
GrantIQ Health Check Endpoints
Liveness, startup and readiness probes.
"""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from fastapi import APIRouter, Response, status
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from backend.core.config import settings
from backend.database import AsyncSessionLocal

logger = logging.getLogger(__name__)


# =============================================================================
# Health Status Models
# =============================================================================


class HealthStatus(str, Enum):
    """Health status values for components and overall system."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ComponentHealth(BaseModel):
    """Health status for an individual component."""

    status: HealthStatus
    latency_ms: Optional[float] = None
    message: Optional[str] = None


class HealthResponse(BaseModel):
    """Full health check response."""

    status: HealthStatus
    timestamp: str
    components: dict[str, Any]
    version: str


class LivenessResponse(BaseModel):
    """Simple liveness check response."""

    status: str


class StartupResponse(BaseModel):
    """Startup probe response."""

    status: str
    started_at: str


# =============================================================================
# Application State
# =============================================================================

_startup_time: Optional[datetime] = None


def mark_startup_complete() -> None:
    """Mark the application as started. Call this during app startup."""
    global _startup_time
    _startup_time = datetime.now(timezone.utc)


def get_startup_time() -> Optional[datetime]:
    """Get the application startup time."""
    return _startup_time


# =============================================================================
# Health Check Functions
# =============================================================================


async def check_database() -> ComponentHealth:
    """
    Check database connectivity.

    Runs a simple query and measures latency.
    """
    start_time = time.perf_counter()
    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
            latency = (time.perf_counter() - start_time) * 1000
            return ComponentHealth(
                status=HealthStatus.HEALTHY,
                latency_ms=round(latency, 2),
                message="Database connection successful",
            )
    except (SQLAlchemyError, OSError) as e:
        latency = (time.perf_counter() - start_time) * 1000
        logger.error(f"Database health check failed: {e}")
        return ComponentHealth(
            status=HealthStatus.UNHEALTHY,
            latency_ms=round(latency, 2),
            message=f"Database connection failed: {str(e)}",
        )


def check_llm_configuration() -> ComponentHealth:
    """
    Check the LLM provider has credentials.

    AI features degrade to fallbacks without them, so a missing key is
    reported as degraded rather than unhealthy.
    """
    key = settings.openai_api_key if settings.llm_provider == "openai" else settings.anthropic_api_key
    if key:
        return ComponentHealth(status=HealthStatus.HEALTHY, message=f"{settings.llm_provider} configured")
    return ComponentHealth(
        status=HealthStatus.DEGRADED,
        message=f"No API key configured for {settings.llm_provider}",
    )


def determine_overall_status(components: dict[str, ComponentHealth]) -> HealthStatus:
    """
    Determine overall system health based on component statuses.

    - UNHEALTHY: If database is unhealthy (critical)
    - DEGRADED: If any other component is degraded or unhealthy
    - HEALTHY: If all components are healthy
    """
    db_status = components.get("database")
    if db_status and db_status.status == HealthStatus.UNHEALTHY:
        return HealthStatus.UNHEALTHY

    if any(c.status != HealthStatus.HEALTHY for c in components.values()):
        return HealthStatus.DEGRADED

    return HealthStatus.HEALTHY


# =============================================================================
# Router Definition
# =============================================================================

router = APIRouter(prefix="/health", tags=["Health"])


@router.get(
    "",
    response_model=LivenessResponse,
    summary="Basic liveness check",
    description="Simple health check that returns OK if the service is running.",
)
async def basic_health() -> LivenessResponse:
    """Always returns OK if the service is reachable."""
    return LivenessResponse(status="ok")


@router.get(
    "/startup",
    response_model=StartupResponse,
    summary="Startup probe",
    description="Returns 200 once initialization is complete.",
)
async def startup_probe(response: Response) -> StartupResponse:
    """Returns 503 until the app has finished starting."""
    startup_time = get_startup_time()

    if startup_time is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return StartupResponse(status="starting", started_at="")

    return StartupResponse(status="started", started_at=startup_time.isoformat())


@router.get(
    "/ready",
    response_model=HealthResponse,
    summary="Readiness check",
    description="Readiness check that verifies the database and LLM configuration.",
    responses={
        200: {"description": "All systems operational or degraded"},
        503: {"description": "Database unavailable"},
    },
)
async def readiness_check(response: Response) -> HealthResponse:
    """
    Readiness check.

    Returns component-level status with latency metrics.
    """
    components = {
        "database": await check_database(),
        "llm": check_llm_configuration(),
    }

    overall_status = determine_overall_status(components)
    if overall_status == HealthStatus.UNHEALTHY:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    return HealthResponse(
        status=overall_status,
        timestamp=datetime.now(timezone.utc).isoformat(),
        components={
            name: {"status": c.status.value, "latency_ms": c.latency_ms, "message": c.message}
            for name, c in components.items()
        },
        version=settings.app_version,
    )
