"""Health check API routes.

GET /health reports the service and its dependencies (Supabase, Gemini);
/health/ready and /health/live serve readiness and liveness checks.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from enum import Enum

from fastapi import APIRouter
from pydantic import BaseModel, Field

from docnex import __version__
from docnex.api.dependencies import get_database, get_llm_client
from docnex.core.config import get_settings
from docnex.core.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Router Configuration
# =============================================================================

router = APIRouter(
    prefix="/health",
    tags=["Health"],
)


# =============================================================================
# Enums
# =============================================================================

class HealthStatus(str, Enum):
    """Health status enum."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class DependencyStatus(str, Enum):
    """Dependency status enum."""

    UP = "up"
    DOWN = "down"
    UNKNOWN = "unknown"


# =============================================================================
# Response Models
# =============================================================================

class DependencyHealth(BaseModel):
    """Health status for a single dependency.

    Attributes:
        name: Dependency name
        status: Current status
        latency_ms: Response latency in milliseconds
        message: Optional status message
    """

    name: str = Field(..., description="Dependency name")
    status: DependencyStatus = Field(..., description="Current status")
    latency_ms: float | None = Field(
        default=None,
        description="Response latency in milliseconds",
    )
    message: str | None = Field(
        default=None,
        description="Optional status message",
    )


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: HealthStatus = Field(
        default=HealthStatus.HEALTHY,
        description="Overall service status",
    )
    service: str = Field(..., description="Service name")
    version: str = Field(default=__version__, description="Service version")
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="Check timestamp",
    )
    uptime_seconds: float | None = Field(
        default=None,
        description="Service uptime in seconds",
    )
    dependencies: list[DependencyHealth] = Field(
        default_factory=list,
        description="Health status of dependencies",
    )


class ReadinessResponse(BaseModel):
    """Response model for readiness check.

    Attributes:
        ready: Whether service is ready to accept traffic
        checks: Individual check results
    """

    ready: bool = Field(
        default=True,
        description="Whether service is ready",
    )
    checks: dict[str, bool] = Field(
        default_factory=dict,
        description="Individual check results",
    )


class LivenessResponse(BaseModel):
    alive: bool = Field(
        default=True,
        description="Whether service is alive",
    )
    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="Check timestamp",
    )


# =============================================================================
# Service Start Time
# =============================================================================

_service_start_time: datetime | None = None


def set_service_start_time(start_time: datetime | None = None) -> None:
    """Set the service start time for uptime calculation.

    Args:
        start_time: Service start time, defaults to now
    """
    global _service_start_time
    _service_start_time = start_time or datetime.now(UTC)


def get_uptime_seconds() -> float | None:
    """Get service uptime in seconds, or None if the start time is unset."""
    if _service_start_time is None:
        return None

    delta = datetime.now(UTC) - _service_start_time
    return delta.total_seconds()


# =============================================================================
# Dependency Checks
# =============================================================================

async def check_supabase() -> DependencyHealth:
    """Ping the Supabase REST endpoint.

    Database clients without a health_check method are reported as unknown.
    """
    database = get_database()
    health_check = getattr(database, "health_check", None)
    if health_check is None:
        return DependencyHealth(
            name="supabase",
            status=DependencyStatus.UNKNOWN,
            message="Health check not supported by client",
        )

    started = time.perf_counter()
    up = await health_check()
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    if not up:
        logger.warning("Supabase health check failed", latency_ms=latency_ms)
    return DependencyHealth(
        name="supabase",
        status=DependencyStatus.UP if up else DependencyStatus.DOWN,
        latency_ms=latency_ms,
    )


async def check_gemini() -> DependencyHealth:
    """Report whether a Gemini API key is configured.

    No request is sent; a configured key is reported as up.
    """
    configured = getattr(get_llm_client(), "is_configured", True)
    if configured:
        return DependencyHealth(name="gemini", status=DependencyStatus.UP)
    return DependencyHealth(
        name="gemini",
        status=DependencyStatus.DOWN,
        message="API key not configured",
    )


async def get_all_dependency_checks() -> list[DependencyHealth]:
    return [await check_supabase(), await check_gemini()]


def calculate_overall_status(dependencies: list[DependencyHealth]) -> HealthStatus:
    """Calculate overall health status from dependencies.

    Args:
        dependencies: List of dependency health checks

    Returns:
        Overall HealthStatus
    """
    if not dependencies:
        return HealthStatus.HEALTHY

    down_count = sum(
        1 for d in dependencies
        if d.status == DependencyStatus.DOWN
    )
    unknown_count = sum(
        1 for d in dependencies
        if d.status == DependencyStatus.UNKNOWN
    )

    if down_count > 0:
        return HealthStatus.UNHEALTHY
    if unknown_count > 0:
        return HealthStatus.DEGRADED
    return HealthStatus.HEALTHY


# =============================================================================
# API Endpoints
# =============================================================================

@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns comprehensive health status of the service.",
)
async def health_check() -> HealthResponse:
    dependencies = await get_all_dependency_checks()

    return HealthResponse(
        status=calculate_overall_status(dependencies),
        service=get_settings().service_name,
        timestamp=datetime.now(UTC).isoformat(),
        uptime_seconds=get_uptime_seconds(),
        dependencies=dependencies,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description="Returns whether the service is ready to accept traffic.",
)
async def readiness_check() -> ReadinessResponse:
    """Ready when the database answers; Gemini is optional.

    Without a key the semantic split strategies fall back to the paragraph
    splitter, so the service can still take traffic.
    """
    supabase = await check_supabase()
    gemini = await check_gemini()

    checks = {
        "supabase": supabase.status != DependencyStatus.DOWN,
        "gemini_configured": gemini.status == DependencyStatus.UP,
    }

    return ReadinessResponse(
        ready=checks["supabase"],
        checks=checks,
    )


@router.get(
    "/live",
    response_model=LivenessResponse,
    summary="Liveness check",
    description="Returns whether the service is alive.",
)
async def liveness_check() -> LivenessResponse:
    return LivenessResponse(
        alive=True,
        timestamp=datetime.now(UTC).isoformat(),
    )


__all__ = [
    "DependencyHealth",
    "DependencyStatus",
    "HealthResponse",
    "HealthStatus",
    "LivenessResponse",
    "ReadinessResponse",
    "calculate_overall_status",
    "check_gemini",
    "check_supabase",
    "get_all_dependency_checks",
    "get_uptime_seconds",
    "router",
    "set_service_start_time",
]
