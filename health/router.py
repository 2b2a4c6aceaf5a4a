# ============================================================================
# HEALTH CHECK ROUTER
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - FastAPI health check endpoints
# PURPOSE: Liveness, readiness and full health endpoints
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Router

Endpoints:
    GET /livez               - Process is alive (no dependencies checked)
    GET /readyz              - Required checks pass; safe to submit jobs
    GET /health              - Every registered check, with details
    GET /health/{check_name} - One check

Response Codes:
    200 - Healthy
    206 - Degraded
    503 - Unhealthy / not ready
"""

import logging
from typing import Dict

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from __version__ import BUILD_DATE, __version__
from health.core import HealthStatus
from health.executor import HealthCheckExecutor
from health.registry import get_registry

logger = logging.getLogger(__name__)

health_router = APIRouter(tags=["Health"])

READINESS_TIMEOUT_SECONDS = 10.0
HEALTH_TIMEOUT_SECONDS = 30.0


def _status_to_http_code(status: HealthStatus) -> int:
    return {
        HealthStatus.HEALTHY: 200,
        HealthStatus.DEGRADED: 206,
        HealthStatus.UNHEALTHY: 503,
    }[status]


@health_router.get("/livez")
async def liveness_probe():
    """Returns 200 while the process can answer requests."""
    return {"status": "alive", "version": __version__, "build_date": BUILD_DATE}


@health_router.get("/readyz")
async def readiness_probe():
    """
    Readiness probe.

    Runs only checks marked required_for_ready. Degraded collaborators
    (e.g. missing Gemini key) do not fail readiness; unhealthy ones do.
    """
    registry = get_registry()
    if len(registry) == 0:
        return {"status": "ready", "message": "No checks registered"}

    executor = HealthCheckExecutor(registry=registry, overall_timeout=READINESS_TIMEOUT_SECONDS)
    result = await executor.execute_required()

    if result.status == HealthStatus.UNHEALTHY:
        return JSONResponse(
            status_code=503,
            content={
                "status": "not_ready",
                "checks": {
                    name: check.to_dict()
                    for name, check in result.checks.items()
                    if check.status == HealthStatus.UNHEALTHY
                },
                "total_duration_ms": round(result.total_duration_ms, 2),
            },
        )

    return {
        "status": "ready",
        "checks_passed": len(result.checks),
        "total_duration_ms": round(result.total_duration_ms, 2),
    }


@health_router.get("/health")
async def full_health_check():
    """Runs every registered check and reports details plus a per-category summary."""
    registry = get_registry()
    executor = HealthCheckExecutor(registry=registry, overall_timeout=HEALTH_TIMEOUT_SECONDS)
    result = await executor.execute_all()

    body = result.to_dict()
    body["version"] = __version__
    body["build_date"] = BUILD_DATE

    summary: Dict[str, Dict[str, int]] = {}
    for name, check_result in result.checks.items():
        check = registry.get(name)
        if check is None:
            continue
        counts = summary.setdefault(
            check.category.value,
            {status.value: 0 for status in HealthStatus},
        )
        counts[check_result.status.value] += 1
    body["summary"] = summary

    return JSONResponse(status_code=_status_to_http_code(result.status), content=body)


@health_router.get("/health/{check_name}")
async def single_health_check(check_name: str):
    executor = HealthCheckExecutor()
    result = await executor.execute_single(check_name)

    if result is None:
        return JSONResponse(
            status_code=404,
            content={"error": f"Health check not found: {check_name}"},
        )

    return JSONResponse(status_code=_status_to_http_code(result.status), content=result.to_dict())


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "health_router",
]
