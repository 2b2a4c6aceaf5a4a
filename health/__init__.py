# ============================================================================
# HEALTH CHECK MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Health check plugin system
# PURPOSE: Liveness, readiness and component health reporting
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Module

Plugin-based health checks:
- /livez: Process alive (instant)
- /readyz: Required checks pass
- /health: Every check with details

Usage:
    import health.checks  # registers the built-in checks
    from health import health_router

    app.include_router(health_router)
"""

from health.core import (
    HealthStatus,
    HealthCheckResult,
    HealthCheckPlugin,
    HealthCheckCategory,
)
from health.registry import (
    HealthCheckRegistry,
    register_check,
    get_registry,
)
from health.executor import HealthCheckExecutor
from health.router import health_router

__all__ = [
    # Core types
    "HealthStatus",
    "HealthCheckResult",
    "HealthCheckPlugin",
    "HealthCheckCategory",
    # Registry
    "HealthCheckRegistry",
    "register_check",
    "get_registry",
    # Executor
    "HealthCheckExecutor",
    # Router
    "health_router",
]
