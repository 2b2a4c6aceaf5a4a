# ============================================================================
# APPLICATION HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Application state checks
# PURPOSE: Scheduler loop and admission queue state
# CREATED: 19 OCT 2026
# ============================================================================
"""
Application Health Checks

Application-level checks (priority 40):
- SchedulerCheck: Scheduler loop running, queue saturation
"""

import logging

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check

logger = logging.getLogger(__name__)


# Global reference to scheduler (set by main app)
_scheduler = None


def set_scheduler(scheduler):
    """Set scheduler reference for health checks."""
    global _scheduler
    _scheduler = scheduler


@register_check(category="application")
class SchedulerCheck(HealthCheckPlugin):
    """
    Scheduler health check.

    Unhealthy when the loop is not running (submissions would never be
    dispatched). Degraded when every slot is busy and jobs are waiting.
    """

    name = "scheduler"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        if _scheduler is None:
            return HealthCheckResult.unhealthy(
                message="Scheduler not initialized",
                hint="Scheduler reference not set",
            )

        if not _scheduler.is_running:
            return HealthCheckResult.unhealthy(message="Scheduler loop not running")

        status = _scheduler.status()
        stats = _scheduler.stats
        details = {
            "queue_length": status["queue_length"],
            "backing_off": status.get("backing_off", 0),
            "in_flight_count": status["in_flight_count"],
            "max_concurrent": status["max_concurrent"],
            "uptime_seconds": stats.get("uptime_seconds"),
            "dispatched": stats.get("dispatched", 0),
            "peak_concurrency": stats.get("peak_concurrency", 0),
            "last_tick_at": stats.get("last_tick_at"),
        }

        waiting = status["queue_length"] - status.get("backing_off", 0)
        if status["in_flight_count"] >= status["max_concurrent"] and waiting > 0:
            return HealthCheckResult.degraded(
                message=f"At capacity: {waiting} job(s) waiting for a slot",
                **details,
            )

        return HealthCheckResult.healthy(
            message=f"Scheduler running ({status['in_flight_count']}/{status['max_concurrent']} busy)",
            **details,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "set_scheduler",
    "SchedulerCheck",
]
