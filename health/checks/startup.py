# ============================================================================
# STARTUP HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Startup health checks
# PURPOSE: Process resources and configuration presence
# CREATED: 19 OCT 2026
# ============================================================================
"""
Startup Health Checks

Basic checks that run first (priority 10):
- ProcessCheck: Process resource usage via psutil
- ConfigCheck: Collaborator configuration present
"""

import logging
import os
import platform
import sys
from typing import Dict, List

import psutil

from core.config import MIB
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check

logger = logging.getLogger(__name__)


@register_check(category="startup")
class ProcessCheck(HealthCheckPlugin):
    """
    Process health check.

    Healthy whenever it runs; reports memory, threads and open files so
    leaked artifacts or runaway pipelines show up on /health.
    """

    name = "process"
    timeout_seconds = 2.0

    async def check(self) -> HealthCheckResult:
        proc = psutil.Process(os.getpid())
        with proc.oneshot():
            memory = proc.memory_info()
            threads = proc.num_threads()
            try:
                open_files = len(proc.open_files())
            except psutil.AccessDenied:
                open_files = None

        return HealthCheckResult.healthy(
            message="Process running",
            python_version=sys.version.split()[0],
            platform=platform.platform(),
            pid=proc.pid,
            rss_mb=round(memory.rss / MIB, 1),
            threads=threads,
            open_files=open_files,
        )


@register_check(category="startup", required_for_ready=False)
class ConfigCheck(HealthCheckPlugin):
    """
    Configuration health check.

    Each collaborator is satisfied by any one of its variables. Missing
    configuration is degraded: the service runs, but jobs needing that
    collaborator fail fatally.
    """

    name = "config"
    timeout_seconds = 1.0

    REQUIREMENTS: Dict[str, List[str]] = {
        "database": ["DATABASE_URL", "POSTGRES_HOST"],
        "drive": ["GOOGLE_SERVICE_ACCOUNT", "GOOGLE_APPLICATION_CREDENTIALS"],
        "gemini": ["GEMINI_API_KEY", "GOOGLE_API_KEY"],
    }

    async def check(self) -> HealthCheckResult:
        present: Dict[str, str] = {}
        missing: List[str] = []

        for collaborator, names in self.REQUIREMENTS.items():
            found = next((n for n in names if os.environ.get(n)), None)
            if found:
                present[collaborator] = found
            else:
                missing.append(collaborator)

        if missing:
            return HealthCheckResult.degraded(
                message=f"Missing configuration for: {', '.join(missing)}",
                missing=missing,
                present=present,
                hint={c: " or ".join(self.REQUIREMENTS[c]) for c in missing},
            )

        return HealthCheckResult.healthy(
            message="All collaborators configured",
            present=present,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProcessCheck",
    "ConfigCheck",
]
