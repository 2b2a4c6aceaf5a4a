# ============================================================================
# INFRASTRUCTURE HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Collaborator checks
# PURPOSE: Drive credentials, Gemini configuration, temp storage
# CREATED: 19 OCT 2026
# ============================================================================
"""
Infrastructure Health Checks

Collaborator checks (priority 20):
- DriveCheck: Service account can mint an access token
- InferenceCheck: Gemini key present, tiers listed
- TempStorageCheck: Artifact directory writable with free space
"""

import asyncio
import logging
import os

import psutil

from core.config import MIB, get_defaults
from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check

logger = logging.getLogger(__name__)

MIN_FREE_DISK_PERCENT = 5.0


# Global references to collaborators (set by main app)
_source = None
_backend = None
_reclaimer = None


def set_collaborators(source=None, backend=None, reclaimer=None):
    """Set collaborator references for health checks."""
    global _source, _backend, _reclaimer
    _source = source
    _backend = backend
    _reclaimer = reclaimer


@register_check(category="infrastructure", required_for_ready=False)
class DriveCheck(HealthCheckPlugin):
    """Google Drive artifact source check."""

    name = "drive"
    timeout_seconds = 10.0

    async def check(self) -> HealthCheckResult:
        if _source is None:
            return HealthCheckResult.unhealthy(message="Artifact source not initialized")

        if not _source.configured:
            return HealthCheckResult.degraded(
                message="Google Drive not configured",
                hint="Set GOOGLE_SERVICE_ACCOUNT or GOOGLE_APPLICATION_CREDENTIALS",
            )

        try:
            await _source._access_token()
        except Exception as e:
            return HealthCheckResult.unhealthy(
                message=f"Drive token refresh failed: {e}",
                exception_type=type(e).__name__,
            )

        return HealthCheckResult.healthy(message="Drive credentials valid")


@register_check(category="infrastructure", required_for_ready=False)
class InferenceCheck(HealthCheckPlugin):
    """Gemini inference backend check. Does not spend tokens."""

    name = "inference"
    timeout_seconds = 1.0

    async def check(self) -> HealthCheckResult:
        tiers = [
            {"model": t.model, "max_mb": round(t.max_bytes / MIB, 1)}
            for t in get_defaults().pipeline.tiers
        ]

        if _backend is None:
            return HealthCheckResult.unhealthy(message="Inference backend not initialized")

        if not _backend.configured:
            return HealthCheckResult.degraded(
                message="Gemini API key not configured",
                hint="Set GEMINI_API_KEY",
                tiers=tiers,
            )

        return HealthCheckResult.healthy(message="Gemini configured", tiers=tiers)


@register_check(category="infrastructure")
class TempStorageCheck(HealthCheckPlugin):
    """
    Temporary artifact directory check.

    Unhealthy when the directory cannot be written (every fetch would
    fail); degraded when the disk is nearly full.
    """

    name = "temp_storage"
    timeout_seconds = 3.0

    async def check(self) -> HealthCheckResult:
        if _reclaimer is None:
            return HealthCheckResult.unhealthy(message="Reclaimer not initialized")

        temp_dir = _reclaimer.temp_dir
        try:
            await asyncio.to_thread(_reclaimer.ensure_dir)
        except OSError as e:
            return HealthCheckResult.unhealthy(
                message=f"Cannot create temp dir: {e}",
                temp_dir=temp_dir,
            )

        if not os.access(temp_dir, os.W_OK):
            return HealthCheckResult.unhealthy(
                message="Temp dir not writable",
                temp_dir=temp_dir,
            )

        usage = psutil.disk_usage(temp_dir)
        free_percent = round(100.0 - usage.percent, 1)
        details = {
            "temp_dir": temp_dir,
            "entries": _reclaimer.entry_count(),
            "free_percent": free_percent,
            "free_mb": round(usage.free / MIB, 1),
            **_reclaimer.stats,
        }

        if free_percent < MIN_FREE_DISK_PERCENT:
            return HealthCheckResult.degraded(
                message=f"Low disk space: {free_percent}% free",
                **details,
            )

        return HealthCheckResult.healthy(message="Temp storage writable", **details)


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "set_collaborators",
    "DriveCheck",
    "InferenceCheck",
    "TempStorageCheck",
]
