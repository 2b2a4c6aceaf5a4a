# ============================================================================
# SERVICES MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Business logic layer
# PURPOSE: Job submission and record management services
# CREATED: 19 OCT 2026
# ============================================================================
"""
Services Module

Business logic between the HTTP layer and the engine.

Usage:
    from services import JobService, RecordService

    job_service = JobService(scheduler)
    result = await job_service.process("1AbC...")
"""

from .job_service import JobService
from .record_service import RecordService, RecordNotFoundError

__all__ = [
    "JobService",
    "RecordService",
    "RecordNotFoundError",
]
