# ============================================================================
# CLAUDE CONTEXT - MODELS MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Model exports
# PURPOSE: Central export point for all Pydantic models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Models Module - Central Export Point

All Pydantic models for the job engine.
"""

from core.models.record import TokenUsage, JobRecord
from core.models.job import PipelineOutcome, JobResult

__all__ = [
    # Record
    "TokenUsage",
    "JobRecord",
    # Job
    "PipelineOutcome",
    "JobResult",
]
