# ============================================================================
# CLAUDE CONTEXT - CORE MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core module initialization
# PURPOSE: Export core contracts, errors, and models
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================

from core.contracts import (
    OutcomeKind,
    FailureClass,
    PipelineStage,
    SubmitStatus,
    DeliveryStatus,
    ResolveAction,
)
from core.errors import PipelineError, RetryableError, FatalError
from core.models import TokenUsage, JobRecord, PipelineOutcome, JobResult

__all__ = [
    # Enums
    "OutcomeKind",
    "FailureClass",
    "PipelineStage",
    "SubmitStatus",
    "DeliveryStatus",
    "ResolveAction",
    # Errors
    "PipelineError",
    "RetryableError",
    "FatalError",
    # Models
    "TokenUsage",
    "JobRecord",
    "PipelineOutcome",
    "JobResult",
]
