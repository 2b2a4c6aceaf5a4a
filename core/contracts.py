# ============================================================================
# CLAUDE CONTEXT - BASE CONTRACTS & ENUMS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Foundation - Core enums for the job engine
# PURPOSE: Status and classification enums shared by queue, scheduler, worker
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: OutcomeKind, FailureClass, DeliveryStatus, SubmitStatus,
#          ResolveAction, PipelineStage
# DEPENDENCIES: enum
# ============================================================================
"""
Base contracts for the job engine.

These enums cross every boundary of the engine:
- Admission queue (submit / resolve decisions)
- Scheduler loop (dispatch and routing of outcomes)
- Pipeline executor (tagged outcomes, failure stage)
- HTTP layer (delivered result status)
"""

from enum import Enum


# ============================================================================
# PIPELINE OUTCOMES
# ============================================================================

class OutcomeKind(str, Enum):
    """
    Tagged result of one pipeline run.

    Routing in the admission queue:
        SUCCESS           -> deliver result
        RETRYABLE_FAILURE -> re-queue after backoff (or FATAL when exhausted)
        FATAL_FAILURE     -> deliver failure
        TIMED_OUT         -> deliver timeout
    """
    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"
    TIMED_OUT = "timed_out"

    def is_terminal(self) -> bool:
        """Check if this outcome ends the job (no further attempts)."""
        return self != OutcomeKind.RETRYABLE_FAILURE


class FailureClass(str, Enum):
    """Retry classification of an error."""
    RETRYABLE = "retryable"
    FATAL = "fatal"


class PipelineStage(str, Enum):
    """Stages of one pipeline run, in execution order."""
    CACHE = "cache"
    FETCH = "fetch"
    INFER = "infer"
    NORMALIZE = "normalize"
    PERSIST = "persist"


# ============================================================================
# QUEUE / DELIVERY
# ============================================================================

class SubmitStatus(str, Enum):
    """Answer to a submission."""
    ACCEPTED = "accepted"
    DUPLICATE = "duplicate"


class DeliveryStatus(str, Enum):
    """
    What the original caller receives.

    Exactly one of these is delivered per accepted submission.
    """
    COMPLETED = "completed"      # Normalized result (fresh or cached)
    FAILED = "failed"            # Fatal failure or retries exhausted
    TIMED_OUT = "timed_out"      # Submission deadline or pipeline deadline
    CANCELLED = "cancelled"      # Service shut down before resolution


class ResolveAction(str, Enum):
    """What the admission queue did with an outcome."""
    DELIVERED = "delivered"              # Delivery invoked, state cleared
    RETRY_SCHEDULED = "retry_scheduled"  # Re-queued behind a backoff delay
    DISCARDED = "discarded"              # No resolvable entry (already timed out)
