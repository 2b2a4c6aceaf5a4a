# ============================================================================
# CLAUDE CONTEXT - JOB RESULT MODELS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core model - Pipeline outcome and delivered result
# PURPOSE: What one pipeline run returns and what the caller receives
# LAST_REVIEWED: 19 OCT 2026
# EXPORTS: PipelineOutcome, JobResult
# DEPENDENCIES: pydantic
# ============================================================================
"""
Job Result Models

Two models:
- PipelineOutcome: tagged result of ONE executor run (one attempt)
- JobResult: what the admission queue delivers to the caller (once)

Outcomes are routed by the admission queue; only JobResult ever leaves
the engine.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from core.contracts import DeliveryStatus, OutcomeKind
from core.models.record import TokenUsage


class PipelineOutcome(BaseModel):
    """
    Tagged result of one pipeline run.

    Success{payload, metadata} | RetryableFailure{reason} |
    FatalFailure{reason} | TimedOut
    """

    kind: OutcomeKind
    job_id: str

    # Success payload
    description: Optional[Dict[str, Any]] = None
    token_usage: Optional[TokenUsage] = None
    cached: bool = False

    # Failure details
    reason: Optional[str] = Field(default=None, max_length=2000)
    stage: Optional[str] = None

    # Execution metadata
    tier: Optional[str] = None
    duration_ms: Optional[int] = Field(default=None, ge=0)

    @classmethod
    def success(
        cls,
        job_id: str,
        description: Dict[str, Any],
        token_usage: Optional[TokenUsage] = None,
        cached: bool = False,
        tier: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "PipelineOutcome":
        """Factory for a successful run (fresh or cache hit)."""
        return cls(
            kind=OutcomeKind.SUCCESS,
            job_id=job_id,
            description=description,
            token_usage=token_usage,
            cached=cached,
            tier=tier,
            duration_ms=duration_ms,
        )

    @classmethod
    def retryable(
        cls,
        job_id: str,
        reason: str,
        stage: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "PipelineOutcome":
        """Factory for a transient failure."""
        return cls(
            kind=OutcomeKind.RETRYABLE_FAILURE,
            job_id=job_id,
            reason=reason[:2000],
            stage=stage,
            duration_ms=duration_ms,
        )

    @classmethod
    def fatal(
        cls,
        job_id: str,
        reason: str,
        stage: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "PipelineOutcome":
        """Factory for a permanent failure."""
        return cls(
            kind=OutcomeKind.FATAL_FAILURE,
            job_id=job_id,
            reason=reason[:2000],
            stage=stage,
            duration_ms=duration_ms,
        )

    @classmethod
    def timed_out(
        cls,
        job_id: str,
        reason: str = "Pipeline deadline exceeded",
        stage: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> "PipelineOutcome":
        """Factory for a run that exceeded its total deadline."""
        return cls(
            kind=OutcomeKind.TIMED_OUT,
            job_id=job_id,
            reason=reason,
            stage=stage,
            duration_ms=duration_ms,
        )


class JobResult(BaseModel):
    """
    Result delivered to the original caller, exactly once per submission.
    """

    job_id: str
    status: DeliveryStatus
    cached: bool = False
    description: Optional[Dict[str, Any]] = None
    token_usage: Optional[TokenUsage] = None
    error: Optional[str] = None
    attempts: int = Field(default=0, ge=0)
    stage: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == DeliveryStatus.COMPLETED

    @classmethod
    def completed(cls, outcome: PipelineOutcome, attempts: int) -> "JobResult":
        """Factory from a successful outcome."""
        return cls(
            job_id=outcome.job_id,
            status=DeliveryStatus.COMPLETED,
            cached=outcome.cached,
            description=outcome.description,
            token_usage=outcome.token_usage,
            attempts=attempts,
        )

    @classmethod
    def failed(
        cls,
        job_id: str,
        error: str,
        attempts: int,
        stage: Optional[str] = None,
    ) -> "JobResult":
        """Factory for a terminal failure."""
        return cls(
            job_id=job_id,
            status=DeliveryStatus.FAILED,
            error=error,
            attempts=attempts,
            stage=stage,
        )

    @classmethod
    def timed_out(cls, job_id: str, error: str, attempts: int) -> "JobResult":
        """Factory for a deadline expiry."""
        return cls(
            job_id=job_id,
            status=DeliveryStatus.TIMED_OUT,
            error=error,
            attempts=attempts,
        )

    @classmethod
    def cancelled(cls, job_id: str, attempts: int, error: str = "Service shutting down") -> "JobResult":
        """Factory for jobs still owned at shutdown."""
        return cls(
            job_id=job_id,
            status=DeliveryStatus.CANCELLED,
            error=error,
            attempts=attempts,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["PipelineOutcome", "JobResult"]
