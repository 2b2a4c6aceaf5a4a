# ============================================================================
# CLAUDE CONTEXT - ERROR TAXONOMY
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Foundation - Exception hierarchy
# PURPOSE: Typed errors raised by collaborators and classified by retry policy
# LAST_REVIEWED: 19 OCT 2026
# ============================================================================
"""
Error Taxonomy

PipelineError carries its own FailureClass so collaborators can state
whether a failure is transient. Errors without a class (library exceptions)
are classified by orchestrator.retry.RetryPolicy.

    PipelineError
    ├── RetryableError
    │   ├── StageTimeoutError
    │   └── RepositoryError
    └── FatalError
        ├── ArtifactTooLargeError
        ├── ArtifactNotFoundError
        ├── NoEligibleTierError
        ├── InferenceBlockedError
        └── CollaboratorNotConfiguredError
"""

from typing import Optional

from core.contracts import FailureClass


class PipelineError(Exception):
    """Base exception for pipeline stage failures."""

    failure_class: Optional[FailureClass] = None

    def __init__(self, message: str, stage: Optional[str] = None):
        self.stage = stage
        super().__init__(message)


class RetryableError(PipelineError):
    """Transient downstream fault (network reset, overload, 5xx)."""

    failure_class = FailureClass.RETRYABLE


class FatalError(PipelineError):
    """Permanent failure (permission, malformed input, oversized payload)."""

    failure_class = FailureClass.FATAL


class StageTimeoutError(RetryableError):
    """A single stage exceeded its own deadline."""

    def __init__(self, stage: str, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Stage '{stage}' exceeded {timeout_seconds:g}s deadline",
            stage=stage,
        )


class ArtifactTooLargeError(FatalError):
    """Artifact exceeds the configured size ceiling."""

    def __init__(self, size_bytes: int, limit_bytes: int, stage: str = "fetch"):
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes
        super().__init__(
            f"TooLarge: artifact is {size_bytes} bytes, limit is {limit_bytes} bytes",
            stage=stage,
        )


class ArtifactNotFoundError(FatalError):
    """Retrieval collaborator has no artifact for this id."""


class NoEligibleTierError(FatalError):
    """No inference tier accepts a payload of this size."""


class InferenceBlockedError(FatalError):
    """Inference returned no usable text (blocked or empty candidates)."""


class CollaboratorNotConfiguredError(FatalError):
    """A required external service has no credentials configured."""


class DuplicateJobError(Exception):
    """Submission rejected: the job id is already queued or in flight."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job {job_id} is already queued or in flight")


class RepositoryError(RetryableError):
    """Store operation failed (connection, query). Transient for the pipeline."""

    def __init__(self, message: str, operation: str = None, entity_id: str = None):
        self.operation = operation
        self.entity_id = entity_id
        super().__init__(message)


__all__ = [
    "PipelineError",
    "RetryableError",
    "FatalError",
    "StageTimeoutError",
    "ArtifactTooLargeError",
    "ArtifactNotFoundError",
    "NoEligibleTierError",
    "InferenceBlockedError",
    "CollaboratorNotConfiguredError",
    "DuplicateJobError",
    "RepositoryError",
]
