# ============================================================================
# WORKER CONTRACTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Collaborator interfaces consumed by the pipeline
# PURPOSE: Define what the executor needs from fetch, inference and store
# CREATED: 19 OCT 2026
# ============================================================================
"""
Worker Contracts

The pipeline executor talks to three external collaborators through these
interfaces. Concrete implementations live in infrastructure/ (Drive,
Gemini) and repositories/ (PostgreSQL); tests substitute fakes.

    ArtifactSource   fetch(job_id, dest_path, max_bytes) -> ArtifactMetadata
    InferenceBackend infer(data, mime_type, prompt, tier) -> InferenceResponse
    RecordStore      get / put / update_description / delete / list_all
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from core.config import InferenceTier
from core.models import JobRecord, TokenUsage


# ============================================================================
# DATA CARRIERS
# ============================================================================

@dataclass(frozen=True)
class ArtifactMetadata:
    """Metadata reported by the retrieval collaborator."""
    name: str
    size_bytes: int
    mime_type: Optional[str] = None


@dataclass
class InferenceResponse:
    """Raw inference output plus usage counters."""
    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: Optional[str] = None


# ============================================================================
# COLLABORATORS
# ============================================================================

class ArtifactSource(ABC):
    """Downloads the artifact for a job id to a local path."""

    @abstractmethod
    async def fetch(self, job_id: str, dest_path: str, max_bytes: int) -> ArtifactMetadata:
        """
        Download the artifact for job_id into dest_path.

        Must check the size ceiling before the transfer when metadata
        exposes it, and abort once max_bytes is passed mid-transfer.

        Raises:
            ArtifactTooLargeError: Size exceeds max_bytes
            ArtifactNotFoundError: No artifact for this id
            RetryableError / FatalError: Other failures
        """

    async def close(self) -> None:
        """Release client resources."""

    @property
    def configured(self) -> bool:
        return True


class InferenceBackend(ABC):
    """Submits an artifact and a task descriptor to an inference model."""

    @abstractmethod
    async def infer(
        self,
        data: bytes,
        mime_type: str,
        prompt: str,
        tier: InferenceTier,
        timeout_seconds: Optional[float] = None,
    ) -> InferenceResponse:
        """Run one inference call against tier.model."""

    async def close(self) -> None:
        """Release client resources."""

    @property
    def configured(self) -> bool:
        return True


class RecordStore(ABC):
    """Keyed store of completed job records."""

    @abstractmethod
    async def get(self, job_id: str) -> Optional[JobRecord]:
        """Cached record for job_id, or None."""

    @abstractmethod
    async def put(
        self,
        job_id: str,
        description: Dict[str, Any],
        token_usage: Optional[TokenUsage] = None,
    ) -> JobRecord:
        """Idempotent insert-or-replace keyed by job_id."""

    @abstractmethod
    async def update_description(self, job_id: str, description: Dict[str, Any]) -> Optional[JobRecord]:
        """Replace the description; None if the record does not exist."""

    @abstractmethod
    async def delete(self, job_id: str) -> bool:
        """Delete; True if a record was removed."""

    @abstractmethod
    async def list_all(self, limit: int = 500) -> List[JobRecord]:
        """All records, newest first."""

    @abstractmethod
    async def count(self) -> int:
        """Total number of records."""


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ArtifactMetadata",
    "InferenceResponse",
    "ArtifactSource",
    "InferenceBackend",
    "RecordStore",
]
