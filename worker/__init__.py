# ============================================================================
# WORKER MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Pipeline execution components
# PURPOSE: Pipeline executor, collaborator contracts, artifact cleanup
# CREATED: 19 OCT 2026
# ============================================================================
"""
Worker Module

Components for running one job through the pipeline:
- contracts: Collaborator interfaces (source, inference, store)
- executor: cache -> fetch -> infer -> normalize -> persist
- normalize: Model output recovery
- prompt: Fixed task descriptor
- reclaimer: Temporary artifact ownership and sweeps
"""

from worker.contracts import (
    ArtifactMetadata,
    ArtifactSource,
    InferenceBackend,
    InferenceResponse,
    RecordStore,
)
from worker.executor import PipelineExecutor
from worker.normalize import normalize_output
from worker.reclaimer import ResourceReclaimer, SweepResult

__all__ = [
    # Contracts
    "ArtifactMetadata",
    "ArtifactSource",
    "InferenceBackend",
    "InferenceResponse",
    "RecordStore",
    # Execution
    "PipelineExecutor",
    "normalize_output",
    # Cleanup
    "ResourceReclaimer",
    "SweepResult",
]
