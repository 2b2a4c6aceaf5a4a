# ============================================================================
# PIPELINE EXECUTOR
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - One pipeline run per dispatch
# PURPOSE: cache -> fetch -> infer -> normalize -> persist, with deadlines
# CREATED: 19 OCT 2026
# ============================================================================
"""
Pipeline Executor

Runs the job body for one job id and returns a tagged PipelineOutcome.
run() never raises (except CancelledError): every error becomes an outcome.

Deadlines:
- Each stage is raced against its own deadline. Exceeding it raises
  StageTimeoutError, which is retryable.
- The whole run is raced against pipeline_timeout_seconds. Exceeding it
  yields the terminal TimedOut outcome.

The temporary artifact is allocated before the fetch and released as soon
as inference is done, on every exit path including cancellation.
"""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Dict, Optional, Sequence, Tuple

from core.config import InferenceTier, PipelineDefaults, get_defaults
from core.contracts import FailureClass, PipelineStage
from core.errors import (
    ArtifactTooLargeError,
    CollaboratorNotConfiguredError,
    NoEligibleTierError,
    PipelineError,
    StageTimeoutError,
)
from core.logging import log_context
from core.models import PipelineOutcome
from orchestrator.retry import RetryPolicy
from worker.contracts import (
    ArtifactSource,
    InferenceBackend,
    InferenceResponse,
    RecordStore,
)
from worker.normalize import is_unparseable, normalize_output
from worker.prompt import VIDEO_DESCRIPTION_PROMPT
from worker.reclaimer import ResourceReclaimer

logger = logging.getLogger(__name__)


# ============================================================================
# RUN STATE
# ============================================================================

@dataclass
class RunState:
    """Mutable bookkeeping for a single run."""
    job_id: str
    attempt: int
    started: float
    stage: Optional[PipelineStage] = None
    tier: Optional[str] = None

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started) * 1000)

    @property
    def stage_name(self) -> Optional[str]:
        return self.stage.value if self.stage else None


# ============================================================================
# EXECUTOR
# ============================================================================

class PipelineExecutor:
    """
    Executes the description pipeline for one job id.

    Args:
        source: Retrieval collaborator (Drive)
        backend: Inference collaborator (Gemini)
        store: Persistent record store
        reclaimer: Temporary artifact owner
        defaults: Stage deadlines, tiers and size ceiling
        policy: Classifies final failures
        prompt: Fixed task descriptor
    """

    def __init__(
        self,
        source: ArtifactSource,
        backend: InferenceBackend,
        store: RecordStore,
        reclaimer: ResourceReclaimer,
        defaults: Optional[PipelineDefaults] = None,
        policy: Optional[RetryPolicy] = None,
        prompt: str = VIDEO_DESCRIPTION_PROMPT,
    ):
        self.source = source
        self.backend = backend
        self.store = store
        self.reclaimer = reclaimer
        self.defaults = defaults or get_defaults().pipeline
        self.policy = policy or RetryPolicy.from_defaults()
        self.prompt = prompt

        # Metrics
        self._runs = 0
        self._cache_hits = 0
        self._successes = 0
        self._failures = 0
        self._timeouts = 0

    async def run(self, job_id: str, attempt: int = 1) -> PipelineOutcome:
        """
        Run the pipeline once.

        Args:
            job_id: Drive file id
            attempt: 1-based attempt number (for logging)

        Returns:
            PipelineOutcome
        """
        state = RunState(job_id=job_id, attempt=attempt, started=time.monotonic())
        self._runs += 1

        with log_context(job_id=job_id, attempt=attempt):
            try:
                outcome = await asyncio.wait_for(
                    self._run_stages(state),
                    timeout=self.defaults.pipeline_timeout_seconds,
                )
            except asyncio.TimeoutError:
                self._timeouts += 1
                logger.error(
                    f"Pipeline for {job_id} exceeded "
                    f"{self.defaults.pipeline_timeout_seconds:g}s (stage={state.stage_name})"
                )
                return PipelineOutcome.timed_out(
                    job_id,
                    reason=(
                        f"Pipeline deadline of {self.defaults.pipeline_timeout_seconds:g}s "
                        f"exceeded during {state.stage_name or 'startup'}"
                    ),
                    stage=state.stage_name,
                    duration_ms=state.elapsed_ms,
                )

        return outcome

    # =========================================================================
    # STAGES
    # =========================================================================

    async def _run_stages(self, state: RunState) -> PipelineOutcome:
        """All stages; converts every non-cancellation error to an outcome."""
        job_id = state.job_id
        try:
            # 1. Cache check
            state.stage = PipelineStage.CACHE
            record = await self._stage(
                state, self.store.get(job_id), self.defaults.store_timeout_seconds
            )
            if record is not None:
                self._cache_hits += 1
                self._successes += 1
                logger.info(f"Cache hit for {job_id}")
                return PipelineOutcome.success(
                    job_id,
                    description=record.description,
                    token_usage=record.token_usage,
                    cached=True,
                    duration_ms=state.elapsed_ms,
                )

            # 2-3. Fetch + infer, artifact scoped to this block
            with self.reclaimer.artifact(job_id) as path:
                data, mime_type = await self._fetch(state, path)
                response, tier = await self._infer(state, data, mime_type)
                del data

            # 4. Normalize
            state.stage = PipelineStage.NORMALIZE
            description = normalize_output(response.text)
            if is_unparseable(description):
                logger.warning(f"Stored placeholder for unparseable output of {job_id}")

            # 5. Persist
            state.stage = PipelineStage.PERSIST
            await self._stage(
                state,
                self.store.put(job_id, description, response.usage),
                self.defaults.store_timeout_seconds,
            )

            self._successes += 1
            logger.info(
                f"Pipeline for {job_id} completed with {tier.model} "
                f"({response.usage.total_tokens} tokens, {state.elapsed_ms}ms)"
            )
            return PipelineOutcome.success(
                job_id,
                description=description,
                token_usage=response.usage,
                cached=False,
                tier=tier.model,
                duration_ms=state.elapsed_ms,
            )

        except asyncio.CancelledError:
            raise
        except Exception as e:
            return self._failure_outcome(state, e)

    async def _stage(self, state: RunState, awaitable: Awaitable[Any], timeout: float) -> Any:
        """Race one stage call against its deadline."""
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except asyncio.TimeoutError:
            raise StageTimeoutError(state.stage_name or "unknown", timeout) from None

    async def _fetch(self, state: RunState, path: str) -> Tuple[bytes, str]:
        state.stage = PipelineStage.FETCH
        if not self.source.configured:
            raise CollaboratorNotConfiguredError("Artifact source is not configured", stage="fetch")

        limit = self.defaults.artifact_limit_bytes
        with log_context(stage="fetch"):
            metadata = await self._stage(
                state,
                self.source.fetch(state.job_id, path, limit),
                self.defaults.fetch_timeout_seconds,
            )

            size = os.path.getsize(path)
            if size > limit:
                raise ArtifactTooLargeError(size, limit)

            data = await asyncio.to_thread(Path(path).read_bytes)
            logger.info(f"Fetched '{metadata.name}' ({size} bytes)")

        mime_type = metadata.mime_type or self.defaults.default_mime_type
        return data, mime_type

    async def _infer(
        self,
        state: RunState,
        data: bytes,
        mime_type: str,
    ) -> Tuple[InferenceResponse, InferenceTier]:
        """Try each size-eligible tier in order; raise the last error."""
        state.stage = PipelineStage.INFER
        if not self.backend.configured:
            raise CollaboratorNotConfiguredError("Inference backend is not configured", stage="infer")

        size = len(data)
        tiers: Sequence[InferenceTier] = self.defaults.eligible_tiers(size)
        if not tiers:
            raise NoEligibleTierError(
                f"No inference tier accepts a {size} byte payload", stage="infer"
            )

        timeout = self.defaults.inference_timeout_for(size)
        last_error: Optional[BaseException] = None

        for tier in tiers:
            state.tier = tier.model
            with log_context(stage="infer", tier=tier.model):
                try:
                    response = await self._stage(
                        state,
                        self.backend.infer(data, mime_type, self.prompt, tier, timeout),
                        timeout,
                    )
                    return response, tier
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    last_error = e
                    logger.warning(
                        f"Tier {tier.model} failed "
                        f"({self.policy.explain(e).rule}): {type(e).__name__}: {e}"
                    )

        raise last_error

    # =========================================================================
    # OUTCOMES
    # =========================================================================

    def _failure_outcome(self, state: RunState, error: BaseException) -> PipelineOutcome:
        stage = state.stage_name
        if isinstance(error, PipelineError):
            stage = error.stage or stage
            reason = str(error)
        else:
            reason = f"{type(error).__name__}: {error}"

        self._failures += 1
        classification = self.policy.explain(error)
        logger.error(
            f"Pipeline for {state.job_id} failed at {stage} "
            f"({classification.failure_class.value}/{classification.rule}): {reason}"
        )

        if classification.failure_class == FailureClass.RETRYABLE:
            return PipelineOutcome.retryable(
                state.job_id, reason=reason, stage=stage, duration_ms=state.elapsed_ms
            )
        return PipelineOutcome.fatal(
            state.job_id, reason=reason, stage=stage, duration_ms=state.elapsed_ms
        )

    # =========================================================================
    # STATS
    # =========================================================================

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "runs": self._runs,
            "successes": self._successes,
            "cache_hits": self._cache_hits,
            "failures": self._failures,
            "pipeline_timeouts": self._timeouts,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["RunState", "PipelineExecutor"]
