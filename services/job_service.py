# ============================================================================
# JOB SERVICE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Job submission and result delivery
# PURPOSE: Bridge transport requests to the scheduler and await the result
# CREATED: 19 OCT 2026
# ============================================================================
"""
Job Service

Turns a "describe this video" request into a scheduler submission:
- Builds a one-shot Delivery bound to an asyncio future
- Submits through the scheduler (which dedups atomically)
- Awaits the JobResult the admission queue delivers exactly once

The submission deadline lives in the admission queue, so the future is
always completed: with a result, a failure, a timeout or a cancellation.
"""

import asyncio
import logging
from typing import Any, Dict

from core.contracts import SubmitStatus
from core.errors import DuplicateJobError
from core.models import JobResult
from orchestrator.admission import Delivery
from orchestrator.loop import Scheduler

logger = logging.getLogger(__name__)


class JobService:
    """Service for job submission."""

    def __init__(self, scheduler: Scheduler):
        self.scheduler = scheduler

    def submit(self, job_id: str) -> "asyncio.Future[JobResult]":
        """
        Submit a job and return the future its result will complete.

        Raises:
            DuplicateJobError: If the job id is already queued or in flight
        """
        future: "asyncio.Future[JobResult]" = asyncio.get_running_loop().create_future()
        status = self.scheduler.submit(job_id, Delivery.for_future(future))

        if status == SubmitStatus.DUPLICATE:
            raise DuplicateJobError(job_id)

        return future

    async def process(self, job_id: str) -> JobResult:
        """
        Submit a job and wait for its delivered result.

        If the awaiting caller goes away, the job keeps running and its
        result is discarded by the delivery.

        Raises:
            DuplicateJobError: If the job id is already queued or in flight
        """
        future = self.submit(job_id)
        # shield: a disconnecting caller must not cancel the delivery future
        result = await asyncio.shield(future)
        logger.info(
            f"Job {job_id} delivered: status={result.status.value}, "
            f"cached={result.cached}, attempts={result.attempts}"
        )
        return result

    def status(self) -> Dict[str, Any]:
        """Queue snapshot plus scheduler statistics."""
        return {
            **self.scheduler.status(),
            "scheduler": self.scheduler.stats,
        }


__all__ = ["JobService"]
