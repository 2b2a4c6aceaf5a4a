# ============================================================================
# ADMISSION QUEUE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Job lifecycle state holder
# PURPOSE: Dedup, FIFO admission, retry counters, exactly-once delivery
# CREATED: 19 OCT 2026
# ============================================================================
"""
Admission Queue

The only component with cross-job invariants:
- A job id is either queued or in flight, never both, never neither
  while the queue owns it
- submit() is an atomic check-and-insert; duplicates are rejected
- Every accepted submission's Delivery is invoked exactly once

All mutation happens on the event loop thread through the methods below.
None of them await, so two scheduling decisions can never interleave.

Lifecycle of a QueueItem:

    submit ──> queued ──mark_in_flight──> in flight ──resolve──> delivered
                 ^                            │
                 └──── retry (backoff) ───────┘

    deadline timer fires in either state ──> timed out, item removed

Items waiting out a retry backoff stay in the queued set with a future
eligible_at. They sort by eligible_at, so a retried job re-enters behind
first-time submissions that arrived during its backoff.
"""

import asyncio
import itertools
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional

from core.contracts import OutcomeKind, ResolveAction, SubmitStatus
from core.logging import log_checkpoint, log_context
from core.models import JobResult, PipelineOutcome
from orchestrator.retry import RetryPolicy

logger = logging.getLogger(__name__)


# ============================================================================
# DELIVERY CAPABILITY
# ============================================================================

class Delivery:
    """
    One-shot capability that hands a JobResult back to the caller.

    The first deliver() call consumes the capability; later calls are
    no-ops and return False.
    """

    def __init__(self, callback: Callable[[JobResult], Any]):
        self._callback: Optional[Callable[[JobResult], Any]] = callback

    @property
    def consumed(self) -> bool:
        return self._callback is None

    def deliver(self, result: JobResult) -> bool:
        callback, self._callback = self._callback, None
        if callback is None:
            return False
        try:
            callback(result)
        except Exception:
            logger.exception(f"Delivery callback for job {result.job_id} raised")
        return True

    @classmethod
    def for_future(cls, future: "asyncio.Future[JobResult]") -> "Delivery":
        """Deliver by completing an asyncio future (if still pending)."""
        def _complete(result: JobResult) -> None:
            if not future.done():
                future.set_result(result)
        return cls(_complete)


# ============================================================================
# QUEUE ITEM
# ============================================================================

@dataclass(eq=False)
class QueueItem:
    """A submitted job owned by the admission queue."""
    job_id: str
    delivery: Delivery
    submitted_at: float
    eligible_at: float
    seq: int
    attempts: int = 0
    last_error: Optional[str] = None
    last_stage: Optional[str] = None
    deadline: Optional[asyncio.TimerHandle] = field(default=None, repr=False)

    @property
    def order_key(self):
        return (self.eligible_at, self.seq)


@dataclass(frozen=True)
class ResolveResult:
    """What resolve() did with an outcome."""
    action: ResolveAction
    retry_delay: Optional[float] = None
    result: Optional[JobResult] = None


# ============================================================================
# ADMISSION QUEUE
# ============================================================================

class AdmissionQueue:
    """
    Tracks queued jobs, in-flight jobs, retry counters and deliveries.

    Args:
        policy: Retry policy consulted on RetryableFailure outcomes
        max_concurrent: Reported in status(); enforced by the caller of
            next_eligible()
        submission_timeout_seconds: Absolute caller-facing deadline per
            submission (None disables it)
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        max_concurrent: int = 2,
        submission_timeout_seconds: Optional[float] = 600.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.policy = policy or RetryPolicy()
        self.max_concurrent = max_concurrent
        self.submission_timeout_seconds = submission_timeout_seconds
        self._clock = clock

        self._queued: Dict[str, QueueItem] = {}
        self._in_flight: Dict[str, QueueItem] = {}
        self._retries: Dict[str, int] = {}
        self._seq = itertools.count()

        # Counters
        self._accepted = 0
        self._rejected = 0
        self._delivered = 0
        self._timed_out = 0
        self._discarded = 0
        self._retries_scheduled = 0

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, job_id: str, delivery: Delivery) -> SubmitStatus:
        """
        Admit a job, or reject it if the id is already queued or in flight.

        On accept, arms the submission deadline. Must be called from the
        event loop thread when a deadline is configured.
        """
        if job_id in self._queued or job_id in self._in_flight:
            self._rejected += 1
            logger.info(f"Rejected duplicate submission for job {job_id}")
            return SubmitStatus.DUPLICATE

        now = self._clock()
        item = QueueItem(
            job_id=job_id,
            delivery=delivery,
            submitted_at=now,
            eligible_at=now,
            seq=next(self._seq),
        )

        if self.submission_timeout_seconds is not None:
            loop = asyncio.get_running_loop()
            item.deadline = loop.call_later(
                self.submission_timeout_seconds, self._expire, job_id, item
            )

        self._queued[job_id] = item
        self._accepted += 1

        with log_context(job_id=job_id):
            log_checkpoint("job_accepted", {"queue_length": len(self._queued)})

        return SubmitStatus.ACCEPTED

    # =========================================================================
    # SCHEDULING BOOKKEEPING
    # =========================================================================

    def next_eligible(
        self,
        max_concurrent: int,
        in_flight_count: int,
        exclude: Iterable[str] = (),
    ) -> Optional[QueueItem]:
        """
        Earliest eligible queued item, or None.

        None when in_flight_count >= max_concurrent, the queue is empty,
        or every queued item is still backing off or excluded.
        """
        if in_flight_count >= max_concurrent or not self._queued:
            return None

        excluded = set(exclude)
        now = self._clock()
        best: Optional[QueueItem] = None
        for item in self._queued.values():
            if item.eligible_at > now:
                continue
            if item.job_id in self._in_flight or item.job_id in excluded:
                continue
            if best is None or item.order_key < best.order_key:
                best = item
        return best

    def mark_in_flight(self, job_id: str) -> QueueItem:
        """
        Move a queued item to the in-flight set and count the attempt.

        Raises:
            KeyError: If the job is not queued
        """
        item = self._queued.pop(job_id)
        item.attempts += 1
        self._in_flight[job_id] = item
        return item

    def mark_done(self, job_id: str, item: Optional[QueueItem] = None) -> Optional[QueueItem]:
        """
        Take a job out of the in-flight set.

        Returns None if the job is not in flight, or if item is given and
        is not the current in-flight entry (an older submission).
        """
        current = self._in_flight.get(job_id)
        if current is None or (item is not None and current is not item):
            return None
        return self._in_flight.pop(job_id)

    # =========================================================================
    # RESOLUTION
    # =========================================================================

    def resolve(
        self,
        job_id: str,
        outcome: PipelineOutcome,
        item: Optional[QueueItem] = None,
    ) -> ResolveResult:
        """
        Route a pipeline outcome.

        SUCCESS / FATAL_FAILURE / TIMED_OUT deliver and clear state.
        RETRYABLE_FAILURE re-queues behind a backoff delay while retries
        remain, otherwise delivers a terminal failure.

        The job leaves the in-flight set through mark_done() first.
        An outcome with no matching in-flight entry (the deadline already
        fired, or item belongs to an older submission) is discarded.
        """
        current = self.mark_done(job_id, item)
        if current is None:
            self._discarded += 1
            with log_context(job_id=job_id):
                log_checkpoint("outcome_discarded", {"kind": outcome.kind.value})
            return ResolveResult(ResolveAction.DISCARDED)

        if outcome.kind == OutcomeKind.SUCCESS:
            result = JobResult.completed(outcome, attempts=current.attempts)

        elif outcome.kind == OutcomeKind.FATAL_FAILURE:
            result = JobResult.failed(
                job_id,
                error=outcome.reason or "Pipeline failed",
                attempts=current.attempts,
                stage=outcome.stage,
            )

        elif outcome.kind == OutcomeKind.TIMED_OUT:
            result = JobResult.timed_out(
                job_id,
                error=outcome.reason or "Pipeline deadline exceeded",
                attempts=current.attempts,
            )

        else:
            retries_used = self._retries.get(job_id, 0)
            if self.policy.should_retry(retries_used):
                return self._schedule_retry(current, outcome, retries_used)

            result = JobResult.failed(
                job_id,
                error=(
                    f"Retries exhausted after {current.attempts} attempts: "
                    f"{outcome.reason or 'retryable failure'}"
                ),
                attempts=current.attempts,
                stage=outcome.stage,
            )

        self._finish(current, result)
        return ResolveResult(ResolveAction.DELIVERED, result=result)

    def _schedule_retry(
        self,
        item: QueueItem,
        outcome: PipelineOutcome,
        retries_used: int,
    ) -> ResolveResult:
        delay = self.policy.delay(retries_used)
        self._retries[item.job_id] = retries_used + 1
        self._retries_scheduled += 1

        item.eligible_at = self._clock() + delay
        item.seq = next(self._seq)
        item.last_error = outcome.reason
        item.last_stage = outcome.stage
        self._queued[item.job_id] = item

        with log_context(job_id=item.job_id, attempt=item.attempts):
            log_checkpoint("retry_scheduled", {
                "retry": retries_used + 1,
                "delay_seconds": round(delay, 3),
                "reason": outcome.reason,
                "stage": outcome.stage,
            })

        return ResolveResult(ResolveAction.RETRY_SCHEDULED, retry_delay=delay)

    def _finish(self, item: QueueItem, result: JobResult) -> None:
        """Clear all state for item and invoke its delivery."""
        if self._queued.get(item.job_id) is item:
            del self._queued[item.job_id]
        if self._in_flight.get(item.job_id) is item:
            del self._in_flight[item.job_id]
        self._retries.pop(item.job_id, None)

        if item.deadline is not None:
            item.deadline.cancel()
            item.deadline = None

        if item.delivery.deliver(result):
            self._delivered += 1
            with log_context(job_id=item.job_id, attempt=item.attempts):
                log_checkpoint("job_delivered", {
                    "status": result.status.value,
                    "cached": result.cached,
                })

    def _expire(self, job_id: str, item: QueueItem) -> None:
        """Submission deadline handler (runs on the event loop)."""
        if self._queued.get(job_id) is not item and self._in_flight.get(job_id) is not item:
            return

        was_in_flight = self._in_flight.get(job_id) is item
        item.deadline = None
        self._timed_out += 1

        with log_context(job_id=job_id, attempt=item.attempts):
            log_checkpoint("job_timed_out", {
                "in_flight": was_in_flight,
                "timeout_seconds": self.submission_timeout_seconds,
            })

        self._finish(
            item,
            JobResult.timed_out(
                job_id,
                error=f"Submission deadline of {self.submission_timeout_seconds:g}s exceeded",
                attempts=item.attempts,
            ),
        )

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def close(self, reason: str = "Service shutting down") -> int:
        """
        Deliver a cancellation to every owned job and clear all state.

        Returns:
            Number of jobs cancelled
        """
        items = list(self._queued.values()) + list(self._in_flight.values())
        for item in items:
            self._finish(item, JobResult.cancelled(item.job_id, attempts=item.attempts, error=reason))
        if items:
            logger.info(f"Admission queue closed, cancelled {len(items)} jobs")
        return len(items)

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    @property
    def in_flight_ids(self) -> List[str]:
        return list(self._in_flight)

    def status(self) -> Dict[str, Any]:
        """Read-only snapshot; no side effects."""
        now = self._clock()
        return {
            "queue_length": len(self._queued),
            "backing_off": sum(1 for i in self._queued.values() if i.eligible_at > now),
            "in_flight_ids": sorted(self._in_flight),
            "in_flight_count": len(self._in_flight),
            "max_concurrent": self.max_concurrent,
            "retry_attempts": dict(self._retries),
        }

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "accepted": self._accepted,
            "rejected_duplicates": self._rejected,
            "delivered": self._delivered,
            "timed_out": self._timed_out,
            "discarded_outcomes": self._discarded,
            "retries_scheduled": self._retries_scheduled,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "Delivery",
    "QueueItem",
    "ResolveResult",
    "AdmissionQueue",
]
