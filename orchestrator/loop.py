# ============================================================================
# SCHEDULER LOOP
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Event-driven dispatch with safety-net tick
# PURPOSE: Move eligible jobs from the admission queue into pipeline runs
# CREATED: 19 OCT 2026
# ============================================================================
"""
Scheduler Loop

Drives the admission queue:
1. Ask the queue for the next eligible item while slots are free
2. Mark it in flight and start the pipeline as a background task
3. When the pipeline returns, route its outcome back through resolve()

schedule() runs on every submit, every resolve, when a retry backoff
elapses, and on a fixed tick as a safety net against missed wake-ups.
It never awaits, so scheduling decisions cannot interleave.

The concurrency ceiling counts running pipeline tasks, not the queue's
in-flight set. A pipeline whose submission deadline already fired keeps
its slot until it finishes, and its job id is excluded from dispatch
until then, so a resubmitted id never runs twice at once.

Background tasks (started by start()):
- main loop: tick every tick_interval seconds
- sweep loop: reclaim stale temporary artifacts every sweep_interval
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from core.config import ReclaimerDefaults, SchedulerDefaults, get_defaults
from core.contracts import ResolveAction, SubmitStatus
from core.logging import log_checkpoint, log_context
from core.models import PipelineOutcome
from orchestrator.admission import AdmissionQueue, Delivery, QueueItem
from worker.reclaimer import ResourceReclaimer

if TYPE_CHECKING:
    from worker.executor import PipelineExecutor

logger = logging.getLogger(__name__)


class Scheduler:
    """
    Dispatches admitted jobs to the pipeline executor.

    Args:
        queue: Admission queue (state holder)
        executor: Pipeline executor
        reclaimer: Optional temporary artifact owner for sweeps
        defaults: Concurrency ceiling and tick interval
        reclaimer_defaults: Sweep interval and thresholds
    """

    def __init__(
        self,
        queue: AdmissionQueue,
        executor: "PipelineExecutor",
        reclaimer: Optional[ResourceReclaimer] = None,
        defaults: Optional[SchedulerDefaults] = None,
        reclaimer_defaults: Optional[ReclaimerDefaults] = None,
    ):
        defaults = defaults or get_defaults().scheduler
        self.queue = queue
        self.executor = executor
        self.reclaimer = reclaimer
        self.max_concurrent = defaults.max_concurrent
        self.tick_interval = defaults.tick_interval_seconds
        self.reclaimer_defaults = reclaimer_defaults or get_defaults().reclaimer

        # State
        self._running = False
        self._stop_event = asyncio.Event()
        self._active: Dict[str, asyncio.Task] = {}
        self._wakeups: Set[asyncio.TimerHandle] = set()

        # Background tasks
        self._main_loop_task: Optional[asyncio.Task] = None
        self._sweep_task: Optional[asyncio.Task] = None

        # Metrics
        self._started_at: Optional[datetime] = None
        self._ticks = 0
        self._dispatched = 0
        self._resolved = 0
        self._errors = 0
        self._peak_concurrency = 0
        self._last_tick_at: Optional[datetime] = None
        self._last_sweep_at: Optional[datetime] = None

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    async def start(self) -> None:
        """Run the startup sweep and start background loops."""
        if self._running:
            logger.warning("Scheduler already running")
            return

        if self.reclaimer is not None:
            await self._sweep(self.reclaimer_defaults.startup_sweep_max_age_minutes)

        self._running = True
        self._started_at = datetime.now(timezone.utc)
        self._stop_event.clear()

        self._main_loop_task = asyncio.create_task(self._main_loop(), name="scheduler-main")
        if self.reclaimer is not None:
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="scheduler-sweep")

        logger.info(
            f"Scheduler started (max_concurrent={self.max_concurrent}, "
            f"tick={self.tick_interval:g}s)"
        )
        self.schedule()

    async def stop(self, drain_timeout: float = 5.0) -> None:
        """
        Stop gracefully.

        Cancels the background loops, delivers a cancellation to every job
        the queue still owns, then gives running pipelines drain_timeout
        seconds before cancelling them (their artifacts are still released).
        """
        logger.info("Stopping scheduler")
        self._running = False
        self._stop_event.set()

        for task in (self._main_loop_task, self._sweep_task):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        for handle in self._wakeups:
            handle.cancel()
        self._wakeups.clear()

        cancelled = self.queue.close()

        running = list(self._active.values())
        if running:
            done, pending = await asyncio.wait(running, timeout=drain_timeout)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        logger.info(
            f"Scheduler stopped (dispatched={self._dispatched}, "
            f"resolved={self._resolved}, cancelled_jobs={cancelled})"
        )

    # =========================================================================
    # SUBMISSION
    # =========================================================================

    def submit(self, job_id: str, delivery: Delivery) -> SubmitStatus:
        """Admit a job and try to dispatch immediately."""
        status = self.queue.submit(job_id, delivery)
        if status == SubmitStatus.ACCEPTED:
            self.schedule()
        return status

    def status(self) -> Dict[str, Any]:
        """Queue snapshot; no side effects."""
        return self.queue.status()

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def schedule(self) -> int:
        """
        One scheduling attempt: fill every free slot.

        Returns:
            Number of pipelines dispatched
        """
        if not self._running:
            return 0

        dispatched = 0
        while True:
            item = self.queue.next_eligible(
                self.max_concurrent,
                len(self._active),
                exclude=self._active.keys(),
            )
            if item is None:
                break

            self.queue.mark_in_flight(item.job_id)
            self._active[item.job_id] = asyncio.create_task(
                self._run(item), name=f"pipeline-{item.job_id}"
            )
            dispatched += 1
            self._dispatched += 1
            self._peak_concurrency = max(self._peak_concurrency, len(self._active))

        return dispatched

    async def _run(self, item: QueueItem) -> None:
        """Run one pipeline attempt and route its outcome."""
        job_id = item.job_id
        with log_context(job_id=job_id, attempt=item.attempts):
            log_checkpoint("job_dispatched", {"active": len(self._active)})
            try:
                outcome = await self.executor.run(job_id, item.attempts)
            except asyncio.CancelledError:
                self._active.pop(job_id, None)
                raise
            except Exception as e:
                self._errors += 1
                logger.exception(f"Executor raised for {job_id}")
                outcome = PipelineOutcome.fatal(job_id, reason=f"Unexpected executor error: {e}")

            self._active.pop(job_id, None)
            result = self.queue.resolve(job_id, outcome, item=item)
            self._resolved += 1

        if result.action == ResolveAction.RETRY_SCHEDULED and result.retry_delay is not None:
            self._wake_after(result.retry_delay)
        self.schedule()

    def _wake_after(self, delay: float) -> None:
        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def _wake() -> None:
            self._wakeups.discard(handle)
            self.schedule()

        handle = loop.call_later(delay, _wake)
        self._wakeups.add(handle)

    # =========================================================================
    # BACKGROUND LOOPS
    # =========================================================================

    async def _main_loop(self) -> None:
        """Safety-net tick."""
        while self._running and not self._stop_event.is_set():
            try:
                self.schedule()
                self._ticks += 1
                self._last_tick_at = datetime.now(timezone.utc)
            except Exception as e:
                self._errors += 1
                logger.exception(f"Error in scheduler tick: {e}")

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.tick_interval)
                break
            except asyncio.TimeoutError:
                pass

    async def _sweep_loop(self) -> None:
        """Periodic reclamation of stale temporary artifacts."""
        interval = self.reclaimer_defaults.sweep_interval_seconds
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self._sweep(self.reclaimer_defaults.sweep_max_age_minutes)
            except Exception as e:
                self._errors += 1
                logger.error(f"Sweep error: {e}")

    async def _sweep(self, max_age_minutes: float) -> None:
        result = await asyncio.to_thread(self.reclaimer.sweep, max_age_minutes)
        self._last_sweep_at = datetime.now(timezone.utc)
        logger.debug(f"Sweep finished: {result.to_dict()}")

    # =========================================================================
    # STATS
    # =========================================================================

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def active_count(self) -> int:
        """Pipeline tasks currently running (includes timed-out ones)."""
        return len(self._active)

    @property
    def stats(self) -> Dict[str, Any]:
        uptime_seconds = None
        if self._started_at:
            uptime_seconds = (datetime.now(timezone.utc) - self._started_at).total_seconds()

        return {
            "running": self._running,
            "started_at": self._started_at.isoformat() if self._started_at else None,
            "uptime_seconds": uptime_seconds,
            "max_concurrent": self.max_concurrent,
            "tick_interval": self.tick_interval,
            "active_pipelines": len(self._active),
            "peak_concurrency": self._peak_concurrency,
            "ticks": self._ticks,
            "last_tick_at": self._last_tick_at.isoformat() if self._last_tick_at else None,
            "last_sweep_at": self._last_sweep_at.isoformat() if self._last_sweep_at else None,
            "dispatched": self._dispatched,
            "resolved": self._resolved,
            "pending_wakeups": len(self._wakeups),
            "errors": self._errors,
            "queue": self.queue.stats,
            "executor": self.executor.stats,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["Scheduler"]
