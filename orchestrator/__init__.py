# ============================================================================
# ORCHESTRATOR MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Admission, retry and scheduling
# PURPOSE: Coordinate job execution under the concurrency ceiling
# CREATED: 19 OCT 2026
# ============================================================================
"""
Orchestrator Module

Admission queue, retry policy and the scheduler loop that drives them.

Usage:
    from orchestrator import AdmissionQueue, RetryPolicy, Scheduler

    queue = AdmissionQueue(RetryPolicy.from_defaults())
    scheduler = Scheduler(queue, executor, reclaimer)
    await scheduler.start()
"""

from .admission import AdmissionQueue, Delivery, QueueItem, ResolveResult
from .loop import Scheduler
from .retry import Classification, RetryPolicy

__all__ = [
    "AdmissionQueue",
    "Delivery",
    "QueueItem",
    "ResolveResult",
    "Scheduler",
    "Classification",
    "RetryPolicy",
]
