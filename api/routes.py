# ============================================================================
# API ROUTES
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - FastAPI route definitions
# PURPOSE: HTTP endpoints for job submission and stored records
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes

FastAPI routes for the video description service.

A job submission holds the request open until the admission queue
delivers the job's result; the delivered status maps onto the HTTP
status code.
"""

import logging

from fastapi import APIRouter, HTTPException, Path, Query
from fastapi.responses import JSONResponse

from core.contracts import DeliveryStatus
from core.errors import DuplicateJobError
from services.record_service import RecordNotFoundError
from .schemas import (
    JOB_ID_PATTERN,
    ErrorResponse,
    JobResponse,
    JobSubmit,
    RecordListResponse,
    RecordResponse,
    RecordUpdate,
    SchedulerStatusResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Delivered status -> HTTP status for non-successful results
_FAILURE_STATUS_CODES = {
    DeliveryStatus.FAILED: 502,
    DeliveryStatus.TIMED_OUT: 504,
    DeliveryStatus.CANCELLED: 503,
}


# ============================================================================
# DEPENDENCY INJECTION
# ============================================================================
# These will be set by the main app at startup

_job_service = None
_record_service = None


def set_services(job_service, record_service):
    """Set service instances for dependency injection."""
    global _job_service, _record_service
    _job_service = job_service
    _record_service = record_service


def get_job_service():
    if _job_service is None:
        raise HTTPException(500, "Services not initialized")
    return _job_service


def get_record_service():
    if _record_service is None:
        raise HTTPException(500, "Services not initialized")
    return _record_service


# ============================================================================
# HEALTH
# ============================================================================
# NOTE: Health checks are handled by the health module.
# See: /livez, /readyz, /health (root level, not under /api/v1)
# ============================================================================


# ============================================================================
# SCHEDULER STATUS
# ============================================================================

@router.get(
    "/scheduler/status",
    response_model=SchedulerStatusResponse,
    tags=["Scheduler"],
)
async def get_scheduler_status():
    """
    Get admission queue state and scheduler statistics.

    Returns:
    - Queue length and how many queued jobs are backing off
    - In-flight job ids and the concurrency limit
    - Retry attempts per job
    - Loop counters (dispatched, peak concurrency, sweeps)
    """
    service = get_job_service()
    return service.status()


# ============================================================================
# JOB ENDPOINTS
# ============================================================================

@router.post(
    "/jobs",
    response_model=JobResponse,
    tags=["Jobs"],
    responses={
        409: {"model": ErrorResponse, "description": "Job already queued or in flight"},
        502: {"model": ErrorResponse, "description": "Pipeline failed"},
        503: {"model": ErrorResponse, "description": "Service shutting down"},
        504: {"model": ErrorResponse, "description": "Submission deadline expired"},
    },
)
async def submit_job(request: JobSubmit):
    """
    Describe a video.

    Returns the cached description when one exists, otherwise runs
    fetch, inference and persistence (with retries) before answering.
    """
    service = get_job_service()

    try:
        result = await service.process(request.job_id)
    except DuplicateJobError as e:
        return JSONResponse(
            status_code=409,
            content=ErrorResponse(
                error="duplicate",
                detail=str(e),
                job_id=request.job_id,
            ).model_dump(exclude_none=True),
        )

    if result.success:
        return JobResponse.from_result(result)

    status_code = _FAILURE_STATUS_CODES.get(result.status, 500)
    logger.warning(
        f"Job {result.job_id} returned {status_code}: "
        f"{result.status.value} after {result.attempts} attempt(s)"
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=result.status.value,
            detail=result.error,
            job_id=result.job_id,
            attempts=result.attempts,
            stage=result.stage,
        ).model_dump(exclude_none=True),
    )


# ============================================================================
# RECORD ENDPOINTS
# ============================================================================

@router.get("/records", response_model=RecordListResponse, tags=["Records"])
async def list_records(
    limit: int = Query(500, ge=1, le=5000),
):
    """List stored descriptions, newest first. total counts every stored record."""
    service = get_record_service()
    records = await service.list_records(limit=limit)
    total = await service.count_records()
    return RecordListResponse(
        records=[RecordResponse.from_record(r) for r in records],
        total=total,
    )


@router.get(
    "/records/{job_id}",
    response_model=RecordResponse,
    tags=["Records"],
    responses={404: {"model": ErrorResponse}},
)
async def get_record(job_id: str = Path(..., pattern=JOB_ID_PATTERN)):
    """Get a stored description by Drive file id."""
    service = get_record_service()
    try:
        record = await service.get_record(job_id)
    except RecordNotFoundError:
        raise HTTPException(404, f"Record not found: {job_id}")
    return RecordResponse.from_record(record)


@router.put(
    "/records/{job_id}",
    response_model=RecordResponse,
    tags=["Records"],
    responses={404: {"model": ErrorResponse}},
)
async def update_record(
    update: RecordUpdate,
    job_id: str = Path(..., pattern=JOB_ID_PATTERN),
):
    """Replace a stored description."""
    service = get_record_service()
    try:
        record = await service.update_description(job_id, update.description)
    except RecordNotFoundError:
        raise HTTPException(404, f"Record not found: {job_id}")
    return RecordResponse.from_record(record)


@router.delete(
    "/records/{job_id}",
    status_code=204,
    tags=["Records"],
    responses={404: {"model": ErrorResponse}},
)
async def delete_record(job_id: str = Path(..., pattern=JOB_ID_PATTERN)):
    """
    Delete a stored description.

    The next submission for this id runs the full pipeline again.
    """
    service = get_record_service()
    try:
        await service.delete_record(job_id)
    except RecordNotFoundError:
        raise HTTPException(404, f"Record not found: {job_id}")
