# ============================================================================
# API SCHEMAS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Request/Response schemas
# PURPOSE: Pydantic models for API validation
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Schemas

Request and response models for the API.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from core.contracts import DeliveryStatus
from core.models import JobRecord, JobResult, TokenUsage

JOB_ID_PATTERN = r"^[A-Za-z0-9_-]{1,128}$"


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class JobSubmit(BaseModel):
    """Request to describe one video."""
    job_id: str = Field(
        ...,
        pattern=JOB_ID_PATTERN,
        validation_alias=AliasChoices("job_id", "videoId", "video_id"),
        description="Google Drive file id",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [{"job_id": "1a2B3c4D5e6F7g8H9i0J"}]
        }
    }


class RecordUpdate(BaseModel):
    """Request to replace a stored description."""
    description: Dict[str, Any] = Field(..., description="New description object")


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class JobResponse(BaseModel):
    """Delivered job result."""
    job_id: str
    status: DeliveryStatus
    cached: bool
    description: Optional[Dict[str, Any]] = None
    token_usage: Optional[TokenUsage] = None
    attempts: int

    @classmethod
    def from_result(cls, result: JobResult) -> "JobResponse":
        return cls(
            job_id=result.job_id,
            status=result.status,
            cached=result.cached,
            description=result.description,
            token_usage=result.token_usage,
            attempts=result.attempts,
        )


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: Optional[str] = None
    job_id: Optional[str] = None
    attempts: Optional[int] = None
    stage: Optional[str] = None


class RecordResponse(BaseModel):
    """Stored description record."""
    drive_id: str
    description: Dict[str, Any]
    token_usage: Optional[TokenUsage] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_record(cls, record: JobRecord) -> "RecordResponse":
        return cls(
            drive_id=record.drive_id,
            description=record.description,
            token_usage=record.token_usage,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class RecordListResponse(BaseModel):
    """A page of records plus the total stored."""
    records: List[RecordResponse]
    total: int


class SchedulerStatusResponse(BaseModel):
    """Admission queue snapshot plus loop statistics."""
    queue_length: int
    backing_off: int = 0
    in_flight_ids: List[str]
    in_flight_count: int
    max_concurrent: int
    retry_attempts: Dict[str, int]
    scheduler: Dict[str, Any] = Field(default_factory=dict)
