# ============================================================================
# API MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - FastAPI routes
# PURPOSE: HTTP API for job submission and stored records
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Module

FastAPI routes for the video description service.
"""

from .routes import router, set_services
from .schemas import (
    ErrorResponse,
    JobResponse,
    JobSubmit,
    RecordResponse,
    RecordUpdate,
)

__all__ = [
    "router",
    "set_services",
    "ErrorResponse",
    "JobResponse",
    "JobSubmit",
    "RecordResponse",
    "RecordUpdate",
]
