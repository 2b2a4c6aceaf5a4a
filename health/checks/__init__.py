# ============================================================================
# HEALTH CHECK PLUGINS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Health check implementations
# PURPOSE: Checks for the video description service components
# CREATED: 19 OCT 2026
# ============================================================================
"""
Health Check Plugins

Startup Checks (priority 10):
- process: Process resources
- config: Collaborator configuration present

Infrastructure Checks (priority 20):
- drive: Google Drive credentials
- inference: Gemini configuration and tiers
- temp_storage: Artifact directory

Database Checks (priority 30):
- postgres: Record store reachable, table present
- connection_pool: Pool saturation

Application Checks (priority 40):
- scheduler: Scheduler loop and queue

Import this module to register all checks:
    import health.checks
"""

from health.checks.startup import ProcessCheck, ConfigCheck
from health.checks.infrastructure import (
    DriveCheck,
    InferenceCheck,
    TempStorageCheck,
    set_collaborators,
)
from health.checks.database import PostgresCheck, ConnectionPoolCheck
from health.checks.application import SchedulerCheck, set_scheduler

__all__ = [
    # Wiring
    "set_collaborators",
    "set_scheduler",
    # Startup
    "ProcessCheck",
    "ConfigCheck",
    # Infrastructure
    "DriveCheck",
    "InferenceCheck",
    "TempStorageCheck",
    # Database
    "PostgresCheck",
    "ConnectionPoolCheck",
    # Application
    "SchedulerCheck",
]
