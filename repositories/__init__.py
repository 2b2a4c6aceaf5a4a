# ============================================================================
# REPOSITORIES MODULE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Database access layer
# PURPOSE: CRUD operations for video records
# CREATED: 19 OCT 2026
# ============================================================================
"""
Repositories Module

Provides database access for cached video descriptions.
Uses psycopg3 async with connection pooling.

Usage:
    from repositories import RecordRepository, init_pool

    pool = await init_pool()
    repo = RecordRepository(pool)
    record = await repo.get(drive_id)
"""

from .database import init_pool, get_pool, close_pool, is_database_configured
from .record_repo import RecordRepository

__all__ = [
    "init_pool",
    "get_pool",
    "close_pool",
    "is_database_configured",
    "RecordRepository",
]
