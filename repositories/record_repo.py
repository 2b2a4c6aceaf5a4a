# ============================================================================
# RECORD REPOSITORY
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Video record CRUD operations
# PURPOSE: Database access for the video_records table
# CREATED: 19 OCT 2026
# ============================================================================
"""
Record Repository

CRUD operations for cached video descriptions. Serves both as the
pipeline's persistent store (get / put) and as the backing store of the
records API.

put() is an upsert so that a retried persist (or a re-run after a record
was deleted) is idempotent.
"""

import logging
from typing import Any, Dict, List, Optional

from psycopg import sql
from psycopg.rows import dict_row
from psycopg.types.json import Json
from psycopg_pool import AsyncConnectionPool

from core.models import JobRecord, TokenUsage
from infrastructure.base_repository import BaseRepository
from worker.contracts import RecordStore
from .database import SCHEMA_IDENT, TABLE_RECORDS

logger = logging.getLogger(__name__)


class RecordRepository(BaseRepository, RecordStore):
    """Repository for JobRecord entities."""

    def __init__(self, pool: AsyncConnectionPool):
        super().__init__()
        self.pool = pool

    async def ensure_schema(self) -> None:
        """Create the schema and table if they do not exist."""
        with self._error_context("schema setup"):
            async with self.pool.connection() as conn:
                await conn.execute(
                    sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(SCHEMA_IDENT)
                )
                await conn.execute(
                    sql.SQL("""
                    CREATE TABLE IF NOT EXISTS {} (
                        drive_id     VARCHAR(128) PRIMARY KEY,
                        description  JSONB NOT NULL,
                        token_usage  JSONB,
                        created_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
                        updated_at   TIMESTAMPTZ NOT NULL DEFAULT now()
                    )
                    """).format(TABLE_RECORDS)
                )
                await conn.execute(
                    sql.SQL(
                        "CREATE INDEX IF NOT EXISTS idx_video_records_created "
                        "ON {} (created_at DESC)"
                    ).format(TABLE_RECORDS)
                )
        logger.info("Record schema ready")

    async def get(self, job_id: str) -> Optional[JobRecord]:
        """
        Get a record by job id.

        Returns:
            JobRecord or None if not cached
        """
        with self._error_context("record lookup", job_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} WHERE drive_id = %s").format(TABLE_RECORDS),
                    (job_id,),
                )
                row = await result.fetchone()

        if row is None:
            return None
        return JobRecord.from_row(row)

    async def put(
        self,
        job_id: str,
        description: Dict[str, Any],
        token_usage: Optional[TokenUsage] = None,
    ) -> JobRecord:
        """Insert or replace the record for job_id."""
        with self._error_context("record upsert", job_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                    INSERT INTO {} (drive_id, description, token_usage)
                    VALUES (%(drive_id)s, %(description)s, %(token_usage)s)
                    ON CONFLICT (drive_id) DO UPDATE SET
                        description = EXCLUDED.description,
                        token_usage = EXCLUDED.token_usage,
                        updated_at = now()
                    RETURNING *
                    """).format(TABLE_RECORDS),
                    {
                        "drive_id": job_id,
                        "description": Json(description),
                        "token_usage": Json(token_usage.model_dump()) if token_usage else None,
                    },
                )
                row = await result.fetchone()

        self._log_operation(True, "Stored record", job_id)
        return JobRecord.from_row(row)

    async def update_description(
        self,
        job_id: str,
        description: Dict[str, Any],
    ) -> Optional[JobRecord]:
        """Replace the description of an existing record."""
        with self._error_context("record update", job_id):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("""
                    UPDATE {} SET description = %s, updated_at = now()
                    WHERE drive_id = %s
                    RETURNING *
                    """).format(TABLE_RECORDS),
                    (Json(description), job_id),
                )
                row = await result.fetchone()

        if row is None:
            return None
        self._log_operation(True, "Updated record", job_id)
        return JobRecord.from_row(row)

    async def delete(self, job_id: str) -> bool:
        """Delete a record. Returns True if one was removed."""
        with self._error_context("record delete", job_id):
            async with self.pool.connection() as conn:
                result = await conn.execute(
                    sql.SQL("DELETE FROM {} WHERE drive_id = %s").format(TABLE_RECORDS),
                    (job_id,),
                )
                deleted = result.rowcount > 0

        if deleted:
            self._log_operation(True, "Deleted record", job_id)
        return deleted

    async def list_all(self, limit: int = 500) -> List[JobRecord]:
        """All records, newest first."""
        with self._error_context("record listing"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT * FROM {} ORDER BY created_at DESC LIMIT %s").format(TABLE_RECORDS),
                    (limit,),
                )
                rows = await result.fetchall()

        return [JobRecord.from_row(row) for row in rows]

    async def count(self) -> int:
        """Total number of stored records."""
        with self._error_context("record count"):
            async with self.pool.connection() as conn:
                conn.row_factory = dict_row
                result = await conn.execute(
                    sql.SQL("SELECT count(*) AS total FROM {}").format(TABLE_RECORDS)
                )
                row = await result.fetchone()
        return int(row["total"]) if row else 0
