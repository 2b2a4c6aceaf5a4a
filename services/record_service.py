# ============================================================================
# RECORD SERVICE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Cached description management
# PURPOSE: Read, edit and delete stored video descriptions
# CREATED: 19 OCT 2026
# ============================================================================
"""
Record Service

Thin business layer over the record store used by the records API.
Deleting a record means the next submission for that id runs the full
pipeline again.
"""

import logging
from typing import Any, Dict, List

from core.models import JobRecord
from worker.contracts import RecordStore

logger = logging.getLogger(__name__)


class RecordNotFoundError(KeyError):
    """No record exists for the job id."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(job_id)


class RecordService:
    """Service for stored description records."""

    def __init__(self, store: RecordStore):
        self.store = store

    async def list_records(self, limit: int = 500) -> List[JobRecord]:
        return await self.store.list_all(limit=limit)

    async def count_records(self) -> int:
        return await self.store.count()

    async def get_record(self, job_id: str) -> JobRecord:
        """
        Raises:
            RecordNotFoundError: If no record exists
        """
        record = await self.store.get(job_id)
        if record is None:
            raise RecordNotFoundError(job_id)
        return record

    async def update_description(self, job_id: str, description: Dict[str, Any]) -> JobRecord:
        """
        Replace a record's description.

        Raises:
            RecordNotFoundError: If no record exists
        """
        record = await self.store.update_description(job_id, description)
        if record is None:
            raise RecordNotFoundError(job_id)
        logger.info(f"Description of {job_id} edited")
        return record

    async def delete_record(self, job_id: str) -> None:
        """
        Raises:
            RecordNotFoundError: If no record exists
        """
        if not await self.store.delete(job_id):
            raise RecordNotFoundError(job_id)
        logger.info(f"Record {job_id} deleted")


__all__ = ["RecordService", "RecordNotFoundError"]
