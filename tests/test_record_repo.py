# ============================================================================
# RECORD REPOSITORY TESTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tests - Video record CRUD against a mocked pool
# PURPOSE: Verify row mapping, upsert parameters and error wrapping
# CREATED: 19 OCT 2026
# ============================================================================
"""
Record Repository Tests

The psycopg pool is mocked; no database required.

Run with:
    pytest tests/test_record_repo.py -v
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from psycopg.rows import dict_row
from psycopg.types.json import Json

from core.errors import RepositoryError
from core.models import TokenUsage
from repositories.record_repo import RecordRepository


# ============================================================================
# FIXTURES
# ============================================================================

def _make_pool(fetchone=None, fetchall=None, rowcount=0, error=None):
    """Pool whose connection().execute() returns a scripted cursor."""
    cursor = MagicMock()
    cursor.fetchone = AsyncMock(return_value=fetchone)
    cursor.fetchall = AsyncMock(return_value=fetchall or [])
    cursor.rowcount = rowcount

    conn = MagicMock()
    conn.execute = AsyncMock(return_value=cursor, side_effect=error)

    @asynccontextmanager
    async def connection():
        yield conn

    pool = MagicMock()
    pool.connection = connection
    return pool, conn


def _row(drive_id="vid_001", **overrides):
    row = {
        "drive_id": drive_id,
        "description": {"titulo": "Atardecer"},
        "token_usage": {"prompt_tokens": 800, "candidates_tokens": 50, "total_tokens": 850},
        "created_at": datetime(2026, 10, 1, tzinfo=timezone.utc),
        "updated_at": datetime(2026, 10, 2, tzinfo=timezone.utc),
    }
    row.update(overrides)
    return row


# ============================================================================
# TESTS
# ============================================================================

class TestRecordRepository:

    def test_get_maps_row(self):
        pool, _ = _make_pool(fetchone=_row())
        record = asyncio.run(RecordRepository(pool).get("vid_001"))

        assert record.drive_id == "vid_001"
        assert record.description == {"titulo": "Atardecer"}
        assert record.token_usage.total_tokens == 850

    def test_get_missing_returns_none(self):
        pool, _ = _make_pool(fetchone=None)
        assert asyncio.run(RecordRepository(pool).get("nope")) is None

    def test_put_is_upsert_with_json_params(self):
        pool, conn = _make_pool(fetchone=_row())
        usage = TokenUsage(prompt_tokens=800, candidates_tokens=50, total_tokens=850)

        asyncio.run(RecordRepository(pool).put("vid_001", {"titulo": "Atardecer"}, usage))

        params = conn.execute.call_args.args[1]
        assert params["drive_id"] == "vid_001"
        assert isinstance(params["description"], Json)
        assert params["description"].obj == {"titulo": "Atardecer"}
        assert params["token_usage"].obj["total_tokens"] == 850

    def test_put_without_usage(self):
        pool, conn = _make_pool(fetchone=_row(token_usage=None))

        record = asyncio.run(RecordRepository(pool).put("vid_001", {"a": 1}))

        assert conn.execute.call_args.args[1]["token_usage"] is None
        assert record.token_usage is None

    def test_update_missing_returns_none(self):
        pool, _ = _make_pool(fetchone=None)
        assert asyncio.run(RecordRepository(pool).update_description("nope", {})) is None

    def test_delete_reports_rowcount(self):
        pool, _ = _make_pool(rowcount=1)
        assert asyncio.run(RecordRepository(pool).delete("vid_001")) is True

        pool, _ = _make_pool(rowcount=0)
        assert asyncio.run(RecordRepository(pool).delete("vid_001")) is False

    def test_list_all(self):
        pool, conn = _make_pool(fetchall=[_row("a"), _row("b")])

        records = asyncio.run(RecordRepository(pool).list_all(limit=2))

        assert [r.drive_id for r in records] == ["a", "b"]
        assert conn.execute.call_args.args[1] == (2,)

    def test_count_reads_named_column(self):
        pool, conn = _make_pool(fetchone={"total": 42})

        assert asyncio.run(RecordRepository(pool).count()) == 42
        assert conn.row_factory is dict_row

    def test_count_after_dict_row_connection_reuse(self):
        pool, conn = _make_pool(fetchone=_row())
        repo = RecordRepository(pool)
        asyncio.run(repo.get("vid_001"))

        conn.execute.return_value.fetchone = AsyncMock(return_value={"total": 3})

        assert asyncio.run(repo.count()) == 3

    def test_count_empty_result(self):
        pool, _ = _make_pool(fetchone=None)
        assert asyncio.run(RecordRepository(pool).count()) == 0

    def test_driver_errors_wrapped(self):
        pool, _ = _make_pool(error=OSError("connection refused"))

        with pytest.raises(RepositoryError) as exc_info:
            asyncio.run(RecordRepository(pool).get("vid_001"))

        assert exc_info.value.operation == "record lookup"
        assert "connection refused" in str(exc_info.value)
