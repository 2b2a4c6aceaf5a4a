# ============================================================================
# API ROUTES TESTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tests - HTTP surface for jobs and records
# PURPOSE: Verify request validation and result -> status code mapping
# CREATED: 19 OCT 2026
# ============================================================================
"""
API Routes Tests

Tests api/routes.py with mocked services via FastAPI TestClient.

Covers:
1. POST /jobs: success, cached, legacy videoId alias, invalid ids
2. Delivered status -> HTTP code (409, 502, 503, 504)
3. GET/PUT/DELETE /records/{job_id} with 404 handling
4. GET /records listing, table-wide total and limit bounds
5. GET /scheduler/status passthrough
6. Uninitialized services -> 500

Run with:
    pytest tests/test_routes.py -v
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import router, set_services
from core.contracts import DeliveryStatus
from core.errors import DuplicateJobError
from core.models import JobRecord, JobResult, TokenUsage
from services.record_service import RecordNotFoundError


# ============================================================================
# FIXTURES
# ============================================================================

def _make_test_app(job_service=None, record_service=None):
    """Create a test FastAPI app with routes and mocked services."""
    app = FastAPI()
    app.include_router(router, prefix="/api/v1")
    set_services(job_service or MagicMock(), record_service or AsyncMock())
    return app


def _make_record(job_id="vid_001", description=None):
    return JobRecord(
        drive_id=job_id,
        description=description or {"titulo": "Atardecer"},
        token_usage=TokenUsage(prompt_tokens=800, candidates_tokens=50, total_tokens=850),
    )


def _job_service(result=None, error=None):
    svc = MagicMock()
    svc.process = AsyncMock(return_value=result, side_effect=error)
    return svc


@pytest.fixture(autouse=True)
def _reset_services():
    yield
    set_services(None, None)


# ============================================================================
# JOBS
# ============================================================================

class TestSubmitJob:
    """Tests for POST /api/v1/jobs."""

    def test_completed(self):
        result = JobResult(
            job_id="vid_001",
            status=DeliveryStatus.COMPLETED,
            description={"titulo": "Atardecer"},
            token_usage=TokenUsage(total_tokens=850),
            attempts=2,
        )
        svc = _job_service(result)
        client = TestClient(_make_test_app(job_service=svc))

        resp = client.post("/api/v1/jobs", json={"job_id": "vid_001"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "completed"
        assert data["cached"] is False
        assert data["description"] == {"titulo": "Atardecer"}
        assert data["token_usage"]["total_tokens"] == 850
        assert data["attempts"] == 2
        svc.process.assert_awaited_once_with("vid_001")

    def test_cached(self):
        result = JobResult(
            job_id="vid_001", status=DeliveryStatus.COMPLETED, cached=True,
            description={"titulo": "x"}, attempts=1,
        )
        client = TestClient(_make_test_app(job_service=_job_service(result)))

        resp = client.post("/api/v1/jobs", json={"job_id": "vid_001"})
        assert resp.json()["cached"] is True

    def test_legacy_video_id_alias(self):
        result = JobResult(job_id="abc", status=DeliveryStatus.COMPLETED, description={}, attempts=1)
        svc = _job_service(result)
        client = TestClient(_make_test_app(job_service=svc))

        resp = client.post("/api/v1/jobs", json={"videoId": "abc"})

        assert resp.status_code == 200
        svc.process.assert_awaited_once_with("abc")

    @pytest.mark.parametrize("body", [
        {},
        {"job_id": ""},
        {"job_id": "../etc/passwd"},
        {"job_id": "a" * 129},
        {"job_id": "has space"},
    ])
    def test_invalid_job_id_rejected(self, body):
        svc = _job_service()
        client = TestClient(_make_test_app(job_service=svc))

        resp = client.post("/api/v1/jobs", json=body)

        assert resp.status_code == 422
        svc.process.assert_not_awaited()

    def test_duplicate_is_409(self):
        svc = _job_service(error=DuplicateJobError("vid_001"))
        client = TestClient(_make_test_app(job_service=svc))

        resp = client.post("/api/v1/jobs", json={"job_id": "vid_001"})

        assert resp.status_code == 409
        data = resp.json()
        assert data["error"] == "duplicate"
        assert data["job_id"] == "vid_001"

    @pytest.mark.parametrize("status,code", [
        (DeliveryStatus.FAILED, 502),
        (DeliveryStatus.TIMED_OUT, 504),
        (DeliveryStatus.CANCELLED, 503),
    ])
    def test_failure_status_mapping(self, status, code):
        result = JobResult(
            job_id="vid_001", status=status, error="boom", attempts=3, stage="infer",
        )
        client = TestClient(_make_test_app(job_service=_job_service(result)))

        resp = client.post("/api/v1/jobs", json={"job_id": "vid_001"})

        assert resp.status_code == code
        data = resp.json()
        assert data["error"] == status.value
        assert data["detail"] == "boom"
        assert data["attempts"] == 3
        assert data["stage"] == "infer"

    def test_failure_without_stage_omits_field(self):
        result = JobResult.timed_out("vid_001", error="Submission deadline exceeded", attempts=1)
        client = TestClient(_make_test_app(job_service=_job_service(result)))

        data = client.post("/api/v1/jobs", json={"job_id": "vid_001"}).json()
        assert "stage" not in data


# ============================================================================
# RECORDS
# ============================================================================

class TestRecords:
    """Tests for /api/v1/records."""

    def test_list(self):
        records_svc = AsyncMock()
        records_svc.list_records = AsyncMock(return_value=[_make_record("a"), _make_record("b")])
        records_svc.count_records = AsyncMock(return_value=7)
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.get("/api/v1/records?limit=2")

        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 7
        assert [r["drive_id"] for r in data["records"]] == ["a", "b"]
        records_svc.list_records.assert_awaited_once_with(limit=2)

    @pytest.mark.parametrize("limit", [0, 5001])
    def test_list_limit_bounds(self, limit):
        client = TestClient(_make_test_app())
        assert client.get(f"/api/v1/records?limit={limit}").status_code == 422

    def test_get(self):
        records_svc = AsyncMock()
        records_svc.get_record = AsyncMock(return_value=_make_record())
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.get("/api/v1/records/vid_001")

        assert resp.status_code == 200
        assert resp.json()["description"] == {"titulo": "Atardecer"}
        assert resp.json()["token_usage"]["total_tokens"] == 850

    def test_get_missing_is_404(self):
        records_svc = AsyncMock()
        records_svc.get_record = AsyncMock(side_effect=RecordNotFoundError("nope"))
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.get("/api/v1/records/nope")

        assert resp.status_code == 404
        assert "nope" in resp.json()["detail"]

    def test_invalid_path_id_is_422(self):
        records_svc = AsyncMock()
        client = TestClient(_make_test_app(record_service=records_svc))

        assert client.get("/api/v1/records/bad.id").status_code == 422
        records_svc.get_record.assert_not_awaited()

    def test_update(self):
        records_svc = AsyncMock()
        records_svc.update_description = AsyncMock(
            return_value=_make_record(description={"titulo": "Editado"})
        )
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.put("/api/v1/records/vid_001", json={"description": {"titulo": "Editado"}})

        assert resp.status_code == 200
        assert resp.json()["description"] == {"titulo": "Editado"}
        records_svc.update_description.assert_awaited_once_with("vid_001", {"titulo": "Editado"})

    def test_update_requires_object(self):
        client = TestClient(_make_test_app())
        resp = client.put("/api/v1/records/vid_001", json={"description": "plain text"})
        assert resp.status_code == 422

    def test_update_missing_is_404(self):
        records_svc = AsyncMock()
        records_svc.update_description = AsyncMock(side_effect=RecordNotFoundError("vid_001"))
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.put("/api/v1/records/vid_001", json={"description": {}})
        assert resp.status_code == 404

    def test_delete(self):
        records_svc = AsyncMock()
        records_svc.delete_record = AsyncMock(return_value=None)
        client = TestClient(_make_test_app(record_service=records_svc))

        resp = client.delete("/api/v1/records/vid_001")

        assert resp.status_code == 204
        assert resp.content == b""

    def test_delete_missing_is_404(self):
        records_svc = AsyncMock()
        records_svc.delete_record = AsyncMock(side_effect=RecordNotFoundError("vid_001"))
        client = TestClient(_make_test_app(record_service=records_svc))

        assert client.delete("/api/v1/records/vid_001").status_code == 404


# ============================================================================
# SCHEDULER STATUS + WIRING
# ============================================================================

class TestSchedulerStatus:

    def test_status_passthrough(self):
        svc = MagicMock()
        svc.status.return_value = {
            "queue_length": 3,
            "backing_off": 1,
            "in_flight_ids": ["a", "b"],
            "in_flight_count": 2,
            "max_concurrent": 2,
            "retry_attempts": {"c": 1},
            "scheduler": {"dispatched": 7},
        }
        client = TestClient(_make_test_app(job_service=svc))

        data = client.get("/api/v1/scheduler/status").json()

        assert data["queue_length"] == 3
        assert data["in_flight_ids"] == ["a", "b"]
        assert data["retry_attempts"] == {"c": 1}
        assert data["scheduler"]["dispatched"] == 7


class TestWiring:

    def test_uninitialized_services_500(self):
        app = FastAPI()
        app.include_router(router, prefix="/api/v1")
        set_services(None, None)
        client = TestClient(app)

        assert client.post("/api/v1/jobs", json={"job_id": "a"}).status_code == 500
        assert client.get("/api/v1/records/a").status_code == 500
