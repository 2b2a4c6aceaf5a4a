# ============================================================================
# DRIVE ARTIFACT SOURCE TESTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tests - Retrieval collaborator
# PURPOSE: Verify size ceilings and Drive error mapping over a mock transport
# CREATED: 19 OCT 2026
# ============================================================================
"""
Drive Artifact Source Tests

Uses httpx.MockTransport, so no network or credentials are needed.

Covers:
1. Metadata + media download to the destination path, disk I/O in threads
2. Declared size over the ceiling rejected before the transfer
3. Undeclared size aborted mid-transfer past the ceiling
4. Status mapping: 404 not found, 403 rate limit vs permission,
   429/5xx retryable, other 4xx fatal
5. Bearer token forwarded; unconfigured source refuses to fetch

Run with:
    pytest tests/test_drive.py -v
"""

import asyncio
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from core.contracts import FailureClass
from core.errors import (
    ArtifactNotFoundError,
    ArtifactTooLargeError,
    CollaboratorNotConfiguredError,
    FatalError,
    RetryableError,
)
from infrastructure.drive import DriveArtifactSource
from orchestrator.retry import RetryPolicy


# ============================================================================
# FIXTURES
# ============================================================================

class DriveStub:
    """Scripted Drive v3 endpoint."""

    def __init__(
        self,
        content: bytes = b"video-bytes",
        metadata: Optional[Dict] = None,
        metadata_status: int = 200,
        media_status: int = 200,
        error_body: Optional[Dict] = None,
    ):
        self.content = content
        self.metadata = metadata if metadata is not None else {
            "name": "clip.mp4",
            "mimeType": "video/mp4",
            "size": str(len(content)),
        }
        self.metadata_status = metadata_status
        self.media_status = media_status
        self.error_body = error_body or {"error": {"message": "nope", "errors": []}}
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.params.get("alt") == "media":
            if self.media_status >= 400:
                return httpx.Response(self.media_status, json=self.error_body)
            return httpx.Response(200, content=self.content)
        if self.metadata_status >= 400:
            return httpx.Response(self.metadata_status, json=self.error_body)
        return httpx.Response(200, json=self.metadata)


def _make_source(stub: Callable) -> DriveArtifactSource:
    async def token() -> str:
        return "test-token"

    client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    return DriveArtifactSource(client=client, token_provider=token, base_url="https://drive.test/v3")


def _fetch(source: DriveArtifactSource, dest: str, max_bytes: int = 1024):
    async def scenario():
        try:
            return await source.fetch("file123", dest, max_bytes)
        finally:
            await source._client.aclose()

    return asyncio.run(scenario())


def _rate_limited() -> Dict:
    return {"error": {"message": "Rate limit", "errors": [{"reason": "userRateLimitExceeded"}]}}


# ============================================================================
# DOWNLOAD
# ============================================================================

class TestDownload:

    def test_downloads_to_destination(self, tmp_path):
        stub = DriveStub(content=b"abc" * 100)
        dest = tmp_path / "a.part"

        metadata = _fetch(_make_source(stub), str(dest))

        assert dest.read_bytes() == b"abc" * 100
        assert metadata.name == "clip.mp4"
        assert metadata.mime_type == "video/mp4"
        assert metadata.size_bytes == 300

    def test_disk_writes_run_off_loop(self, tmp_path, monkeypatch):
        offloaded = []
        real_to_thread = asyncio.to_thread

        async def recording_to_thread(func, *args, **kwargs):
            offloaded.append(getattr(func, "__name__", repr(func)))
            return await real_to_thread(func, *args, **kwargs)

        monkeypatch.setattr(asyncio, "to_thread", recording_to_thread)
        dest = tmp_path / "a.part"

        _fetch(_make_source(DriveStub(content=b"abc" * 100)), str(dest))

        assert offloaded[0] == "open"
        assert "write" in offloaded
        assert offloaded[-1] == "close"
        assert dest.read_bytes() == b"abc" * 100

    def test_requests_metadata_then_media(self, tmp_path):
        stub = DriveStub()
        _fetch(_make_source(stub), str(tmp_path / "a.part"))

        first, second = stub.requests
        assert first.url.path == "/v3/files/file123"
        assert first.url.params["fields"] == "name,mimeType,size"
        assert second.url.params["alt"] == "media"
        assert first.headers["Authorization"] == "Bearer test-token"

    def test_job_id_is_path_escaped(self, tmp_path):
        stub = DriveStub()
        source = _make_source(stub)

        async def scenario():
            try:
                await source.fetch("a/../b", str(tmp_path / "x.part"), 1024)
            finally:
                await source._client.aclose()

        asyncio.run(scenario())
        assert stub.requests[0].url.raw_path.startswith(b"/v3/files/a%2F..%2Fb")

    def test_missing_name_gets_fallback(self, tmp_path):
        stub = DriveStub(metadata={"size": "3"}, content=b"abc")
        metadata = _fetch(_make_source(stub), str(tmp_path / "a.part"))
        assert metadata.name == "video_file123"
        assert metadata.mime_type is None


# ============================================================================
# SIZE CEILING
# ============================================================================

class TestSizeCeiling:

    def test_declared_size_rejected_before_transfer(self, tmp_path):
        stub = DriveStub(content=b"x" * 2048)

        with pytest.raises(ArtifactTooLargeError) as exc_info:
            _fetch(_make_source(stub), str(tmp_path / "a.part"), max_bytes=1024)

        assert exc_info.value.size_bytes == 2048
        assert len(stub.requests) == 1

    def test_undeclared_size_aborted_mid_transfer(self, tmp_path):
        stub = DriveStub(content=b"x" * 4096, metadata={"name": "clip.mp4"})

        with pytest.raises(ArtifactTooLargeError):
            _fetch(_make_source(stub), str(tmp_path / "a.part"), max_bytes=1024)

        assert len(stub.requests) == 2

    def test_exact_limit_accepted(self, tmp_path):
        stub = DriveStub(content=b"x" * 1024)
        metadata = _fetch(_make_source(stub), str(tmp_path / "a.part"), max_bytes=1024)
        assert metadata.size_bytes == 1024


# ============================================================================
# ERROR MAPPING
# ============================================================================

class TestErrorMapping:

    def test_not_found(self, tmp_path):
        with pytest.raises(ArtifactNotFoundError):
            _fetch(_make_source(DriveStub(metadata_status=404)), str(tmp_path / "a.part"))

    def test_permission_denied_is_fatal(self, tmp_path):
        with pytest.raises(FatalError, match="Permission denied"):
            _fetch(_make_source(DriveStub(metadata_status=403)), str(tmp_path / "a.part"))

    def test_rate_limited_403_is_retryable(self, tmp_path):
        stub = DriveStub(metadata_status=403, error_body=_rate_limited())
        with pytest.raises(RetryableError):
            _fetch(_make_source(stub), str(tmp_path / "a.part"))

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient_statuses_retryable(self, tmp_path, status):
        with pytest.raises(RetryableError):
            _fetch(_make_source(DriveStub(metadata_status=status)), str(tmp_path / "a.part"))

    def test_bad_request_fatal(self, tmp_path):
        with pytest.raises(FatalError) as exc_info:
            _fetch(_make_source(DriveStub(metadata_status=400)), str(tmp_path / "a.part"))
        assert RetryPolicy().classify(exc_info.value) == FailureClass.FATAL

    def test_media_error_mapped(self, tmp_path):
        with pytest.raises(RetryableError):
            _fetch(_make_source(DriveStub(media_status=502)), str(tmp_path / "a.part"))

    def test_non_json_error_body(self, tmp_path):
        def stub(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="<html>oops</html>")

        with pytest.raises(RetryableError, match="oops"):
            _fetch(_make_source(stub), str(tmp_path / "a.part"))

    def test_transport_error_propagates(self, tmp_path):
        def stub(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError) as exc_info:
            _fetch(_make_source(stub), str(tmp_path / "a.part"))
        assert RetryPolicy().classify(exc_info.value) == FailureClass.RETRYABLE


# ============================================================================
# CONFIGURATION
# ============================================================================

class TestConfiguration:

    def test_unconfigured_source(self, tmp_path):
        async def scenario():
            source = DriveArtifactSource(
                client=httpx.AsyncClient(transport=httpx.MockTransport(DriveStub()))
            )
            try:
                assert not source.configured
                await source.fetch("file123", str(tmp_path / "a.part"), 1024)
            finally:
                await source._client.aclose()

        with pytest.raises(CollaboratorNotConfiguredError):
            asyncio.run(scenario())

    def test_invalid_inline_credentials(self, monkeypatch):
        from infrastructure.drive import load_service_account_credentials

        monkeypatch.setenv("GOOGLE_SERVICE_ACCOUNT", "{not json")
        with pytest.raises(ValueError, match="not valid JSON"):
            load_service_account_credentials()

    def test_no_credentials_returns_none(self, monkeypatch):
        from infrastructure.drive import load_service_account_credentials

        monkeypatch.delenv("GOOGLE_SERVICE_ACCOUNT", raising=False)
        monkeypatch.delenv("GOOGLE_APPLICATION_CREDENTIALS", raising=False)
        assert load_service_account_credentials() is None

    def test_owned_client_closed(self):
        source = DriveArtifactSource(token_provider=None)
        asyncio.run(source.close())
        assert source._client.is_closed
