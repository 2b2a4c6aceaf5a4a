# ============================================================================
# GOOGLE DRIVE ARTIFACT SOURCE
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - Retrieval collaborator
# PURPOSE: Download a Drive file to a local temporary path, size-bounded
# CREATED: 19 OCT 2026
# ============================================================================
"""
Google Drive Artifact Source

Uses the Drive v3 REST API over httpx with a service-account token from
google-auth.

    1. GET files/{id}?fields=name,mimeType,size   (reject oversized early)
    2. GET files/{id}?alt=media                  (stream to disk, abort past limit)

Error mapping:
    404                          -> ArtifactNotFoundError (fatal)
    403 with a rate-limit reason -> RetryableError
    401 / 403                    -> FatalError (permission)
    408 / 429 / 5xx              -> RetryableError
    other 4xx                    -> FatalError
    httpx.TransportError         -> propagates (retry policy: retryable)

Environment:
    GOOGLE_SERVICE_ACCOUNT  Service account key as JSON (inline)
    GOOGLE_APPLICATION_CREDENTIALS  Path to a key file (fallback)
"""

import asyncio
import json
import logging
import os
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import quote

import httpx
from google.auth.transport.requests import Request as GoogleAuthRequest
from google.oauth2 import service_account

from core.errors import (
    ArtifactNotFoundError,
    ArtifactTooLargeError,
    CollaboratorNotConfiguredError,
    FatalError,
    RetryableError,
)
from worker.contracts import ArtifactMetadata, ArtifactSource

logger = logging.getLogger(__name__)

DRIVE_API_URL = "https://www.googleapis.com/drive/v3"
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
CHUNK_SIZE = 1024 * 1024

_RATE_LIMIT_REASONS = ("rateLimitExceeded", "userRateLimitExceeded", "backendError")


def load_service_account_credentials() -> Optional[service_account.Credentials]:
    """
    Load service account credentials from the environment.

    Returns None when nothing is configured.

    Raises:
        ValueError: If GOOGLE_SERVICE_ACCOUNT is set but not valid JSON
    """
    raw = os.environ.get("GOOGLE_SERVICE_ACCOUNT")
    if raw:
        try:
            info = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"GOOGLE_SERVICE_ACCOUNT is not valid JSON: {e}") from e
        return service_account.Credentials.from_service_account_info(info, scopes=DRIVE_SCOPES)

    path = os.environ.get("GOOGLE_APPLICATION_CREDENTIALS")
    if path and os.path.exists(path):
        return service_account.Credentials.from_service_account_file(path, scopes=DRIVE_SCOPES)

    return None


class DriveArtifactSource(ArtifactSource):
    """
    Retrieval collaborator backed by Google Drive.

    Args:
        credentials: google-auth credentials (service account)
        client: Shared httpx.AsyncClient (created if omitted)
        token_provider: Async callable returning a bearer token; overrides
            credentials (used by tests and for pre-issued tokens)
        base_url: Drive API root
    """

    def __init__(
        self,
        credentials: Optional[service_account.Credentials] = None,
        client: Optional[httpx.AsyncClient] = None,
        token_provider: Optional[Callable[[], Awaitable[str]]] = None,
        base_url: str = DRIVE_API_URL,
    ):
        self._credentials = credentials
        self._token_provider = token_provider
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, read=60.0),
            follow_redirects=True,
        )
        self._owns_client = client is None
        self._refresh_lock = asyncio.Lock()
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "DriveArtifactSource":
        """Build from GOOGLE_SERVICE_ACCOUNT / GOOGLE_APPLICATION_CREDENTIALS."""
        credentials = load_service_account_credentials()
        if credentials is None:
            logger.warning("Google Drive credentials not configured")
        return cls(credentials=credentials)

    @property
    def configured(self) -> bool:
        return self._credentials is not None or self._token_provider is not None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # AUTH
    # =========================================================================

    async def _access_token(self) -> str:
        if self._token_provider is not None:
            return await self._token_provider()

        if self._credentials is None:
            raise CollaboratorNotConfiguredError("Google Drive is not configured", stage="fetch")

        async with self._refresh_lock:
            if not self._credentials.valid:
                # google-auth refresh is blocking (requests)
                await asyncio.to_thread(self._credentials.refresh, GoogleAuthRequest())
        return self._credentials.token

    async def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {await self._access_token()}"}

    # =========================================================================
    # FETCH
    # =========================================================================

    async def fetch(self, job_id: str, dest_path: str, max_bytes: int) -> ArtifactMetadata:
        file_url = f"{self.base_url}/files/{quote(job_id, safe='')}"
        headers = await self._headers()

        response = await self._client.get(
            file_url,
            params={"fields": "name,mimeType,size", "supportsAllDrives": "true"},
            headers=headers,
        )
        self._raise_for_status(response, job_id)
        info = response.json()

        declared_size = int(info.get("size") or 0)
        if declared_size > max_bytes:
            raise ArtifactTooLargeError(declared_size, max_bytes)

        metadata = ArtifactMetadata(
            name=info.get("name") or f"video_{job_id}",
            size_bytes=declared_size,
            mime_type=info.get("mimeType"),
        )

        written = 0
        async with self._client.stream(
            "GET",
            file_url,
            params={"alt": "media", "supportsAllDrives": "true"},
            headers=headers,
        ) as media:
            if media.status_code >= 400:
                await media.aread()
                self._raise_for_status(media, job_id)

            # Disk I/O stays off the event loop
            fh = await asyncio.to_thread(open, dest_path, "wb")
            try:
                async for chunk in media.aiter_bytes(CHUNK_SIZE):
                    written += len(chunk)
                    if written > max_bytes:
                        raise ArtifactTooLargeError(written, max_bytes)
                    await asyncio.to_thread(fh.write, chunk)
            finally:
                await asyncio.to_thread(fh.close)

        logger.debug(f"Downloaded {written} bytes of '{metadata.name}' to {dest_path}")
        return ArtifactMetadata(
            name=metadata.name,
            size_bytes=written,
            mime_type=metadata.mime_type,
        )

    # =========================================================================
    # ERRORS
    # =========================================================================

    @staticmethod
    def _error_reasons(response: httpx.Response) -> str:
        try:
            body: Any = response.json()
        except ValueError:
            return response.text[:500]
        error = body.get("error", {}) if isinstance(body, dict) else {}
        reasons = [e.get("reason", "") for e in error.get("errors", []) if isinstance(e, dict)]
        return " ".join(filter(None, reasons + [str(error.get("message", ""))]))

    def _raise_for_status(self, response: httpx.Response, job_id: str) -> None:
        status = response.status_code
        if status < 400:
            return

        detail = self._error_reasons(response)
        message = f"Drive returned {status} for {job_id}: {detail}".strip()

        if status == 404:
            raise ArtifactNotFoundError(f"Drive file {job_id} not found", stage="fetch")
        if status == 403 and any(reason in detail for reason in _RATE_LIMIT_REASONS):
            raise RetryableError(message, stage="fetch")
        if status in (401, 403):
            raise FatalError(f"Permission denied by Drive for {job_id}: {detail}", stage="fetch")
        if status in (408, 429) or status >= 500:
            raise RetryableError(message, stage="fetch")
        raise FatalError(message, stage="fetch")


__all__ = ["DriveArtifactSource", "load_service_account_credentials", "DRIVE_API_URL"]
