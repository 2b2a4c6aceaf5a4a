# ============================================================================
# RESOURCE RECLAIMER
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Temporary artifact ownership
# PURPOSE: Allocate, release and sweep local temporary artifacts
# CREATED: 19 OCT 2026
# ============================================================================
"""
Resource Reclaimer

Every pipeline run owns at most one temporary artifact. The path is
namespaced by a sanitized job id, a short hash of the raw id and a
nanosecond token, so a retried job never collides with its previous
attempt's file.

    with reclaimer.artifact(job_id) as path:
        await source.fetch(job_id, path, limit)
        ...
    # path is gone here, whatever happened inside the block

sweep() removes entries older than a threshold. It runs once at startup
with a long threshold and then on a fixed interval.
"""

import hashlib
import logging
import os
import re
import shutil
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_-]")
_MAX_ID_CHARS = 64


def sanitize_job_id(job_id: str) -> str:
    """File-name-safe form of an untrusted job id."""
    cleaned = _UNSAFE_CHARS.sub("_", job_id)[:_MAX_ID_CHARS]
    return cleaned or "job"


@dataclass
class SweepResult:
    """Summary of one sweep pass."""
    scanned: int = 0
    removed: int = 0
    failed: int = 0
    bytes_freed: int = 0
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scanned": self.scanned,
            "removed": self.removed,
            "failed": self.failed,
            "bytes_freed": self.bytes_freed,
            "errors": self.errors[:10],
        }


class ResourceReclaimer:
    """Owns the temporary artifact directory."""

    def __init__(self, temp_dir: str, clock: Callable[[], float] = time.time):
        self.temp_dir = os.path.abspath(temp_dir)
        self._clock = clock
        self._released = 0
        self._last_sweep: Dict[str, Any] = {}

    def ensure_dir(self) -> None:
        os.makedirs(self.temp_dir, exist_ok=True)

    # =========================================================================
    # SCOPED OWNERSHIP
    # =========================================================================

    def allocate(self, job_id: str) -> str:
        """Unique artifact path for one attempt of job_id (not created)."""
        self.ensure_dir()
        digest = hashlib.sha256(job_id.encode("utf-8")).hexdigest()[:8]
        name = f"{sanitize_job_id(job_id)}_{digest}_{time.time_ns()}.part"
        return os.path.join(self.temp_dir, name)

    def release(self, path: str) -> bool:
        """
        Delete the artifact if it exists.

        Idempotent and never raises. Returns True if a file was removed.
        """
        try:
            os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Failed to release temporary artifact {path}: {e}")
            return False

        self._released += 1
        logger.debug(f"Released temporary artifact {path}")
        return True

    @contextmanager
    def artifact(self, job_id: str) -> Iterator[str]:
        """Allocate a path and release it on every exit path."""
        path = self.allocate(job_id)
        try:
            yield path
        finally:
            self.release(path)

    # =========================================================================
    # SWEEP
    # =========================================================================

    def sweep(self, max_age_minutes: float) -> SweepResult:
        """
        Remove entries older than max_age_minutes.

        A failure on one entry is recorded and the sweep continues.
        """
        result = SweepResult()
        cutoff = self._clock() - max_age_minutes * 60

        try:
            entries = list(os.scandir(self.temp_dir))
        except FileNotFoundError:
            return result
        except OSError as e:
            result.failed += 1
            result.errors.append(f"{self.temp_dir}: {e}")
            logger.error(f"Sweep could not list {self.temp_dir}: {e}")
            return result

        for entry in entries:
            result.scanned += 1
            try:
                stat = entry.stat(follow_symlinks=False)
                if stat.st_mtime >= cutoff:
                    continue
                if entry.is_dir(follow_symlinks=False):
                    shutil.rmtree(entry.path)
                else:
                    os.remove(entry.path)
                result.removed += 1
                result.bytes_freed += stat.st_size
            except FileNotFoundError:
                continue
            except OSError as e:
                result.failed += 1
                result.errors.append(f"{entry.name}: {e}")
                logger.warning(f"Sweep failed to remove {entry.path}: {e}")

        if result.removed or result.failed:
            logger.info(
                f"Swept {self.temp_dir}: removed={result.removed}, "
                f"failed={result.failed}, freed={result.bytes_freed} bytes "
                f"(max_age={max_age_minutes:g}m)"
            )

        self._last_sweep = {"at": self._clock(), "max_age_minutes": max_age_minutes, **result.to_dict()}
        return result

    # =========================================================================
    # OBSERVABILITY
    # =========================================================================

    def entry_count(self) -> int:
        try:
            with os.scandir(self.temp_dir) as it:
                return sum(1 for _ in it)
        except FileNotFoundError:
            return 0

    @property
    def stats(self) -> Dict[str, Any]:
        return {
            "temp_dir": self.temp_dir,
            "released": self._released,
            "last_sweep": self._last_sweep or None,
        }


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["sanitize_job_id", "SweepResult", "ResourceReclaimer"]
