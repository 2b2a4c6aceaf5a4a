# ============================================================================
# RESOURCE RECLAIMER TESTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tests - Temporary artifact ownership and sweeping
# PURPOSE: Verify path allocation, scoped release and age-based sweep
# CREATED: 19 OCT 2026
# ============================================================================
"""
Resource Reclaimer Tests

Covers:
1. Job id sanitization (path traversal, length cap, empty)
2. Unique per-attempt paths inside the temp dir
3. release() idempotent, never raises (including permission errors)
4. artifact() context releases on success and on error
5. sweep() removes only entries older than the threshold
6. sweep() keeps going past an entry it cannot remove

Run with:
    pytest tests/test_reclaimer.py -v
"""

import os
import time

import pytest

from worker.reclaimer import ResourceReclaimer, SweepResult, sanitize_job_id


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def reclaimer(tmp_path):
    return ResourceReclaimer(str(tmp_path / "scratch"))


def _touch(path: str, age_seconds: float = 0.0, size: int = 10) -> None:
    with open(path, "wb") as fh:
        fh.write(b"\x00" * size)
    stamp = time.time() - age_seconds
    os.utime(path, (stamp, stamp))


# ============================================================================
# ALLOCATION
# ============================================================================

class TestSanitize:

    def test_safe_id_unchanged(self):
        assert sanitize_job_id("1AbC-x_9") == "1AbC-x_9"

    def test_traversal_neutralized(self):
        assert sanitize_job_id("../../etc/passwd") == "______etc_passwd"

    def test_length_capped(self):
        assert len(sanitize_job_id("a" * 300)) == 64

    def test_empty_falls_back(self):
        assert sanitize_job_id("") == "job"


class TestAllocate:

    def test_path_inside_temp_dir(self, reclaimer):
        path = reclaimer.allocate("../escape")
        assert os.path.dirname(path) == reclaimer.temp_dir
        assert os.path.isdir(reclaimer.temp_dir)
        assert not os.path.exists(path)

    def test_attempts_never_collide(self, reclaimer):
        assert reclaimer.allocate("A") != reclaimer.allocate("A")

    def test_ids_differing_only_in_unsafe_chars_differ(self, reclaimer):
        a = os.path.basename(reclaimer.allocate("a/b"))
        b = os.path.basename(reclaimer.allocate("a:b"))
        assert a.split("_")[2] != b.split("_")[2]


# ============================================================================
# RELEASE
# ============================================================================

class TestRelease:

    def test_removes_file(self, reclaimer):
        path = reclaimer.allocate("A")
        _touch(path)
        assert reclaimer.release(path) is True
        assert not os.path.exists(path)
        assert reclaimer.stats["released"] == 1

    def test_missing_file_is_noop(self, reclaimer):
        assert reclaimer.release(reclaimer.allocate("A")) is False

    def test_os_error_returns_false(self, reclaimer, monkeypatch):
        path = reclaimer.allocate("A")
        _touch(path)

        def deny(_path):
            raise PermissionError(13, "Permission denied", _path)

        monkeypatch.setattr(os, "remove", deny)

        assert reclaimer.release(path) is False
        assert reclaimer.stats["released"] == 0
        assert os.path.exists(path)

    def test_context_releases_on_success(self, reclaimer):
        with reclaimer.artifact("A") as path:
            _touch(path)
        assert not os.path.exists(path)
        assert reclaimer.entry_count() == 0

    def test_context_releases_on_error(self, reclaimer):
        with pytest.raises(RuntimeError):
            with reclaimer.artifact("A") as path:
                _touch(path)
                raise RuntimeError("inference blew up")
        assert not os.path.exists(path)


# ============================================================================
# SWEEP
# ============================================================================

class TestSweep:

    def test_removes_only_old_entries(self, reclaimer):
        reclaimer.ensure_dir()
        old = os.path.join(reclaimer.temp_dir, "old.part")
        fresh = os.path.join(reclaimer.temp_dir, "fresh.part")
        _touch(old, age_seconds=3600, size=100)
        _touch(fresh)

        result = reclaimer.sweep(max_age_minutes=15)

        assert isinstance(result, SweepResult)
        assert result.scanned == 2
        assert result.removed == 1
        assert result.bytes_freed == 100
        assert not os.path.exists(old)
        assert os.path.exists(fresh)

    def test_removes_old_directories(self, reclaimer):
        reclaimer.ensure_dir()
        stale = os.path.join(reclaimer.temp_dir, "stale")
        os.makedirs(stale)
        _touch(os.path.join(stale, "inner"))
        stamp = time.time() - 7200
        os.utime(stale, (stamp, stamp))

        assert reclaimer.sweep(max_age_minutes=30).removed == 1
        assert not os.path.exists(stale)

    def test_missing_dir_is_empty_result(self, tmp_path):
        result = ResourceReclaimer(str(tmp_path / "nope")).sweep(15)
        assert result.scanned == 0
        assert result.failed == 0

    def test_injected_clock(self, tmp_path):
        now = [time.time()]
        reclaimer = ResourceReclaimer(str(tmp_path), clock=lambda: now[0])
        _touch(os.path.join(str(tmp_path), "a.part"))

        assert reclaimer.sweep(15).removed == 0
        now[0] += 16 * 60
        assert reclaimer.sweep(15).removed == 1

    def test_last_sweep_recorded(self, reclaimer):
        reclaimer.ensure_dir()
        reclaimer.sweep(30)
        last = reclaimer.stats["last_sweep"]
        assert last["max_age_minutes"] == 30
        assert last["removed"] == 0

    def test_failed_entry_does_not_stop_sweep(self, reclaimer, monkeypatch):
        reclaimer.ensure_dir()
        for name in ("a.part", "b.part", "c.part"):
            _touch(os.path.join(reclaimer.temp_dir, name), age_seconds=3600)

        real_remove = os.remove

        def flaky_remove(path):
            if os.path.basename(path) == "b.part":
                raise PermissionError(13, "Permission denied", path)
            real_remove(path)

        monkeypatch.setattr(os, "remove", flaky_remove)

        result = reclaimer.sweep(max_age_minutes=15)

        assert result.scanned == 3
        assert result.removed == 2
        assert result.failed == 1
        assert result.errors[0].startswith("b.part")
        assert sorted(os.listdir(reclaimer.temp_dir)) == ["b.part"]
