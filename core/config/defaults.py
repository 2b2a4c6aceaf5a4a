# ============================================================================
# CONFIGURATION DEFAULTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Default configuration values
# PURPOSE: Centralized defaults for scheduling, retries, pipeline, cleanup
# CREATED: 19 OCT 2026
# ============================================================================
"""
Configuration Defaults

Provides sensible defaults for the job engine.
These can be overridden via environment variables.

Design:
- Immutable dataclasses for defaults
- Environment variable overrides
- Type-safe access
"""

import os
import tempfile
from dataclasses import dataclass, field
from typing import Optional, Tuple

MIB = 1024 * 1024


@dataclass(frozen=True)
class SchedulerDefaults:
    """
    Defaults for admission and scheduling.

    max_concurrent is the only parallelism control: it bounds how many
    pipeline runs may have outstanding external calls at once.
    """
    max_concurrent: int = 2
    tick_interval_seconds: float = 2.0  # Safety-net tick; dispatch is event driven
    submission_timeout_seconds: float = 600.0  # Caller-facing absolute deadline

    @classmethod
    def from_env(cls) -> "SchedulerDefaults":
        """Create from environment variables."""
        return cls(
            max_concurrent=int(os.getenv("MAX_CONCURRENT_JOBS", 2)),
            tick_interval_seconds=float(os.getenv("SCHEDULER_TICK_SECONDS", 2.0)),
            submission_timeout_seconds=float(os.getenv("SUBMISSION_TIMEOUT_SECONDS", 600.0)),
        )


@dataclass(frozen=True)
class RetryDefaults:
    """
    Defaults for retry decisions.

    max_retries counts retries beyond the first try (3 attempts total).
    """
    max_retries: int = 2
    base_delay_seconds: float = 2.0
    max_delay_seconds: float = 60.0
    jitter_ratio: float = 0.0

    @classmethod
    def from_env(cls) -> "RetryDefaults":
        """Create from environment variables."""
        return cls(
            max_retries=int(os.getenv("MAX_RETRIES", 2)),
            base_delay_seconds=float(os.getenv("RETRY_BASE_DELAY_SECONDS", 2.0)),
            max_delay_seconds=float(os.getenv("RETRY_MAX_DELAY_SECONDS", 60.0)),
            jitter_ratio=float(os.getenv("RETRY_JITTER_RATIO", 0.0)),
        )


@dataclass(frozen=True)
class InferenceTier:
    """One inference capability option and the largest payload it accepts."""
    model: str
    max_bytes: int

    def accepts(self, size_bytes: int) -> bool:
        return size_bytes <= self.max_bytes


# Cheapest first; the pipeline falls through in this order.
DEFAULT_TIERS: Tuple[InferenceTier, ...] = (
    InferenceTier(model="gemini-2.0-flash-lite", max_bytes=10 * MIB),
    InferenceTier(model="gemini-2.0-flash", max_bytes=20 * MIB),
    InferenceTier(model="gemini-2.5-flash", max_bytes=20 * MIB),
)


def parse_tiers(raw: Optional[str]) -> Tuple[InferenceTier, ...]:
    """
    Parse INFERENCE_TIERS ("model:max_mb,model:max_mb").

    Returns DEFAULT_TIERS when unset or empty.

    Raises:
        ValueError: If an entry is malformed
    """
    if not raw or not raw.strip():
        return DEFAULT_TIERS

    tiers = []
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry:
            continue
        model, sep, max_mb = entry.rpartition(":")
        if not sep or not model:
            raise ValueError(f"Invalid inference tier '{entry}', expected model:max_mb")
        tiers.append(InferenceTier(model=model.strip(), max_bytes=int(float(max_mb) * MIB)))

    if not tiers:
        return DEFAULT_TIERS
    return tuple(tiers)


@dataclass(frozen=True)
class PipelineDefaults:
    """
    Defaults for the three-stage pipeline.

    Each stage is raced against its own deadline; the whole run is
    raced against pipeline_timeout_seconds.
    """
    fetch_timeout_seconds: float = 60.0
    store_timeout_seconds: float = 30.0
    pipeline_timeout_seconds: float = 300.0

    # Inference deadline by payload size class
    small_payload_bytes: int = 5 * MIB
    medium_payload_bytes: int = 15 * MIB
    small_inference_timeout_seconds: float = 60.0
    medium_inference_timeout_seconds: float = 120.0
    large_inference_timeout_seconds: float = 180.0

    tiers: Tuple[InferenceTier, ...] = field(default_factory=lambda: DEFAULT_TIERS)
    max_artifact_bytes: Optional[int] = None  # None -> largest tier ceiling
    default_mime_type: str = "video/mp4"

    @property
    def artifact_limit_bytes(self) -> int:
        """Effective fetch ceiling."""
        if self.max_artifact_bytes is not None:
            return self.max_artifact_bytes
        return max(tier.max_bytes for tier in self.tiers)

    def inference_timeout_for(self, size_bytes: int) -> float:
        """Inference deadline for a payload size class."""
        if size_bytes <= self.small_payload_bytes:
            return self.small_inference_timeout_seconds
        elif size_bytes <= self.medium_payload_bytes:
            return self.medium_inference_timeout_seconds
        else:
            return self.large_inference_timeout_seconds

    def eligible_tiers(self, size_bytes: int) -> Tuple[InferenceTier, ...]:
        """Tiers that accept this payload, in configured order."""
        return tuple(tier for tier in self.tiers if tier.accepts(size_bytes))

    @classmethod
    def from_env(cls) -> "PipelineDefaults":
        """Create from environment variables."""
        max_artifact = os.getenv("MAX_ARTIFACT_BYTES")
        return cls(
            fetch_timeout_seconds=float(os.getenv("FETCH_TIMEOUT_SECONDS", 60.0)),
            store_timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", 30.0)),
            pipeline_timeout_seconds=float(os.getenv("PIPELINE_TIMEOUT_SECONDS", 300.0)),
            tiers=parse_tiers(os.getenv("INFERENCE_TIERS")),
            max_artifact_bytes=int(max_artifact) if max_artifact else None,
            default_mime_type=os.getenv("DEFAULT_MIME_TYPE", "video/mp4"),
        )


@dataclass(frozen=True)
class ReclaimerDefaults:
    """
    Defaults for temporary artifact cleanup.

    The startup sweep uses a longer threshold than the periodic sweep.
    """
    temp_dir: str = field(
        default_factory=lambda: os.path.join(tempfile.gettempdir(), "vidscribe")
    )
    sweep_interval_seconds: float = 600.0  # 10 min
    sweep_max_age_minutes: float = 15.0
    startup_sweep_max_age_minutes: float = 30.0

    @classmethod
    def from_env(cls) -> "ReclaimerDefaults":
        """Create from environment variables."""
        return cls(
            temp_dir=os.getenv(
                "TEMP_DIR", os.path.join(tempfile.gettempdir(), "vidscribe")
            ),
            sweep_interval_seconds=float(os.getenv("SWEEP_INTERVAL_SECONDS", 600.0)),
            sweep_max_age_minutes=float(os.getenv("SWEEP_MAX_AGE_MINUTES", 15.0)),
            startup_sweep_max_age_minutes=float(
                os.getenv("STARTUP_SWEEP_MAX_AGE_MINUTES", 30.0)
            ),
        )


# ============================================================================
# GLOBAL DEFAULTS INSTANCE
# ============================================================================

@dataclass
class Defaults:
    """Container for all default configurations."""
    scheduler: SchedulerDefaults = field(default_factory=SchedulerDefaults)
    retry: RetryDefaults = field(default_factory=RetryDefaults)
    pipeline: PipelineDefaults = field(default_factory=PipelineDefaults)
    reclaimer: ReclaimerDefaults = field(default_factory=ReclaimerDefaults)

    @classmethod
    def from_env(cls) -> "Defaults":
        """Create all defaults from environment variables."""
        return cls(
            scheduler=SchedulerDefaults.from_env(),
            retry=RetryDefaults.from_env(),
            pipeline=PipelineDefaults.from_env(),
            reclaimer=ReclaimerDefaults.from_env(),
        )


_defaults: Optional[Defaults] = None


def get_defaults() -> Defaults:
    """Get global defaults instance."""
    global _defaults
    if _defaults is None:
        _defaults = Defaults.from_env()
    return _defaults


def reset_defaults() -> None:
    """Reset defaults (for testing)."""
    global _defaults
    _defaults = None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "MIB",
    "SchedulerDefaults",
    "RetryDefaults",
    "InferenceTier",
    "DEFAULT_TIERS",
    "parse_tiers",
    "PipelineDefaults",
    "ReclaimerDefaults",
    "Defaults",
    "get_defaults",
    "reset_defaults",
]
