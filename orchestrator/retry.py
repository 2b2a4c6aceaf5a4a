# ============================================================================
# RETRY POLICY
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Core - Retry eligibility and backoff
# PURPOSE: Classify errors as retryable/fatal and compute backoff delays
# CREATED: 19 OCT 2026
# ============================================================================
"""
Retry Policy

Pure decision functions consulted by the admission queue and the pipeline
executor. No state beyond configuration.

Classification order (first match wins):
    1. Explicit class on PipelineError subclasses
    2. Quota / billing / auth message patterns  -> FATAL
    3. HTTP-ish status code: 408, 429, 5xx     -> RETRYABLE, other 4xx -> FATAL
    4. TimeoutError, ConnectionError, httpx.TransportError -> RETRYABLE
    5. Transient message patterns               -> RETRYABLE
    6. Anything else                            -> FATAL

Backoff:
    delay(attempt) = min(base * 2**attempt, max_delay) * (1 + jitter)

attempt is the number of retries already used, so the first retry waits
base seconds, the second 2*base, and so on.
"""

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx

from core.config import RetryDefaults, get_defaults
from core.contracts import FailureClass
from core.errors import PipelineError

logger = logging.getLogger(__name__)


_BILLING_OR_QUOTA_PATTERNS: Tuple[str, ...] = (
    "quota",
    "resource_exhausted",
    "resource has been exhausted",
    "billing",
    "insufficient credits",
    "usage limit",
)
_ACCESS_OR_AUTH_PATTERNS: Tuple[str, ...] = (
    "unauthorized",
    "forbidden",
    "permission denied",
    "permission_denied",
    "api key not valid",
    "invalid api key",
    "unauthenticated",
)
_TRANSIENT_PATTERNS: Tuple[str, ...] = (
    "unavailable",
    "overloaded",
    "connection reset",
    "connection aborted",
    "temporarily",
    "try again",
    "please retry",
    "deadline exceeded",
    "internal error",
    "too many requests",
)

_RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


@dataclass(frozen=True)
class Classification:
    """Result of classifying one error."""

    failure_class: FailureClass
    rule: str
    matched: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.failure_class == FailureClass.RETRYABLE


class RetryPolicy:
    """
    Decides retry-eligibility and backoff delay.

    max_retries is the number of retries beyond the first try;
    max_attempts = max_retries + 1.
    """

    def __init__(
        self,
        max_retries: int = 2,
        base_delay_seconds: float = 2.0,
        max_delay_seconds: float = 60.0,
        jitter_ratio: float = 0.0,
    ):
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")
        if base_delay_seconds < 0:
            raise ValueError(f"base_delay_seconds must be >= 0, got {base_delay_seconds}")

        self.max_retries = max_retries
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.jitter_ratio = jitter_ratio

    @classmethod
    def from_defaults(cls, defaults: Optional[RetryDefaults] = None) -> "RetryPolicy":
        """Build from RetryDefaults (environment-backed by default)."""
        defaults = defaults or get_defaults().retry
        return cls(
            max_retries=defaults.max_retries,
            base_delay_seconds=defaults.base_delay_seconds,
            max_delay_seconds=defaults.max_delay_seconds,
            jitter_ratio=defaults.jitter_ratio,
        )

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def should_retry(self, retries_used: int) -> bool:
        """True while the retry budget has room for another attempt."""
        return retries_used < self.max_retries

    def delay(self, attempt: int) -> float:
        """Backoff in seconds before retry number attempt+1."""
        raw = self.base_delay_seconds * (2 ** max(attempt, 0))
        capped = min(raw, self.max_delay_seconds)
        if self.jitter_ratio > 0:
            capped *= 1 + random.uniform(0, self.jitter_ratio)
        return capped

    # =========================================================================
    # CLASSIFICATION
    # =========================================================================

    def classify(self, error: BaseException) -> FailureClass:
        """Classify an error as RETRYABLE or FATAL."""
        return self.explain(error).failure_class

    def explain(self, error: BaseException) -> Classification:
        """Classify and report which rule matched."""
        if isinstance(error, PipelineError) and error.failure_class is not None:
            return Classification(error.failure_class, "explicit")

        message = str(error).lower()

        pattern = _first_match(message, _BILLING_OR_QUOTA_PATTERNS)
        if pattern is not None:
            return Classification(FailureClass.FATAL, "billing_or_quota", pattern)

        pattern = _first_match(message, _ACCESS_OR_AUTH_PATTERNS)
        if pattern is not None:
            return Classification(FailureClass.FATAL, "access_or_auth", pattern)

        status = _status_code(error)
        if status is not None:
            if status in _RETRYABLE_STATUS_CODES or status >= 500:
                return Classification(FailureClass.RETRYABLE, "status_code", str(status))
            if 400 <= status < 500:
                return Classification(FailureClass.FATAL, "status_code", str(status))

        if isinstance(error, (TimeoutError, asyncio.TimeoutError, ConnectionError, httpx.TransportError)):
            return Classification(FailureClass.RETRYABLE, "transport", type(error).__name__)

        pattern = _first_match(message, _TRANSIENT_PATTERNS)
        if pattern is not None:
            return Classification(FailureClass.RETRYABLE, "transient", pattern)

        return Classification(FailureClass.FATAL, "fallback_non_retryable")


def _status_code(error: BaseException) -> Optional[int]:
    """Best-effort HTTP status from library exceptions."""
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code

    for attr in ("status_code", "code"):
        value = getattr(error, attr, None)
        if isinstance(value, int) and 100 <= value < 600:
            return value

    response = getattr(error, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def _first_match(haystack: str, patterns: Tuple[str, ...]) -> Optional[str]:
    for pattern in patterns:
        if pattern in haystack:
            return pattern
    return None


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = ["RetryPolicy", "Classification"]
