# ============================================================================
# RETRY POLICY TESTS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Tests - Retry eligibility, backoff and classification
# PURPOSE: Verify RetryPolicy decisions in isolation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Retry Policy Tests

Covers:
1. Retry budget (max_retries beyond the first try)
2. Exponential backoff with cap and optional jitter
3. Error classification: explicit classes, quota/auth patterns,
   HTTP status codes, transport errors, transient patterns, fallback
4. RetryPolicy.from_defaults wiring

Run with:
    pytest tests/test_retry.py -v
"""

import asyncio

import httpx
import pytest

from core.config import RetryDefaults
from core.contracts import FailureClass
from core.errors import (
    ArtifactNotFoundError,
    ArtifactTooLargeError,
    FatalError,
    RepositoryError,
    RetryableError,
    StageTimeoutError,
)
from orchestrator.retry import RetryPolicy


def _http_error(status: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://example.test/files/abc")
    response = httpx.Response(status, request=request)
    return httpx.HTTPStatusError(f"HTTP {status}", request=request, response=response)


class _ApiError(Exception):
    """Stand-in for SDK errors that carry a numeric code."""

    def __init__(self, message: str, code: int):
        self.code = code
        super().__init__(message)


# ============================================================================
# BUDGET
# ============================================================================

class TestRetryBudget:

    def test_default_allows_three_attempts(self):
        policy = RetryPolicy()
        assert policy.max_retries == 2
        assert policy.max_attempts == 3

    def test_should_retry_until_budget_used(self):
        policy = RetryPolicy(max_retries=2)
        assert policy.should_retry(0)
        assert policy.should_retry(1)
        assert not policy.should_retry(2)

    def test_zero_retries_never_retries(self):
        policy = RetryPolicy(max_retries=0)
        assert policy.max_attempts == 1
        assert not policy.should_retry(0)

    def test_negative_retries_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(max_retries=-1)

    def test_negative_base_delay_rejected(self):
        with pytest.raises(ValueError):
            RetryPolicy(base_delay_seconds=-0.5)

    def test_from_defaults(self):
        policy = RetryPolicy.from_defaults(
            RetryDefaults(max_retries=4, base_delay_seconds=0.5, max_delay_seconds=8.0)
        )
        assert policy.max_retries == 4
        assert policy.base_delay_seconds == 0.5
        assert policy.max_delay_seconds == 8.0


# ============================================================================
# BACKOFF
# ============================================================================

class TestBackoff:

    def test_doubles_per_attempt(self):
        policy = RetryPolicy(base_delay_seconds=2.0, max_delay_seconds=1000.0)
        assert [policy.delay(a) for a in range(4)] == [2.0, 4.0, 8.0, 16.0]

    def test_capped_at_max_delay(self):
        policy = RetryPolicy(base_delay_seconds=2.0, max_delay_seconds=5.0)
        assert policy.delay(10) == 5.0

    def test_negative_attempt_treated_as_first(self):
        policy = RetryPolicy(base_delay_seconds=1.5)
        assert policy.delay(-3) == 1.5

    def test_jitter_stays_within_ratio(self):
        policy = RetryPolicy(base_delay_seconds=1.0, max_delay_seconds=100.0, jitter_ratio=0.5)
        for _ in range(50):
            d = policy.delay(2)
            assert 4.0 <= d <= 6.0

    def test_no_jitter_is_deterministic(self):
        policy = RetryPolicy(base_delay_seconds=0.25)
        assert policy.delay(1) == policy.delay(1) == 0.5


# ============================================================================
# CLASSIFICATION
# ============================================================================

class TestClassification:

    @pytest.fixture
    def policy(self):
        return RetryPolicy()

    def test_explicit_retryable(self, policy):
        assert policy.classify(RetryableError("anything")) == FailureClass.RETRYABLE

    def test_explicit_fatal_wins_over_transient_text(self, policy):
        result = policy.explain(FatalError("service unavailable"))
        assert result.failure_class == FailureClass.FATAL
        assert result.rule == "explicit"

    def test_stage_timeout_is_retryable(self, policy):
        assert policy.classify(StageTimeoutError("fetch", 60)) == FailureClass.RETRYABLE

    def test_repository_error_is_retryable(self, policy):
        assert policy.classify(RepositoryError("connection refused", operation="put")) == FailureClass.RETRYABLE

    def test_too_large_and_not_found_are_fatal(self, policy):
        assert policy.classify(ArtifactTooLargeError(30, 20)) == FailureClass.FATAL
        assert policy.classify(ArtifactNotFoundError("gone")) == FailureClass.FATAL

    @pytest.mark.parametrize("message", [
        "429 Quota exceeded for quota metric 'GenerateContent'",
        "RESOURCE_EXHAUSTED: Resource has been exhausted",
        "Billing account disabled",
    ])
    def test_quota_and_billing_fatal(self, policy, message):
        result = policy.explain(Exception(message))
        assert result.failure_class == FailureClass.FATAL
        assert result.rule == "billing_or_quota"

    def test_quota_pattern_beats_status_code(self, policy):
        result = policy.explain(_ApiError("Quota exceeded", code=429))
        assert result.failure_class == FailureClass.FATAL

    @pytest.mark.parametrize("message", [
        "API key not valid. Please pass a valid API key.",
        "403 Forbidden",
        "PERMISSION_DENIED: caller does not have permission",
    ])
    def test_auth_fatal(self, policy, message):
        result = policy.explain(Exception(message))
        assert result.failure_class == FailureClass.FATAL
        assert result.rule == "access_or_auth"

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable_status_codes(self, policy, status):
        assert policy.classify(_http_error(status)) == FailureClass.RETRYABLE

    @pytest.mark.parametrize("status", [400, 404, 410, 422])
    def test_client_status_codes_fatal(self, policy, status):
        assert policy.classify(_http_error(status)) == FailureClass.FATAL

    def test_code_attribute_read(self, policy):
        result = policy.explain(_ApiError("boom", code=503))
        assert result.failure_class == FailureClass.RETRYABLE
        assert result.rule == "status_code"
        assert result.matched == "503"

    def test_transport_errors_retryable(self, policy):
        request = httpx.Request("GET", "https://example.test")
        assert policy.classify(httpx.ConnectError("refused", request=request)) == FailureClass.RETRYABLE
        assert policy.classify(ConnectionResetError()) == FailureClass.RETRYABLE
        assert policy.classify(asyncio.TimeoutError()) == FailureClass.RETRYABLE

    @pytest.mark.parametrize("message", [
        "503 The model is overloaded. Please try again later.",
        "Deadline Exceeded",
        "Service Unavailable",
    ])
    def test_transient_patterns_retryable(self, policy, message):
        assert policy.classify(RuntimeError(message)) == FailureClass.RETRYABLE

    def test_unknown_error_fatal(self, policy):
        result = policy.explain(KeyError("description"))
        assert result.failure_class == FailureClass.FATAL
        assert result.rule == "fallback_non_retryable"
        assert not result.retryable
