"""Unit tests for single-feature retry policies."""

import pytest

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.services.retry import (
    DEFAULT_RETRY_POLICY,
    MAX_RETRY_DELAY_MS,
    RetryPolicy,
    policy_for,
    retry_async,
    retry_delay_ms,
)


class FakeSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class Flaky:
    """Fails with the given errors, then returns ``result``."""

    def __init__(self, errors, result="done"):
        self.errors = list(errors)
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return self.result


class TestPolicies:
    def test_feature_policies(self):
        assert policy_for("styling") == RetryPolicy(3, 1.5, 1000)
        assert policy_for("seo") == RetryPolicy(2, 2.0, 2000)
        assert policy_for("categories") == RetryPolicy(3, 1.2, 1500)

    def test_unknown_feature_uses_default(self):
        assert policy_for("translation") is DEFAULT_RETRY_POLICY

    def test_delay_grows_and_is_capped(self):
        policy = RetryPolicy(max_retries=10, backoff_multiplier=2.0, base_delay_ms=1000)

        assert retry_delay_ms(policy, 0) == 1000
        assert retry_delay_ms(policy, 1) == 2000
        assert retry_delay_ms(policy, 2) == 4000
        assert retry_delay_ms(policy, 10) == MAX_RETRY_DELAY_MS


class TestRetryAsync:
    """Test suite for retry_async."""

    @pytest.fixture
    def policy(self):
        return RetryPolicy(max_retries=2, backoff_multiplier=2.0, base_delay_ms=1000)

    def test_success_without_retry(self, policy):
        import asyncio

        sleep = FakeSleep()
        operation = Flaky([])

        result = asyncio.run(retry_async(operation, policy, sleep=sleep))

        assert result == "done"
        assert operation.calls == 1
        assert sleep.delays == []

    def test_retries_retryable_errors_with_backoff(self, policy):
        import asyncio

        sleep = FakeSleep()
        operation = Flaky(
            [
                AiServiceError("network down", kind=AiErrorKind.NETWORK),
                AiServiceError("busy", kind=AiErrorKind.SERVER),
            ]
        )

        result = asyncio.run(retry_async(operation, policy, sleep=sleep))

        assert result == "done"
        assert operation.calls == 3
        assert sleep.delays == [1.0, 2.0]

    def test_gives_up_after_max_retries(self, policy):
        import asyncio

        sleep = FakeSleep()
        errors = [AiServiceError(f"timeout {i}", kind=AiErrorKind.TIMEOUT) for i in range(5)]
        operation = Flaky(errors)

        with pytest.raises(AiServiceError, match="timeout 2"):
            asyncio.run(retry_async(operation, policy, sleep=sleep))

        assert operation.calls == 3

    def test_non_retryable_error_is_raised_immediately(self, policy):
        import asyncio

        sleep = FakeSleep()
        operation = Flaky([AiServiceError("bad key", kind=AiErrorKind.AUTH)])

        with pytest.raises(AiServiceError, match="bad key"):
            asyncio.run(retry_async(operation, policy, sleep=sleep))

        assert operation.calls == 1
        assert sleep.delays == []

    def test_other_exceptions_propagate(self, policy):
        import asyncio

        operation = Flaky([KeyError("oops")])

        with pytest.raises(KeyError):
            asyncio.run(retry_async(operation, policy, sleep=FakeSleep()))

        assert operation.calls == 1
