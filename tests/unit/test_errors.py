"""Unit tests for the AI error taxonomy and provider error classification."""

import httpx
import openai
import pytest

from devlog.core.errors import AiErrorKind, AiServiceError, describe_error, error_severity
from devlog.strategies.llm.openai import classify_openai_error

REQUEST = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")


def status_error(cls, status_code: int):
    response = httpx.Response(status_code, request=REQUEST)
    return cls("provider error", response=response, body=None)


class TestAiServiceError:
    @pytest.mark.parametrize(
        "kind,retryable",
        [
            (AiErrorKind.NETWORK, True),
            (AiErrorKind.QUOTA_EXCEEDED, True),
            (AiErrorKind.TIMEOUT, True),
            (AiErrorKind.SERVER, True),
            (AiErrorKind.INVALID_RESPONSE, True),
            (AiErrorKind.UNKNOWN, True),
            (AiErrorKind.AUTH, False),
            (AiErrorKind.CONTENT_REJECTED, False),
            (AiErrorKind.INVALID_INPUT, False),
        ],
    )
    def test_retryable_follows_kind(self, kind, retryable):
        assert AiServiceError("boom", kind=kind).retryable is retryable

    def test_explicit_retryable_wins(self):
        error = AiServiceError("boom", kind=AiErrorKind.NETWORK, retryable=False)
        assert error.retryable is False

    def test_message_and_defaults(self):
        error = AiServiceError("quota exceeded")

        assert str(error) == "quota exceeded"
        assert error.kind is AiErrorKind.UNKNOWN
        assert error.feature is None


class TestDescribeError:
    def test_quota_is_retryable_after_a_minute(self):
        described = describe_error(AiServiceError("x", kind=AiErrorKind.QUOTA_EXCEEDED))

        assert described.can_retry
        assert described.retry_delay_ms == 60000

    def test_auth_cannot_retry(self):
        described = describe_error(AiServiceError("x", kind=AiErrorKind.AUTH))

        assert not described.can_retry
        assert described.retry_delay_ms is None

    def test_invalid_input_keeps_message(self):
        described = describe_error(AiServiceError("Title is too short", kind=AiErrorKind.INVALID_INPUT))

        assert described.message == "Title is too short"
        assert not described.can_retry

    def test_every_kind_is_described(self):
        for kind in AiErrorKind:
            assert describe_error(AiServiceError("x", kind=kind)).title

    @pytest.mark.parametrize(
        "kind,severity",
        [
            (AiErrorKind.AUTH, "critical"),
            (AiErrorKind.QUOTA_EXCEEDED, "high"),
            (AiErrorKind.SERVER, "medium"),
            (AiErrorKind.TIMEOUT, "medium"),
            (AiErrorKind.NETWORK, "low"),
        ],
    )
    def test_severity(self, kind, severity):
        assert error_severity(AiServiceError("x", kind=kind)) == severity


class TestClassifyOpenAIError:
    """Test suite for mapping SDK exceptions onto AiErrorKind."""

    def test_timeout(self):
        assert classify_openai_error(openai.APITimeoutError(request=REQUEST)) is AiErrorKind.TIMEOUT

    def test_connection(self):
        error = openai.APIConnectionError(request=REQUEST)
        assert classify_openai_error(error) is AiErrorKind.NETWORK

    @pytest.mark.parametrize(
        "cls,status_code,kind",
        [
            (openai.RateLimitError, 429, AiErrorKind.QUOTA_EXCEEDED),
            (openai.AuthenticationError, 401, AiErrorKind.AUTH),
            (openai.PermissionDeniedError, 403, AiErrorKind.AUTH),
            (openai.BadRequestError, 400, AiErrorKind.INVALID_INPUT),
            (openai.UnprocessableEntityError, 422, AiErrorKind.INVALID_INPUT),
            (openai.InternalServerError, 500, AiErrorKind.SERVER),
            (openai.NotFoundError, 404, AiErrorKind.UNKNOWN),
        ],
    )
    def test_status_errors(self, cls, status_code, kind):
        assert classify_openai_error(status_error(cls, status_code)) is kind
