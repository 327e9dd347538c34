"""AI error taxonomy.

Failures from the chat endpoint are classified once, where they are first
observed, into an ``AiErrorKind``. Everything downstream (feature responses,
HTTP error bodies, retry decisions) switches on that tag.
"""

import enum
from typing import Literal

from pydantic import BaseModel, Field


class AiErrorKind(str, enum.Enum):
    """Closed set of AI failure categories."""

    NETWORK = "network"
    QUOTA_EXCEEDED = "quota_exceeded"
    AUTH = "auth"
    TIMEOUT = "timeout"
    CONTENT_REJECTED = "content_rejected"
    SERVER = "server"
    INVALID_INPUT = "invalid_input"
    INVALID_RESPONSE = "invalid_response"
    UNKNOWN = "unknown"


_RETRYABLE_KINDS = frozenset(
    {
        AiErrorKind.NETWORK,
        AiErrorKind.QUOTA_EXCEEDED,
        AiErrorKind.TIMEOUT,
        AiErrorKind.SERVER,
        AiErrorKind.INVALID_RESPONSE,
        AiErrorKind.UNKNOWN,
    }
)


class AiServiceError(Exception):
    """Exception raised when an AI feature cannot produce a result.

    Attributes:
        message: Human-readable description of the failure.
        kind: The classified failure category.
        retryable: Whether repeating the same request may succeed.
        feature: Name of the feature that failed, when known.
    """

    def __init__(
        self,
        message: str,
        kind: AiErrorKind = AiErrorKind.UNKNOWN,
        retryable: bool | None = None,
        feature: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.retryable = kind in _RETRYABLE_KINDS if retryable is None else retryable
        self.feature = feature

    def __repr__(self) -> str:
        return f"AiServiceError({self.message!r}, kind={self.kind.value}, feature={self.feature!r})"


class UserFriendlyError(BaseModel):
    """Error description suitable for showing to the post author."""

    title: str
    message: str
    can_retry: bool
    retry_delay_ms: int | None = None
    fallback_options: list[str] = Field(default_factory=list)


Severity = Literal["low", "medium", "high", "critical"]


def describe_error(error: AiServiceError) -> UserFriendlyError:
    """Translate an AI error into an author-facing description.

    Args:
        error: The classified error.

    Returns:
        A UserFriendlyError for the error's kind.
    """
    match error.kind:
        case AiErrorKind.NETWORK:
            return UserFriendlyError(
                title="Network error",
                message="Check your connection and try again.",
                can_retry=True,
                retry_delay_ms=3000,
                fallback_options=["Keep editing offline", "Try again later"],
            )
        case AiErrorKind.QUOTA_EXCEEDED:
            return UserFriendlyError(
                title="AI quota exceeded",
                message="The AI service usage limit was reached. Try again in a minute.",
                can_retry=True,
                retry_delay_ms=60000,
                fallback_options=["Edit manually"],
            )
        case AiErrorKind.SERVER:
            return UserFriendlyError(
                title="Server error",
                message="The AI service had a temporary problem.",
                can_retry=True,
                retry_delay_ms=5000,
                fallback_options=["Edit manually", "Try again later"],
            )
        case AiErrorKind.AUTH:
            return UserFriendlyError(
                title="Authentication error",
                message="The AI service rejected the configured credentials.",
                can_retry=False,
                fallback_options=["Sign in again"],
            )
        case AiErrorKind.CONTENT_REJECTED | AiErrorKind.INVALID_INPUT:
            return UserFriendlyError(
                title="Content error",
                message=error.message or "The content could not be processed.",
                can_retry=False,
                fallback_options=["Revise the content", "Edit manually"],
            )
        case AiErrorKind.TIMEOUT:
            return UserFriendlyError(
                title="Request timed out",
                message="The AI request took too long to complete.",
                can_retry=True,
                retry_delay_ms=5000,
                fallback_options=["Edit manually"],
            )
        case _:
            return UserFriendlyError(
                title="AI processing error",
                message=error.message or "An unknown error occurred.",
                can_retry=error.retryable,
                retry_delay_ms=3000,
                fallback_options=["Edit manually", "Try again"],
            )


def error_severity(error: AiServiceError) -> Severity:
    """Rank an error for reporting."""
    match error.kind:
        case AiErrorKind.AUTH:
            return "critical"
        case AiErrorKind.QUOTA_EXCEEDED:
            return "high"
        case AiErrorKind.SERVER | AiErrorKind.TIMEOUT:
            return "medium"
        case _:
            return "low"
