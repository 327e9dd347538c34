"""Services that coordinate the AI features."""

from devlog.services.integration import (
    AiIntegrationService,
    FeatureFlags,
    FeatureOutcome,
    IntegrationResult,
    select_confident,
)
from devlog.services.retry import RetryPolicy, policy_for, retry_async

__all__ = [
    "AiIntegrationService",
    "FeatureFlags",
    "FeatureOutcome",
    "IntegrationResult",
    "RetryPolicy",
    "policy_for",
    "retry_async",
    "select_confident",
]
