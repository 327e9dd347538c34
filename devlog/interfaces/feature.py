"""Abstract base class for AI content features.

A feature turns a post into a structured suggestion (styled content, SEO
metadata, category recommendations). ``invoke`` is the boundary used by the
integration service: it never raises, it reports failure as data.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

from devlog.core.errors import AiErrorKind, AiServiceError

logger = logging.getLogger(__name__)


class FeatureRequest(BaseModel):
    """Input shared by every AI feature."""

    title: str | None = None
    content: str
    content_type: str = "markdown"
    options: dict[str, Any] = Field(default_factory=dict)


class FeatureResponse(BaseModel):
    """Result of ``BaseFeature.invoke``.

    Attributes:
        success: Whether the feature produced a payload.
        data: The feature-specific payload on success.
        error: Failure message on failure.
        error_kind: Classified failure category on failure.
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_kind: AiErrorKind | None = None


class BaseFeature(ABC):
    """Abstract base class for AI features.

    Subclasses implement ``run``, which raises ``AiServiceError`` on failure.
    """

    name: str = "feature"

    @abstractmethod
    async def run(self, request: FeatureRequest) -> BaseModel:
        """Execute the feature.

        Args:
            request: The post to process.

        Returns:
            The feature-specific payload model.

        Raises:
            AiServiceError: If the feature cannot produce a result.
        """
        ...

    async def invoke(self, request: FeatureRequest) -> FeatureResponse:
        """Execute the feature, reporting failures as a FeatureResponse."""
        try:
            data = await self.run(request)
            return FeatureResponse(success=True, data=data)
        except AiServiceError as e:
            logger.warning(f"Feature '{self.name}' failed ({e.kind.value}): {e.message}")
            return FeatureResponse(success=False, error=e.message, error_kind=e.kind)
        except Exception as e:
            logger.error(f"Unexpected error in feature '{self.name}': {e}", exc_info=True)
            return FeatureResponse(success=False, error=str(e), error_kind=AiErrorKind.UNKNOWN)
