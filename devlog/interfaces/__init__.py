"""Abstract base classes for the AI layer's collaborators."""

from devlog.interfaces.feature import BaseFeature, FeatureRequest, FeatureResponse
from devlog.interfaces.llm import BaseLLMClient, LLMResponse
from devlog.interfaces.store import (
    AutoTagResult,
    BaseCategoryCatalog,
    BaseCategoryTagStore,
    CategoryInfo,
    PostInfo,
    PostNotFoundError,
    TagSelection,
    TagStoreError,
)

__all__ = [
    "BaseFeature",
    "FeatureRequest",
    "FeatureResponse",
    "BaseLLMClient",
    "LLMResponse",
    "BaseCategoryCatalog",
    "BaseCategoryTagStore",
    "CategoryInfo",
    "PostInfo",
    "TagSelection",
    "AutoTagResult",
    "TagStoreError",
    "PostNotFoundError",
]
