"""API request and response schemas.

Pydantic v2 models for API serialization/deserialization. Feature payloads
(style, SEO, category data) are returned as the feature models themselves.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

from devlog.core.errors import UserFriendlyError
from devlog.interfaces.store import MAX_TAG_SELECTIONS, TagSelection
from devlog.services.integration import FeatureFlags
from devlog.strategies.features.models import (
    CategoryRecommendation,
    SeoValidationMetadata,
    StyleUpgradeOptions,
)

ContentType = Literal["markdown", "html"]


class ErrorResponse(BaseModel):
    """Standard error response."""

    detail: str
    error_code: str | None = None
    user_error: UserFriendlyError | None = None


# =============================================================================
# Single-feature Schemas
# =============================================================================


class StyleUpgradeRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=1, max_length=50000)
    content_type: ContentType = "markdown"
    options: StyleUpgradeOptions = Field(default_factory=StyleUpgradeOptions)


class SeoRecommendRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=50000)
    content_type: ContentType = "markdown"
    target_keywords: list[str] = Field(default_factory=list, max_length=20)
    language: str | None = Field(default=None, max_length=10)
    include_schema: bool = True


class SeoValidateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=50000)
    content_type: ContentType = "markdown"
    metadata: SeoValidationMetadata | None = None


class CategoryRecommendRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=1, max_length=50000)
    content_type: ContentType = "markdown"
    post_id: str | None = None
    existing_category_ids: list[str] = Field(default_factory=list)
    max_suggestions: int | None = Field(default=None, ge=1, le=MAX_TAG_SELECTIONS)


# =============================================================================
# Tagging Schemas
# =============================================================================


class AutoTagRequest(BaseModel):
    """Request schema for applying chosen categories to a post."""

    post_id: str = Field(min_length=1)
    selections: list[TagSelection] = Field(min_length=1, max_length=MAX_TAG_SELECTIONS)
    replace_existing: bool = False


class RemoveTagsRequest(BaseModel):
    post_id: str = Field(min_length=1)
    category_ids: list[str] = Field(min_length=1)
    only_ai_suggested: bool = False


class RemoveTagsResponse(BaseModel):
    post_id: str
    removed_count: int


class RecommendAndApplyRequest(BaseModel):
    post_id: str = Field(min_length=1)
    auto_apply: bool = False


class RecommendAndApplyResponse(BaseModel):
    post_id: str
    recommendations: list[CategoryRecommendation]
    applied: bool


# =============================================================================
# Integration Schemas
# =============================================================================


class IntegrateRequest(BaseModel):
    """Request schema for running several AI features at once."""

    title: str | None = Field(default=None, max_length=200)
    content: str = Field(min_length=1, max_length=50000)
    content_type: ContentType = "markdown"
    flags: FeatureFlags = Field(default_factory=FeatureFlags)
    style_options: StyleUpgradeOptions = Field(default_factory=StyleUpgradeOptions)
    target_keywords: list[str] = Field(default_factory=list, max_length=20)
    post_id: str | None = Field(
        default=None,
        description="When set, categories already on this post are not recommended again.",
    )


class ApplyRequest(BaseModel):
    post_id: str = Field(min_length=1)
    recommendations: list[CategoryRecommendation] = Field(default_factory=list)
    threshold: float | None = Field(default=None, ge=0, le=1)


class ApplyResponse(BaseModel):
    post_id: str
    applied: bool
    threshold: float
    applied_categories: list[str] = Field(default_factory=list)


# =============================================================================
# Prompt Schemas
# =============================================================================


class PromptValidateRequest(BaseModel):
    """Validate variables against a registered template or raw template text."""

    template_name: str | None = None
    template: str | None = None
    variables: dict[str, str | int | float | bool | None] = Field(default_factory=dict)


class InvalidVariableResponse(BaseModel):
    variable: str
    reason: str


class PromptValidateResponse(BaseModel):
    is_valid: bool
    missing_variables: list[str] = Field(default_factory=list)
    invalid_variables: list[InvalidVariableResponse] = Field(default_factory=list)
    template_errors: list[str] = Field(default_factory=list)
    placeholders: list[str] = Field(default_factory=list)
    preview: dict[str, Any] | None = None
