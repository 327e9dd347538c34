"""Payload models returned by the AI features."""

import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from devlog.prompts.scoring import ScoreBreakdown

TechnicalLevel = Literal["beginner", "intermediate", "advanced"]
ContentKind = Literal["tutorial", "review", "analysis", "guide", "news", "other"]


# =============================================================================
# Style upgrade
# =============================================================================


class StyleUpgradeOptions(BaseModel):
    include_table_of_contents: bool = False
    enhance_code_blocks: bool = True
    improve_heading_structure: bool = True
    optimize_for_seo: bool = False


class StyleUpgradeData(BaseModel):
    """Restyled post plus the readability analysis of the result."""

    original_content: str
    enhanced_content: str
    improvements: list[str] = Field(default_factory=list)
    readability: ScoreBreakdown
    tokens_used: int | None = None
    processing_time_ms: int = 0


# =============================================================================
# SEO
# =============================================================================


class SeoMetadata(BaseModel):
    meta_title: str
    meta_description: str
    keywords: list[str]
    open_graph_title: str
    open_graph_description: str
    suggested_slug: str
    reasoning: str = ""


class SeoScores(BaseModel):
    """Heuristic quality scores for generated metadata, each in ``[0, 100]``."""

    title: int = Field(ge=0, le=100)
    description: int = Field(ge=0, le=100)
    keywords: int = Field(ge=0, le=100)
    slug: int = Field(ge=0, le=100)
    overall: int = Field(ge=0, le=100)


class SeoRecommendationData(BaseModel):
    metadata: SeoMetadata
    scores: SeoScores
    structured_data: dict[str, Any] = Field(default_factory=dict)
    tokens_used: int | None = None
    processing_time_ms: int = 0


# =============================================================================
# SEO validation
# =============================================================================


class SeoValidationMetadata(BaseModel):
    """Metadata the author already has for a post."""

    title: str | None = None
    description: str | None = None
    keywords: list[str] = Field(default_factory=list)
    slug: str | None = None


class HeadingCounts(BaseModel):
    h1: int = 0
    h2: int = 0
    h3: int = 0


class ContentMetrics(BaseModel):
    """Counts measured directly on the content.

    Attributes:
        keyword_density: Most frequent words longer than three characters,
            as a percentage of all words.
    """

    title_length: int = 0
    meta_description_length: int = 0
    headings: HeadingCounts = Field(default_factory=HeadingCounts)
    image_count: int = 0
    image_alt_text_count: int = 0
    internal_links_count: int = 0
    external_links_count: int = 0
    content_length: int = 0
    word_count: int = 0
    keyword_density: dict[str, float] = Field(default_factory=dict)


class SeoAiAnalysis(BaseModel):
    readability: int = Field(ge=0, le=100)
    keyword_relevance: int = Field(ge=0, le=100)
    structure: int = Field(ge=0, le=100)
    suggestions: list[str] = Field(default_factory=list)


class SeoValidationScores(BaseModel):
    content: int = Field(ge=0, le=100)
    technical: int = Field(ge=0, le=100)
    metadata: int = Field(ge=0, le=100)
    readability: int = Field(ge=0, le=100)
    keyword_relevance: int = Field(ge=0, le=100)
    structure: int = Field(ge=0, le=100)


class SeoValidationData(BaseModel):
    overall_score: int = Field(ge=0, le=100)
    passed: bool
    scores: SeoValidationScores
    metrics: ContentMetrics
    suggestions: list[str] = Field(default_factory=list)
    ai_analysis_available: bool = True
    validated_at: datetime.datetime = Field(
        default_factory=lambda: datetime.datetime.now(datetime.timezone.utc)
    )
    tokens_used: int | None = None
    processing_time_ms: int = 0


# =============================================================================
# Categories
# =============================================================================


class CategoryRecommendation(BaseModel):
    """A suggested category with the model's confidence in ``[0, 1]``."""

    category_id: str = Field(min_length=1)
    confidence: float = Field(ge=0, le=1)
    category_name: str | None = None
    reasoning: str = ""
    key_topics: list[str] = Field(default_factory=list)


class ContentAnalysis(BaseModel):
    primary_topic: str = ""
    secondary_topics: list[str] = Field(default_factory=list)
    technical_level: TechnicalLevel = "intermediate"
    content_type: ContentKind = "other"
    key_topics: list[str] = Field(default_factory=list)
    technical_terms: list[str] = Field(default_factory=list)
    frameworks_and_tools: list[str] = Field(default_factory=list)


class CategoryRecommendationData(BaseModel):
    recommendations: list[CategoryRecommendation] = Field(default_factory=list)
    content_analysis: ContentAnalysis = Field(default_factory=ContentAnalysis)
    tokens_used: int | None = None
    processing_time_ms: int = 0
