"""Category recommendation feature.

Asks the model to classify a post against the blog's own category list,
then filters the answer: unknown ids, categories already on the post and
low-confidence suggestions are dropped, and per-category weights adjust
the remaining confidences.
"""

import logging
import time
from collections.abc import Mapping
from typing import Any, get_args

from pydantic import BaseModel, Field, ValidationError

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import FeatureRequest
from devlog.interfaces.llm import BaseLLMClient
from devlog.interfaces.store import MAX_TAG_SELECTIONS, BaseCategoryCatalog, CategoryInfo
from devlog.prompts.scoring import extract_json_object, is_number
from devlog.prompts.templates import CATEGORY_CLASSIFICATION, PromptRegistry
from devlog.prompts.variables import PromptVariableBuilder
from devlog.strategies.features import markdown
from devlog.strategies.features.base import PromptedFeature
from devlog.strategies.features.models import (
    CategoryRecommendation,
    CategoryRecommendationData,
    ContentAnalysis,
    ContentKind,
    TechnicalLevel,
)

logger = logging.getLogger(__name__)

CATEGORY_MIN_CONTENT_LENGTH = 50
CATEGORY_MAX_CONTENT_LENGTH = 50000

TECHNICAL_LEVELS = set(get_args(TechnicalLevel))
CONTENT_KINDS = set(get_args(ContentKind))


class CategoryOptions(BaseModel):
    post_id: str | None = None
    existing_category_ids: list[str] = Field(default_factory=list)
    max_suggestions: int | None = Field(default=None, ge=1, le=MAX_TAG_SELECTIONS)


def _string_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if isinstance(item, (str, int, float))]


def normalize_recommendations(raw: Any, catalog: Mapping[str, CategoryInfo]) -> list[CategoryRecommendation]:
    """Turn the model's recommendation list into validated models.

    Entries without a string ``categoryId`` or a numeric ``confidence`` are
    skipped. Confidence is clamped to ``[0, 1]``.
    """
    if not isinstance(raw, list):
        return []

    recommendations: list[CategoryRecommendation] = []
    for item in raw:
        if not isinstance(item, dict):
            continue
        category_id = item.get("categoryId")
        confidence = item.get("confidence")
        if not isinstance(category_id, str) or not category_id.strip() or not is_number(confidence):
            logger.warning(f"Skipping malformed category recommendation: {item}")
            continue

        category_id = category_id.strip()
        name = item.get("categoryName")
        if not isinstance(name, str) or not name:
            name = catalog[category_id].name if category_id in catalog else None

        recommendations.append(
            CategoryRecommendation(
                category_id=category_id,
                category_name=name,
                confidence=max(0.0, min(1.0, float(confidence))),
                reasoning=str(item.get("reasoning") or ""),
                key_topics=_string_list(item.get("keyTopics")),
            )
        )
    return recommendations


def normalize_content_analysis(raw: Any) -> ContentAnalysis:
    if not isinstance(raw, dict):
        return ContentAnalysis()

    level = raw.get("technicalLevel")
    kind = raw.get("contentType")
    return ContentAnalysis(
        primary_topic=str(raw.get("primaryTopic") or ""),
        secondary_topics=_string_list(raw.get("secondaryTopics")),
        technical_level=level if level in TECHNICAL_LEVELS else "intermediate",
        content_type=kind if kind in CONTENT_KINDS else "other",
        key_topics=_string_list(raw.get("keyTopics")),
        technical_terms=_string_list(raw.get("technicalTerms")),
        frameworks_and_tools=_string_list(raw.get("frameworksAndTools")),
    )


def filter_recommendations(
    recommendations: list[CategoryRecommendation],
    known_ids: set[str],
    existing_ids: set[str],
    weights: Mapping[str, float],
    min_confidence: float,
    max_suggestions: int,
) -> list[CategoryRecommendation]:
    """Weight, rank and prune recommendations.

    Args:
        recommendations: Normalized model output.
        known_ids: Ids that exist in the catalog.
        existing_ids: Ids already assigned to the post.
        weights: Confidence multipliers per id. Missing ids use 1.0.
        min_confidence: Weighted confidence floor, inclusive.
        max_suggestions: Maximum number of results.

    Returns:
        At most ``max_suggestions`` recommendations, highest confidence first.
    """
    weighted: list[CategoryRecommendation] = []
    for recommendation in recommendations:
        if recommendation.category_id in existing_ids:
            continue
        weight = weights.get(recommendation.category_id, 1.0)
        confidence = round(min(recommendation.confidence * weight, 1.0), 2)
        weighted.append(recommendation.model_copy(update={"confidence": confidence}))

    weighted.sort(key=lambda r: r.confidence, reverse=True)

    results: list[CategoryRecommendation] = []
    seen: set[str] = set()
    for recommendation in weighted:
        if recommendation.category_id in seen:
            continue
        seen.add(recommendation.category_id)
        if recommendation.confidence < min_confidence:
            continue
        if recommendation.category_id not in known_ids:
            logger.warning(f"Model suggested unknown category: {recommendation.category_id}")
            continue
        results.append(recommendation)

    return results[:max_suggestions]


class CategoryRecommendationFeature(PromptedFeature):
    """Recommend categories for a post from the blog's catalog."""

    name = "categories"

    def __init__(
        self,
        llm: BaseLLMClient,
        registry: PromptRegistry,
        catalog: BaseCategoryCatalog,
        temperature: float = 0.3,
        max_tokens: int = 2048,
        max_content_length: int = 10000,
        min_confidence: float = 0.7,
        max_suggestions: int = 3,
        weights: Mapping[str, float] | None = None,
    ) -> None:
        super().__init__(llm, registry)
        self._catalog = catalog
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_content_length = max_content_length
        self._min_confidence = min_confidence
        self._max_suggestions = max_suggestions
        self._weights = dict(weights or {})

    async def run(self, request: FeatureRequest) -> CategoryRecommendationData:
        started = time.perf_counter()

        content_length = len(request.content.strip())
        if not CATEGORY_MIN_CONTENT_LENGTH <= content_length <= CATEGORY_MAX_CONTENT_LENGTH:
            raise AiServiceError(
                f"Content must be between {CATEGORY_MIN_CONTENT_LENGTH} and "
                f"{CATEGORY_MAX_CONTENT_LENGTH:,} characters",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )

        try:
            options = CategoryOptions.model_validate(request.options)
        except ValidationError as e:
            raise AiServiceError(
                f"Invalid category options: {e.errors()[0]['msg']}",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            ) from e

        categories = await self._catalog.list_categories()
        if not categories:
            raise AiServiceError(
                "No categories are available to recommend from",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )
        catalog = {category.id: category for category in categories}

        existing_ids = set(options.existing_category_ids)
        if options.post_id:
            existing_ids.update(await self._catalog.post_category_ids(options.post_id))

        max_suggestions = options.max_suggestions or self._max_suggestions
        variables = (
            PromptVariableBuilder()
            .add_title((request.title or "").strip() or "Untitled")
            .add_content(markdown.truncate_content(request.content, self._max_content_length))
            .add_categories([category.model_dump() for category in categories])
            .add_categories(sorted(existing_ids), name="existingCategories")
            .add_custom("contentType", request.content_type)
            .add_custom("maxSuggestions", max_suggestions)
            .build()
        )
        prompt = self.render_prompt(CATEGORY_CLASSIFICATION, variables)

        logger.info(f"Requesting category recommendations from {len(categories)} categories")
        response = await self._llm.complete(
            prompt.system,
            prompt.user,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        parsed = extract_json_object(response.content)
        if parsed is None:
            raise AiServiceError(
                "No JSON object found in category response",
                kind=AiErrorKind.INVALID_RESPONSE,
                feature=self.name,
            )

        recommendations = filter_recommendations(
            normalize_recommendations(parsed.get("recommendations"), catalog),
            known_ids=set(catalog),
            existing_ids=existing_ids,
            weights=self._weights,
            min_confidence=self._min_confidence,
            max_suggestions=max_suggestions,
        )
        logger.info(f"Kept {len(recommendations)} category recommendation(s)")

        return CategoryRecommendationData(
            recommendations=recommendations,
            content_analysis=normalize_content_analysis(parsed.get("contentAnalysis")),
            tokens_used=response.tokens_used,
            processing_time_ms=self.elapsed_ms(started),
        )

