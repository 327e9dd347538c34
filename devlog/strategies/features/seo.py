"""SEO metadata recommendation feature."""

import datetime
import logging
import re
import time
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import FeatureRequest
from devlog.interfaces.llm import BaseLLMClient
from devlog.prompts.scoring import extract_json_object
from devlog.prompts.templates import SEO_METADATA, PromptRegistry
from devlog.prompts.variables import PromptVariableBuilder
from devlog.strategies.features import markdown
from devlog.strategies.features.base import PromptedFeature
from devlog.strategies.features.models import SeoMetadata, SeoRecommendationData, SeoScores

logger = logging.getLogger(__name__)

SEO_MIN_CONTENT_LENGTH = 100

# Model JSON field -> SeoMetadata field
SEO_REQUIRED_FIELDS: dict[str, str] = {
    "metaTitle": "meta_title",
    "metaDescription": "meta_description",
    "keywords": "keywords",
    "openGraphTitle": "open_graph_title",
    "openGraphDescription": "open_graph_description",
    "suggestedSlug": "suggested_slug",
}

SLUG_REGEX = re.compile(r"^[a-z0-9-]+$")
CALL_TO_ACTION_WORDS = (
    "learn",
    "discover",
    "how to",
    "guide",
    "tutorial",
    "step by step",
    "알아보",
    "확인",
    "살펴보",
    "방법",
    "가이드",
    "튜토리얼",
)


class SeoOptions(BaseModel):
    target_keywords: list[str] = Field(default_factory=list)
    language: str | None = None
    include_schema: bool = True


def _bounded(score: int) -> int:
    return max(0, min(100, score))


def score_title(title: str, target_keywords: list[str]) -> int:
    score = 70
    if 30 <= len(title) <= 60:
        score += 15
    elif len(title) < 30:
        score -= 10
    else:
        score -= 5

    lowered = title.lower()
    if any(keyword.lower() in lowered for keyword in target_keywords):
        score += 10
    if re.search(r"[!?:|]", title):
        score += 5
    return _bounded(score)


def score_description(description: str, target_keywords: list[str]) -> int:
    score = 70
    if 120 <= len(description) <= 160:
        score += 15
    elif len(description) < 120:
        score -= 10
    else:
        score -= 5

    lowered = description.lower()
    matched = sum(1 for keyword in target_keywords if keyword.lower() in lowered)
    score += min(10, matched * 3)
    if any(word in lowered for word in CALL_TO_ACTION_WORDS):
        score += 5
    return _bounded(score)


def score_keywords(keywords: list[str], target_keywords: list[str]) -> int:
    score = 70
    score += 15 if 3 <= len(keywords) <= 8 else -10

    targets = [target.lower() for target in target_keywords]
    overlap = sum(
        1
        for keyword in keywords
        if any(keyword.lower() in target or target in keyword.lower() for target in targets)
    )
    score += min(15, overlap * 5)
    return _bounded(score)


def score_slug(slug: str) -> int:
    score = 70
    if 20 <= len(slug) <= 50:
        score += 15
    elif len(slug) < 20:
        score -= 5
    else:
        score -= 10

    score += 10 if SLUG_REGEX.match(slug) else -20
    if 2 <= slug.count("-") <= 5:
        score += 5
    return _bounded(score)


def score_metadata(metadata: SeoMetadata, target_keywords: list[str]) -> SeoScores:
    """Heuristic quality scores; overall is the rounded mean of the four."""
    title = score_title(metadata.meta_title, target_keywords)
    description = score_description(metadata.meta_description, target_keywords)
    keywords = score_keywords(metadata.keywords, target_keywords)
    slug = score_slug(metadata.suggested_slug)
    return SeoScores(
        title=title,
        description=description,
        keywords=keywords,
        slug=slug,
        overall=round((title + description + keywords + slug) / 4),
    )


def parse_seo_response(raw: str) -> SeoMetadata:
    """Parse the model's JSON into SeoMetadata.

    Raises:
        AiServiceError: With kind ``INVALID_RESPONSE`` if a field is missing.
    """
    parsed = extract_json_object(raw)
    if parsed is None:
        raise AiServiceError("No JSON object found in SEO response", kind=AiErrorKind.INVALID_RESPONSE)

    missing = [source for source in SEO_REQUIRED_FIELDS if not parsed.get(source)]
    if missing:
        raise AiServiceError(
            f"SEO response is missing required fields: {', '.join(missing)}",
            kind=AiErrorKind.INVALID_RESPONSE,
        )

    values: dict[str, Any] = {target: parsed[source] for source, target in SEO_REQUIRED_FIELDS.items()}
    if not isinstance(values["keywords"], list):
        values["keywords"] = []
    values["keywords"] = [str(keyword) for keyword in values["keywords"]]
    values["reasoning"] = str(parsed.get("reasoning") or "")

    try:
        return SeoMetadata(**values)
    except ValidationError as e:
        raise AiServiceError(
            f"SEO response has invalid fields: {e.error_count()} error(s)",
            kind=AiErrorKind.INVALID_RESPONSE,
        ) from e


def build_structured_data(
    metadata: SeoMetadata, blog_name: str, author_name: str
) -> dict[str, Any]:
    """schema.org BlogPosting markup for the recommended metadata."""
    now = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return {
        "@context": "https://schema.org",
        "@type": "BlogPosting",
        "headline": metadata.meta_title,
        "description": metadata.meta_description,
        "keywords": metadata.keywords,
        "author": {"@type": "Person", "name": author_name},
        "publisher": {"@type": "Organization", "name": blog_name},
        "datePublished": now,
        "dateModified": now,
        "mainEntityOfPage": {"@type": "WebPage", "@id": f"/{metadata.suggested_slug}"},
    }


class SeoRecommendationFeature(PromptedFeature):
    """Recommend meta tags, keywords and a slug for a post."""

    name = "seo"

    def __init__(
        self,
        llm: BaseLLMClient,
        registry: PromptRegistry,
        temperature: float = 0.4,
        max_tokens: int = 2048,
        max_content_length: int = 10000,
        max_title_length: int = 60,
        max_description_length: int = 160,
        language: str = "ko",
        blog_name: str = "devlog",
        author_name: str = "devlog",
    ) -> None:
        super().__init__(llm, registry)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_content_length = max_content_length
        self._max_title_length = max_title_length
        self._max_description_length = max_description_length
        self._language = language
        self._blog_name = blog_name
        self._author_name = author_name

    async def run(self, request: FeatureRequest) -> SeoRecommendationData:
        started = time.perf_counter()

        title = (request.title or "").strip()
        if not title:
            raise AiServiceError(
                "A title is required for SEO recommendations",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )
        if len(request.content.strip()) < SEO_MIN_CONTENT_LENGTH:
            raise AiServiceError(
                f"Content must be at least {SEO_MIN_CONTENT_LENGTH} characters for SEO recommendations",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )

        try:
            options = SeoOptions.model_validate(request.options)
        except ValidationError as e:
            raise AiServiceError(
                f"Invalid SEO options: {e.errors()[0]['msg']}",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            ) from e

        # The prompt requires at least one keyword; the title stands in.
        target_keywords = [k.strip() for k in options.target_keywords if k.strip()] or [title]

        variables = (
            PromptVariableBuilder()
            .add_title(title)
            .add_content(markdown.truncate_content(request.content, self._max_content_length))
            .add_keywords(target_keywords)
            .add_custom("contentType", request.content_type)
            .add_custom("language", options.language or self._language)
            .add_custom("maxTitleLength", self._max_title_length)
            .add_custom("maxDescriptionLength", self._max_description_length)
            .build()
        )
        prompt = self.render_prompt(SEO_METADATA, variables)

        logger.info(f"Requesting SEO metadata for '{title}'")
        response = await self._llm.complete(
            prompt.system,
            prompt.user,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        try:
            metadata = parse_seo_response(response.content)
        except AiServiceError as e:
            e.feature = self.name
            raise

        structured_data = (
            build_structured_data(metadata, self._blog_name, self._author_name)
            if options.include_schema
            else {}
        )

        return SeoRecommendationData(
            metadata=metadata,
            scores=score_metadata(metadata, target_keywords),
            structured_data=structured_data,
            tokens_used=response.tokens_used,
            processing_time_ms=self.elapsed_ms(started),
        )
