"""SEO validation of a post the author has already written.

Rule-based scores for the content, its markup and the supplied metadata are
combined with the model's view of readability, keyword relevance and
structure into one weighted overall score.
"""

import json
import logging
import re
import time
from collections import Counter

from bs4 import BeautifulSoup
from pydantic import BaseModel, ValidationError

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import FeatureRequest
from devlog.interfaces.llm import BaseLLMClient
from devlog.prompts.scoring import DEFAULT_SCORE, clamp, extract_json_object, is_number
from devlog.prompts.templates import SEO_VALIDATION, PromptRegistry
from devlog.prompts.variables import PromptVariableBuilder
from devlog.strategies.features import markdown
from devlog.strategies.features.base import PromptedFeature
from devlog.strategies.features.models import (
    ContentMetrics,
    HeadingCounts,
    SeoAiAnalysis,
    SeoValidationData,
    SeoValidationMetadata,
    SeoValidationScores,
)
from devlog.strategies.features.seo import score_description, score_keywords, score_slug, score_title

logger = logging.getLogger(__name__)

VALIDATION_MIN_CONTENT_LENGTH = 10
SEO_PASS_SCORE = 80
SUGGESTION_THRESHOLD = 80
MAX_SUGGESTIONS = 5
KEYWORD_DENSITY_LIMIT = 10
NO_METADATA_SCORE = 50

SCORE_WEIGHTS: dict[str, float] = {
    "content": 0.25,
    "technical": 0.2,
    "metadata": 0.2,
    "readability": 0.15,
    "keyword_relevance": 0.1,
    "structure": 0.1,
}

# Model JSON field -> SeoAiAnalysis field
AI_ANALYSIS_FIELDS: dict[str, str] = {
    "readabilityScore": "readability",
    "keywordRelevance": "keyword_relevance",
    "structureScore": "structure",
}

FALLBACK_SUGGESTIONS = ("Improve the content structure", "Optimize keyword usage")

MD_IMAGE_REGEX = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)[^)]*\)")
MD_LINK_REGEX = re.compile(r"(?<!!)\[([^\]]+)\]\(([^)\s]+)[^)]*\)")
MD_BLOCK_MARKER_REGEX = re.compile(r"^\s*(#{1,6}|[-*+]|>|\d+\.)\s+", re.MULTILINE)
EXTERNAL_LINK_REGEX = re.compile(r"^https?://", re.IGNORECASE)
WORD_REGEX = re.compile(r"\b\w+\b")


class SeoValidationOptions(BaseModel):
    metadata: SeoValidationMetadata | None = None


def _html_structure(html: str) -> tuple[HeadingCounts, list[str | None], list[str], str]:
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(markdown.UNSAFE_TAGS):
        tag.decompose()

    headings = HeadingCounts(**{level: len(soup.find_all(level)) for level in ("h1", "h2", "h3")})
    alts = [img.get("alt") for img in soup.find_all("img")]
    hrefs = [a["href"] for a in soup.find_all("a", href=True)]
    return headings, alts, hrefs, soup.get_text(" ")


def _markdown_structure(content: str) -> tuple[HeadingCounts, list[str | None], list[str], str]:
    body = markdown.CODE_BLOCK_REGEX.sub(" ", content)
    levels = Counter(heading.level for heading in markdown.extract_headings(body))
    headings = HeadingCounts(h1=levels[1], h2=levels[2], h3=levels[3])
    alts = [alt for alt, _ in MD_IMAGE_REGEX.findall(body)]
    hrefs = [href for _, href in MD_LINK_REGEX.findall(body)]

    text = MD_IMAGE_REGEX.sub(" ", body)
    text = MD_LINK_REGEX.sub(r"\1", text)
    text = MD_BLOCK_MARKER_REGEX.sub("", text)
    text = re.sub(r"[*_`~|]+", " ", text)
    return headings, alts, hrefs, text


def keyword_density(text: str, limit: int = KEYWORD_DENSITY_LIMIT) -> dict[str, float]:
    """Share of each frequent word longer than three characters, in percent."""
    words = WORD_REGEX.findall(text.lower())
    if not words:
        return {}
    counts = Counter(word for word in words if len(word) > 3)
    return {word: round(count / len(words) * 100, 2) for word, count in counts.most_common(limit)}


def collect_content_metrics(
    content: str, content_type: str = "markdown", metadata: SeoValidationMetadata | None = None
) -> ContentMetrics:
    """Measure headings, images, links and text of a post.

    Links starting with ``http://`` or ``https://`` count as external; every
    other link target counts as internal.
    """
    if content_type == "html":
        headings, alts, hrefs, text = _html_structure(content)
    else:
        headings, alts, hrefs, text = _markdown_structure(content)

    text = " ".join(text.split())
    external = sum(1 for href in hrefs if EXTERNAL_LINK_REGEX.match(href))

    return ContentMetrics(
        title_length=len(metadata.title or "") if metadata else 0,
        meta_description_length=len(metadata.description or "") if metadata else 0,
        headings=headings,
        image_count=len(alts),
        image_alt_text_count=sum(1 for alt in alts if alt and alt.strip()),
        internal_links_count=len(hrefs) - external,
        external_links_count=external,
        content_length=len(text),
        word_count=len(WORD_REGEX.findall(text)),
        keyword_density=keyword_density(text),
    )


def score_content(metrics: ContentMetrics) -> int:
    """Length 30, single H1 25, heading depth 25, plus a base of 20."""
    score = 20

    if metrics.content_length >= 300:
        score += 30
    elif metrics.content_length >= 150:
        score += 20
    else:
        score += 10

    h1 = metrics.headings.h1
    score += 25 if h1 == 1 else 15 if h1 > 1 else 5

    if metrics.headings.h2 >= 2 and metrics.headings.h3 >= 1:
        score += 25
    elif metrics.headings.h2 >= 1:
        score += 15
    else:
        score += 5
    return min(100, score)


def score_technical(metrics: ContentMetrics) -> int:
    """Image alt text 40, internal links 30, plus a base of 30."""
    score = 30
    score += 40 if metrics.image_alt_text_count > 0 else 20

    if metrics.internal_links_count >= 2:
        score += 30
    elif metrics.internal_links_count >= 1:
        score += 20
    else:
        score += 10
    return min(100, score)


def score_validation_metadata(metadata: SeoValidationMetadata | None) -> int:
    """Mean of the title, description and keyword scores, plus the slug if given.

    A missing field scores 0. Without any metadata the score is a neutral 50.
    """
    if metadata is None:
        return NO_METADATA_SCORE

    targets = metadata.keywords
    parts = [
        score_title(metadata.title, targets) if metadata.title else 0,
        score_description(metadata.description, targets) if metadata.description else 0,
        score_keywords(metadata.keywords, targets) if metadata.keywords else 0,
    ]
    if metadata.slug:
        parts.append(score_slug(metadata.slug))
    return round(sum(parts) / len(parts))


def parse_seo_analysis(raw: str) -> SeoAiAnalysis | None:
    """Parse the model's analysis, clamping each score into ``[0, 100]``.

    A missing or non-numeric score counts as 0. Returns None when the
    response holds no JSON object.
    """
    parsed = extract_json_object(raw)
    if parsed is None:
        return None

    values: dict[str, int] = {}
    for source, target in AI_ANALYSIS_FIELDS.items():
        value = parsed.get(source)
        values[target] = round(clamp(value)) if is_number(value) else 0

    suggestions = parsed.get("suggestions")
    if not isinstance(suggestions, list):
        suggestions = []
    return SeoAiAnalysis(
        **values,
        suggestions=[str(suggestion) for suggestion in suggestions if str(suggestion).strip()],
    )


def fallback_analysis() -> SeoAiAnalysis:
    return SeoAiAnalysis(
        readability=DEFAULT_SCORE,
        keyword_relevance=DEFAULT_SCORE,
        structure=DEFAULT_SCORE,
        suggestions=list(FALLBACK_SUGGESTIONS),
    )


def overall_score(scores: SeoValidationScores) -> int:
    weighted = sum(getattr(scores, name) * weight for name, weight in SCORE_WEIGHTS.items())
    return round(weighted)


def build_suggestions(scores: SeoValidationScores, ai_suggestions: list[str]) -> list[str]:
    """The model's suggestions first, then one per weak rule-based score."""
    suggestions = list(ai_suggestions)
    if scores.content < SUGGESTION_THRESHOLD:
        suggestions.append("Lengthen the content and use one H1 with H2/H3 subsections")
    if scores.technical < SUGGESTION_THRESHOLD:
        suggestions.append("Add alt text to images and link to related posts")
    if scores.metadata < SUGGESTION_THRESHOLD:
        suggestions.append("Optimize the meta title and description")
    return list(dict.fromkeys(suggestions))[:MAX_SUGGESTIONS]


class SeoValidationFeature(PromptedFeature):
    """Score existing content and metadata for SEO."""

    name = "seo_validation"

    def __init__(
        self,
        llm: BaseLLMClient,
        registry: PromptRegistry,
        temperature: float = 0.3,
        max_tokens: int = 1024,
        max_content_length: int = 2000,
        pass_score: int = SEO_PASS_SCORE,
    ) -> None:
        super().__init__(llm, registry)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._max_content_length = max_content_length
        self._pass_score = pass_score

    async def run(self, request: FeatureRequest) -> SeoValidationData:
        started = time.perf_counter()

        if len(request.content.strip()) < VALIDATION_MIN_CONTENT_LENGTH:
            raise AiServiceError(
                f"Content must be at least {VALIDATION_MIN_CONTENT_LENGTH} characters for SEO validation",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            )

        try:
            options = SeoValidationOptions.model_validate(request.options)
        except ValidationError as e:
            raise AiServiceError(
                f"Invalid SEO validation options: {e.errors()[0]['msg']}",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            ) from e

        content = markdown.sanitize_content(request.content)
        metrics = collect_content_metrics(content, request.content_type, options.metadata)
        analysis, tokens_used = await self.analyze(content, request.content_type, options.metadata)
        ai_available = analysis is not None
        if analysis is None:
            analysis = fallback_analysis()

        scores = SeoValidationScores(
            content=score_content(metrics),
            technical=score_technical(metrics),
            metadata=score_validation_metadata(options.metadata),
            readability=analysis.readability,
            keyword_relevance=analysis.keyword_relevance,
            structure=analysis.structure,
        )
        overall = overall_score(scores)
        logger.info(f"SEO validation scored {overall} (pass at {self._pass_score})")

        return SeoValidationData(
            overall_score=overall,
            passed=overall >= self._pass_score,
            scores=scores,
            metrics=metrics,
            suggestions=build_suggestions(scores, analysis.suggestions),
            ai_analysis_available=ai_available,
            tokens_used=tokens_used,
            processing_time_ms=self.elapsed_ms(started),
        )

    async def analyze(
        self, content: str, content_type: str, metadata: SeoValidationMetadata | None
    ) -> tuple[SeoAiAnalysis | None, int | None]:
        """Ask the model for its scores.

        Returns:
            The analysis, or None when the call failed or its reply could not
            be parsed, and the tokens spent if known.
        """
        metadata_json = (
            json.dumps(metadata.model_dump(exclude_none=True), ensure_ascii=False)
            if metadata
            else "none"
        )
        variables = (
            PromptVariableBuilder()
            .add_content(markdown.truncate_content(content, self._max_content_length))
            .add_custom("contentType", content_type)
            .add_custom("metadata", metadata_json)
            .build()
        )
        try:
            prompt = self.render_prompt(SEO_VALIDATION, variables)
            response = await self._llm.complete(
                prompt.system,
                prompt.user,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                json_mode=True,
            )
        except AiServiceError as e:
            logger.warning(f"SEO analysis failed ({e.kind.value}), using default scores")
            return None, None

        analysis = parse_seo_analysis(response.content)
        if analysis is None:
            logger.warning("SEO analysis response could not be parsed, using default scores")
            return None, response.tokens_used
        return analysis, response.tokens_used
