"""Unit tests for the SEO validation feature."""

import json

import pytest

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import FeatureRequest
from devlog.prompts.templates import default_registry
from devlog.strategies.features import SeoValidationFeature
from devlog.strategies.features.models import (
    ContentMetrics,
    HeadingCounts,
    SeoValidationMetadata,
    SeoValidationScores,
)
from devlog.strategies.features.seo import score_description, score_keywords, score_slug, score_title
from devlog.strategies.features.seo_validation import (
    build_suggestions,
    collect_content_metrics,
    keyword_density,
    overall_score,
    parse_seo_analysis,
    score_content,
    score_technical,
    score_validation_metadata,
)
from tests.unit.fakes import ScriptedLLM

CONTENT = (
    "# Docker Compose in practice\n\n"
    "## Why Compose\n\n"
    + "Compose describes multi-container applications in a single file. " * 3
    + "\n\n### Services\n\n![Compose diagram](compose.png)\n\n"
    "See [volumes](/posts/volumes) and [networks](/posts/networks) for details.\n\n"
    "## Running it\n\n"
    + "Start everything with one command and stop it just as easily. " * 2
)

METADATA = {
    "title": "Docker Compose: a practical guide",
    "description": (
        "Learn how Docker Compose runs multi-container applications from one file, "
        "with services, volumes and networks explained step by step for developers."
    ),
    "keywords": ["docker compose", "containers", "devops"],
}

ANALYSIS_REPLY = json.dumps(
    {
        "readabilityScore": 90,
        "keywordRelevance": 90,
        "structureScore": 90,
        "suggestions": ["Add a summary section"],
    }
)


def scores(**overrides):
    values = dict(content=100, technical=100, metadata=100, readability=100, keyword_relevance=100, structure=100)
    values.update(overrides)
    return SeoValidationScores(**values)


# =============================================================================
# Content Metrics Tests
# =============================================================================


class TestContentMetrics:
    def test_html_structure(self):
        html = (
            '<h1>Docker</h1><h2 id="build">Build</h2><h2>Run</h2><h3>Flags</h3>'
            '<p>See <a href="/posts/compose">compose</a> and <a href="https://docs.docker.com">docs</a>.</p>'
            '<img src="a.png" alt="Diagram"><img src="b.png">'
        )

        metrics = collect_content_metrics(html, "html")

        assert metrics.headings == HeadingCounts(h1=1, h2=2, h3=1)
        assert metrics.image_count == 2
        assert metrics.image_alt_text_count == 1
        assert metrics.internal_links_count == 1
        assert metrics.external_links_count == 1

    def test_markdown_structure_ignores_code_blocks(self):
        content = (
            "# Docker\n\n## Build\n\n![diagram](a.png)\n\n"
            "See [compose](/posts/compose) and [docs](https://docs.docker.com).\n\n"
            "```\n# not a heading\n```"
        )

        metrics = collect_content_metrics(content, "markdown")

        assert metrics.headings == HeadingCounts(h1=1, h2=1, h3=0)
        assert metrics.image_alt_text_count == 1
        assert metrics.internal_links_count == 1
        assert metrics.external_links_count == 1
        assert metrics.word_count == 6

    def test_metadata_lengths(self):
        metadata = SeoValidationMetadata(title="Docker tips", description="Short")

        metrics = collect_content_metrics(CONTENT, "markdown", metadata)

        assert metrics.title_length == 11
        assert metrics.meta_description_length == 5

    def test_keyword_density(self):
        assert keyword_density("Python python rust go code") == {"python": 40.0, "rust": 20.0, "code": 20.0}
        assert keyword_density("") == {}


# =============================================================================
# Score Tests
# =============================================================================


class TestScores:
    def test_content_score(self):
        rich = ContentMetrics(content_length=300, headings=HeadingCounts(h1=1, h2=2, h3=1))

        assert score_content(rich) == 100
        assert score_content(ContentMetrics()) == 40

    def test_technical_score(self):
        linked = ContentMetrics(image_alt_text_count=1, internal_links_count=2)

        assert score_technical(linked) == 100
        assert score_technical(ContentMetrics()) == 60

    def test_metadata_score_reuses_field_scores(self):
        metadata = SeoValidationMetadata(title="Docker tips", description="d" * 130, keywords=["docker"])
        expected = round(
            (
                score_title("Docker tips", ["docker"])
                + score_description("d" * 130, ["docker"])
                + score_keywords(["docker"], ["docker"])
            )
            / 3
        )

        assert score_validation_metadata(metadata) == expected

    def test_metadata_score_includes_slug_when_given(self):
        metadata = SeoValidationMetadata(title="Docker tips", slug="docker-compose-in-practice")
        expected = round((score_title("Docker tips", []) + score_slug("docker-compose-in-practice")) / 4)

        assert score_validation_metadata(metadata) == expected

    def test_missing_metadata(self):
        assert score_validation_metadata(None) == 50
        assert score_validation_metadata(SeoValidationMetadata()) == 0

    def test_overall_score_is_weighted(self):
        mixed = scores(technical=60, metadata=50, readability=80, keyword_relevance=70, structure=70)

        assert overall_score(scores()) == 100
        assert overall_score(mixed) == 73

    def test_suggestions_follow_weak_scores(self):
        suggestions = build_suggestions(scores(technical=60), ["Add a summary section"])

        assert suggestions == [
            "Add a summary section",
            "Add alt text to images and link to related posts",
        ]

    def test_suggestions_are_capped(self):
        ai = [f"Suggestion {i}" for i in range(4)]

        suggestions = build_suggestions(scores(content=10, technical=10, metadata=10), ai)

        assert len(suggestions) == 5
        assert suggestions[:4] == ai


# =============================================================================
# Analysis Parsing Tests
# =============================================================================


class TestParseSeoAnalysis:
    def test_scores_are_clamped(self):
        raw = (
            'Here you go: {"readabilityScore": 150, "keywordRelevance": -5, '
            '"structureScore": 85.4, "suggestions": ["Add a summary", ""]}'
        )

        analysis = parse_seo_analysis(raw)

        assert analysis.readability == 100
        assert analysis.keyword_relevance == 0
        assert analysis.structure == 85
        assert analysis.suggestions == ["Add a summary"]

    def test_missing_score_counts_as_zero(self):
        analysis = parse_seo_analysis('{"readabilityScore": 80, "keywordRelevance": "high"}')

        assert analysis.keyword_relevance == 0
        assert analysis.structure == 0
        assert analysis.suggestions == []

    def test_no_json(self):
        assert parse_seo_analysis("no json here at all") is None


# =============================================================================
# Feature Tests
# =============================================================================


class TestSeoValidationFeature:
    """Test suite for SeoValidationFeature."""

    @pytest.fixture
    def registry(self):
        return default_registry()

    def test_well_optimized_post_passes(self, registry):
        import asyncio

        llm = ScriptedLLM(ANALYSIS_REPLY)
        feature = SeoValidationFeature(llm, registry)
        request = FeatureRequest(content=CONTENT, options={"metadata": METADATA})

        data = asyncio.run(feature.run(request))

        assert data.scores.content == 100
        assert data.scores.technical == 100
        assert data.scores.readability == 90
        assert data.overall_score == overall_score(data.scores)
        assert data.passed is True
        assert data.ai_analysis_available is True
        assert data.suggestions[0] == "Add a summary section"
        assert data.tokens_used == 10
        assert llm.calls[0]["json_mode"] is True
        assert '"title": "Docker Compose: a practical guide"' in llm.calls[0]["user"]

    def test_sparse_post_fails(self, registry):
        import asyncio

        reply = json.dumps({"readabilityScore": 40, "keywordRelevance": 30, "structureScore": 35})
        feature = SeoValidationFeature(ScriptedLLM(reply), registry)

        data = asyncio.run(feature.run(FeatureRequest(content="Just a few plain words about Docker.")))

        assert data.passed is False
        assert data.scores.metadata == 50
        assert "Optimize the meta title and description" in data.suggestions

    def test_ai_failure_uses_neutral_scores(self, registry):
        import asyncio

        llm = ScriptedLLM(AiServiceError("upstream down", kind=AiErrorKind.SERVER))
        feature = SeoValidationFeature(llm, registry)

        data = asyncio.run(feature.run(FeatureRequest(content=CONTENT)))

        assert data.ai_analysis_available is False
        assert data.scores.readability == 70
        assert data.scores.structure == 70
        assert "Improve the content structure" in data.suggestions
        assert data.tokens_used is None

    def test_unparseable_reply_uses_neutral_scores(self, registry):
        import asyncio

        feature = SeoValidationFeature(ScriptedLLM("Looks fine to me."), registry)

        data = asyncio.run(feature.run(FeatureRequest(content=CONTENT)))

        assert data.ai_analysis_available is False
        assert data.scores.keyword_relevance == 70
        assert data.tokens_used == 10

    def test_short_content_is_rejected(self, registry):
        import asyncio

        llm = ScriptedLLM()
        feature = SeoValidationFeature(llm, registry)

        with pytest.raises(AiServiceError) as exc_info:
            asyncio.run(feature.run(FeatureRequest(content="tiny")))

        assert exc_info.value.kind is AiErrorKind.INVALID_INPUT
        assert llm.calls == []

    def test_invalid_metadata_is_rejected(self, registry):
        import asyncio

        feature = SeoValidationFeature(ScriptedLLM(), registry)
        request = FeatureRequest(content=CONTENT, options={"metadata": {"keywords": "docker"}})

        with pytest.raises(AiServiceError) as exc_info:
            asyncio.run(feature.run(request))

        assert exc_info.value.kind is AiErrorKind.INVALID_INPUT

    def test_unsafe_markup_is_not_sent_to_the_model(self, registry):
        import asyncio

        llm = ScriptedLLM(ANALYSIS_REPLY)
        feature = SeoValidationFeature(llm, registry)
        content = "<p>Docker basics for new developers</p><script>alert(1)</script>"

        asyncio.run(feature.run(FeatureRequest(content=content, content_type="html")))

        assert "alert" not in llm.calls[0]["user"]

    def test_custom_pass_score(self, registry):
        import asyncio

        feature = SeoValidationFeature(ScriptedLLM(ANALYSIS_REPLY), registry, pass_score=100)

        data = asyncio.run(feature.run(FeatureRequest(content=CONTENT, options={"metadata": METADATA})))

        assert data.passed is False
