"""Prompt templates for the AI features.

Each template is a system/user pair plus default values for its optional
placeholders. Templates are defined once at import time and never mutated.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from devlog.prompts.variables import (
    PromptValue,
    SubstitutionResult,
    ValidationResult,
    render,
    validate_template,
    validate_variables,
)

STYLE_UPGRADE = "style_upgrade"
READABILITY_ANALYSIS = "readability_analysis"
IMPROVEMENT_PRIORITY = "improvement_priority"
SEO_METADATA = "seo_metadata"
SEO_VALIDATION = "seo_validation"
CATEGORY_CLASSIFICATION = "category_classification"


@dataclass(frozen=True)
class RenderedPrompt:
    system: str
    user: str
    missing: tuple[str, ...] = ()


@dataclass(frozen=True)
class PromptTemplate:
    """A system/user prompt pair with default variables."""

    name: str
    system: str
    user: str
    defaults: Mapping[str, PromptValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "defaults", MappingProxyType(dict(self.defaults)))

    def merged(self, variables: Mapping[str, PromptValue | None]) -> dict[str, PromptValue | None]:
        merged: dict[str, PromptValue | None] = dict(self.defaults)
        merged.update({k: v for k, v in variables.items() if v is not None})
        return merged

    def render(self, variables: Mapping[str, PromptValue | None]) -> RenderedPrompt:
        """Render both parts, caller variables taking precedence over defaults."""
        merged = self.merged(variables)
        system: SubstitutionResult = render(self.system, merged)
        user: SubstitutionResult = render(self.user, merged)
        missing = tuple(dict.fromkeys(system.missing + user.missing))
        return RenderedPrompt(system=system.text, user=user.text, missing=missing)

    def validate(self, variables: Mapping[str, PromptValue | None]) -> ValidationResult:
        """Validate the merged variables against the combined template."""
        return validate_variables(f"{self.system}\n{self.user}", self.merged(variables))


class PromptRegistry:
    """Read-only mapping from feature prompt name to template."""

    def __init__(self, templates: list[PromptTemplate]) -> None:
        self._templates: dict[str, PromptTemplate] = {}
        for template in templates:
            for part in (template.system, template.user):
                check = validate_template(part)
                if not check.is_valid:
                    raise ValueError(
                        f"Prompt template '{template.name}' is malformed: {'; '.join(check.errors)}"
                    )
            self._templates[template.name] = template

    def get(self, name: str) -> PromptTemplate:
        try:
            return self._templates[name]
        except KeyError:
            raise KeyError(
                f"Unknown prompt template: {name}. "
                f"Valid options: {', '.join(sorted(self._templates))}"
            ) from None

    def names(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, name: object) -> bool:
        return name in self._templates


# =============================================================================
# Style upgrade
# =============================================================================

STYLE_UPGRADE_PROMPT = PromptTemplate(
    name=STYLE_UPGRADE,
    system="""You are a technical writing editor. Your goal is to make a developer's \
technical blog post easier to read.

Areas to improve:
1. Heading structure (a consistent H1-H6 hierarchy)
2. Code block formatting and language tags
3. Consistent formatting of lists and tables
4. Paragraph flow
5. Clear explanations of technical terms

Rules:
- Never change the meaning of the original text
- Keep technical accuracy
- Keep a developer-friendly tone
- Produce valid Markdown

Response format:
1. The improved Markdown content
2. A list of improvements
3. A readability score (0-100)""",
    user="""Improve the following technical post.

Content type: {{contentType}}
Original content:
{{content}}

Options:
- Generate a table of contents: {{includeTableOfContents}}
- Enhance code blocks: {{enhanceCodeBlocks}}
- Improve heading structure: {{improveHeadingStructure}}
- Optimize for SEO: {{optimizeForSEO}}

Respond in exactly this format:

## Enhanced Content
[improved Markdown content]

## Improvements
[bullet list of concrete improvements]

## Readability Score
[score (0-100)]""",
    defaults={
        "contentType": "markdown",
        "includeTableOfContents": False,
        "enhanceCodeBlocks": True,
        "improveHeadingStructure": True,
        "optimizeForSEO": False,
    },
)


# =============================================================================
# Readability
# =============================================================================

READABILITY_ANALYSIS_PROMPT = PromptTemplate(
    name=READABILITY_ANALYSIS,
    system="""You are an expert at evaluating the readability of technical documents. \
Return valid JSON only.""",
    user="""Analyze the following {{contentType}} content and score its readability.

Criteria:
1. Title structure (appropriate H1-H6 hierarchy)
2. Code block quality (language tags, legibility)
3. Clarity of technical terminology
4. Overall document structure

Respond with a single JSON object in exactly this shape:
{
  "title_structure": 85,
  "code_quality": 92,
  "terminology_clarity": 78,
  "overall_structure": 88,
  "overall_score": 86,
  "suggestions": ["Organize the heading levels more consistently", "Explain the technical terms"]
}

Content to analyze:
{{content}}""",
    defaults={"contentType": "markdown"},
)

IMPROVEMENT_PRIORITY_PROMPT = PromptTemplate(
    name=IMPROVEMENT_PRIORITY,
    system="You are a technical writing coach.",
    user="""Based on these readability scores, choose the three areas that most need \
improvement, most urgent first, and give a concrete method for each:

- Title structure: {{title_structure}}
- Code quality: {{code_quality}}
- Terminology clarity: {{terminology_clarity}}
- Overall structure: {{overall_structure}}""",
)


# =============================================================================
# SEO metadata
# =============================================================================

SEO_METADATA_PROMPT = PromptTemplate(
    name=SEO_METADATA,
    system="""You are an SEO specialist for technical blogs. Return valid JSON only, \
inside a ```json fenced block.""",
    user="""Analyze the following blog post and produce optimized metadata.

Title: {{title}}
Content type: {{contentType}}
Language: {{language}}
Target keywords: {{targetKeywords}}

Content:
{{content}}

Requirements:
1. Meta title: at most {{maxTitleLength}} characters, includes the main keyword
2. Meta description: at most {{maxDescriptionLength}} characters, summarizes the post
3. Keywords: 3-5 primary and 5-8 secondary keywords
4. Open Graph title optimized for social sharing
5. Open Graph description (100-200 characters)
6. URL slug: lowercase letters, digits and hyphens only

Response format:
```json
{
  "metaTitle": "Optimized meta title",
  "metaDescription": "Optimized meta description",
  "keywords": ["primary1", "primary2", "secondary1"],
  "openGraphTitle": "Title for social sharing",
  "openGraphDescription": "Description for social sharing",
  "suggestedSlug": "seo-friendly-url-slug",
  "reasoning": "Why these recommendations fit the post"
}
```

Place keywords naturally, avoid keyword stuffing, and write for click-through.""",
    defaults={
        "contentType": "markdown",
        "language": "ko",
        "maxTitleLength": 60,
        "maxDescriptionLength": 160,
    },
)


SEO_VALIDATION_PROMPT = PromptTemplate(
    name=SEO_VALIDATION,
    system="""You are an SEO auditor for technical blogs. Return valid JSON only.""",
    user="""Evaluate the following {{contentType}} content from an SEO point of view.

Metadata (JSON):
{{metadata}}

Content:
{{content}}

Respond with a single JSON object in exactly this shape:
{
  "readabilityScore": 82,
  "keywordRelevance": 75,
  "structureScore": 88,
  "suggestions": ["Concrete improvement", "Another concrete improvement"]
}

Scoring criteria (each 0-100):
- readabilityScore: sentence structure and paragraph organization
- keywordRelevance: keyword placement and semantic relevance to the topic
- structureScore: heading hierarchy and logical flow
- suggestions: specific SEO improvements for this post""",
    defaults={"contentType": "markdown", "metadata": "none"},
)


# =============================================================================
# Category classification
# =============================================================================

CATEGORY_CLASSIFICATION_PROMPT = PromptTemplate(
    name=CATEGORY_CLASSIFICATION,
    system="""You classify technical blog posts into the blog's existing categories. \
Return valid JSON only, inside a ```json fenced block.""",
    user="""Recommend the most suitable categories for this post.

Title: {{title}}
Content type: {{contentType}}
Categories already assigned (JSON): {{existingCategories}}

Content:
{{content}}

Available categories (JSON, use the "id" values):
{{availableCategories}}

Classification criteria:
1. Core topic and technology stack
2. Target audience level
3. Purpose of the content (tutorial, review, analysis, guide, news)
4. Technical domain (frontend, backend, devops, AI/ML, ...)

Recommend at most {{maxSuggestions}} categories that are not already assigned, each \
with a confidence between 0.0 and 1.0, a concrete reason and key topics. Only \
recommend categories with confidence of at least 0.6.

Response format:
```json
{
  "recommendations": [
    {
      "categoryId": "web-development",
      "categoryName": "Web Development",
      "confidence": 0.92,
      "reasoning": "A tutorial on building a web application with React and Next.js.",
      "keyTopics": ["React", "Next.js", "Frontend"]
    }
  ],
  "contentAnalysis": {
    "primaryTopic": "Web Development",
    "secondaryTopics": ["React", "Frontend Development"],
    "technicalLevel": "intermediate",
    "contentType": "tutorial",
    "keyTopics": ["React", "Hooks"],
    "technicalTerms": ["jsx", "useState"],
    "frameworksAndTools": ["React", "Next.js"]
  }
}
```""",
    defaults={
        "contentType": "markdown",
        "existingCategories": "[]",
        "maxSuggestions": 3,
    },
)


def default_registry() -> PromptRegistry:
    """Build the registry holding every feature prompt."""
    return PromptRegistry(
        [
            STYLE_UPGRADE_PROMPT,
            READABILITY_ANALYSIS_PROMPT,
            IMPROVEMENT_PRIORITY_PROMPT,
            SEO_METADATA_PROMPT,
            SEO_VALIDATION_PROMPT,
            CATEGORY_CLASSIFICATION_PROMPT,
        ]
    )
