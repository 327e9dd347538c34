"""Style upgrade feature.

Rewrites a post for readability, then scores the rewritten text with a
second, JSON-only readability prompt.
"""

import logging
import re
import time

from pydantic import ValidationError

from devlog.core.errors import AiErrorKind, AiServiceError
from devlog.interfaces.feature import FeatureRequest
from devlog.interfaces.llm import BaseLLMClient
from devlog.prompts.scoring import ScoreBreakdown, default_score, parse_score
from devlog.prompts.templates import READABILITY_ANALYSIS, STYLE_UPGRADE, PromptRegistry
from devlog.prompts.variables import PromptVariableBuilder
from devlog.strategies.features import markdown
from devlog.strategies.features.base import PromptedFeature
from devlog.strategies.features.models import StyleUpgradeData, StyleUpgradeOptions

logger = logging.getLogger(__name__)

ENHANCED_SECTION_REGEX = re.compile(
    r"^##\s*Enhanced Content\s*\n([\s\S]*?)(?=^##\s*(?:Improvements|Readability Score)\b|\Z)",
    re.MULTILINE | re.IGNORECASE,
)
IMPROVEMENTS_SECTION_REGEX = re.compile(
    r"^##\s*Improvements\s*\n([\s\S]*?)(?=^##\s|\Z)",
    re.MULTILINE | re.IGNORECASE,
)
BULLET_REGEX = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(.+)$", re.MULTILINE)


def extract_enhanced_content(response: str) -> str | None:
    """Pull the rewritten post out of a style-upgrade response.

    Falls back to the whole response when it looks like Markdown.
    """
    match = ENHANCED_SECTION_REGEX.search(response)
    if match and match.group(1).strip():
        return match.group(1).strip()
    if "#" in response or "```" in response:
        return response.strip()
    return None


def extract_listed_improvements(response: str) -> list[str]:
    match = IMPROVEMENTS_SECTION_REGEX.search(response)
    if not match:
        return []
    return [item.strip() for item in BULLET_REGEX.findall(match.group(1)) if item.strip()]


def summarize_improvements(
    original: str, enhanced: str, readability: ScoreBreakdown, listed: list[str] | None = None
) -> list[str]:
    """Describe what changed between the original and enhanced text."""
    improvements = list(listed or [])

    if len(markdown.extract_headings(enhanced)) > len(markdown.extract_headings(original)):
        improvements.append("Heading structure was improved.")
    if len(markdown.extract_code_blocks(enhanced)) > len(markdown.extract_code_blocks(original)):
        improvements.append("Code block formatting was improved.")
    if len(enhanced) > len(original) * 1.1:
        improvements.append("Explanations and structure were expanded.")

    improvements.extend(readability.suggestions)
    return list(dict.fromkeys(improvements))


class StyleUpgradeFeature(PromptedFeature):
    """Restyle a post's Markdown and score its readability."""

    name = "styling"

    def __init__(
        self,
        llm: BaseLLMClient,
        registry: PromptRegistry,
        temperature: float = 0.6,
        max_tokens: int = 2048,
        readability_temperature: float = 0.3,
        readability_max_tokens: int = 1024,
        max_content_length: int = 10000,
    ) -> None:
        super().__init__(llm, registry)
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._readability_temperature = readability_temperature
        self._readability_max_tokens = readability_max_tokens
        self._max_content_length = max_content_length

    async def run(self, request: FeatureRequest) -> StyleUpgradeData:
        started = time.perf_counter()

        try:
            options = StyleUpgradeOptions.model_validate(request.options)
        except ValidationError as e:
            raise AiServiceError(
                f"Invalid style options: {e.errors()[0]['msg']}",
                kind=AiErrorKind.INVALID_INPUT,
                feature=self.name,
            ) from e

        content = markdown.preprocess(request.content, request.content_type)
        variables = (
            PromptVariableBuilder()
            .add_content(markdown.truncate_content(content, self._max_content_length))
            .add_custom("contentType", request.content_type)
            .add_custom("includeTableOfContents", options.include_table_of_contents)
            .add_custom("enhanceCodeBlocks", options.enhance_code_blocks)
            .add_custom("improveHeadingStructure", options.improve_heading_structure)
            .add_custom("optimizeForSEO", options.optimize_for_seo)
            .build()
        )
        prompt = self.render_prompt(STYLE_UPGRADE, variables)

        logger.info(f"Running style upgrade on {len(content)} characters")
        response = await self._llm.complete(
            prompt.system,
            prompt.user,
            temperature=self._temperature,
            max_tokens=self._max_tokens,
        )

        enhanced = extract_enhanced_content(response.content)
        if enhanced is None:
            raise AiServiceError(
                "Could not find enhanced content in the model response",
                kind=AiErrorKind.INVALID_RESPONSE,
                feature=self.name,
            )
        enhanced = markdown.postprocess(enhanced, options.include_table_of_contents)

        readability, readability_tokens = await self.analyze_readability(
            enhanced, request.content_type
        )
        improvements = summarize_improvements(
            content, enhanced, readability, extract_listed_improvements(response.content)
        )

        tokens_used = None
        if response.tokens_used is not None or readability_tokens is not None:
            tokens_used = (response.tokens_used or 0) + (readability_tokens or 0)

        return StyleUpgradeData(
            original_content=request.content,
            enhanced_content=enhanced,
            improvements=improvements,
            readability=readability,
            tokens_used=tokens_used,
            processing_time_ms=self.elapsed_ms(started),
        )

    async def analyze_readability(
        self, content: str, content_type: str = "markdown"
    ) -> tuple[ScoreBreakdown, int | None]:
        """Score content, falling back to the neutral default on any AI failure.

        Returns:
            The score and the tokens spent, if known.
        """
        variables = (
            PromptVariableBuilder()
            .add_content(markdown.truncate_content(content, self._max_content_length))
            .add_custom("contentType", content_type)
            .build()
        )
        try:
            prompt = self.render_prompt(READABILITY_ANALYSIS, variables)
            response = await self._llm.complete(
                prompt.system,
                prompt.user,
                temperature=self._readability_temperature,
                max_tokens=self._readability_max_tokens,
                json_mode=True,
            )
        except AiServiceError as e:
            logger.warning(f"Readability analysis failed ({e.kind.value}), using default score")
            return default_score(), None

        score = parse_score(response.content)
        if score is None:
            logger.warning("Readability response could not be parsed, using default score")
            return default_score(), response.tokens_used
        return score, response.tokens_used
