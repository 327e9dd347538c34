"""Normalization of model responses into structured scores.

Models wrap their JSON in prose or code fences, so JSON is located with a
bracket-depth scanner rather than trusted to be the whole response. Numeric
scores are clamped to ``[0, 100]``. Parse failures return ``None``; choosing a
fallback such as ``default_score()`` is the caller's decision.
"""

import json
import logging
import math
from collections.abc import Iterator
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

SCORE_MIN = 0
SCORE_MAX = 100
DEFAULT_SCORE = 70

READABILITY_THRESHOLDS: dict[str, int] = {
    "excellent": 90,
    "good": 80,
    "fair": 70,
    "poor": 60,
}

# Source field in the model's JSON -> breakdown field.
READABILITY_FIELD_MAP: dict[str, str] = {
    "title_structure": "heading_structure",
    "code_quality": "code_block_formatting",
    "terminology_clarity": "paragraph_flow",
    "overall_structure": "list_organization",
    "overall_score": "overall_clarity",
}


class ReadabilityBreakdown(BaseModel):
    heading_structure: float = Field(ge=SCORE_MIN, le=SCORE_MAX)
    code_block_formatting: float = Field(ge=SCORE_MIN, le=SCORE_MAX)
    paragraph_flow: float = Field(ge=SCORE_MIN, le=SCORE_MAX)
    list_organization: float = Field(ge=SCORE_MIN, le=SCORE_MAX)
    overall_clarity: float = Field(ge=SCORE_MIN, le=SCORE_MAX)


class ScoreBreakdown(BaseModel):
    """Readability score parsed from a single model response.

    Attributes:
        score: Aggregate score in ``[0, 100]``.
        breakdown: Per-aspect sub-scores, each in ``[0, 100]``.
        suggestions: Free-text improvement suggestions. Always a list.
    """

    score: float = Field(ge=SCORE_MIN, le=SCORE_MAX)
    breakdown: ReadabilityBreakdown
    suggestions: list[str] = Field(default_factory=list)

    @property
    def grade(self) -> str:
        return readability_grade(self.score)


def iter_json_spans(text: str) -> Iterator[str]:
    """Yield every top-level balanced ``{...}`` span in order.

    Braces inside JSON string literals are ignored, so a ``}`` within a
    suggestion does not close the object early.
    """
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for index, char in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"' and depth > 0:
            in_string = True
        elif char == "{":
            if depth == 0:
                start = index
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                yield text[start : index + 1]


def find_json_object(text: str) -> str | None:
    """Return the first top-level balanced ``{...}`` span, or None."""
    return next(iter_json_spans(text), None)


def extract_json_object(text: str) -> dict[str, Any] | None:
    """Parse the first balanced span that decodes to a JSON object.

    Args:
        text: Raw model output.

    Returns:
        The decoded object, or None when no span parses.
    """
    for span in iter_json_spans(text):
        try:
            parsed = json.loads(span)
        except json.JSONDecodeError:
            logger.debug(f"Skipping unparseable JSON span: {span[:80]}")
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def clamp(value: float, lower: float = SCORE_MIN, upper: float = SCORE_MAX) -> float:
    return max(lower, min(upper, value))


def parse_score(raw: str) -> ScoreBreakdown | None:
    """Parse a readability response into a ScoreBreakdown.

    Every field in ``READABILITY_FIELD_MAP`` must be present and numeric;
    booleans do not count as numbers.

    Args:
        raw: Free-form model output that should contain a JSON object.

    Returns:
        The clamped breakdown, or None if no usable JSON was found.
    """
    parsed = extract_json_object(raw)
    if parsed is None:
        logger.warning("No JSON object found in readability response")
        return None

    for source in READABILITY_FIELD_MAP:
        if not is_number(parsed.get(source)):
            logger.warning(f"Readability field '{source}' is missing or not numeric")
            return None

    breakdown = {
        target: clamp(parsed[source]) for source, target in READABILITY_FIELD_MAP.items()
    }
    suggestions = parsed.get("suggestions")
    if not isinstance(suggestions, list):
        suggestions = []

    return ScoreBreakdown(
        score=clamp(parsed["overall_score"]),
        breakdown=ReadabilityBreakdown(**breakdown),
        suggestions=[str(item) for item in suggestions],
    )


def default_score() -> ScoreBreakdown:
    """Neutral score used when readability analysis could not run."""
    return ScoreBreakdown(
        score=DEFAULT_SCORE,
        breakdown=ReadabilityBreakdown(
            **{target: DEFAULT_SCORE for target in READABILITY_FIELD_MAP.values()}
        ),
        suggestions=["AI analysis could not run, so a default score was returned."],
    )


def readability_grade(score: float) -> str:
    if score >= READABILITY_THRESHOLDS["excellent"]:
        return "Excellent"
    if score >= READABILITY_THRESHOLDS["good"]:
        return "Good"
    if score >= READABILITY_THRESHOLDS["fair"]:
        return "Fair"
    if score >= READABILITY_THRESHOLDS["poor"]:
        return "Poor"
    return "Very Poor"
