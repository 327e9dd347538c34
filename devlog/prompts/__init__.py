"""Prompt templates, variable substitution and response normalization."""

from devlog.prompts.scoring import ScoreBreakdown, default_score, extract_json_object, parse_score
from devlog.prompts.templates import PromptRegistry, PromptTemplate, default_registry
from devlog.prompts.variables import (
    PromptVariableBuilder,
    SubstitutionResult,
    ValidationResult,
    extract_placeholders,
    render,
    substitute,
    validate_variables,
)

__all__ = [
    "PromptRegistry",
    "PromptTemplate",
    "PromptVariableBuilder",
    "ScoreBreakdown",
    "SubstitutionResult",
    "ValidationResult",
    "default_registry",
    "default_score",
    "extract_json_object",
    "extract_placeholders",
    "parse_score",
    "render",
    "substitute",
    "validate_variables",
]
