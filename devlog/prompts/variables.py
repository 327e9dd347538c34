"""Prompt variable substitution and validation.

Templates reference variables with ``{{name}}`` placeholders, where ``name``
is a run of ASCII letters, digits and underscores. Substitution is fail-soft:
a placeholder whose variable is missing stays in the output verbatim and a
warning is logged, because the rendered text goes to a best-effort model
rather than a strict parser. Callers that need to know about the gap use
``render`` and inspect ``SubstitutionResult.missing``.
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{([A-Za-z0-9_]+)\}\}")

PromptValue = str | int | float | bool

CONTENT_MIN_LENGTH = 10
CONTENT_MAX_LENGTH = 50000
TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 100


@dataclass(frozen=True)
class SubstitutionResult:
    """Rendered text plus the placeholders that could not be filled."""

    text: str
    missing: tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return not self.missing


@dataclass(frozen=True)
class InvalidVariable:
    variable: str
    reason: str


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of checking a variable set against a template."""

    is_valid: bool
    missing_variables: list[str] = field(default_factory=list)
    invalid_variables: list[InvalidVariable] = field(default_factory=list)

    def describe(self) -> str:
        """One-line summary of the problems, empty when valid."""
        problems = [f"missing variable '{name}'" for name in self.missing_variables]
        problems += [f"{item.variable}: {item.reason}" for item in self.invalid_variables]
        return "; ".join(problems)


@dataclass(frozen=True)
class TemplateCheck:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


def stringify(value: PromptValue) -> str:
    """Format a variable value the way prompts expect it.

    Booleans render as ``true``/``false`` so option flags read naturally
    inside prompt text.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render(template: str, variables: Mapping[str, PromptValue | None]) -> SubstitutionResult:
    """Replace every placeholder that has a value.

    Args:
        template: Template text containing ``{{name}}`` placeholders.
        variables: Values keyed by placeholder name. ``None`` counts as missing.

    Returns:
        SubstitutionResult with the rendered text and the distinct names that
        were left unreplaced, in order of first appearance.
    """
    missing: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        value = variables.get(name)
        if value is None:
            if name not in missing:
                missing.append(name)
            return match.group(0)
        return stringify(value)

    text = PLACEHOLDER_PATTERN.sub(_replace, template)
    for name in missing:
        logger.warning(f"Missing prompt variable: {name}")
    return SubstitutionResult(text=text, missing=tuple(missing))


def substitute(template: str, variables: Mapping[str, PromptValue | None]) -> str:
    """Fail-soft substitution; missing placeholders are kept verbatim."""
    return render(template, variables).text


def extract_placeholders(template: str) -> set[str]:
    """Return the distinct placeholder names referenced by a template."""
    return set(PLACEHOLDER_PATTERN.findall(template))


def _ordered_placeholders(template: str) -> list[str]:
    return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))


def validate_variables(
    template: str, variables: Mapping[str, PromptValue | None]
) -> ValidationResult:
    """Check that a variable set satisfies every placeholder in a template.

    Never raises; malformed values are reported in ``invalid_variables``.

    Args:
        template: The template whose placeholders are required.
        variables: Candidate values.

    Returns:
        ValidationResult listing missing and invalid variables.
    """
    missing: list[str] = []
    invalid: list[InvalidVariable] = []

    for name in _ordered_placeholders(template):
        value = variables.get(name)
        if value is None:
            missing.append(name)
            continue

        reason = _check_variable(name, value)
        if reason is not None:
            invalid.append(InvalidVariable(variable=name, reason=reason))

    return ValidationResult(
        is_valid=not missing and not invalid,
        missing_variables=missing,
        invalid_variables=invalid,
    )


def _check_variable(name: str, value: PromptValue) -> str | None:
    text = stringify(value).strip()

    if not text:
        return "Empty values are not allowed"

    lowered = name.lower()
    if name == "content":
        return _check_length(text, CONTENT_MIN_LENGTH, CONTENT_MAX_LENGTH, "Content")
    if name == "title":
        return _check_length(text, TITLE_MIN_LENGTH, TITLE_MAX_LENGTH, "Title")
    if "keyword" in lowered:
        return _check_json_array(text, "Keywords", allow_empty=False)
    if "categor" in lowered:
        return _check_json_array(text, "Categories", allow_empty=True)
    return None


def _check_length(text: str, minimum: int, maximum: int, label: str) -> str | None:
    if len(text) < minimum:
        return f"{label} is too short (minimum {minimum} characters)"
    if len(text) > maximum:
        return f"{label} is too long (maximum {maximum:,} characters)"
    return None


def _check_json_array(text: str, label: str, allow_empty: bool) -> str | None:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return f"{label} must be a JSON array"
    if not isinstance(parsed, list):
        return f"{label} must be a JSON array"
    if not parsed and not allow_empty:
        return f"At least one entry is required in {label.lower()}"
    return None


def validate_template(template: str) -> TemplateCheck:
    """Check placeholder syntax of a template.

    Reports empty templates, unbalanced ``{{``/``}}`` delimiters and
    placeholders opened inside another placeholder.
    """
    errors: list[str] = []

    if not template.strip():
        errors.append("Prompt template is empty")

    open_count = template.count("{{")
    close_count = template.count("}}")
    if open_count != close_count:
        errors.append(
            f"Unbalanced placeholder delimiters: {open_count} '{{{{' vs {close_count} '}}}}'"
        )

    if re.search(r"\{\{[^}]*\{\{", template):
        errors.append("Nested placeholder syntax found")

    return TemplateCheck(is_valid=not errors, errors=errors)


def normalize_template(template: str) -> str:
    """Collapse every run of whitespace, newlines included, into one space."""
    return re.sub(r"\s+", " ", template).strip()


class PromptVariableBuilder:
    """Fluent builder for the variables shared by the feature prompts.

    Example:
        ```python
        variables = (
            PromptVariableBuilder()
            .add_title("Async Python")
            .add_content(markdown)
            .add_keywords(["asyncio", "python"])
            .build()
        )
        ```
    """

    def __init__(self) -> None:
        self._variables: dict[str, PromptValue] = {}

    def add_content(self, content: str) -> "PromptVariableBuilder":
        self._variables["content"] = content
        return self

    def add_title(self, title: str) -> "PromptVariableBuilder":
        self._variables["title"] = title
        return self

    def add_keywords(self, keywords: list[str], name: str = "targetKeywords") -> "PromptVariableBuilder":
        self._variables[name] = json.dumps(keywords, ensure_ascii=False)
        return self

    def add_categories(
        self, categories: list, name: str = "availableCategories"
    ) -> "PromptVariableBuilder":
        self._variables[name] = json.dumps(categories, ensure_ascii=False)
        return self

    def add_custom(self, key: str, value: PromptValue) -> "PromptVariableBuilder":
        self._variables[key] = value
        return self

    def build(self) -> dict[str, PromptValue]:
        return dict(self._variables)
