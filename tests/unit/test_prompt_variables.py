"""Unit tests for prompt variable substitution and validation."""

import json
import logging

import pytest

from devlog.prompts.variables import (
    PromptVariableBuilder,
    extract_placeholders,
    normalize_template,
    render,
    substitute,
    validate_template,
    validate_variables,
)


# =============================================================================
# Substitution Tests
# =============================================================================


class TestSubstitute:
    """Test suite for placeholder substitution."""

    def test_replaces_every_occurrence(self):
        """Test that a repeated placeholder is replaced everywhere."""
        template = "{{x}} and {{x}} and again {{x}}"

        result = substitute(template, {"x": "value"})

        assert result == "value and value and again value"
        assert "{{x}}" not in result

    def test_missing_variable_is_left_verbatim(self, caplog):
        """Test that a missing placeholder stays in the output with a warning."""
        with caplog.at_level(logging.WARNING):
            result = substitute("Hello {{name}}, see {{missingName}}", {"name": "Dom"})

        assert result == "Hello Dom, see {{missingName}}"
        assert "missingName" in caplog.text

    def test_template_without_placeholders_is_unchanged(self):
        template = "Plain text with { single } braces"
        assert substitute(template, {"unused": "x"}) == template

    def test_invalid_placeholder_names_pass_through(self):
        """Test that names outside [A-Za-z0-9_] are not placeholders."""
        template = "{{not-valid}} {{with space}} {{ok_1}}"

        result = substitute(template, {"not-valid": "a", "with space": "b", "ok_1": "c"})

        assert result == "{{not-valid}} {{with space}} c"

    def test_values_are_stringified(self):
        result = substitute("{{n}} {{f}} {{yes}} {{no}}", {"n": 3, "f": 0.5, "yes": True, "no": False})
        assert result == "3 0.5 true false"

    def test_none_counts_as_missing(self):
        result = render("{{a}}", {"a": None})

        assert result.text == "{{a}}"
        assert result.missing == ("a",)
        assert not result.is_complete

    def test_render_reports_missing_in_order_once(self):
        result = render("{{b}} {{a}} {{b}} {{c}}", {"c": "x"})

        assert result.missing == ("b", "a")
        assert result.text == "{{b}} {{a}} {{b}} x"


class TestExtractPlaceholders:
    def test_returns_distinct_names(self):
        """Test that extraction returns exactly the referenced names."""
        template = "{{a}} {{b}} {{c}} {{a}}"
        assert extract_placeholders(template) == {"a", "b", "c"}

    def test_empty_for_plain_text(self):
        assert extract_placeholders("nothing here") == set()


# =============================================================================
# Validation Tests
# =============================================================================


class TestValidateVariables:
    """Test suite for semantic variable validation."""

    def test_valid_variables(self):
        result = validate_variables(
            "{{title}} {{content}} {{tone}}",
            {"title": "Async Python", "content": "A long enough body.", "tone": "casual"},
        )

        assert result.is_valid
        assert result.missing_variables == []
        assert result.invalid_variables == []
        assert result.describe() == ""

    def test_missing_variables_are_listed(self):
        result = validate_variables("{{title}} {{content}}", {"title": "Async Python"})

        assert not result.is_valid
        assert result.missing_variables == ["content"]

    def test_blank_value_is_invalid(self):
        result = validate_variables("{{tone}}", {"tone": "   "})

        assert not result.is_valid
        assert result.invalid_variables[0].variable == "tone"
        assert "Empty" in result.invalid_variables[0].reason

    @pytest.mark.parametrize(
        "content,valid",
        [("x" * 9, False), ("x" * 10, True), ("x" * 50000, True), ("x" * 50001, False)],
    )
    def test_content_length_bounds(self, content, valid):
        assert validate_variables("{{content}}", {"content": content}).is_valid is valid

    @pytest.mark.parametrize(
        "title,valid",
        [("ab", False), ("abc", True), ("t" * 100, True), ("t" * 101, False)],
    )
    def test_title_length_bounds(self, title, valid):
        assert validate_variables("{{title}}", {"title": title}).is_valid is valid

    def test_keywords_must_be_non_empty_json_array(self):
        template = "{{targetKeywords}}"

        assert validate_variables(template, {"targetKeywords": '["python"]'}).is_valid
        assert not validate_variables(template, {"targetKeywords": "[]"}).is_valid
        assert not validate_variables(template, {"targetKeywords": '{"a": 1}'}).is_valid

    def test_categories_accept_empty_array(self):
        template = "{{existingCategories}}"

        assert validate_variables(template, {"existingCategories": "[]"}).is_valid

    def test_malformed_json_is_reported_not_raised(self):
        result = validate_variables("{{availableCategories}}", {"availableCategories": "[oops"})

        assert not result.is_valid
        assert result.invalid_variables[0].reason == "Categories must be a JSON array"

    def test_describe_joins_problems(self):
        result = validate_variables("{{title}} {{tone}}", {"tone": " "})

        assert result.describe() == "missing variable 'title'; tone: Empty values are not allowed"


class TestValidateTemplate:
    def test_well_formed_template(self):
        check = validate_template("Hello {{name}}")
        assert check.is_valid
        assert check.errors == []

    def test_empty_template(self):
        check = validate_template("   ")
        assert not check.is_valid
        assert "empty" in check.errors[0]

    def test_unbalanced_delimiters(self):
        check = validate_template("Hello {{name}")
        assert not check.is_valid
        assert any("Unbalanced" in error for error in check.errors)

    def test_nested_placeholders(self):
        check = validate_template("{{outer {{inner}} }}")
        assert not check.is_valid
        assert "Nested placeholder syntax found" in check.errors

    def test_normalize_template(self):
        assert normalize_template("  a   b\n\n\n c  ") == "a b c"

    def test_normalize_template_joins_lines(self):
        template = "Title: {{title}}\n\tContent:\n{{content}}\n"

        assert normalize_template(template) == "Title: {{title}} Content: {{content}}"


class TestPromptVariableBuilder:
    def test_builds_json_encoded_lists(self):
        variables = (
            PromptVariableBuilder()
            .add_title("Async Python")
            .add_content("Body of the post")
            .add_keywords(["asyncio", "파이썬"])
            .add_categories([{"id": "ai-ml"}])
            .add_custom("maxSuggestions", 3)
            .build()
        )

        assert variables["title"] == "Async Python"
        assert json.loads(variables["targetKeywords"]) == ["asyncio", "파이썬"]
        assert "파이썬" in variables["targetKeywords"]
        assert json.loads(variables["availableCategories"]) == [{"id": "ai-ml"}]
        assert variables["maxSuggestions"] == 3

    def test_build_returns_a_copy(self):
        builder = PromptVariableBuilder().add_title("One")
        first = builder.build()
        first["title"] = "changed"

        assert builder.build()["title"] == "One"
