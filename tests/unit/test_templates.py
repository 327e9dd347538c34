"""Unit tests for the prompt registry and templates."""

import pytest

from devlog.prompts.templates import (
    CATEGORY_CLASSIFICATION,
    READABILITY_ANALYSIS,
    SEO_METADATA,
    STYLE_UPGRADE,
    PromptRegistry,
    PromptTemplate,
    default_registry,
)


class TestPromptTemplate:
    @pytest.fixture
    def template(self):
        return PromptTemplate(
            name="greeting",
            system="You greet {{audience}}.",
            user="Say hello to {{name}} in {{language}}.",
            defaults={"language": "en"},
        )

    def test_defaults_fill_optional_placeholders(self, template):
        rendered = template.render({"audience": "devs", "name": "Dom"})

        assert rendered.system == "You greet devs."
        assert rendered.user == "Say hello to Dom in en."
        assert rendered.missing == ()

    def test_caller_values_override_defaults(self, template):
        rendered = template.render({"audience": "devs", "name": "Dom", "language": "ko"})
        assert rendered.user.endswith("in ko.")

    def test_none_does_not_override_default(self, template):
        rendered = template.render({"audience": "devs", "name": "Dom", "language": None})
        assert rendered.user.endswith("in en.")

    def test_missing_values_are_reported(self, template):
        rendered = template.render({"name": "Dom"})

        assert rendered.missing == ("audience",)
        assert "{{audience}}" in rendered.system

    def test_validate_covers_system_and_user(self, template):
        result = template.validate({"name": "Dom"})

        assert not result.is_valid
        assert result.missing_variables == ["audience"]

    def test_defaults_are_read_only(self, template):
        with pytest.raises(TypeError):
            template.defaults["language"] = "fr"


class TestPromptRegistry:
    def test_rejects_malformed_template(self):
        broken = PromptTemplate(name="broken", system="ok", user="Hello {{name}")

        with pytest.raises(ValueError, match="broken"):
            PromptRegistry([broken])

    def test_unknown_name_lists_options(self):
        registry = default_registry()

        with pytest.raises(KeyError, match="Valid options"):
            registry.get("nope")

    def test_default_registry_contents(self):
        registry = default_registry()

        for name in (STYLE_UPGRADE, READABILITY_ANALYSIS, SEO_METADATA, CATEGORY_CLASSIFICATION):
            assert name in registry
        assert registry.names() == sorted(registry.names())

    def test_style_prompt_renders_with_content_only(self):
        template = default_registry().get(STYLE_UPGRADE)

        rendered = template.render({"content": "# Title\n\nSome body text."})

        assert rendered.missing == ()
        assert "Generate a table of contents: false" in rendered.user
        assert "Enhance code blocks: true" in rendered.user
        assert "## Enhanced Content" in rendered.user

    def test_readability_prompt_keeps_json_example(self):
        template = default_registry().get(READABILITY_ANALYSIS)

        rendered = template.render({"content": "Body of the post"})

        assert '"overall_score": 86' in rendered.user
        assert rendered.missing == ()

    def test_seo_prompt_requires_title_and_keywords(self):
        template = default_registry().get(SEO_METADATA)

        result = template.validate({"content": "Body of the post"})

        assert set(result.missing_variables) == {"title", "targetKeywords"}

    def test_category_prompt_defaults(self):
        template = default_registry().get(CATEGORY_CLASSIFICATION)

        rendered = template.render(
            {
                "title": "Docker tips",
                "content": "Body of the post",
                "availableCategories": '[{"id": "devops"}]',
            }
        )

        assert rendered.missing == ()
        assert "Recommend at most 3 categories" in rendered.user
        assert "Categories already assigned (JSON): []" in rendered.user
