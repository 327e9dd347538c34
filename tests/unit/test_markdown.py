"""Unit tests for the Markdown pre- and post-processing helpers."""

import pytest

from devlog.strategies.features import markdown


class TestPreprocess:
    def test_html_is_converted(self):
        html = "<h2>Setup</h2><p>Install <strong>uv</strong> first.</p><pre><code>pip install uv</code></pre>"

        result = markdown.preprocess(html, "html")

        assert "## Setup" in result
        assert "**uv**" in result
        assert "```\npip install uv\n```" in result

    def test_scripts_and_handlers_are_removed(self):
        content = '<script>alert(1)</script>Text <img onerror="x()" src="a.png">'

        result = markdown.sanitize_content(content)

        assert "alert" not in result
        assert "onerror" not in result

    def test_single_quoted_handler_is_removed(self):
        result = markdown.preprocess("Intro text\n\n<img src=x onerror='alert(1)'>", "markdown")

        assert "onerror" not in result
        assert "alert" not in result
        assert result.startswith("Intro text")

    def test_unquoted_handler_is_removed(self):
        result = markdown.preprocess("Intro <a href=x onclick=alert(1)>x</a>", "markdown")

        assert "onclick" not in result
        assert 'href="x"' in result

    def test_heading_with_attributes_keeps_its_level(self):
        result = markdown.preprocess('<h2 id="intro">Intro</h2><p>Body text here</p>', "html")

        assert result == "## Intro\n\nBody text here"

    def test_lists_and_links_are_converted(self):
        html = '<ol><li>First</li><li>First</li></ol><p>See <a href="https://x.dev">docs</a></p>'

        result = markdown.html_to_markdown(html)

        assert "1. First\n2. First" in result
        assert "[docs](https://x.dev)" in result

    def test_markdown_without_unsafe_markup_is_untouched(self):
        content = "Use `List<String>` here\n\n```html\n<script>ok()</script>\n```"
        assert markdown.sanitize_content(content) == content

    def test_whitespace_is_normalized(self):
        assert markdown.normalize_markdown("a  \r\n\r\n\r\n\r\nb\t") == "a\n\nb"


class TestTruncate:
    def test_short_content_is_untouched(self):
        assert markdown.truncate_content("short", 100) == "short"

    def test_cuts_at_late_sentence_boundary(self):
        content = "x" * 90 + ". " + "y" * 50

        result = markdown.truncate_content(content, 100)

        assert result == "x" * 90 + "."

    def test_hard_cut_when_boundary_is_early(self):
        content = "Intro. " + "z" * 200

        result = markdown.truncate_content(content, 100)

        assert result.endswith("...")
        assert len(result) == 103


class TestCodeBlocks:
    @pytest.mark.parametrize(
        "code,language",
        [
            ("const x = () => 1", "javascript"),
            ("interface A { a: string }\nconst a: A = { a: '' }", "typescript"),
            ("def main():\n    print('hi')", "python"),
            ("<div>hi</div>", "html"),
            ("SELECT id FROM posts WHERE id = 1", "sql"),
            ("just words", "text"),
        ],
    )
    def test_guess_language(self, code, language):
        assert markdown.guess_code_language(code) == language

    def test_untagged_fences_get_a_language(self):
        content = "Intro\n\n```\n\ndef main():\n    pass\n\n```"

        result = markdown.optimize_code_blocks(content)

        assert "```python\ndef main():\n    pass\n```" in result

    def test_tagged_fences_keep_their_language(self):
        content = "```bash\necho hi\n```"
        assert markdown.optimize_code_blocks(content) == content


class TestTableOfContents:
    CONTENT = "# Guide\n\nIntro\n\n## Install\n\ntext\n\n### On Linux\n\ntext\n\n## Usage\n\ntext"

    def test_anchor_link(self):
        assert markdown.anchor_link("Hello, World!") == "hello-world"
        assert markdown.anchor_link("설치 방법") == "설치-방법"

    def test_inserted_after_first_h1(self):
        result = markdown.insert_table_of_contents(self.CONTENT)

        assert result.startswith("# Guide\n\n## Table of Contents")
        assert "- [Install](#install)" in result
        assert "  - [On Linux](#on-linux)" in result
        assert "[Guide]" not in result

    def test_skipped_with_few_headings(self):
        content = "# Title\n\n## Only one"
        assert markdown.insert_table_of_contents(content) == content

    def test_not_inserted_twice(self):
        once = markdown.insert_table_of_contents(self.CONTENT)
        assert markdown.insert_table_of_contents(once) == once

    def test_postprocess_only_adds_toc_when_asked(self):
        assert "Table of Contents" not in markdown.postprocess(self.CONTENT)
        assert "Table of Contents" in markdown.postprocess(self.CONTENT, include_table_of_contents=True)
