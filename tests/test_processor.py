"""Tests for Markdown conversion and the per-page pipeline."""

import pytest
from skillgen.config import SkillsConfig
from skillgen.converter import MarkdownConverter
from skillgen.processor import Processor, ProcessingError


class TestMarkdownConverter:
    """Test HTML to Markdown conversion."""

    def test_atx_headings_and_lists(self):
        """Test heading and bullet style."""
        html = "<h2>Steps</h2><ul><li>One</li><li>Two</li></ul>"

        markdown = MarkdownConverter().convert(html)

        assert "## Steps" in markdown
        assert "- One" in markdown
        assert "- Two" in markdown

    def test_underscores_not_escaped(self):
        """Test identifiers keep their underscores."""
        markdown = MarkdownConverter().convert("<p>Use snake_case_names here</p>")

        assert "snake_case_names" in markdown

    def test_code_language(self):
        """Test fenced code block language hints."""
        html = '<pre><code class="language-python">print("hi")</code></pre>'

        markdown = MarkdownConverter().convert(html)

        assert "```python" in markdown
        assert 'print("hi")' in markdown


class TestProcessor:
    """Test the full page pipeline."""

    def test_process_page(self):
        """Test a documentation page end to end."""
        html = """
        <html><head><title>API Reference</title></head>
        <body>
            <nav><a href="/">Navigation</a></nav>
            <main>
                <h1>API Reference</h1>
                <h2>Methods</h2>
                <p>Method documentation here.</p>
            </main>
            <footer>Copyright</footer>
        </body></html>
        """

        processed = Processor().process("https://example.com/docs/api", html)

        assert processed.metadata.title == "API Reference"
        assert processed.metadata.skill_name == "docs-api"
        assert "name: docs-api" in processed.skill_document
        assert "# API Reference" in processed.skill_document
        assert "Methods" in processed.skill_document
        assert "Method documentation here" in processed.skill_document
        assert "Navigation" not in processed.markdown_content
        assert "Copyright" not in processed.markdown_content
        assert "references/" not in processed.skill_document

    def test_sample_page(self, sample_html, sample_url):
        """Test noise from the shared fixture is removed."""
        processed = Processor().process(sample_url, sample_html)

        markdown = processed.markdown_content
        assert "Welcome" in markdown
        assert "This is a test page with some content." in markdown
        assert "content_copy" not in markdown
        assert "Skip to main content" not in markdown
        assert "uses cookies" not in markdown
        assert "tracking" not in markdown
        assert "description: This is a test description." in processed.skill_document

    def test_title_not_repeated_in_body(self, sample_html, sample_url):
        """Test the <title> text appears once, as the document heading."""
        processed = Processor().process(sample_url, sample_html)

        assert "Test Page Title" not in processed.markdown_content
        assert processed.skill_document.count("Test Page Title") == 1

    def test_metadata_uses_uncleaned_document(self):
        """Test metadata is read before noise stripping."""
        html = (
            '<html><head><meta name="description" content="Meta text"></head>'
            '<body><header><h1>Header Title</h1></header><p>Body</p></body></html>'
        )

        processed = Processor().process("https://x.com/page", html)

        assert processed.metadata.title == "Header Title"
        assert processed.metadata.description == "Meta text"
        assert "Header Title" not in processed.markdown_content

    def test_empty_html(self):
        """Test empty pages fail."""
        with pytest.raises(ProcessingError):
            Processor().process("https://x.com/empty", "   ")

    def test_from_config(self):
        """Test configured denylists reach the components."""
        config = SkillsConfig(
            remove_selectors=[".promo-box"],
            extra_noise_patterns=[r"^Edit this page$"],
        )
        html = (
            '<body><div class="promo-box">Buy now</div>'
            "<p>Keep this text</p><p>Edit this page</p></body>"
        )

        processed = Processor.from_config(config).process("https://x.com/a", html)

        assert "Keep this text" in processed.markdown_content
        assert "Buy now" not in processed.markdown_content
        assert "Edit this page" not in processed.markdown_content
