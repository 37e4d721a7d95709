"""Tests for page metadata extraction."""

import re

import pytest
from bs4 import BeautifulSoup
from skillgen.metadata import MetadataExtractor, utc_timestamp


@pytest.fixture
def extractor():
    return MetadataExtractor()


def soup_of(html):
    return BeautifulSoup(html, "lxml")


class TestMetadataExtractor:
    """Test metadata extraction."""

    def test_extract_metadata(self, extractor):
        """Test title, description and skill name."""
        html = """
        <html><head>
            <title>Test Page Title</title>
            <meta name="description" content="This is a test description.">
        </head><body><h1>Heading</h1></body></html>
        """

        metadata = extractor.extract("https://example.com/docs/test", soup_of(html))

        assert metadata.title == "Test Page Title"
        assert metadata.description == "This is a test description."
        assert metadata.skill_name == "docs-test"
        assert metadata.url == "https://example.com/docs/test"

    def test_title_falls_back_to_h1(self, extractor):
        """Test h1 is used when title is missing or blank."""
        html = "<html><head><title>  </title></head><body><h1> Heading </h1></body></html>"

        assert extractor.extract("https://x.com/a", soup_of(html)).title == "Heading"

    def test_untitled(self, extractor):
        """Test the literal default title."""
        assert extractor.extract("https://x.com/a", soup_of("<p>x</p>")).title == "Untitled"

    def test_og_description_fallback(self, extractor):
        """Test og:description when the meta description is empty."""
        html = (
            '<head><meta name="description" content=" ">'
            '<meta property="og:description" content="From Open Graph"></head>'
        )

        assert extractor.extract("https://x.com/a", soup_of(html)).description == "From Open Graph"

    def test_first_long_paragraph(self, extractor):
        """Test paragraph fallback skips short paragraphs and truncates."""
        long_text = "word " * 60
        html = f"<body><p>Too short.</p><p>{long_text}</p></body>"

        description = extractor.extract("https://x.com/a", soup_of(html)).description

        assert description.startswith("word word")
        assert description.endswith("...")
        assert len(description) <= 203

    def test_no_description(self, extractor):
        """Test empty description when nothing qualifies."""
        html = "<body><p>Short.</p></body>"

        assert extractor.extract("https://x.com/a", soup_of(html)).description == ""

    def test_root_url_uses_host(self, extractor):
        """Test skill name falls back to the sanitized host."""
        assert extractor.skill_name("https://docs.flutter.dev/") == "docsflutterdev"

    def test_index_fallback(self, extractor):
        """Test the literal fallback skill name."""
        assert extractor.skill_name("/") == "index"

    def test_path_with_extension(self, extractor):
        """Test skill name from a file-like path."""
        assert extractor.skill_name("https://x.com/guide/API_Reference.html") == "guide-api-reference"

    def test_timestamp_format(self, extractor):
        """Test UTC timestamp format."""
        metadata = extractor.extract("https://x.com/a", soup_of("<p>x</p>"))

        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", metadata.processed_at)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z", utc_timestamp())
