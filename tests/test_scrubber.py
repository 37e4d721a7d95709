"""Tests for Markdown scrubbing."""

import pytest
from skillgen.scrubber import DEFAULT_ICON_NAMES, MarkdownScrubber


@pytest.fixture
def scrubber():
    return MarkdownScrubber()


class TestMarkdownScrubber:
    """Test residual noise removal."""

    def test_removes_icon_names(self, scrubber):
        """Test icon ligature names are removed as whole words."""
        markdown = (
            "# Main Title\n\n"
            "chevron_right Getting Started\n\n"
            "Some actual content here content_copy\n\n"
            "thumb_up thumb_down\n\n"
            "Was this page's content helpful?\n"
        )

        cleaned = scrubber.scrub(markdown)

        for name in ("chevron_right", "content_copy", "thumb_up", "thumb_down"):
            assert name not in cleaned
        assert "# Main Title" in cleaned
        assert "Some actual content here" in cleaned
        assert "Getting Started" in cleaned
        assert "Was this page's content helpful" not in cleaned

    def test_icon_names_inside_words_are_kept(self, scrubber):
        """Test that identifiers containing an icon name survive."""
        cleaned = scrubber.scrub("Call `my_search_index` and see homepage.")

        assert "my_search_index" in cleaned
        assert "homepage" in cleaned

    def test_removes_skip_links(self, scrubber):
        """Test skip-link lines."""
        markdown = "[Skip to main content](#main)\n\n# Welcome\n\nThis is the main content.\n"

        cleaned = scrubber.scrub(markdown)

        assert "Skip to main content" not in cleaned
        assert "# Welcome" in cleaned
        assert "This is the main content" in cleaned

    def test_removes_cookie_notice(self, scrubber):
        """Test cookie consent paragraphs."""
        markdown = (
            "# Main Content\n\n"
            "Actual page content here.\n\n"
            "example.com uses cookies from Google to deliver its services.\n\n"
            "[Learn more](https://policies.google.com) OK, got it\n"
        )

        cleaned = scrubber.scrub(markdown)

        assert "uses cookies" not in cleaned
        assert "OK, got it" not in cleaned
        assert "# Main Content" in cleaned
        assert "Actual page content here" in cleaned

    def test_cookie_pattern_does_not_eat_preceding_text(self, scrubber):
        """Test only the notice lines are removed."""
        markdown = "Intro paragraph.\n\nThis site uses cookies. Accept\n\nOutro paragraph."

        cleaned = scrubber.scrub(markdown)

        assert "Intro paragraph." in cleaned
        assert "Outro paragraph." in cleaned
        assert "uses cookies" not in cleaned

    def test_removes_page_footer(self, scrubber):
        """Test footer metadata lines, case-insensitive."""
        markdown = (
            "# Documentation\n\n"
            "Content here.\n\n"
            "Unless stated otherwise, the documentation on this site reflects the latest "
            "stable version. Page last updated on 2024-01-15.\n\n"
            "LAST MODIFIED: yesterday\n"
        )

        cleaned = scrubber.scrub(markdown)

        assert "Unless stated otherwise" not in cleaned
        assert "Page last updated" not in cleaned
        assert "LAST MODIFIED" not in cleaned
        assert "# Documentation" in cleaned
        assert "Content here" in cleaned

    def test_feedback_is_case_sensitive(self, scrubber):
        """Test feedback patterns only match the exact casing."""
        cleaned = scrubber.scrub("Was this helpful?\n\nWAS THIS HELPFUL?")

        assert "Was this helpful?" not in cleaned
        assert "WAS THIS HELPFUL?" in cleaned

    def test_removes_promo_lines(self, scrubber):
        """Test emoji-prefixed announcements."""
        markdown = "\U0001F389 Our new release is out!\n\n# Guide\n\nText."

        cleaned = scrubber.scrub(markdown)

        assert "new release" not in cleaned
        assert cleaned.startswith("# Guide")

    def test_collapses_blank_lines(self, scrubber):
        """Test runs of blank lines are collapsed and ends trimmed."""
        cleaned = scrubber.scrub("\n\n  \nFirst\n\n\n\n\n\n   \nSecond\n\n\n")

        assert cleaned.startswith("First")
        assert cleaned.endswith("Second")
        assert "\n\n\n\n" not in cleaned

    def test_extra_patterns(self):
        """Test configured extra line patterns."""
        scrubber = MarkdownScrubber(extra_patterns=[r"^Edit this page on GitHub$"])

        cleaned = scrubber.scrub("# Title\n\nEdit this page on GitHub\n\nBody")

        assert "Edit this page" not in cleaned
        assert "Body" in cleaned

    def test_invalid_extra_pattern_is_skipped(self):
        """Test a broken regex is ignored."""
        scrubber = MarkdownScrubber(extra_patterns=["(unclosed", "^Drop me$"])

        cleaned = scrubber.scrub("Keep me\n\nDrop me")

        assert "Keep me" in cleaned
        assert "Drop me" not in cleaned

    def test_custom_icon_vocabulary(self):
        """Test replacing the icon vocabulary."""
        scrubber = MarkdownScrubber(icon_names=["sparkle"])

        cleaned = scrubber.scrub("sparkle New content_copy")

        assert "sparkle" not in cleaned
        assert "content_copy" in cleaned

    def test_default_vocabulary_size(self):
        """Test the built-in vocabulary covers common ligatures."""
        assert len(DEFAULT_ICON_NAMES) >= 70
        assert "chevron_right" in DEFAULT_ICON_NAMES
