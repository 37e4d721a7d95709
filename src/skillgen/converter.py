"""HTML to Markdown conversion using markdownify."""

from markdownify import markdownify
import structlog

logger = structlog.get_logger()


class ConversionError(RuntimeError):
    """Raised when HTML cannot be converted to Markdown."""


class MarkdownConverter:
    """Converts cleaned HTML to Markdown."""

    def __init__(self, heading_style: str = "ATX", bullets: str = "-"):
        self.heading_style = heading_style
        self.bullets = bullets

    def convert(self, html: str, url: str = "") -> str:
        """
        Convert HTML to Markdown.

        Args:
            html: Cleaned HTML
            url: Source URL (used for logging)

        Returns:
            Markdown text

        Raises:
            ConversionError: If markdownify fails on the input
        """
        try:
            markdown = markdownify(
                html,
                heading_style=self.heading_style,
                bullets=self.bullets,
                code_language_callback=_code_language,
                # Underscores must survive so icon ligature names can be matched later.
                escape_underscores=False,
            )
        except Exception as e:
            logger.error("conversion_error", url=url, error=str(e))
            raise ConversionError(f"Failed to convert HTML to markdown for: {url}") from e

        logger.debug("markdown_converted", url=url, length=len(markdown))
        return markdown


def _code_language(el) -> str:
    """Language hint for fenced code blocks from a 'language-*' class."""
    classes = el.get("class") or []
    for cls in classes:
        if cls.startswith("language-"):
            return cls[len("language-"):]
    code = el.find("code")
    if code is not None:
        for cls in code.get("class") or []:
            if cls.startswith("language-"):
                return cls[len("language-"):]
    return ""
