"""Removal of non-content markup before Markdown conversion."""

import re
from typing import Callable, Iterable, Optional
from bs4 import BeautifulSoup, Comment, Tag
import structlog

logger = structlog.get_logger()

CODE_TAGS = ("script", "style", "noscript", "template")

STRUCTURAL_NOISE_TAGS = (
    "nav",
    "footer",
    "header",
    "aside",
    "iframe",
    "svg",
    "canvas",
    "video",
    "audio",
    "form",
)

NOISE_ID_KEYWORDS = (
    "cookie",
    "consent",
    "banner",
    "popup",
    "modal",
    "overlay",
    "gdpr",
    "privacy-notice",
    "skip-link",
    "feedback",
    "newsletter",
    "subscribe",
)

NOISE_CLASS_GROUPS = {
    "navigation": (
        "nav",
        "navigation",
        "menu",
        "sidebar",
        "toc",
        "table-of-contents",
        "breadcrumb",
        "breadcrumbs",
    ),
    "cookie": (
        "cookie",
        "consent",
        "gdpr",
        "privacy-notice",
        "cookie-banner",
        "cookie-consent",
    ),
    "ads": ("ad", "ads", "advertisement", "promo", "promotional", "banner", "announcement"),
    "feedback": ("feedback", "rating", "ratings", "helpful", "thumbs", "vote", "voting"),
    "skip_links": ("skip-link", "skip-to-content", "sr-only", "visually-hidden"),
    "social": ("social", "share", "sharing", "follow-us"),
    "page_meta": (
        "page-meta",
        "page-info",
        "last-updated",
        "edit-page",
        "view-source",
        "report-issue",
    ),
}

ICON_CLASSES = (
    "icon",
    "fa",
    "fas",
    "far",
    "fab",
    "fal",
    "fad",
    "glyphicon",
    "material-icons",
    "material-symbols",
)

# Removing one of these by id or class would drop the whole page.
PROTECTED_TAGS = frozenset(("html", "head", "body", "main", "article"))

# Wrappers around any of these hold the page content and are never removed whole.
CONTENT_MARKERS = ("main", "article", "h1")


def _keyword_regex(keywords: Iterable[str]) -> re.Pattern:
    """Whole-word alternation; hyphens and spaces count as word boundaries."""
    alternation = "|".join(re.escape(k) for k in sorted(keywords, key=len, reverse=True))
    return re.compile(rf"\b(?:{alternation})\b", re.I)


def _class_string(tag: Tag) -> str:
    value = tag.get("class")
    if isinstance(value, (list, tuple)):
        return " ".join(value)
    return value or ""


def _holds_content(tag: Tag) -> bool:
    """True for protected tags and for any ancestor of the main content."""
    if tag.name in PROTECTED_TAGS or tag.get("role") == "main":
        return True
    if tag.find(list(CONTENT_MARKERS)) is not None:
        return True
    return tag.find(attrs={"role": "main"}) is not None


class NoiseStripper:
    """
    Removes navigation, ads, banners, icon glyphs and other non-content
    elements from an HTML document.

    Each step mutates the same parse tree in order. A step that fails is
    logged and skipped; ``strip`` never raises.
    """

    def __init__(
        self,
        remove_selectors: Optional[list[str]] = None,
        parser: str = "lxml",
    ):
        """
        Initialize the stripper.

        Args:
            remove_selectors: Extra CSS selectors removed after the built-in steps
            parser: BeautifulSoup tree builder
        """
        self.remove_selectors = list(remove_selectors or [])
        self.parser = parser
        self._id_regex = _keyword_regex(NOISE_ID_KEYWORDS)
        self._class_regexes = {
            group: _keyword_regex(words) for group, words in NOISE_CLASS_GROUPS.items()
        }
        self._icon_regex = re.compile(
            r"^(?:%s)(?:$|-)|-icons?$" % "|".join(re.escape(c) for c in ICON_CLASSES)
        )
        self._steps: list[tuple[str, Callable[[BeautifulSoup], int]]] = [
            ("document_head", self._remove_document_head),
            ("code_blocks", self._remove_code_blocks),
            ("structural_tags", self._remove_structural_tags),
            ("noise_ids", self._remove_noise_ids),
            ("noise_classes", self._remove_noise_classes),
            ("skip_links", self._remove_skip_links),
            ("icon_glyphs", self._remove_icon_glyphs),
            ("buttons", self._remove_buttons),
            ("comments", self._remove_comments),
            ("data_attributes", self._strip_data_attributes),
            ("remove_selectors", self._remove_selectors),
        ]

    def strip(self, html: str) -> str:
        """
        Strip noise from an HTML document.

        Args:
            html: Raw HTML

        Returns:
            Cleaned HTML
        """
        try:
            soup = BeautifulSoup(html, self.parser)
        except Exception as e:
            logger.warning("strip_parse_failed", error=str(e))
            return html

        for name, step in self._steps:
            try:
                removed = step(soup)
            except Exception as e:
                logger.debug("strip_step_failed", step=name, error=str(e))
                continue
            if removed:
                logger.debug("strip_step", step=name, removed=removed)

        cleaned = str(soup)
        logger.debug("html_cleaned", before=len(html), after=len(cleaned))
        return cleaned

    def _decompose_where(self, soup: BeautifulSoup, predicate, *names) -> int:
        """Decompose every live tag (optionally limited to names) matching predicate."""
        removed = 0
        for tag in soup.find_all(list(names) or True):
            if tag.decomposed:
                continue
            if predicate(tag):
                tag.decompose()
                removed += 1
        return removed

    def _remove_document_head(self, soup: BeautifulSoup) -> int:
        # Title and meta tags are read from the raw document, never rendered.
        return self._decompose_where(soup, lambda tag: True, "head")

    def _remove_code_blocks(self, soup: BeautifulSoup) -> int:
        return self._decompose_where(soup, lambda tag: True, *CODE_TAGS)

    def _remove_structural_tags(self, soup: BeautifulSoup) -> int:
        return self._decompose_where(soup, lambda tag: True, *STRUCTURAL_NOISE_TAGS)

    def _remove_noise_ids(self, soup: BeautifulSoup) -> int:
        def is_noise(tag: Tag) -> bool:
            if _holds_content(tag):
                return False
            value = tag.get("id")
            return bool(value) and bool(self._id_regex.search(value))

        return self._decompose_where(soup, is_noise)

    def _remove_noise_classes(self, soup: BeautifulSoup) -> int:
        def is_noise(tag: Tag) -> bool:
            if _holds_content(tag):
                return False
            classes = _class_string(tag)
            if not classes:
                return False
            return any(regex.search(classes) for regex in self._class_regexes.values())

        return self._decompose_where(soup, is_noise)

    def _remove_skip_links(self, soup: BeautifulSoup) -> int:
        def is_skip_link(tag: Tag) -> bool:
            href = tag.get("href") or ""
            return href.startswith("#") and tag.get_text().strip().startswith("Skip")

        return self._decompose_where(soup, is_skip_link, "a")

    def _is_icon_class(self, tag: Tag) -> bool:
        value = tag.get("class")
        classes = value if isinstance(value, (list, tuple)) else (value or "").split()
        return any(self._icon_regex.search(c.lower()) for c in classes)

    def _remove_icon_glyphs(self, soup: BeautifulSoup) -> int:
        def is_glyph(tag: Tag) -> bool:
            # Glyphs carry at most a ligature name, never nested markup.
            if tag.find(True) is not None:
                return False
            if tag.name in ("span", "i"):
                return self._is_icon_class(tag)
            return "material-symbols" in _class_string(tag)

        return self._decompose_where(soup, is_glyph)

    def _remove_buttons(self, soup: BeautifulSoup) -> int:
        return self._decompose_where(soup, lambda tag: True, "button")

    def _remove_comments(self, soup: BeautifulSoup) -> int:
        comments = soup.find_all(string=lambda text: isinstance(text, Comment))
        for comment in comments:
            comment.extract()
        return len(comments)

    def _strip_data_attributes(self, soup: BeautifulSoup) -> int:
        stripped = 0
        for tag in soup.find_all(True):
            for attr in [a for a in tag.attrs if a.startswith("data-")]:
                del tag.attrs[attr]
                stripped += 1
        return stripped

    def _remove_selectors(self, soup: BeautifulSoup) -> int:
        removed = 0
        for selector in self.remove_selectors:
            try:
                matches = soup.select(selector)
            except Exception as e:
                logger.warning("invalid_remove_selector", selector=selector, error=str(e))
                continue
            for tag in matches:
                if tag.decomposed or _holds_content(tag):
                    continue
                tag.decompose()
                removed += 1
        return removed
