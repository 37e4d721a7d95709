"""Post-conversion cleanup of residual noise in Markdown."""

import re
from typing import Iterable, Optional
import structlog

logger = structlog.get_logger()

# Icon-font ligature names that converters render as plain text.
DEFAULT_ICON_NAMES = (
    "chevron_right",
    "chevron_left",
    "arrow_forward",
    "arrow_back",
    "arrow_drop_down",
    "arrow_drop_up",
    "content_copy",
    "content_paste",
    "thumb_up",
    "thumb_down",
    "thumbs_up",
    "thumbs_down",
    "vertical_align_top",
    "vertical_align_bottom",
    "expand_more",
    "expand_less",
    "menu",
    "close",
    "search",
    "home",
    "settings",
    "check",
    "check_circle",
    "error",
    "warning",
    "info",
    "list",
    "share",
    "edit",
    "delete",
    "add",
    "remove",
    "star",
    "star_border",
    "favorite",
    "favorite_border",
    "bookmark",
    "bookmark_border",
    "visibility",
    "visibility_off",
    "lock",
    "lock_open",
    "person",
    "people",
    "notifications",
    "email",
    "phone",
    "location_on",
    "calendar_today",
    "schedule",
    "more_vert",
    "more_horiz",
    "open_in_new",
    "launch",
    "link",
    "file_download",
    "file_upload",
    "cloud_download",
    "cloud_upload",
    "play_arrow",
    "pause",
    "stop",
    "skip_next",
    "skip_previous",
    "fast_forward",
    "fast_rewind",
    "volume_up",
    "volume_down",
    "volume_mute",
    "fullscreen",
    "fullscreen_exit",
    "zoom_in",
    "zoom_out",
    "refresh",
    "sync",
    "cached",
    "done",
    "done_all",
    "clear",
    "cancel",
    "help",
    "help_outline",
    "code",
)

SKIP_LINK_PATTERNS = (
    r"^\[Skip to main content\]\([^)]*\)\s*$",
    r"^\[Skip to content\]\([^)]*\)\s*$",
    r"^Skip to (main )?content\s*$",
)

COOKIE_PATTERNS = (
    r"^[^\n]*uses cookies[^\n]*\n+[^\n]*Learn more[^\n]*OK,? got it[ \t]*$",
    r"^[^\n]*This site uses cookies[^\n]*(?:\n+[^\n]*?)?\bAccept[ \t]*$",
    r"^[^\n]*We use cookies[^\n]*(?:\n+[^\n]*?)?\bGot it[ \t]*$",
)

FEEDBACK_PATTERNS = (
    r"^Was this page'?s? content helpful\?\s*$",
    r"^Was this helpful\?\s*$",
    r"^Did you find this helpful\?\s*$",
    r"^Rate this page:?\s*$",
)

FOOTER_PATTERNS = (
    r"^Unless stated otherwise.*Page last updated.*$",
    r"^Page last updated on \d{4}-\d{1,2}-\d{1,2}\.?\s*$",
    r"^\[View source\]\([^)]*\).*\[report an issue\]\([^)]*\).*$",
    r"^Last modified:.*$",
    r"^Last updated:.*$",
)

PROMO_PATTERNS = (
    r"^Check out our newly published.*$",
    r"^\U0001F389.*new.*!?\s*$",
    r"^\U0001F4E2.*announcement.*$",
)


def _compile_all(patterns: Iterable[str], flags: int = 0) -> list[re.Pattern]:
    compiled = []
    for pattern in patterns:
        try:
            compiled.append(re.compile(pattern, flags))
        except re.error as e:
            logger.warning("invalid_scrub_pattern", pattern=pattern, error=str(e))
    return compiled


class MarkdownScrubber:
    """
    Removes icon ligature names, skip links, cookie notices, feedback
    prompts, page footers and promo banners from converted Markdown.

    This is a denylist: text not covered by the vocabularies passes through.
    Footer and promo patterns ignore case, everything else is case-sensitive.
    """

    def __init__(
        self,
        icon_names: Optional[Iterable[str]] = None,
        extra_patterns: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the scrubber.

        Args:
            icon_names: Ligature vocabulary, defaults to DEFAULT_ICON_NAMES
            extra_patterns: Additional line regexes to remove (multiline mode)
        """
        names = DEFAULT_ICON_NAMES if icon_names is None else tuple(icon_names)
        self.icon_names = tuple(names)
        self._icon_regex = None
        if self.icon_names:
            alternation = "|".join(
                re.escape(n) for n in sorted(self.icon_names, key=len, reverse=True)
            )
            self._icon_regex = re.compile(rf"\b(?:{alternation})\b")

        self._blank_lines = re.compile(r"^\s*$", re.M)
        self._skip_links = _compile_all(SKIP_LINK_PATTERNS, re.M)
        self._cookies = _compile_all(COOKIE_PATTERNS, re.M)
        self._feedback = _compile_all(FEEDBACK_PATTERNS, re.M)
        self._footers = _compile_all(FOOTER_PATTERNS, re.M | re.I)
        self._promos = _compile_all(PROMO_PATTERNS, re.M | re.I)
        self._extra = _compile_all(extra_patterns or (), re.M)
        self._excess_newlines = re.compile(r"\n{4,}")
        self._whitespace_lines = re.compile(r"^\s+$", re.M)

    def scrub(self, markdown: str) -> str:
        """
        Clean converted Markdown.

        Args:
            markdown: Markdown from the converter

        Returns:
            Scrubbed Markdown, trimmed
        """
        cleaned = markdown

        if self._icon_regex is not None:
            cleaned = self._icon_regex.sub("", cleaned)

        cleaned = self._blank_lines.sub("", cleaned)

        for group in (self._skip_links, self._cookies, self._feedback, self._footers, self._promos, self._extra):
            for regex in group:
                cleaned = regex.sub("", cleaned)

        cleaned = self._excess_newlines.sub("\n\n\n", cleaned)
        cleaned = self._whitespace_lines.sub("", cleaned)

        return cleaned.strip()
