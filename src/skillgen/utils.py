"""String and URL helpers: skill names, description truncation, URL parts."""

import re
from typing import Optional
from urllib.parse import urlparse

MAX_SKILL_NAME_LENGTH = 64

ELLIPSIS = "..."

# Only these escapes are decoded; anything else stays encoded and is
# stripped as invalid characters later.
_PERCENT_DECODES = (
    ("%20", " "),
    ("%2F", "/"),
    ("%3A", ":"),
    ("%3F", "?"),
    ("%3D", "="),
    ("%26", "&"),
    ("%23", "#"),
)

_FILE_EXTENSIONS = (".html", ".htm", ".md", ".txt", ".php", ".asp", ".aspx", ".jsp")

_SENTENCE_ENDINGS = (". ", "! ", "? ")


class SkillNameSanitizer:
    """
    Turns a URL path (or any string) into a kebab-case skill name.

    The output contains only ``[a-z0-9-]``, never starts or ends with a
    hyphen, never has two hyphens in a row and is at most ``max_length``
    characters long. Applying it twice gives the same result as once.
    """

    def __init__(self, max_length: int = MAX_SKILL_NAME_LENGTH):
        self.max_length = max_length
        self._separators = re.compile(r"[/\\_]")
        self._invalid_chars = re.compile(r"[^a-z0-9-]")
        self._hyphen_runs = re.compile(r"-+")

    def sanitize(self, text: str) -> str:
        """
        Sanitize a string into a skill name.

        Args:
            text: URL path or arbitrary string

        Returns:
            Skill name, possibly empty when nothing alphanumeric survives
        """
        for encoded, decoded in _PERCENT_DECODES:
            text = text.replace(encoded, decoded)
        name = text.lower()

        name = self._separators.sub("-", name)

        for ext in _FILE_EXTENSIONS:
            if name.endswith(ext):
                name = name[: -len(ext)]
                break

        name = self._invalid_chars.sub("", name)
        name = self._hyphen_runs.sub("-", name)
        name = name.strip("-")

        return self._truncate(name)

    def _truncate(self, name: str) -> str:
        """Cut at the last hyphen past the midpoint, else hard-cut."""
        if len(name) <= self.max_length:
            return name

        truncated = name[: self.max_length]
        last_hyphen = truncated.rfind("-")
        if last_hyphen > self.max_length // 2:
            return truncated[:last_hyphen]

        return truncated


def sanitize_skill_name(text: str) -> str:
    """Sanitize with the default 64-character limit."""
    return SkillNameSanitizer().sanitize(text)


def truncate_description(text: str, max_chars: int) -> str:
    """
    Truncate a description, preferring a sentence boundary.

    A sentence boundary is only used if it lies past the midpoint of the
    limit; otherwise the text is cut at the last whitespace and an ellipsis
    is appended.

    Args:
        text: Description text
        max_chars: Character limit (before the ellipsis)

    Returns:
        Truncated text, at most ``max_chars + len(ELLIPSIS)`` characters
    """
    if len(text) <= max_chars:
        return text

    truncated = text[:max_chars]

    best_end = 0
    for ending in _SENTENCE_ENDINGS:
        pos = truncated.rfind(ending)
        if pos != -1 and pos + 1 > best_end:
            best_end = pos + 1

    if best_end > max_chars // 2:
        return truncated[:best_end].strip()

    last_space = max(truncated.rfind(c) for c in " \t\n\r")
    if last_space != -1:
        return truncated[:last_space].strip() + ELLIPSIS

    return truncated.strip() + ELLIPSIS


def extract_url_path(url: str) -> str:
    """
    Path component of a URL without query or fragment.

    Returns "/" when the URL has no path.
    """
    path = urlparse(url).path
    return path or "/"


def extract_domain(url: str) -> Optional[str]:
    """Host name of a URL, or None if it has none."""
    return urlparse(url).hostname or None


def extract_domain_with_protocol(url: str) -> Optional[str]:
    """Scheme and host of a URL (e.g. 'https://docs.example.com')."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.hostname:
        return None
    return f"{parsed.scheme}://{parsed.hostname}"


def parse_url_pattern(url: str) -> tuple[str, Optional[str]]:
    """
    Split a start URL that may contain wildcards.

    The base URL ends at the last '/' before the first wildcard. The pattern
    is the full input, or None when the input has no wildcard.

    Examples:
        >>> parse_url_pattern("https://docs.flutter.dev/ui/*")
        ('https://docs.flutter.dev/ui/', 'https://docs.flutter.dev/ui/*')
        >>> parse_url_pattern("https://docs.flutter.dev/ui")
        ('https://docs.flutter.dev/ui', None)
    """
    if "*" not in url and "?" not in url:
        return url, None

    starts = [i for i in (url.find("*"), url.find("?")) if i != -1]
    pattern_start = min(starts)

    slash = url.rfind("/", 0, pattern_start)
    base_end = slash + 1 if slash != -1 else pattern_start

    return url[:base_end], url
