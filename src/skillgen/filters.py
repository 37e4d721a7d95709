"""URL admission control."""

import re
from typing import Iterable, Optional
from urllib.parse import urlparse
import structlog

from skillgen.models import Action, Rule

logger = structlog.get_logger()

# Characters escaped by glob_to_regex; everything else is copied verbatim.
_REGEX_META = set(".+()[]{}^$|\\")


class InvalidPatternError(ValueError):
    """Raised when a glob pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str):
        super().__init__(f"Invalid glob pattern {pattern!r}: {reason}")
        self.pattern = pattern
        self.reason = reason


def glob_to_regex(glob: str) -> str:
    """
    Convert a glob pattern to an anchored regular expression.

    ``*`` becomes ``.*``, ``?`` becomes ``.`` and regex metacharacters are
    escaped. Brace alternation and character classes are not supported here.

    Args:
        glob: Glob pattern

    Returns:
        Regex string anchored with ``^`` and ``$``
    """
    parts = ["^"]
    for char in glob:
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        elif char in _REGEX_META:
            parts.append("\\" + char)
        else:
            parts.append(char)
    parts.append("$")
    return "".join(parts)


def _translate(pattern: str) -> str:
    """
    Translate one glob into an unanchored regex body.

    Supports ``*``/``**`` (any run of characters, separators included), ``?``,
    ``[...]``/``[!...]`` classes, ``{a,b}`` alternation and backslash escapes.
    """
    out = []
    i = 0
    n = len(pattern)
    in_braces = False

    while i < n:
        char = pattern[i]
        i += 1

        if char == "*":
            while i < n and pattern[i] == "*":
                i += 1
            out.append(".*")
        elif char == "?":
            out.append(".")
        elif char == "[":
            j = i
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise InvalidPatternError(pattern, "unclosed character class")
            body = pattern[i:j].replace("\\", "\\\\")
            if body[:1] in ("!", "^"):
                body = "^" + body[1:]
            out.append(f"[{body}]")
            i = j + 1
        elif char == "{":
            if in_braces:
                raise InvalidPatternError(pattern, "nested alternates are not supported")
            in_braces = True
            out.append("(?:")
        elif char == "}":
            if not in_braces:
                raise InvalidPatternError(pattern, "unopened alternate group")
            in_braces = False
            out.append(")")
        elif char == "," and in_braces:
            out.append("|")
        elif char == "\\":
            if i >= n:
                raise InvalidPatternError(pattern, "dangling escape")
            out.append(re.escape(pattern[i]))
            i += 1
        else:
            out.append(re.escape(char))

    if in_braces:
        raise InvalidPatternError(pattern, "unclosed alternate group")

    return "".join(out)


class PatternSet:
    """A compiled set of glob patterns matched as one alternation."""

    def __init__(self, patterns: list[str], regex: Optional[re.Pattern]):
        self.patterns = patterns
        self._regex = regex

    def match(self, url: str) -> bool:
        """Return True if the URL matches any pattern in the set."""
        if self._regex is None:
            return False
        return self._regex.fullmatch(url) is not None

    def __len__(self) -> int:
        return len(self.patterns)


def compile_patterns(patterns: Iterable[str]) -> PatternSet:
    """
    Compile glob patterns into a single PatternSet.

    Raises:
        InvalidPatternError: If any pattern cannot be compiled
    """
    patterns = list(patterns)
    if not patterns:
        return PatternSet([], None)

    bodies = [f"(?:{_translate(pattern)})" for pattern in patterns]
    try:
        regex = re.compile("|".join(bodies), re.DOTALL)
    except re.error as e:
        raise InvalidPatternError(", ".join(patterns), str(e)) from e

    return PatternSet(patterns, regex)


class UrlFilter:
    """
    Compiled allow/ignore rule sets.

    Evaluation is two-pass and independent of rule order:
    ignore matches reject, allow matches accept, and once any allow rule
    exists everything else is rejected.
    """

    def __init__(self, rules: Iterable[Rule]):
        """
        Compile rules into allow and ignore pattern sets.

        Args:
            rules: Admission rules in configured order

        Raises:
            InvalidPatternError: If any rule pattern cannot be compiled
        """
        self.rules = tuple(rules)
        self.allow_set = compile_patterns(
            r.pattern for r in self.rules if r.action == Action.ALLOW
        )
        self.ignore_set = compile_patterns(
            r.pattern for r in self.rules if r.action == Action.IGNORE
        )
        self.has_allow_rules = len(self.allow_set) > 0

    def should_crawl(self, url: str) -> bool:
        """
        Check if a URL should be kept.

        Args:
            url: URL to check

        Returns:
            True if the URL is admitted
        """
        if self.ignore_set.match(url):
            logger.debug("url_filtered_ignore", url=url)
            return False

        if self.allow_set.match(url):
            return True

        if self.has_allow_rules:
            logger.debug("url_filtered_not_allowed", url=url)
            return False

        return True

    def whitelist_regexes(self) -> list[str]:
        """Anchored regexes for allow rules, for the crawl engine."""
        return [f"^(?:{_translate(p)})$" for p in self.allow_set.patterns]

    def blacklist_regexes(self) -> list[str]:
        """Anchored regexes for ignore rules, for the crawl engine."""
        return [f"^(?:{_translate(p)})$" for p in self.ignore_set.patterns]


def evaluate_rules(rules: Iterable[Rule], url: str) -> bool:
    """
    Per-rule evaluation with the same precedence as UrlFilter.

    Used when a compiled filter cannot be built; each rule is matched on its
    own so a broken pattern only degrades that rule.
    """
    rules = list(rules)
    if any(r.action == Action.IGNORE and r.matches(url) for r in rules):
        return False
    allow_rules = [r for r in rules if r.action == Action.ALLOW]
    if any(r.matches(url) for r in allow_rules):
        return True
    return not allow_rules


class DomainFilter:
    """Restrict URLs to a start host, optionally including its subdomains."""

    def __init__(self, allowed_domain: str, include_subdomains: bool = False):
        """
        Initialize domain filter.

        Args:
            allowed_domain: Host of the start URL (e.g. 'docs.example.com')
            include_subdomains: Also accept hosts ending in '.<allowed_domain>'
        """
        self.allowed_domain = allowed_domain.lower()
        self.include_subdomains = include_subdomains

    def should_crawl(self, url: str) -> bool:
        domain = (urlparse(url).hostname or "").lower()

        if domain == self.allowed_domain:
            return True

        if self.include_subdomains and domain.endswith(f".{self.allowed_domain}"):
            return True

        logger.debug("url_filtered_domain", url=url, domain=domain)
        return False


class AdmissionFilter:
    """
    Regex whitelist/blacklist pre-filter used by the crawl engine.

    Blacklist matches are never fetched. When a whitelist exists, only
    matching URLs are fetched.
    """

    def __init__(
        self,
        whitelist: Optional[list[str]] = None,
        blacklist: Optional[list[str]] = None,
        domain_filter: Optional[DomainFilter] = None,
    ):
        self.whitelist = [re.compile(p) for p in (whitelist or [])]
        self.blacklist = [re.compile(p) for p in (blacklist or [])]
        self.domain_filter = domain_filter

    def should_crawl(self, url: str) -> bool:
        if self.domain_filter and not self.domain_filter.should_crawl(url):
            return False

        if any(p.match(url) for p in self.blacklist):
            logger.debug("url_blacklisted", url=url)
            return False

        if self.whitelist and not any(p.match(url) for p in self.whitelist):
            logger.debug("url_not_whitelisted", url=url)
            return False

        return True

    @classmethod
    def from_url_filter(
        cls,
        url_filter: UrlFilter,
        start_url: Optional[str] = None,
        subdomains: bool = False,
    ) -> "AdmissionFilter":
        """
        Derive the engine pre-filter from a compiled UrlFilter.

        Args:
            url_filter: Compiled admission rules
            start_url: Crawl start URL; its host scopes the crawl
            subdomains: Whether subdomains of the start host are followed

        Returns:
            AdmissionFilter instance
        """
        domain_filter = None
        if start_url:
            host = urlparse(start_url).hostname
            if host:
                domain_filter = DomainFilter(host, include_subdomains=subdomains)

        return cls(
            whitelist=url_filter.whitelist_regexes(),
            blacklist=url_filter.blacklist_regexes(),
            domain_filter=domain_filter,
        )
