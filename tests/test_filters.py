"""Tests for URL filtering."""

import re

import pytest
from skillgen.filters import (
    AdmissionFilter,
    DomainFilter,
    InvalidPatternError,
    UrlFilter,
    compile_patterns,
    evaluate_rules,
    glob_to_regex,
)
from skillgen.models import Action, Rule


def allow(pattern):
    return Rule(pattern=pattern, action=Action.ALLOW)


def ignore(pattern):
    return Rule(pattern=pattern, action=Action.IGNORE)


class TestUrlFilter:
    """Test allow/ignore rule evaluation."""

    def test_no_rules(self):
        """Test that all URLs pass with no rules."""
        url_filter = UrlFilter([])

        assert url_filter.should_crawl("https://example.com")
        assert url_filter.should_crawl("https://other.com/page")

    def test_ignore_wins_over_allow(self):
        """Test that a URL matching both sets is rejected."""
        url_filter = UrlFilter([allow("https://x/a/**"), ignore("*/versions/*")])

        assert not url_filter.should_crawl("https://x/a/versions/1")
        assert url_filter.should_crawl("https://x/a/b")

    def test_rule_order_does_not_matter(self):
        """Test two-pass evaluation independent of list position."""
        first = UrlFilter([ignore("*/versions/*"), allow("https://x/a/**")])
        second = UrlFilter([allow("https://x/a/**"), ignore("*/versions/*")])

        for url in ("https://x/a/versions/1", "https://x/a/b", "https://y/"):
            assert first.should_crawl(url) == second.should_crawl(url)

    def test_default_deny_with_allow_rules(self):
        """Test that allow rules switch the filter to default-deny."""
        url_filter = UrlFilter([allow("*/docs/*")])

        assert url_filter.should_crawl("https://x/docs/intro")
        assert not url_filter.should_crawl("https://x/other")

    def test_default_allow_with_only_ignore_rules(self):
        """Test that ignore-only rule sets accept everything else."""
        url_filter = UrlFilter([ignore("*/login*")])

        assert url_filter.should_crawl("https://x/docs")
        assert not url_filter.should_crawl("https://x/login?next=/")

    def test_star_crosses_path_segments(self):
        """Test that * matches across slashes."""
        url_filter = UrlFilter([allow("https://example.com/docs/*")])

        assert url_filter.should_crawl("https://example.com/docs/a/b/c")

    def test_question_mark(self):
        """Test single-character wildcard."""
        url_filter = UrlFilter([allow("https://example.com/v?/api")])

        assert url_filter.should_crawl("https://example.com/v2/api")
        assert not url_filter.should_crawl("https://example.com/v10/api")

    def test_pattern_is_anchored(self):
        """Test that patterns must match the whole URL."""
        url_filter = UrlFilter([allow("https://example.com/docs")])

        assert url_filter.should_crawl("https://example.com/docs")
        assert not url_filter.should_crawl("https://example.com/docs/intro")

    def test_brace_alternation(self):
        """Test {a,b} alternates."""
        url_filter = UrlFilter([allow("*/{guide,api}/*")])

        assert url_filter.should_crawl("https://x/guide/start")
        assert url_filter.should_crawl("https://x/api/list")
        assert not url_filter.should_crawl("https://x/blog/post")

    def test_invalid_pattern_fails_construction(self):
        """Test that a broken glob fails the whole filter."""
        with pytest.raises(InvalidPatternError) as exc_info:
            UrlFilter([allow("*/docs/*"), ignore("https://x/[abc")])

        assert exc_info.value.pattern == "https://x/[abc"

    def test_engine_regexes(self):
        """Test regex views agree with the compiled filter."""
        url_filter = UrlFilter([allow("*/{guide,api}/*"), ignore("*/private/*")])

        whitelist = [re.compile(p) for p in url_filter.whitelist_regexes()]
        blacklist = [re.compile(p) for p in url_filter.blacklist_regexes()]

        assert any(p.match("https://x/api/list") for p in whitelist)
        assert not any(p.match("https://x/blog/post") for p in whitelist)
        assert any(p.match("https://x/private/key") for p in blacklist)


class TestGlobToRegex:
    """Test glob to regex translation."""

    def test_star(self):
        """Test star and escaped dot."""
        assert glob_to_regex("*.txt") == "^.*\\.txt$"

    def test_brackets_are_escaped(self):
        """Test that brackets are literal."""
        assert glob_to_regex("test[1]") == "^test\\[1\\]$"

    def test_question_mark(self):
        """Test question mark becomes a single-character match."""
        assert glob_to_regex("a?c") == "^a.c$"

    def test_regex_matches_url(self):
        """Test a converted URL pattern."""
        regex = re.compile(glob_to_regex("https://example.com/docs/*"))

        assert regex.match("https://example.com/docs/intro")
        assert not regex.match("https://example.com/blog")


class TestCompilePatterns:
    """Test pattern set compilation."""

    def test_empty_set_matches_nothing(self):
        """Test that an empty pattern set never matches."""
        pattern_set = compile_patterns([])

        assert len(pattern_set) == 0
        assert not pattern_set.match("https://example.com")

    @pytest.mark.parametrize(
        "pattern",
        ["https://x/[abc", "*/{a,b", "*/a}", "*/{a,{b,c}}", "trailing\\"],
    )
    def test_invalid_patterns(self, pattern):
        """Test malformed globs are rejected."""
        with pytest.raises(InvalidPatternError):
            compile_patterns([pattern])

    def test_escaped_wildcard(self):
        """Test that an escaped star is literal."""
        pattern_set = compile_patterns(["https://x/\\*"])

        assert pattern_set.match("https://x/*")
        assert not pattern_set.match("https://x/abc")


class TestEvaluateRules:
    """Test per-rule fallback evaluation."""

    def test_same_precedence_as_filter(self):
        """Test fallback uses ignore-wins precedence."""
        rules = [allow("https://x/a/**"), ignore("*/versions/*")]

        assert not evaluate_rules(rules, "https://x/a/versions/1")
        assert evaluate_rules(rules, "https://x/a/b")
        assert not evaluate_rules(rules, "https://y/")

    def test_broken_rule_degrades_to_substring(self):
        """Test a broken rule matches by substring with stars removed."""
        rules = [ignore("*/[private*"), allow("*/docs/*")]

        assert not evaluate_rules(rules, "https://x/docs/[private/key")
        assert evaluate_rules(rules, "https://x/docs/public")

    def test_no_rules(self):
        """Test that no rules admit everything."""
        assert evaluate_rules([], "https://example.com")


class TestDomainFilter:
    """Test domain scoping."""

    def test_same_domain(self):
        """Test same host filtering."""
        domain_filter = DomainFilter("example.com")

        assert domain_filter.should_crawl("https://example.com/page")
        assert not domain_filter.should_crawl("https://other.com/page")
        assert not domain_filter.should_crawl("https://blog.example.com/page")

    def test_subdomains(self):
        """Test subdomain inclusion."""
        domain_filter = DomainFilter("example.com", include_subdomains=True)

        assert domain_filter.should_crawl("https://blog.example.com/page")
        assert not domain_filter.should_crawl("https://notexample.com/page")


class TestAdmissionFilter:
    """Test the crawl engine pre-filter."""

    def test_blacklist_wins(self):
        """Test blacklisted URLs are never fetched."""
        admission = AdmissionFilter(
            whitelist=[glob_to_regex("https://x/docs/*")],
            blacklist=[glob_to_regex("*/private/*")],
        )

        assert admission.should_crawl("https://x/docs/intro")
        assert not admission.should_crawl("https://x/docs/private/key")
        assert not admission.should_crawl("https://x/blog")

    def test_from_url_filter_scopes_to_start_host(self):
        """Test derivation from rules plus start URL host."""
        url_filter = UrlFilter([ignore("*/login*")])
        admission = AdmissionFilter.from_url_filter(
            url_filter, start_url="https://docs.example.com/guide/"
        )

        assert admission.should_crawl("https://docs.example.com/guide/intro")
        assert not admission.should_crawl("https://docs.example.com/login")
        assert not admission.should_crawl("https://other.com/guide/intro")
