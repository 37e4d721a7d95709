"""Loading and validation of skills.yaml."""

import os
from enum import Enum
from pathlib import Path
from typing import Optional, Union
import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
import structlog

from skillgen.filters import InvalidPatternError, UrlFilter, evaluate_rules, glob_to_regex
from skillgen.models import Action, Rule
from skillgen.scrubber import DEFAULT_ICON_NAMES
from skillgen.utils import extract_domain_with_protocol, parse_url_pattern

logger = structlog.get_logger()

DEFAULT_CONFIG_PATH = "skills.yaml"
DEFAULT_OUTPUT_DIR = ".agent/skills"
DEFAULT_USER_AGENT = "skillgen/0.1.0 (+https://github.com/skillgen/skillgen)"

DEFAULT_REMOVE_SELECTORS = [
    "nav",
    "footer",
    "header",
    "script",
    "style",
    "noscript",
    "iframe",
    ".toc",
    ".table-of-contents",
    ".sidebar",
    ".navigation",
    ".nav",
    ".menu",
    ".breadcrumb",
    ".breadcrumbs",
    ".ads",
    ".advertisement",
    ".cookie-banner",
    ".cookie-consent",
    "[role='navigation']",
    "[role='banner']",
    "[role='contentinfo']",
]


class ConfigError(ValueError):
    """Raised when the configuration file is missing or invalid."""


class SkillsTarget(str, Enum):
    """IDE or agent the skills are generated for."""

    GITHUB_COPILOT = "github-copilot"
    CLAUDE_CODE = "claude-code"
    CURSOR = "cursor"
    ANTIGRAVITY = "antigravity"
    OPENAI_CODEX = "openai-codex"
    OPENCODE = "opencode"
    CUSTOM = "custom"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.lower()
            key = _TARGET_ALIASES.get(key, key)
            for member in cls:
                if member.value == key:
                    return member
        return None

    @property
    def project_dir(self) -> str:
        return _PROJECT_DIRS[self]

    @property
    def user_dir(self) -> str:
        """Directory relative to the user's home."""
        return _USER_DIRS[self]

    def __str__(self) -> str:
        return self.value


_TARGET_ALIASES = {
    "copilot": "github-copilot",
    "claude": "claude-code",
    "gemini": "antigravity",
    "codex": "openai-codex",
    "openai": "openai-codex",
    "open-code": "opencode",
}

_PROJECT_DIRS = {
    SkillsTarget.GITHUB_COPILOT: ".github/skills",
    SkillsTarget.CLAUDE_CODE: ".claude/skills",
    SkillsTarget.CURSOR: ".cursor/skills",
    SkillsTarget.ANTIGRAVITY: ".gemini/skills",
    SkillsTarget.OPENAI_CODEX: ".codex/skills",
    SkillsTarget.OPENCODE: ".opencode/skills",
    SkillsTarget.CUSTOM: DEFAULT_OUTPUT_DIR,
}

_USER_DIRS = {
    SkillsTarget.GITHUB_COPILOT: ".copilot/skills",
    SkillsTarget.CLAUDE_CODE: ".claude/skills",
    SkillsTarget.CURSOR: ".cursor/skills",
    SkillsTarget.ANTIGRAVITY: ".gemini/skills",
    SkillsTarget.OPENAI_CODEX: ".codex/skills",
    SkillsTarget.OPENCODE: ".config/opencode/skills",
    SkillsTarget.CUSTOM: ".agent/skills",
}


class SkillsScope(str, Enum):
    """Install skills per project or per user."""

    PROJECT = "project"
    USER = "user"

    def __str__(self) -> str:
        return self.value


class SkillsConfig(BaseModel):
    """Configuration for crawling and skill generation (skills.yaml)."""

    model_config = ConfigDict(extra="forbid")

    output: Path = Field(default=Path(DEFAULT_OUTPUT_DIR), description="Output directory for skills")
    flat: bool = Field(default=False, description="Flat directory structure")
    user_agent: Optional[str] = Field(default=None, description="User agent string")
    delay_ms: int = Field(default=100, ge=0, description="Politeness delay between requests")
    max_depth: int = Field(default=25, ge=0, description="Maximum crawl depth")
    max_pages: Optional[int] = Field(default=None, ge=1, description="Maximum pages to fetch")
    request_timeout_secs: int = Field(default=30, ge=1, description="Request timeout in seconds")
    respect_robots_txt: bool = Field(default=True, description="Respect robots.txt")
    subdomains: bool = Field(default=False, description="Follow subdomains of the start host")
    concurrency: int = Field(default=4, ge=1, description="Max pages processed concurrently")
    rules: list[Rule] = Field(default_factory=list, description="URL admission rules")
    remove_selectors: list[str] = Field(default_factory=lambda: list(DEFAULT_REMOVE_SELECTORS))
    icon_names: list[str] = Field(default_factory=lambda: list(DEFAULT_ICON_NAMES))
    extra_noise_patterns: list[str] = Field(default_factory=list)
    target: SkillsTarget = SkillsTarget.CUSTOM
    scope: SkillsScope = SkillsScope.PROJECT

    @field_validator("target", mode="before")
    @classmethod
    def _resolve_target_alias(cls, value):
        if isinstance(value, str):
            return SkillsTarget(value)
        return value

    @field_validator("scope", mode="before")
    @classmethod
    def _lowercase_scope(cls, value):
        if isinstance(value, str):
            return value.lower()
        return value

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SkillsConfig":
        """
        Load configuration from a YAML file.

        Args:
            path: Path to skills.yaml

        Returns:
            SkillsConfig instance

        Raises:
            ConfigError: If the file is missing, unreadable or invalid
        """
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ConfigError(
                f"Configuration file not found: {path}. Run 'skillgen init' to create one."
            )
        except OSError as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        config = cls.from_yaml(text, source=str(path))
        logger.debug("config_loaded", path=str(path), rules=len(config.rules))
        return config

    @classmethod
    def load_or_default(cls, path: Union[str, Path]) -> "SkillsConfig":
        """Load the file if it exists, otherwise return defaults."""
        path = Path(path)
        if not path.exists():
            return cls()
        try:
            return cls.load(path)
        except ConfigError as e:
            logger.warning("config_load_failed_using_defaults", path=str(path), error=str(e))
            return cls()

    @classmethod
    def from_yaml(cls, text: str, source: str = "<string>") -> "SkillsConfig":
        """Parse configuration from YAML text."""
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {source}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(
                f"Top level of {source} must be a mapping, got {type(data).__name__}"
            )

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration in {source}: {e}") from e

    def build_url_filter(self) -> UrlFilter:
        """
        Compile the rules.

        Raises:
            InvalidPatternError: If any rule pattern is not a valid glob
        """
        return UrlFilter(self.rules)

    def should_crawl(self, url: str) -> bool:
        """
        Evaluate the rules for one URL.

        If the rules cannot be compiled, each rule is evaluated on its own
        with the same ignore-wins precedence.
        """
        try:
            url_filter = self.build_url_filter()
        except InvalidPatternError as e:
            logger.warning("url_filter_fallback", error=str(e))
            return evaluate_rules(self.rules, url)
        return url_filter.should_crawl(url)

    def has_allow_rules(self) -> bool:
        return any(r.action == Action.ALLOW for r in self.rules)

    def get_whitelist_patterns(self) -> list[str]:
        """Raw glob patterns of allow rules."""
        return [r.pattern for r in self.rules if r.action == Action.ALLOW]

    def get_whitelist_regex_patterns(self) -> list[str]:
        return [glob_to_regex(p) for p in self.get_whitelist_patterns()]

    def get_blacklist_patterns(self) -> list[str]:
        """Ignore rules as anchored regexes."""
        return [glob_to_regex(r.pattern) for r in self.rules if r.action == Action.IGNORE]

    def resolve_output_path(self) -> Path:
        """
        Output directory for the configured target and scope.

        Custom targets use ``output`` as-is. User scope resolves under the
        home directory, falling back to the project directory without one.
        """
        if self.target == SkillsTarget.CUSTOM:
            return self.output

        if self.scope == SkillsScope.USER:
            home = os.environ.get("HOME") or os.environ.get("USERPROFILE")
            if home:
                return Path(home) / self.target.user_dir

        return Path(self.target.project_dir)

    def scoped_to(self, start_url: str) -> tuple[str, "SkillsConfig"]:
        """
        Prepend rules that keep a crawl inside the start URL.

        A start URL with wildcards allows its base URL and the pattern; every
        other path on the host falls to default-deny. A plain start URL allows
        itself and everything below it.

        Args:
            start_url: URL as given by the user, possibly with wildcards

        Returns:
            Tuple of (base URL to start from, config with scoping rules)
        """
        base_url, pattern = parse_url_pattern(start_url)
        domain = extract_domain_with_protocol(base_url)
        if domain is None:
            return base_url, self

        if pattern is not None:
            recursive = pattern[:-1] + "**" if pattern.endswith("/*") else pattern
            # Other paths on the host are rejected by default-deny; an explicit
            # ignore rule for the host would also shadow the allowed pattern.
            scoping = [
                Rule(pattern=base_url, action=Action.ALLOW),
                Rule(pattern=recursive, action=Action.ALLOW),
            ]
            logger.info("crawl_scoped_to_pattern", pattern=pattern, domain=domain)
        else:
            prefix = base_url if base_url.endswith("/") else base_url + "/"
            scoping = [
                Rule(pattern=base_url, action=Action.ALLOW),
                Rule(pattern=f"{prefix}**", action=Action.ALLOW),
            ]
            logger.info("crawl_scoped_to_prefix", prefix=f"{prefix}**")

        return base_url, self.model_copy(update={"rules": scoping + list(self.rules)})


DEFAULT_CONFIG = """# skillgen configuration

# Target IDE/agent for skills generation
# Supported targets: github-copilot, claude-code, cursor, antigravity, openai-codex, opencode, custom
target: {target}

# Scope for skills installation
# - project: Install to project directory (e.g., .cursor/skills/)
# - user: Install to user home directory (e.g., ~/.cursor/skills/)
scope: {scope}

# Output directory for generated skills (only used when target is "custom")
output: {output}

# Create flat directory structure (no subdirectories)
flat: false

# Custom User-Agent string
# user_agent: "MyBot/1.0"

# Delay between requests in milliseconds (polite crawling)
delay_ms: {delay_ms}

# Maximum crawl depth
max_depth: {max_depth}

# Request timeout in seconds
request_timeout_secs: 30

# Respect robots.txt
respect_robots_txt: true

# Allow subdomains
subdomains: false

# Concurrency limit for parallel page processing
concurrency: {concurrency}

# URL filtering rules. Ignore rules always win over allow rules; once any
# allow rule exists, URLs matching no allow rule are skipped.
rules: []
  # - url: "*/docs/*"
  #   action: allow
  # - url: "*/api/internal/*"
  #   action: ignore
  # - url: "*/login*"
  #   action: ignore

# Extra CSS selectors for elements to remove from content
# remove_selectors:
#   - ".custom-sidebar"
#   - "#ad-container"

# Extra line patterns (regular expressions) removed from the Markdown
# extra_noise_patterns:
#   - "^Edit this page on GitHub$"
"""


def render_config(
    target: SkillsTarget = SkillsTarget.CUSTOM,
    scope: SkillsScope = SkillsScope.PROJECT,
    output: str = DEFAULT_OUTPUT_DIR,
    delay_ms: int = 100,
    max_depth: int = 25,
    concurrency: int = 4,
) -> str:
    """Render a commented skills.yaml."""
    return DEFAULT_CONFIG.format(
        target=target,
        scope=scope,
        output=output,
        delay_ms=delay_ms,
        max_depth=max_depth,
        concurrency=concurrency,
    )
