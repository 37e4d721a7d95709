"""Data models for skillgen."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class Action(str, Enum):
    """What to do with a URL matching a rule."""

    ALLOW = "allow"
    IGNORE = "ignore"


class Rule(BaseModel):
    """A single admission directive: glob pattern plus action."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    pattern: str = Field(alias="url", description="Glob pattern matched against the full URL")
    action: Action
    content_type: Optional[str] = Field(default=None, description="Unused in matching")

    def matches(self, url: str) -> bool:
        """
        Check whether this single rule matches a URL.

        Patterns that cannot be compiled degrade to a substring test of the
        pattern with wildcards removed.
        """
        from skillgen.filters import InvalidPatternError, compile_patterns

        try:
            return bool(compile_patterns([self.pattern]).match(url))
        except InvalidPatternError:
            return self.pattern.replace("*", "") in url


class PageMetadata(BaseModel):
    """Metadata derived from a page and its URL."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    url: str
    skill_name: str
    processed_at: str


class ProcessedPage(BaseModel):
    """Everything produced by processing one page."""

    model_config = ConfigDict(frozen=True)

    metadata: PageMetadata
    cleaned_html: str
    markdown_content: str
    skill_document: str


class CrawledPage(BaseModel):
    """A page published by the crawl engine."""

    url: str
    html: str = ""
    status_code: int = 200
    depth: int = 0
