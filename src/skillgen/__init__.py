"""
skillgen - turn documentation sites into agent skills.

Crawls pages, strips the noise and writes one SKILL.md per page.
"""

from skillgen.config import ConfigError, SkillsConfig, SkillsScope, SkillsTarget
from skillgen.crawler import SkillCrawler
from skillgen.filters import InvalidPatternError, UrlFilter
from skillgen.models import Action, PageMetadata, ProcessedPage, Rule
from skillgen.processor import Processor, ProcessingError
from skillgen.stats import CrawlStats
from skillgen.writers import SkillWriter, clean_output_dir

__version__ = "0.1.0"
__all__ = [
    "Action",
    "ConfigError",
    "CrawlStats",
    "InvalidPatternError",
    "PageMetadata",
    "ProcessedPage",
    "Processor",
    "ProcessingError",
    "Rule",
    "SkillCrawler",
    "SkillWriter",
    "SkillsConfig",
    "SkillsScope",
    "SkillsTarget",
    "UrlFilter",
    "clean_output_dir",
]
