"""Page metadata extraction."""

from datetime import datetime, timezone
from typing import Optional
from bs4 import BeautifulSoup
import structlog

from skillgen.models import PageMetadata
from skillgen.utils import (
    SkillNameSanitizer,
    extract_domain,
    extract_url_path,
    truncate_description,
)

logger = structlog.get_logger()

UNTITLED = "Untitled"
FALLBACK_SKILL_NAME = "index"
MIN_PARAGRAPH_LENGTH = 50
PARAGRAPH_DESCRIPTION_LENGTH = 200


def utc_timestamp() -> str:
    """Current UTC time as YYYY-MM-DDTHH:MM:SSZ."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class MetadataExtractor:
    """Derives title, description, skill name and timestamp for a page."""

    def __init__(self, sanitizer: Optional[SkillNameSanitizer] = None):
        self.sanitizer = sanitizer or SkillNameSanitizer()

    def extract(self, url: str, soup: BeautifulSoup) -> PageMetadata:
        """
        Extract metadata from a parsed page. Never fails.

        Args:
            url: Source URL
            soup: Parsed (uncleaned) document

        Returns:
            PageMetadata with best-effort defaults
        """
        title = self._title(soup) or UNTITLED
        description = self._meta_description(soup) or self._first_paragraph(soup) or ""

        return PageMetadata(
            title=title,
            description=description,
            url=url,
            skill_name=self.skill_name(url),
            processed_at=utc_timestamp(),
        )

    def skill_name(self, url: str) -> str:
        """
        Skill name from the URL path, falling back to the host, then 'index'.
        """
        name = self.sanitizer.sanitize(extract_url_path(url))
        if name:
            return name

        domain = extract_domain(url)
        if domain:
            name = self.sanitizer.sanitize(domain)

        return name or FALLBACK_SKILL_NAME

    def _title(self, soup: BeautifulSoup) -> Optional[str]:
        for name in ("title", "h1"):
            element = soup.find(name)
            if element is not None:
                text = element.get_text().strip()
                if text:
                    return text
        return None

    def _meta_description(self, soup: BeautifulSoup) -> Optional[str]:
        for attrs in ({"name": "description"}, {"property": "og:description"}):
            meta = soup.find("meta", attrs=attrs)
            if meta is None:
                continue
            content = (meta.get("content") or "").strip()
            if content:
                return content
        return None

    def _first_paragraph(self, soup: BeautifulSoup) -> Optional[str]:
        for paragraph in soup.find_all("p"):
            text = paragraph.get_text().strip()
            if len(text) > MIN_PARAGRAPH_LENGTH:
                return truncate_description(text, PARAGRAPH_DESCRIPTION_LENGTH)
        return None
