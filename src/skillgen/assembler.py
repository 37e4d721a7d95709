"""Rendering of the final SKILL.md document."""

import structlog

from skillgen.models import PageMetadata
from skillgen.utils import truncate_description

logger = structlog.get_logger()

MAX_DESCRIPTION_LENGTH = 1024

# Roughly 5,000 tokens.
LARGE_CONTENT_THRESHOLD = 20_000

SKILL_TEMPLATE = """---
name: {name}
description: {description}
metadata:
  url: {url}
---

# {title}

{content}
"""


class DocumentAssembler:
    """Renders frontmatter, title heading and Markdown body into one document."""

    def __init__(
        self,
        max_description_length: int = MAX_DESCRIPTION_LENGTH,
        large_content_threshold: int = LARGE_CONTENT_THRESHOLD,
    ):
        self.max_description_length = max_description_length
        self.large_content_threshold = large_content_threshold

    def is_oversized(self, markdown: str) -> bool:
        """True when the body is large enough to be costly as agent context."""
        return len(markdown) > self.large_content_threshold

    def assemble(self, metadata: PageMetadata, markdown: str) -> str:
        """
        Build the skill document.

        Args:
            metadata: Page metadata
            markdown: Scrubbed Markdown body

        Returns:
            Document text with frontmatter (name, description, url)
        """
        description = truncate_description(metadata.description, self.max_description_length)
        description = description.replace("\n", " ").replace("\r", "")

        if self.is_oversized(markdown):
            logger.warning(
                "large_skill",
                skill=metadata.skill_name,
                chars=len(markdown),
                approx_tokens=len(markdown) // 4,
            )

        return SKILL_TEMPLATE.format(
            name=metadata.skill_name,
            description=description,
            url=metadata.url,
            title=metadata.title,
            content=markdown.strip(),
        )
