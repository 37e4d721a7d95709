"""Per-page processing pipeline."""

from typing import Optional
from bs4 import BeautifulSoup
import structlog

from skillgen.assembler import DocumentAssembler
from skillgen.converter import ConversionError, MarkdownConverter
from skillgen.metadata import MetadataExtractor
from skillgen.models import ProcessedPage
from skillgen.scrubber import MarkdownScrubber
from skillgen.stripper import NoiseStripper

logger = structlog.get_logger()


class ProcessingError(RuntimeError):
    """Raised when a page cannot be turned into a skill document."""


class Processor:
    """
    Turns raw HTML into a skill document:
    strip noise, convert to Markdown, scrub, extract metadata, assemble.

    All components are built once and shared read-only across pages.
    """

    def __init__(
        self,
        stripper: Optional[NoiseStripper] = None,
        converter: Optional[MarkdownConverter] = None,
        scrubber: Optional[MarkdownScrubber] = None,
        extractor: Optional[MetadataExtractor] = None,
        assembler: Optional[DocumentAssembler] = None,
    ):
        self.stripper = stripper or NoiseStripper()
        self.converter = converter or MarkdownConverter()
        self.scrubber = scrubber or MarkdownScrubber()
        self.extractor = extractor or MetadataExtractor()
        self.assembler = assembler or DocumentAssembler()

    @classmethod
    def from_config(cls, config) -> "Processor":
        """
        Build a processor from a SkillsConfig.

        Args:
            config: Loaded configuration

        Returns:
            Processor instance
        """
        return cls(
            stripper=NoiseStripper(remove_selectors=config.remove_selectors),
            scrubber=MarkdownScrubber(
                icon_names=config.icon_names,
                extra_patterns=config.extra_noise_patterns,
            ),
        )

    def process(self, url: str, html: str) -> ProcessedPage:
        """
        Process one page.

        Args:
            url: Source URL
            html: Raw HTML

        Returns:
            ProcessedPage with metadata, cleaned HTML, Markdown and document

        Raises:
            ProcessingError: If the HTML is empty or conversion fails
        """
        if not html or not html.strip():
            raise ProcessingError(f"Empty HTML content for: {url}")

        metadata = self.extractor.extract(url, BeautifulSoup(html, "lxml"))

        cleaned_html = self.stripper.strip(html)

        try:
            raw_markdown = self.converter.convert(cleaned_html, url)
        except ConversionError as e:
            raise ProcessingError(str(e)) from e

        markdown_content = self.scrubber.scrub(raw_markdown)
        skill_document = self.assembler.assemble(metadata, markdown_content)

        logger.debug(
            "page_processed",
            url=url,
            skill=metadata.skill_name,
            html_size=len(html),
            markdown_size=len(markdown_content),
        )

        return ProcessedPage(
            metadata=metadata,
            cleaned_html=cleaned_html,
            markdown_content=markdown_content,
            skill_document=skill_document,
        )
