"""Link extraction for the crawl engine."""

from urllib.parse import urljoin, urlparse
from bs4 import BeautifulSoup
import structlog

logger = structlog.get_logger()


class LinkParser:
    """Extracts crawlable links from HTML."""

    def extract_links(self, html: str, base_url: str) -> list[str]:
        """
        Extract absolute http(s) links, fragments removed, deduplicated.

        Args:
            html: Raw HTML content
            base_url: Base URL for resolving relative links

        Returns:
            Links in document order
        """
        soup = BeautifulSoup(html, "lxml")

        base_tag = soup.find("base", href=True)
        if base_tag is not None:
            base_url = urljoin(base_url, base_tag["href"])

        links = []
        seen = set()

        for anchor in soup.find_all("a", href=True):
            absolute_url = urljoin(base_url, anchor["href"].strip())

            # Remove fragments
            absolute_url = absolute_url.split("#")[0]

            parsed = urlparse(absolute_url)
            if parsed.scheme not in ("http", "https"):
                continue

            if absolute_url not in seen:
                seen.add(absolute_url)
                links.append(absolute_url)

        logger.debug("links_extracted", url=base_url, count=len(links))
        return links
