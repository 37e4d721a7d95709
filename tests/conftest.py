"""Pytest configuration and fixtures."""

import asyncio

import pytest
import structlog

from skillgen.config import SkillsConfig
from skillgen.models import CrawledPage


@pytest.fixture
def sample_html():
    """Sample documentation page with typical noise."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>Test Page Title</title>
        <meta name="description" content="This is a test description.">
        <meta property="og:title" content="Test OG Title">
        <script>console.log("tracking");</script>
        <style>body { color: red; }</style>
    </head>
    <body>
        <a href="#main" class="skip">Skip to main content</a>
        <nav><a href="/docs/other">Other page</a></nav>
        <main id="main">
            <h1>Welcome</h1>
            <p>This is a test page with some content.</p>
            <span class="material-icons">content_copy</span>
            <button data-copy="true">Copy</button>
            <a href="/docs/page1">Page 1</a>
            <a href="/docs/page2#section">Page 2</a>
            <a href="https://external.com">External</a>
        </main>
        <div id="cookie-banner">This site uses cookies.</div>
        <footer>Footer links</footer>
    </body>
    </html>
    """


@pytest.fixture
def sample_url():
    """Sample page URL for testing."""
    return "https://example.com/docs/test"


@pytest.fixture
def config(tmp_path):
    """Default configuration writing to a temporary directory."""
    return SkillsConfig(output=tmp_path / "skills", delay_ms=0, concurrency=2)


class StubEngine:
    """Feeds a fixed list of pages into the channel, then closes it."""

    def __init__(self, pages):
        self.pages = pages
        self.start_url = None

    async def run(self, start_url: str, channel: asyncio.Queue) -> None:
        self.start_url = start_url
        try:
            for page in self.pages:
                await channel.put(page)
        finally:
            await channel.put(None)


@pytest.fixture
def make_page(sample_html):
    """Factory for crawled pages using the sample HTML."""

    def _make(url: str, html=None) -> CrawledPage:
        return CrawledPage(url=url, html=sample_html if html is None else html)

    return _make


@pytest.fixture
def stub_engine():
    """Factory for stub crawl engines."""
    return StubEngine


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo CLI logging configuration between tests."""
    yield
    structlog.reset_defaults()
