"""HTTP fetcher with async support."""

import asyncio
from typing import NamedTuple, Optional
import aiohttp
import structlog

logger = structlog.get_logger()


class FetchError(RuntimeError):
    """Raised when a URL cannot be fetched.

    Attributes:
        url    -- the URL that failed
        status -- HTTP status code (0 if no response was received)
    """

    def __init__(self, url: str, message: str, status: int = 0):
        super().__init__(f"Failed to fetch {url}: {message}")
        self.url = url
        self.status = status


class FetchResult(NamedTuple):
    content: str
    status: int
    content_type: str

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type or not self.content_type


class Fetcher:
    """Async HTTP client wrapper."""

    def __init__(
        self,
        user_agent: str,
        timeout: int = 30,
        max_retries: int = 3,
    ):
        self.user_agent = user_agent
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_retries = max_retries
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self):
        """Create session on context enter."""
        self._session = aiohttp.ClientSession(
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close session on context exit."""
        if self._session:
            await self._session.close()

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult with body, status code and content type

        Raises:
            FetchError: On request failure after retries or an HTTP error status
        """
        if not self._session:
            raise RuntimeError("Fetcher must be used as async context manager")

        for attempt in range(self.max_retries):
            try:
                async with self._session.get(url) as response:
                    content = await response.text(errors="replace")
                    logger.info(
                        "fetched_url",
                        url=url,
                        status=response.status,
                        size=len(content),
                    )
                    if response.status >= 400:
                        raise FetchError(url, f"HTTP {response.status}", status=response.status)
                    return FetchResult(content, response.status, response.content_type or "")

            except asyncio.TimeoutError:
                logger.warning("timeout", url=url, attempt=attempt + 1)
                if attempt == self.max_retries - 1:
                    raise FetchError(url, "timed out")

            except aiohttp.ClientError as e:
                logger.error("fetch_error", url=url, error=str(e), attempt=attempt + 1)
                if attempt == self.max_retries - 1:
                    raise FetchError(url, str(e)) from e
                await asyncio.sleep(2**attempt)  # Exponential backoff

        raise RuntimeError("Unreachable code")

    async def fetch_text(self, url: str) -> Optional[str]:
        """Fetch a URL, returning None instead of raising (for robots.txt)."""
        try:
            return (await self.fetch(url)).content
        except FetchError as e:
            logger.debug("optional_fetch_failed", url=url, error=str(e))
            return None
