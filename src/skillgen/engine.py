"""Crawl engine: discovers and fetches pages, publishes them on a channel."""

import asyncio
from typing import Optional
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser
import structlog

from skillgen.config import DEFAULT_USER_AGENT, SkillsConfig
from skillgen.fetcher import Fetcher, FetchError
from skillgen.filters import AdmissionFilter
from skillgen.models import CrawledPage
from skillgen.parser import LinkParser
from skillgen.scheduler import Scheduler

logger = structlog.get_logger()


class CrawlEngine:
    """
    Async crawler that feeds a bounded page channel.

    Workers pull URLs from the scheduler, fetch them, enqueue discovered
    links and publish every HTML page as a CrawledPage. When the crawl is
    exhausted a single ``None`` is put on the channel to close it.
    """

    def __init__(
        self,
        config: SkillsConfig,
        admission: Optional[AdmissionFilter] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Crawl configuration (politeness, depth, limits)
            admission: Pre-filter applied before URLs are queued
        """
        self.config = config
        self.user_agent = config.user_agent or DEFAULT_USER_AGENT
        self.parser = LinkParser()
        self.scheduler = Scheduler(max_depth=config.max_depth, admission=admission)
        self.pages_fetched = 0
        self._active = 0
        self._robots: dict[str, Optional[RobotFileParser]] = {}
        self._robots_locks: dict[str, asyncio.Lock] = {}

    async def run(self, start_url: str, channel: asyncio.Queue) -> None:
        """
        Crawl from start_url, publishing pages to channel.

        Args:
            start_url: URL to start crawling from
            channel: Bounded queue receiving CrawledPage items, then None
        """
        logger.info(
            "crawl_started",
            url=start_url,
            max_depth=self.config.max_depth,
            max_pages=self.config.max_pages,
        )

        try:
            if not await self.scheduler.add(start_url, depth=0):
                logger.warning("start_url_filtered", url=start_url)
                return

            async with Fetcher(
                user_agent=self.user_agent,
                timeout=self.config.request_timeout_secs,
            ) as fetcher:
                workers = [
                    asyncio.create_task(self._worker(fetcher, channel, worker_id))
                    for worker_id in range(self.config.concurrency)
                ]
                await asyncio.gather(*workers)
        finally:
            await channel.put(None)

        logger.info(
            "crawl_completed",
            pages_fetched=self.pages_fetched,
            urls_seen=await self.scheduler.visited_count(),
            urls_filtered=await self.scheduler.filtered_count(),
        )

    def _limit_reached(self) -> bool:
        max_pages = self.config.max_pages
        return max_pages is not None and self.pages_fetched >= max_pages

    async def _worker(self, fetcher: Fetcher, channel: asyncio.Queue, worker_id: int):
        """
        Worker coroutine that processes URLs from queue.

        Args:
            fetcher: HTTP fetcher instance
            channel: Page channel
            worker_id: Worker identifier for logging
        """
        while not self._limit_reached():
            item = await self.scheduler.get()
            if item is None:
                # Other workers may still discover links
                if self._active == 0 and self.scheduler.is_empty():
                    break
                await asyncio.sleep(0.05)
                continue

            url, depth = item
            self._active += 1
            try:
                await self._crawl_one(fetcher, channel, url, depth, worker_id)
            finally:
                self._active -= 1

            if self.config.delay_ms:
                await asyncio.sleep(self.config.delay_ms / 1000)

    async def _crawl_one(
        self,
        fetcher: Fetcher,
        channel: asyncio.Queue,
        url: str,
        depth: int,
        worker_id: int,
    ) -> None:
        if self.config.respect_robots_txt and not await self._allowed_by_robots(fetcher, url):
            logger.info("robots_disallowed", url=url)
            return

        if self._limit_reached():
            return
        self.pages_fetched += 1

        try:
            result = await fetcher.fetch(url)
        except FetchError as e:
            logger.warning("page_fetch_failed", url=url, status=e.status, error=str(e))
            return

        if not result.is_html:
            logger.debug("non_html_skipped", url=url, content_type=result.content_type)
            return

        for link in self.parser.extract_links(result.content, url):
            await self.scheduler.add(link, depth=depth + 1)

        await channel.put(
            CrawledPage(url=url, html=result.content, status_code=result.status, depth=depth)
        )
        logger.debug(
            "page_published",
            url=url,
            depth=depth,
            worker=worker_id,
            queue=await self.scheduler.size(),
        )

    async def _allowed_by_robots(self, fetcher: Fetcher, url: str) -> bool:
        """Check robots.txt for url, fetching it once per host."""
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}"

        if origin not in self._robots:
            # One lock per origin: a slow robots.txt only holds up its own host.
            lock = self._robots_locks.setdefault(origin, asyncio.Lock())
            async with lock:
                if origin not in self._robots:
                    self._robots[origin] = await self._load_robots(fetcher, origin)
        robots = self._robots[origin]

        if robots is None:
            return True
        return robots.can_fetch(self.user_agent, url)

    async def _load_robots(self, fetcher: Fetcher, origin: str) -> Optional[RobotFileParser]:
        text = await fetcher.fetch_text(f"{origin}/robots.txt")
        if text is None:
            return None
        robots = RobotFileParser()
        robots.parse(text.splitlines())
        logger.debug("robots_loaded", origin=origin)
        return robots
