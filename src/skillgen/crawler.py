"""Crawl coordinator: turns crawled pages into skill directories."""

import asyncio
from pathlib import Path
from typing import Optional
from tqdm.asyncio import tqdm
import structlog

from skillgen.config import SkillsConfig
from skillgen.engine import CrawlEngine
from skillgen.filters import AdmissionFilter
from skillgen.models import CrawledPage
from skillgen.processor import Processor
from skillgen.stats import CrawlStats
from skillgen.writers import SkillWriter

logger = structlog.get_logger()


class SkillCrawler:
    """Drains the engine's page channel and processes pages concurrently."""

    def __init__(
        self,
        config: SkillsConfig,
        output_dir: Path,
        resume: bool = False,
        show_progress: bool = False,
        engine: Optional[CrawlEngine] = None,
    ):
        """
        Initialize crawler with configuration.

        Args:
            config: Scoped configuration for this crawl
            output_dir: Directory receiving skill directories
            resume: Skip pages whose SKILL.md already exists
            show_progress: Show a tqdm progress bar
            engine: Crawl engine; built from config if None

        Raises:
            InvalidPatternError: If a rule pattern cannot be compiled
        """
        self.config = config
        self.output_dir = Path(output_dir)
        self.resume = resume
        self.show_progress = show_progress
        self.url_filter = config.build_url_filter()
        self.processor = Processor.from_config(config)
        self.writer = SkillWriter(self.output_dir)
        self.stats = CrawlStats()
        self._engine = engine

    def _build_engine(self, start_url: str) -> CrawlEngine:
        admission = AdmissionFilter.from_url_filter(
            self.url_filter,
            start_url=start_url,
            subdomains=self.config.subdomains,
        )
        return CrawlEngine(self.config, admission=admission)

    async def crawl(self, start_url: str) -> CrawlStats:
        """
        Crawl from start_url and write one skill per accepted page.

        Args:
            start_url: URL to start crawling from

        Returns:
            Final CrawlStats
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(
            "skill_crawl_started",
            url=start_url,
            output=str(self.output_dir),
            concurrency=self.config.concurrency,
            resume=self.resume,
        )

        engine = self._engine or self._build_engine(start_url)
        channel: asyncio.Queue = asyncio.Queue(maxsize=self.config.concurrency * 2)
        semaphore = asyncio.Semaphore(self.config.concurrency)

        pbar = None
        if self.show_progress:
            pbar = tqdm(total=self.config.max_pages, desc="Generating skills", unit="page")

        engine_task = asyncio.create_task(engine.run(start_url, channel))
        try:
            await self._drain(channel, semaphore, pbar)
        finally:
            if pbar is not None:
                pbar.close()
            await engine_task

        logger.info("skill_crawl_completed", **self.stats.to_dict())
        return self.stats

    async def _drain(self, channel: asyncio.Queue, semaphore: asyncio.Semaphore, pbar) -> None:
        """Consume pages until the channel closes, then wait for in-flight work."""
        tasks: set[asyncio.Task] = set()

        while True:
            page = await channel.get()
            if page is None:
                break

            self.stats.record_visited()
            url = page.url

            if not self.url_filter.should_crawl(url):
                logger.debug("page_skipped_filter", url=url)
                self.stats.record_skipped()
                continue

            if self.resume:
                skill_name = self.processor.extractor.skill_name(url)
                if self.writer.exists(skill_name):
                    logger.debug("page_skipped_existing", url=url, skill=skill_name)
                    self.stats.record_skipped()
                    continue

            await semaphore.acquire()
            task = asyncio.create_task(self._process_page(page, semaphore, pbar))
            tasks.add(task)
            task.add_done_callback(tasks.discard)

        if tasks:
            await asyncio.gather(*tasks)

    async def _process_page(self, page: CrawledPage, semaphore: asyncio.Semaphore, pbar) -> None:
        try:
            processed = await asyncio.to_thread(self.processor.process, page.url, page.html)
            skill_dir = await self.writer.write(processed)
        except Exception as e:
            logger.error("page_failed", url=page.url, error=str(e))
            self.stats.record_failed()
        else:
            logger.info("page_processed", url=page.url, skill_dir=str(skill_dir))
            self.stats.record_processed()
        finally:
            semaphore.release()
            if pbar is not None:
                pbar.update(1)
                pbar.set_postfix(
                    {"processed": self.stats.processed, "failed": self.stats.failed}
                )

    def describe_rules(self) -> list[str]:
        """Effective rules, one line each, for dry runs."""
        return [
            f"{i}. {rule.pattern} -> {rule.action.value}"
            for i, rule in enumerate(self.config.rules, start=1)
        ]
