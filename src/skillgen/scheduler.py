"""URL scheduling and deduplication."""

import asyncio
from collections import deque
from typing import Optional
import structlog

from skillgen.filters import AdmissionFilter

logger = structlog.get_logger()


class Scheduler:
    """Manages URL queue with deduplication, depth tracking and pre-filtering."""

    def __init__(
        self,
        max_depth: int = 25,
        admission: Optional[AdmissionFilter] = None,
    ):
        self.max_depth = max_depth
        self.admission = admission
        self.queue: deque[tuple[str, int]] = deque()  # (url, depth)
        self.visited: set[str] = set()
        self.filtered: set[str] = set()
        self._lock = asyncio.Lock()

    async def add(self, url: str, depth: int = 0) -> bool:
        """
        Add URL to queue if not already seen.

        Args:
            url: URL to add
            depth: Current depth level

        Returns:
            True if the URL was queued
        """
        async with self._lock:
            if url in self.visited or url in self.filtered:
                return False

            if depth > self.max_depth:
                return False

            if self.admission and not self.admission.should_crawl(url):
                self.filtered.add(url)
                return False

            self.visited.add(url)
            self.queue.append((url, depth))
            logger.debug("url_queued", url=url, depth=depth, queue_size=len(self.queue))
            return True

    async def get(self) -> Optional[tuple[str, int]]:
        """Get next URL from queue (FIFO)."""
        async with self._lock:
            if self.queue:
                return self.queue.popleft()
            return None

    async def size(self) -> int:
        """Get current queue size."""
        async with self._lock:
            return len(self.queue)

    async def visited_count(self) -> int:
        """Get count of queued-or-fetched URLs."""
        async with self._lock:
            return len(self.visited)

    async def filtered_count(self) -> int:
        """Get count of filtered URLs."""
        async with self._lock:
            return len(self.filtered)

    def is_empty(self) -> bool:
        """Check if queue is empty."""
        return len(self.queue) == 0
