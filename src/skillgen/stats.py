"""Crawl statistics."""

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class CrawlStats:
    """
    Counters for one crawl.

    Only mutated from the event loop thread through the ``record_*``
    methods; each counter is updated independently.
    """

    visited: int = 0
    processed: int = 0
    skipped: int = 0
    failed: int = 0

    def record_visited(self) -> None:
        self.visited += 1

    def record_processed(self) -> None:
        self.processed += 1

    def record_skipped(self) -> None:
        self.skipped += 1

    def record_failed(self) -> None:
        self.failed += 1

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        """Human-readable one-line summary."""
        return (
            f"Crawl complete: {self.visited} visited, {self.processed} processed, "
            f"{self.skipped} skipped, {self.failed} failed"
        )
