"""Writing skill directories to disk."""

import shutil
from fnmatch import fnmatch
from pathlib import Path
from typing import Optional
import aiofiles
import aiofiles.os
import structlog

from skillgen.models import ProcessedPage

logger = structlog.get_logger()

SKILL_FILENAME = "SKILL.md"


class SkillWriter:
    """
    Writes one ``<output_dir>/<skill_name>/SKILL.md`` per processed page.

    Two URLs that sanitize to the same skill name overwrite each other; the
    writer logs a warning when that happens within one run.
    """

    def __init__(self, output_dir: Path):
        """
        Initialize writer.

        Args:
            output_dir: Directory that holds the skill directories
        """
        self.output_dir = Path(output_dir)
        self._written: dict[str, str] = {}

    def skill_path(self, skill_name: str) -> Path:
        return self.output_dir / skill_name / SKILL_FILENAME

    def exists(self, skill_name: str) -> bool:
        """Check whether a skill document is already on disk."""
        return self.skill_path(skill_name).is_file()

    async def write(self, page: ProcessedPage) -> Path:
        """
        Write a processed page.

        Args:
            page: Processed page

        Returns:
            The skill directory
        """
        name = page.metadata.skill_name
        previous_url = self._written.get(name)
        if previous_url is not None and previous_url != page.metadata.url:
            logger.warning(
                "skill_name_collision",
                skill=name,
                previous_url=previous_url,
                url=page.metadata.url,
            )
        self._written[name] = page.metadata.url

        skill_dir = self.output_dir / name
        await aiofiles.os.makedirs(skill_dir, exist_ok=True)

        path = skill_dir / SKILL_FILENAME
        async with aiofiles.open(path, mode="w", encoding="utf-8") as f:
            await f.write(page.skill_document)

        logger.debug(
            "wrote_skill",
            skill=name,
            chars=len(page.skill_document),
            path=str(path),
        )
        return skill_dir


def clean_output_dir(output_dir: Path, pattern: Optional[str] = None) -> int:
    """
    Remove generated skill directories.

    Only subdirectories that contain a SKILL.md are removed, so hand-made
    files next to them survive.

    Args:
        output_dir: Skills directory
        pattern: Optional glob; only matching directory names are removed

    Returns:
        Number of removed skill directories
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        logger.info("output_dir_missing", path=str(output_dir))
        return 0

    count = 0
    for path in sorted(output_dir.iterdir()):
        if not path.is_dir() or not (path / SKILL_FILENAME).exists():
            continue
        if pattern and not fnmatch(path.name, pattern):
            continue
        shutil.rmtree(path)
        count += 1
        logger.debug("removed_skill", path=str(path))

    logger.info("cleaned_skills", count=count, path=str(output_dir))
    return count
