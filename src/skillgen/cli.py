"""CLI interface for skillgen."""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional
import click
import structlog

from skillgen.config import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_USER_AGENT,
    ConfigError,
    SkillsConfig,
    SkillsScope,
    SkillsTarget,
    render_config,
)
from skillgen.crawler import SkillCrawler
from skillgen.fetcher import Fetcher, FetchError
from skillgen.filters import InvalidPatternError
from skillgen.processor import Processor, ProcessingError
from skillgen.writers import SkillWriter, clean_output_dir
from skillgen import __version__

logger = structlog.get_logger()

TARGET_CHOICES = [t.value for t in SkillsTarget]


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Looked up per call so redirected streams are honoured.
    return structlog.PrintLogger(sys.stderr)


def configure_logging(verbose: int = 0, quiet: bool = False) -> None:
    """Configure structured logging to stderr."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )


class Settings:
    """Global options shared by all commands."""

    def __init__(
        self,
        config_path: Path,
        output: Optional[Path],
        target: Optional[str],
        user: bool,
    ):
        self.config_path = config_path
        self.output = output
        self.target = target
        self.user = user

    def apply(self, config: SkillsConfig) -> SkillsConfig:
        """Apply CLI overrides to a loaded configuration."""
        update = {}
        if self.target:
            update["target"] = SkillsTarget(self.target)
        if self.user:
            update["scope"] = SkillsScope.USER
        if update:
            config = config.model_copy(update=update)
        return config

    def output_dir(self, config: SkillsConfig) -> Path:
        """--output wins over the target's directory."""
        if self.output is not None:
            return self.output
        return config.resolve_output_path()


pass_settings = click.make_pass_decorator(Settings)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_CONFIG_PATH,
    envvar="SKILLS_CONFIG",
    show_default=True,
    help="Path to configuration file",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="SKILLS_OUTPUT",
    help="Output directory for skills (overrides target)",
)
@click.option("--verbose", "-v", count=True, help="Enable debug logging")
@click.option("--quiet", "-q", is_flag=True, help="Only log errors")
@click.option(
    "--target",
    "-t",
    type=click.Choice(TARGET_CHOICES, case_sensitive=False),
    help="Target IDE/agent (overrides config)",
)
@click.option("--user", is_flag=True, help="Install to the user-level skills directory")
@click.pass_context
def main(ctx, config_path, output, verbose, quiet, target, user):
    """
    skillgen - turn documentation sites into agent skills.

    Crawls pages and writes one cleaned SKILL.md per page.
    """
    configure_logging(verbose, quiet)
    ctx.obj = Settings(config_path=config_path, output=output, target=target, user=user)


@main.command()
@click.argument("urls", nargs=-1, required=True)
@click.option("--max-pages", "-n", type=click.IntRange(min=1), help="Maximum number of pages to fetch")
@click.option("--delay", type=click.IntRange(min=0), help="Delay between requests in ms")
@click.option("--depth", "-d", type=click.IntRange(min=0), help="Maximum crawl depth")
@click.option("--subdomains", is_flag=True, help="Follow subdomains of the start host")
@click.option("--dry-run", is_flag=True, help="Show the effective rules without crawling")
@click.option("--resume", is_flag=True, help="Skip pages whose SKILL.md already exists")
@click.option("--no-progress", is_flag=True, help="Disable the progress bar")
@pass_settings
def crawl(
    settings: Settings,
    urls: tuple,
    max_pages: Optional[int],
    delay: Optional[int],
    depth: Optional[int],
    subdomains: bool,
    dry_run: bool,
    resume: bool,
    no_progress: bool,
):
    """
    Crawl one or more URLs and generate skills.

    URLs may contain wildcards to restrict the crawl to a pattern.

    Examples:

        skillgen crawl https://docs.example.com/guide/

        skillgen crawl "https://docs.example.com/api/*" --max-pages 50

        skillgen -t claude crawl https://docs.example.com --dry-run
    """
    try:
        config = settings.apply(SkillsConfig.load(settings.config_path))
    except ConfigError as e:
        raise click.ClickException(str(e))

    update = {}
    if max_pages is not None:
        update["max_pages"] = max_pages
    if delay is not None:
        update["delay_ms"] = delay
    if depth is not None:
        update["max_depth"] = depth
    if subdomains:
        update["subdomains"] = True
    if update:
        config = config.model_copy(update=update)

    output_dir = settings.output_dir(config)
    click.echo(f"Output directory: {output_dir}")

    for url in urls:
        base_url, scoped = config.scoped_to(url)

        try:
            crawler = SkillCrawler(
                scoped,
                output_dir,
                resume=resume,
                show_progress=not no_progress,
            )
        except InvalidPatternError as e:
            raise click.ClickException(str(e))

        if dry_run:
            click.echo(f"Would crawl: {base_url}")
            click.echo("Active rules:")
            for line in crawler.describe_rules():
                click.echo(f"  {line}")
            continue

        click.echo(f"Crawling {base_url}...")
        try:
            stats = asyncio.run(crawler.crawl(base_url))
        except KeyboardInterrupt:
            click.echo("\nCrawl interrupted by user")
            click.echo(crawler.stats.summary())
            return
        except Exception as e:
            logger.error("crawl_failed", url=base_url, error=str(e))
            continue

        click.echo(stats.summary())


@main.command()
@click.argument("url")
@click.option("--stdout", "to_stdout", is_flag=True, help="Print the result instead of writing it")
@pass_settings
def single(settings: Settings, url: str, to_stdout: bool):
    """
    Process a single page without crawling.

    Examples:

        skillgen single https://docs.example.com/intro

        skillgen single https://docs.example.com/intro --stdout
    """
    config = settings.apply(SkillsConfig.load_or_default(settings.config_path))
    processor = Processor.from_config(config)

    async def fetch_and_process():
        async with Fetcher(
            user_agent=config.user_agent or DEFAULT_USER_AGENT,
            timeout=config.request_timeout_secs,
        ) as fetcher:
            result = await fetcher.fetch(url)
        processed = processor.process(url, result.content)
        if to_stdout:
            return processed, None
        return processed, await SkillWriter(settings.output_dir(config)).write(processed)

    try:
        processed, skill_dir = asyncio.run(fetch_and_process())
    except (FetchError, ProcessingError) as e:
        raise click.ClickException(str(e))

    if to_stdout:
        click.echo("=== SKILL.md ===")
        click.echo(processed.skill_document)
        click.echo("\n=== Markdown ===")
        click.echo(processed.markdown_content)
    else:
        click.echo(f"Wrote {skill_dir}")


@main.command()
@click.option("--force", "-f", is_flag=True, help="Do not ask for confirmation")
@click.option("--pattern", "-p", help="Only remove skills whose name matches this glob")
@pass_settings
def clean(settings: Settings, force: bool, pattern: Optional[str]):
    """
    Remove generated skill directories.

    Only directories containing a SKILL.md are removed.
    """
    config = settings.apply(SkillsConfig.load_or_default(settings.config_path))
    output_dir = settings.output_dir(config)

    if not output_dir.exists():
        click.echo(f"Output directory does not exist: {output_dir}")
        return

    if not force:
        what = f"skills matching '{pattern}'" if pattern else "all generated skills"
        click.confirm(f"Remove {what} from {output_dir}?", abort=True)

    count = clean_output_dir(output_dir, pattern=pattern)
    click.echo(f"Removed {count} skill directories from {output_dir}")


@main.command()
@click.option("--show", is_flag=True, help="Print the parsed configuration")
@click.option("--url", "urls", multiple=True, help="Check whether a URL would be crawled")
@pass_settings
def validate(settings: Settings, show: bool, urls: tuple):
    """
    Validate the configuration file.

    Examples:

        skillgen validate --show

        skillgen validate --url https://docs.example.com/api/v1
    """
    try:
        config = settings.apply(SkillsConfig.load(settings.config_path))
    except ConfigError as e:
        raise click.ClickException(str(e))

    try:
        config.build_url_filter()
    except InvalidPatternError as e:
        raise click.ClickException(f"Invalid rule: {e}")

    click.echo(f"Configuration is valid: {settings.config_path}")

    if show:
        whitelist = config.get_whitelist_regex_patterns()
        blacklist = config.get_blacklist_patterns()
        click.echo(f"  Target: {config.target}")
        click.echo(f"  Scope: {config.scope}")
        click.echo(f"  Output: {settings.output_dir(config)}")
        click.echo(f"  Flat: {config.flat}")
        click.echo(f"  Delay: {config.delay_ms}ms")
        click.echo(f"  Max depth: {config.max_depth}")
        click.echo(f"  Concurrency: {config.concurrency}")
        click.echo(f"  Respect robots.txt: {config.respect_robots_txt}")
        click.echo(f"  Rules: {len(whitelist)} allow, {len(blacklist)} ignore")
        for i, rule in enumerate(config.rules, start=1):
            click.echo(f"    {i}. {rule.pattern} -> {rule.action.value}")
        if config.has_allow_rules():
            click.echo("  URLs matching no allow rule are skipped")
        for regex in whitelist:
            click.echo(f"  Whitelist regex: {regex}")
        for regex in blacklist:
            click.echo(f"  Blacklist regex: {regex}")

    for url in urls:
        verdict = "crawl" if config.should_crawl(url) else "skip"
        click.echo(f"{verdict}: {url}")


@main.command()
@click.option("--force", "-f", is_flag=True, help="Overwrite an existing file")
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the file (default: --config)",
)
@click.option("--no-interactive", is_flag=True, help="Write defaults without prompting")
@pass_settings
def init(settings: Settings, force: bool, path: Optional[Path], no_interactive: bool):
    """Create a default skills.yaml."""
    path = path or settings.config_path

    if path.exists() and not force:
        raise click.ClickException(
            f"Configuration file already exists: {path}. Use --force to overwrite."
        )

    target = SkillsTarget(settings.target) if settings.target else SkillsTarget.CUSTOM
    scope = SkillsScope.USER if settings.user else SkillsScope.PROJECT
    output = str(settings.output) if settings.output else DEFAULT_OUTPUT_DIR
    delay_ms, max_depth, concurrency = 100, 25, 4

    if not no_interactive:
        target = SkillsTarget(
            click.prompt(
                "Target IDE/agent",
                type=click.Choice(TARGET_CHOICES, case_sensitive=False),
                default=target.value,
            )
        )
        scope = SkillsScope(
            click.prompt(
                "Install scope",
                type=click.Choice([s.value for s in SkillsScope], case_sensitive=False),
                default=scope.value,
            )
        )
        if target == SkillsTarget.CUSTOM:
            output = click.prompt("Output directory", default=output)
        delay_ms = click.prompt("Delay between requests (ms)", type=click.IntRange(min=0), default=delay_ms)
        max_depth = click.prompt("Maximum crawl depth", type=click.IntRange(min=0), default=max_depth)
        concurrency = click.prompt("Concurrency", type=click.IntRange(min=1), default=concurrency)

    content = render_config(
        target=target,
        scope=scope,
        output=output,
        delay_ms=delay_ms,
        max_depth=max_depth,
        concurrency=concurrency,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")

    click.echo(f"Created {path}")
    click.echo("Run 'skillgen crawl <URL>' to generate skills.")


@main.command()
def version():
    """Show version information."""
    click.echo(f"skillgen version {__version__}")
    click.echo("Turns documentation sites into agent skills.")


if __name__ == "__main__":
    main()
