"""CLI for wiwo: list a user's GitHub activity over a time window."""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from wiwo import __version__
from wiwo.config import Settings, settings
from wiwo.formatting import render
from wiwo.services.activity import (
    EventAggregator,
    Timeline,
    TimeRange,
    TimeRangeError,
    parse,
    resolve,
    resolve_user,
)
from wiwo.services.github import (
    GitHubAPIError,
    GitHubReadOperations,
    RateLimitedError,
    close_github_client,
)
from wiwo.services.history import HistoryFallback

logger = logging.getLogger(__name__)

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def setup_logging(level: int | str = logging.WARNING) -> None:
    """Configure CLI logging on stderr so stdout stays clean for the table."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)


def build_aggregator(config: Settings, use_fallback: bool = True) -> EventAggregator:
    ops = GitHubReadOperations(
        config.gh_token or None,
        base_url=config.api_base_url,
        api_version=config.api_version,
        user_agent=config.user_agent,
        max_retries=config.max_retries,
    )
    fallback = None
    if use_fallback:
        fallback = HistoryFallback(
            ops,
            clone_base_url=config.clone_base_url,
            concurrency=config.clone_concurrency,
            clone_timeout=config.clone_timeout_seconds or None,
            include_forks=config.include_forks,
            max_pages=config.max_pages,
        )
    return EventAggregator(
        ops,
        fallback=fallback,
        per_page=config.per_page,
        max_pages=config.max_pages,
        horizon_days=config.event_horizon_days,
    )


async def run_events(
    aggregator: EventAggregator,
    user: str | None,
    time_range: TimeRange,
    timeout: float | None = None,
) -> Timeline:
    """Resolve the window and collect the timeline under an optional overall deadline."""
    try:
        async with asyncio.timeout(timeout):
            login = await resolve_user(aggregator.ops, user)
            window = resolve(time_range, horizon_days=aggregator.horizon_days)
            logger.info(
                f"Collecting events for {login} since {window.cutoff.isoformat()} "
                f"(capped={window.capped})"
            )
            return await aggregator.collect(login, window.cutoff, window.capped, now=window.now)
    finally:
        await close_github_client()


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging on stderr")
def cli(verbose: bool) -> None:
    """wiwo (what I worked on): GitHub activity reports."""
    setup_logging(logging.DEBUG if verbose else settings.log_level.upper())


@cli.command()
@click.option("-u", "--user", default=None, help="GitHub username (defaults to the GH_TOKEN owner)")
@click.option(
    "-t",
    "--time",
    "time_expr",
    default=None,
    help="Time range, e.g. 30d, 2w, 3m, 1y (default: 30d)",
)
@click.option(
    "--no-history",
    is_flag=True,
    help="Do not clone repositories for activity older than the Events API horizon",
)
@click.option(
    "--concurrency",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum simultaneous clones for the history fallback",
)
def events(
    user: str | None,
    time_expr: str | None,
    no_history: bool,
    concurrency: int | None,
) -> None:
    """List GitHub events for a user."""
    try:
        time_range = parse(time_expr if time_expr is not None else settings.default_time_range)
    except TimeRangeError as e:
        raise click.BadParameter(str(e), param_hint="'--time'") from e

    if not user and not settings.has_token:
        raise click.UsageError("--user is required when GH_TOKEN is not set")

    config = settings
    if concurrency is not None:
        config = settings.model_copy(update={"clone_concurrency": concurrency})

    aggregator = build_aggregator(config, use_fallback=not no_history)
    timeout = config.overall_timeout_seconds or None

    try:
        timeline = asyncio.run(run_events(aggregator, user, time_range, timeout=timeout))
    except RateLimitedError as e:
        reset = e.reset_at.strftime("%Y-%m-%d %H:%M:%S UTC") if e.reset_at else "unknown"
        click.echo(f"Error: {e.message}. Rate limit resets at {reset}.", err=True)
        sys.exit(EXIT_FAILURE)
    except GitHubAPIError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(EXIT_FAILURE)
    except TimeoutError:
        click.echo(f"Error: timed out after {timeout}s", err=True)
        sys.exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        click.echo("Interrupted.", err=True)
        sys.exit(EXIT_INTERRUPTED)

    click.echo(render(timeline))
