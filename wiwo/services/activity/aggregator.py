"""
Event aggregation: the activity pipeline's orchestrator.

Queries every event source available for the current credentials in
parallel, merges and deduplicates their events, and, for ranges older than
the Events API horizon, stitches in history mined from git.
"""

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from wiwo.services.activity.time_range import DEFAULT_EVENT_HORIZON_DAYS
from wiwo.services.activity.timeline import Timeline, build_entries, merge_raw_events
from wiwo.services.github.event_sources import EventSource, select_event_sources
from wiwo.services.github.exceptions import (
    GitHubAPIError,
    RateLimitedError,
    UnauthorizedError,
)
from wiwo.services.github.read_operations import GitHubReadOperations
from wiwo.services.github.types import EventSourceKind, RawEvent, SourceResult
from wiwo.services.history.fallback import HistoryFallback
from wiwo.services.history.types import FallbackReport

logger = logging.getLogger(__name__)


class EventAggregator:
    """
    Collects a user's activity timeline.

    Args:
        ops: Read operations bound to the run's credentials
        fallback: History miner for capped ranges; None disables the fallback
        per_page: Events page size
        max_pages: Page cap per source
        horizon_days: Events API retention window
    """

    def __init__(
        self,
        ops: GitHubReadOperations,
        fallback: HistoryFallback | None = None,
        per_page: int = 100,
        max_pages: int = 30,
        horizon_days: int = DEFAULT_EVENT_HORIZON_DAYS,
    ):
        self.ops = ops
        self.fallback = fallback
        self.per_page = per_page
        self.max_pages = max_pages
        self.horizon_days = horizon_days

    @property
    def has_token(self) -> bool:
        return bool(self.ops.token)

    def select_sources(self) -> list[EventSource]:
        return select_event_sources(self.ops, self.has_token, per_page=self.per_page)

    async def fetch_sources(
        self,
        user: str,
        cutoff: datetime,
    ) -> tuple[list[SourceResult], list[EventSourceKind]]:
        """
        Run every selected source to completion concurrently.

        Returns:
            (successful results in source order, kinds skipped as unauthorized)

        Raises:
            RateLimitedError: If any source was rate limited
            NetworkError / GitHubAPIError: If a source failed for another reason
            UnauthorizedError: If every selected source was unauthorized
        """
        sources = self.select_sources()
        results = await asyncio.gather(
            *[s.collect(user, cutoff, max_pages=self.max_pages) for s in sources],
            return_exceptions=True,
        )

        # Rate limiting wins over every other failure so the reset hint reaches the caller
        for result in results:
            if isinstance(result, RateLimitedError):
                raise result

        succeeded: list[SourceResult] = []
        skipped: list[EventSourceKind] = []
        last_unauthorized: UnauthorizedError | None = None
        for source, result in zip(sources, results, strict=True):
            if isinstance(result, UnauthorizedError):
                logger.warning(
                    f"Skipping {source.kind.value} events for {user}: {result.message}"
                )
                skipped.append(source.kind)
                last_unauthorized = result
            elif isinstance(result, BaseException):
                raise result
            else:
                succeeded.append(result)

        if not succeeded and last_unauthorized is not None:
            raise UnauthorizedError(
                f"No event source is available for {user}: {last_unauthorized.message}",
                last_unauthorized.status_code,
            )
        return succeeded, skipped

    async def resolve_visibility(self, events: list[RawEvent]) -> dict[str, bool]:
        """Look up privacy for repositories whose events lack the `public` flag."""
        repos = sorted({e.repo for e in events if e.public is None})
        if not repos:
            return {}
        flags = await asyncio.gather(*[self.ops.get_repo_visibility(r) for r in repos])
        return dict(zip(repos, flags, strict=True))

    def horizon_boundary(
        self,
        results: list[SourceResult],
        events: list[RawEvent],
        now: datetime,
    ) -> datetime:
        """
        Where API coverage starts.

        Normally the retention horizon. When a source stopped at the page cap,
        coverage ends at the oldest event actually observed instead.
        """
        horizon = now - timedelta(days=self.horizon_days)
        if events and any(r.truncated for r in results):
            return min(e.created_at for e in events)
        return horizon

    async def collect(
        self,
        user: str,
        cutoff: datetime,
        capped: bool,
        now: datetime | None = None,
    ) -> Timeline:
        """
        Build the activity timeline for a user since `cutoff`.

        Args:
            user: GitHub login
            cutoff: Requested start of the window (aware UTC)
            capped: True when the cutoff predates the Events API horizon
            now: Reference instant; defaults to the current UTC time

        Returns:
            Timeline sorted newest first

        Raises:
            RateLimitedError: If the API rate limit was hit anywhere
            UnauthorizedError: If no event source accepted the credentials
            NetworkError: If a request kept failing after retries
        """
        if now is None:
            now = datetime.now(UTC)

        results, skipped = await self.fetch_sources(user, cutoff)
        api_events = merge_raw_events(r.events for r in results)
        logger.info(
            f"Collected {len(api_events)} unique API event(s) for {user} from "
            f"{', '.join(r.kind.value for r in results)}"
        )

        boundary: datetime | None = None
        report: FallbackReport | None = None
        if capped:
            boundary = self.horizon_boundary(results, api_events, now)
            if self.fallback is None:
                logger.warning("Range exceeds the Events API horizon but history fallback is disabled")
            else:
                report = await self.fallback.extend(user, cutoff, boundary)
                logger.info(
                    f"History fallback added {len(report.events)} event(s) from "
                    f"{len(report.repositories_scanned)} repositories "
                    f"({len(report.failures)} failed)"
                )

        private_repos = await self.resolve_visibility(api_events)
        entries = build_entries(
            api_events,
            report.events if report else [],
            cutoff,
            horizon_boundary=boundary,
            private_repos=private_repos,
        )

        return Timeline(
            user=user,
            cutoff=cutoff,
            capped=capped,
            entries=entries,
            horizon_boundary=boundary,
            sources_queried=tuple(r.kind for r in results),
            sources_skipped=tuple(skipped),
            fallback=report,
        )


async def resolve_user(ops: GitHubReadOperations, user: str | None) -> str:
    """
    Return the user to report on.

    An explicit user wins; otherwise the token's owner is used.

    Raises:
        UnauthorizedError: If no user was given and there is no usable token
    """
    if user:
        return user
    if not ops.token:
        raise UnauthorizedError("--user is required when GH_TOKEN is not set")
    try:
        me = await ops.get_authenticated_user()
    except RateLimitedError:
        raise
    except GitHubAPIError as e:
        raise UnauthorizedError(f"Could not determine the token's user: {e.message}", e.status_code) from e
    return str(me["login"])
