"""
History fallback: recover activity older than the Events API horizon.

Lists the user's repositories, clones each one into a temporary directory
with a bounded number of concurrent clones, and turns commits and tags in
the requested slice into SyntheticEvents. A failing repository is logged
and skipped; the others still contribute.
"""

import asyncio
import logging
import tempfile
from datetime import datetime
from pathlib import Path

from wiwo.services.github.exceptions import GitHubAPIError, RateLimitedError
from wiwo.services.github.read_operations import GitHubReadOperations
from wiwo.services.github.types import GitHubRepo
from wiwo.services.history import git
from wiwo.services.history.exceptions import (
    CloneFailedError,
    GitCommandError,
    NoRepositoriesError,
)
from wiwo.services.history.types import FallbackReport, RepoHistoryResult, SyntheticEvent

logger = logging.getLogger(__name__)

DEFAULT_CLONE_CONCURRENCY = 4


class HistoryFallback:
    """
    Clone-and-scan miner for activity outside the Events API window.

    Each repository is handled by an independent worker that returns its own
    result list; nothing is shared between workers.
    """

    def __init__(
        self,
        ops: GitHubReadOperations,
        clone_base_url: str = "https://github.com",
        concurrency: int = DEFAULT_CLONE_CONCURRENCY,
        clone_timeout: float | None = 300.0,
        include_forks: bool = False,
        max_pages: int = 30,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.ops = ops
        self.clone_base_url = clone_base_url
        self.concurrency = concurrency
        self.clone_timeout = clone_timeout
        self.include_forks = include_forks
        self.max_pages = max_pages

    async def _owns_token(self, user: str) -> bool:
        """True when the configured token belongs to `user` (private repos are listable)."""
        if not self.ops.token:
            return False
        try:
            me = await self.ops.get_authenticated_user()
        except RateLimitedError:
            raise
        except GitHubAPIError as e:
            logger.debug(f"Could not resolve token owner: {e.message}")
            return False
        return str(me.get("login", "")).lower() == user.lower()

    async def list_candidate_repos(
        self,
        user: str,
        cutoff: datetime,
    ) -> tuple[list[GitHubRepo], list[str]]:
        """
        List repositories worth cloning.

        Returns:
            (repositories to clone, full names skipped by filters)

        Raises:
            NoRepositoriesError: If the user has no repositories left to mine, or
                the listing failed for any reason other than rate limiting
            RateLimitedError: If the listing call is rate limited
        """
        include_private = await self._owns_token(user)
        try:
            repos = await self.ops.list_user_repos(
                user, include_private=include_private, max_pages=self.max_pages
            )
        except RateLimitedError:
            raise
        except GitHubAPIError as e:
            raise NoRepositoriesError(f"Cannot list repositories of {user}: {e.message}") from e

        candidates: list[GitHubRepo] = []
        skipped: list[str] = []
        for repo in repos:
            if repo.is_fork and not self.include_forks:
                skipped.append(repo.full_name)
            elif repo.size == 0:
                skipped.append(repo.full_name)
            elif repo.pushed_at is not None and repo.pushed_at < cutoff:
                # Nothing pushed since the cutoff, so no commit can land in range
                skipped.append(repo.full_name)
            else:
                candidates.append(repo)

        if not candidates:
            raise NoRepositoriesError(f"No repositories to mine for {user}")
        return candidates, skipped

    async def scan_repository(
        self,
        repo: GitHubRepo,
        cutoff: datetime,
        horizon_boundary: datetime,
    ) -> RepoHistoryResult:
        """
        Clone one repository and mine commits/tags in [cutoff, horizon_boundary).

        The temporary clone is removed on every exit path, including
        cancellation.

        Raises:
            CloneFailedError: If cloning or any git command fails or times out
        """
        url = git.authenticated_clone_url(self.clone_base_url, repo.full_name, self.ops.token)

        try:
            with tempfile.TemporaryDirectory(prefix="wiwo-") as tmp:
                git_dir = Path(tmp) / "repo.git"
                async with asyncio.timeout(self.clone_timeout):
                    await git.clone_bare(url, git_dir)
                    if not await git.has_refs(git_dir):
                        logger.info(f"{repo.full_name}: empty repository, nothing to mine")
                        return RepoHistoryResult(repo=repo.full_name, events=[])
                    commits = await git.read_commits(git_dir, since=cutoff)
                    tags = await git.read_tags(git_dir)
        except GitCommandError as e:
            raise CloneFailedError(f"{repo.full_name}: {e}", repo=repo.full_name) from e
        except TimeoutError as e:
            raise CloneFailedError(
                f"{repo.full_name}: timed out after {self.clone_timeout}s",
                repo=repo.full_name,
            ) from e
        except OSError as e:
            raise CloneFailedError(f"{repo.full_name}: {e}", repo=repo.full_name) from e

        events: list[SyntheticEvent] = []
        seen_shas: set[str] = set()
        for sha, authored_at, subject in commits:
            if sha in seen_shas or not (cutoff <= authored_at < horizon_boundary):
                continue
            seen_shas.add(sha)
            events.append(
                SyntheticEvent(
                    kind="Commit",
                    repo=repo.full_name,
                    created_at=authored_at,
                    summary=subject,
                    ref=sha,
                    is_private=repo.is_private,
                )
            )
        for name, created_at, _subject in tags:
            if cutoff <= created_at < horizon_boundary:
                events.append(
                    SyntheticEvent(
                        kind="Tag",
                        repo=repo.full_name,
                        created_at=created_at,
                        summary=f"tagged {name}",
                        ref=name,
                        is_private=repo.is_private,
                    )
                )

        logger.debug(
            f"{repo.full_name}: {len(events)} synthetic event(s) from "
            f"{len(commits)} commit(s) and {len(tags)} tag(s)"
        )
        return RepoHistoryResult(
            repo=repo.full_name,
            events=events,
            commits_scanned=len(commits),
            tags_scanned=len(tags),
        )

    async def extend(
        self,
        user: str,
        cutoff: datetime,
        horizon_boundary: datetime,
    ) -> FallbackReport:
        """
        Mine repository history for the slice the Events API cannot serve.

        Args:
            user: Repository owner login
            cutoff: Requested (uncapped) start of the window
            horizon_boundary: Where API coverage begins; events at or after it are excluded

        Returns:
            FallbackReport with synthetic events from every repository that
            succeeded, plus the per-repository failures

        Raises:
            RateLimitedError: If listing repositories is rate limited
        """
        report = FallbackReport()
        if cutoff >= horizon_boundary:
            return report

        try:
            repos, report.skipped = await self.list_candidate_repos(user, cutoff)
        except NoRepositoriesError as e:
            logger.warning(f"History fallback skipped: {e.message}")
            report.no_repositories = True
            return report

        logger.info(
            f"History fallback: scanning {len(repos)} repositories for {user} "
            f"({cutoff.date()} .. {horizon_boundary.date()}, "
            f"{self.concurrency} concurrent clone(s))"
        )

        semaphore = asyncio.Semaphore(self.concurrency)

        async def scan_with_limit(repo: GitHubRepo) -> RepoHistoryResult:
            async with semaphore:
                return await self.scan_repository(repo, cutoff, horizon_boundary)

        results = await asyncio.gather(
            *[scan_with_limit(r) for r in repos],
            return_exceptions=True,
        )

        for repo, result in zip(repos, results, strict=True):
            if isinstance(result, CloneFailedError):
                logger.warning(f"Skipping repository: {result.message}")
                report.failures.append(result)
            elif isinstance(result, BaseException):
                raise result
            else:
                report.repositories_scanned.append(repo.full_name)
                report.events.extend(result.events)

        return report
