"""
GitHub API read operations.

Provides the read-only REST calls the activity pipeline needs outside the
events endpoints:
- Authenticated user lookup
- Repository listing (for the history fallback)
- Repository visibility (for events that omit the `public` flag)
"""

import logging
from typing import Any

import httpx

from wiwo.services.github.cache import (
    cached_github_call,
    repo_list_cache,
    visibility_cache,
)
from wiwo.services.github.exceptions import GitHubAPIError, RateLimitedError
from wiwo.services.github.helpers import (
    handle_error_response,
    parse_github_timestamp,
    parse_next_link,
)
from wiwo.services.github.http_client import get_with_retry
from wiwo.services.github.types import GitHubRepo

logger = logging.getLogger(__name__)


def build_headers(
    token: str | None,
    api_version: str = "2022-11-28",
    user_agent: str = "wiwo-cli",
) -> dict[str, str]:
    """Build GitHub request headers; Authorization is only sent with a token."""
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": api_version,
        "User-Agent": user_agent,
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


class GitHubReadOperations:
    """
    Read-only operations for GitHub API.

    Uses the shared HTTP client singleton for connection pooling; every GET
    goes through the bounded retry in `get_with_retry`.
    """

    def __init__(
        self,
        token: str | None,
        base_url: str = "https://api.github.com",
        api_version: str = "2022-11-28",
        user_agent: str = "wiwo-cli",
        max_retries: int = 3,
    ):
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.max_retries = max_retries
        self._headers = build_headers(token, api_version, user_agent)

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._headers)

    async def get(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        return await get_with_retry(
            url,
            headers=self._headers,
            params=params,
            max_retries=self.max_retries,
        )

    def _normalize_repo(self, data: dict[str, Any]) -> GitHubRepo:
        """Convert GitHub API response to GitHubRepo dataclass."""
        pushed_at = data.get("pushed_at")
        return GitHubRepo(
            github_id=data["id"],
            name=data["name"],
            full_name=data["full_name"],
            is_private=data.get("private", False),
            is_fork=data.get("fork", False),
            size=data.get("size", 0),
            pushed_at=parse_github_timestamp(pushed_at) if pushed_at else None,
        )

    async def get_authenticated_user(self) -> dict[str, Any]:
        """
        Fetch authenticated user info.

        Returns:
            Dict with user info (login, name, avatar_url, etc.)

        Raises:
            UnauthorizedError: If no token is configured or the token is rejected
        """
        response = await self.get(f"{self.base_url}/user")
        handle_error_response(response, "authenticated user")
        result: dict[str, Any] = response.json()
        return result

    @cached_github_call(repo_list_cache)
    async def list_user_repos(
        self,
        user: str,
        include_private: bool = False,
        max_pages: int = 30,
    ) -> list[GitHubRepo]:
        """
        List repositories owned by a user, most recently pushed first.

        Follows Link-header pagination until GitHub reports no next page.

        Args:
            user: Repository owner login
            include_private: Use the authenticated `/user/repos` endpoint so
                private repositories are included (only valid when `user`
                is the token's owner)
            max_pages: Hard cap on pages requested

        Returns:
            List of GitHubRepo
        """
        if include_private:
            url: str | None = f"{self.base_url}/user/repos"
            params: dict[str, Any] | None = {
                "affiliation": "owner",
                "visibility": "all",
                "sort": "pushed",
                "direction": "desc",
                "per_page": 100,
            }
        else:
            url = f"{self.base_url}/users/{user}/repos"
            params = {
                "type": "owner",
                "sort": "pushed",
                "direction": "desc",
                "per_page": 100,
            }

        repos: list[GitHubRepo] = []
        pages = 0
        while url and pages < max_pages:
            response = await self.get(url, params=params)
            handle_error_response(response, f"repositories of {user}")
            repos.extend(self._normalize_repo(r) for r in response.json())
            pages += 1
            url = parse_next_link(response.headers.get("Link"))
            params = None  # next URL already carries the query string

        logger.debug(f"Listed {len(repos)} repositories for {user} ({pages} page(s))")
        return repos

    @cached_github_call(visibility_cache)
    async def get_repo_visibility(self, full_name: str) -> bool:
        """
        Check whether a repository is private.

        Missing repositories and lookup failures count as public, and that
        answer is cached as well. Rate limiting is not swallowed.

        Args:
            full_name: Repository in owner/name form

        Returns:
            True if the repository is private
        """
        try:
            response = await self.get(f"{self.base_url}/repos/{full_name}")
            if response.status_code == 404:
                return False
            handle_error_response(response, full_name)
        except RateLimitedError:
            raise
        except GitHubAPIError as e:
            logger.debug(f"Visibility lookup failed for {full_name}: {e.message}")
            return False

        return bool(response.json().get("private", False))
