"""
GitHub API helper utilities.

Provides rate limit handling, pagination link parsing, and error response
processing for GitHub API calls.
"""

import logging
import re
import time
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlparse

import httpx

from wiwo.services.github.exceptions import (
    GitHubAPIError,
    NetworkError,
    RateLimitedError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

# Status codes worth retrying for idempotent GETs
RETRYABLE_STATUS_CODES: frozenset[int] = frozenset({500, 502, 503, 504})

_LINK_NEXT_RE = re.compile(r'<([^>]+)>\s*;\s*rel="next"')


class RateLimitInfo:
    """Rate limit information from GitHub API response."""

    def __init__(self, response: httpx.Response) -> None:
        self.remaining = response.headers.get("X-RateLimit-Remaining")
        self.reset = response.headers.get("X-RateLimit-Reset")
        self.retry_after = response.headers.get("Retry-After")

    @property
    def reset_timestamp(self) -> int | None:
        """Get reset timestamp as integer, or None if not available.

        Falls back to now + Retry-After when only the secondary-limit
        header is present.
        """
        if self.reset:
            return int(self.reset)
        if self.retry_after and self.retry_after.isdigit():
            return int(time.time()) + int(self.retry_after)
        return None

    @property
    def is_exhausted(self) -> bool:
        """Check if rate limit is exhausted."""
        return self.remaining is not None and int(self.remaining) == 0


def is_rate_limited(response: httpx.Response) -> bool:
    """Check whether a response is any flavour of GitHub rate limiting."""
    if response.status_code == 429:
        return True
    if response.status_code != 403:
        return False
    rate_info = RateLimitInfo(response)
    return rate_info.is_exhausted or rate_info.retry_after is not None


def parse_next_link(link_header: str | None) -> str | None:
    """
    Extract the rel="next" URL from a GitHub Link header.

    Args:
        link_header: Raw Link header value, e.g.
            '<https://api.github.com/user/repos?page=2>; rel="next", <...>; rel="last"'

    Returns:
        The next-page URL, or None when there is no further page
    """
    if not link_header:
        return None
    match = _LINK_NEXT_RE.search(link_header)
    return match.group(1) if match else None


def page_number(url: str | None) -> int | None:
    """Return the `page` query parameter of a pagination URL, if any."""
    if not url:
        return None
    values = parse_qs(urlparse(url).query).get("page")
    if not values or not values[0].isdigit():
        return None
    return int(values[0])


def handle_error_response(response: httpx.Response, resource: str) -> None:
    """
    Handle common error responses from GitHub API.

    Args:
        response: The HTTP response from GitHub API
        resource: Resource description for error context (e.g. "events for octocat")

    Raises:
        RateLimitedError: On 429, or 403 with exhausted limit / Retry-After
        UnauthorizedError: For 401, other 403s, and 404s
        NetworkError: For 5xx server errors
        GitHubAPIError: For any other non-200 status
    """
    if response.status_code == 200:
        return

    rate_info = RateLimitInfo(response)

    if is_rate_limited(response):
        raise RateLimitedError(
            "GitHub API rate limit exceeded",
            response.status_code,
            rate_limit_reset=rate_info.reset_timestamp,
        )
    elif response.status_code == 401:
        raise UnauthorizedError("Invalid or expired GitHub token", 401)
    elif response.status_code == 403:
        raise UnauthorizedError(f"GitHub API forbidden: {resource}", 403)
    elif response.status_code == 404:
        raise UnauthorizedError(f"Resource not found or not visible: {resource}", 404)
    elif response.status_code in RETRYABLE_STATUS_CODES:
        raise NetworkError(
            f"GitHub API server error {response.status_code}: {resource}",
            response.status_code,
        )
    raise GitHubAPIError(
        f"GitHub API error: {response.status_code}", response.status_code
    )


def parse_github_timestamp(value: str) -> datetime:
    """Parse a GitHub ISO 8601 timestamp ("2024-01-02T03:04:05Z") to aware UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)
