"""Exceptions for GitHub service."""

from datetime import UTC, datetime


class GitHubAPIError(Exception):
    """Error from GitHub API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.rate_limit_reset = rate_limit_reset  # Unix timestamp when rate limit resets
        super().__init__(message)


class UnauthorizedError(GitHubAPIError):
    """Endpoint refused the request (missing token, bad token, or insufficient scope).

    Raised for 401s, 404s on restricted endpoints, and 403s that are not
    rate-limit related. Aggregation treats this as "skip this source".
    """


class RateLimitedError(GitHubAPIError):
    """GitHub API rate limit was hit.

    Fatal for the current invocation. `rate_limit_reset` carries the unix
    timestamp from `X-RateLimit-Reset` (or derived from `Retry-After`) so the
    caller can decide when to retry.
    """

    def __init__(
        self,
        message: str = "GitHub API rate limit exceeded",
        status_code: int | None = 403,
        rate_limit_reset: int | None = None,
    ):
        super().__init__(message, status_code, rate_limit_reset=rate_limit_reset)

    @property
    def reset_at(self) -> datetime | None:
        """Reset time as an aware UTC datetime, if known."""
        if self.rate_limit_reset is None:
            return None
        return datetime.fromtimestamp(self.rate_limit_reset, tz=UTC)


class NetworkError(GitHubAPIError):
    """Transport failure or server error that persisted after retries."""
