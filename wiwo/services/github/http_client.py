"""
Shared HTTP client for GitHub API operations.

Provides a singleton AsyncClient with connection pooling for all GitHub API calls,
plus a bounded-retry GET used by every read path.
"""

import asyncio
import logging
from typing import Any

import httpx

from wiwo.config import settings
from wiwo.services.github.exceptions import NetworkError
from wiwo.services.github.helpers import RETRYABLE_STATUS_CODES

logger = logging.getLogger(__name__)

# Delay (seconds) before each retry attempt; the last value is reused
RETRY_DELAYS: tuple[float, ...] = (1.0, 2.0, 4.0)

# Module-level singleton client
_client: httpx.AsyncClient | None = None


def get_github_client() -> httpx.AsyncClient:
    """
    Get or create the shared HTTP client for GitHub API calls.

    Auth headers are passed per-request, not stored on the client, so the
    same client serves anonymous and token-bearing sources.

    Returns:
        Shared httpx.AsyncClient configured for GitHub API
    """
    global _client
    if _client is None or _client.is_closed:
        _client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.request_timeout_seconds, connect=5.0),
            limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            http2=True,
        )
        logger.debug("Created new GitHub HTTP client with connection pooling")
    return _client


async def close_github_client() -> None:
    """
    Close the shared HTTP client.

    Call on CLI shutdown so no connection outlives the pipeline.
    """
    global _client
    if _client is not None and not _client.is_closed:
        await _client.aclose()
        _client = None
        logger.debug("Closed GitHub HTTP client")


async def get_with_retry(
    url: str,
    headers: dict[str, str],
    params: dict[str, Any] | None = None,
    max_retries: int = 3,
) -> httpx.Response:
    """
    Issue an idempotent GET, retrying transport failures and 5xx responses.

    Rate-limit and auth responses are returned as-is for the caller to
    classify; only transient failures are retried.

    Args:
        url: Absolute URL to fetch
        headers: Request headers (auth, accept, version)
        params: Optional query parameters
        max_retries: Total attempts before giving up

    Returns:
        The first non-transient httpx.Response

    Raises:
        NetworkError: If every attempt failed with a transient error
    """
    client = get_github_client()
    last_error: str = ""

    for attempt in range(max_retries):
        try:
            response = await client.get(url, headers=headers, params=params)
        except httpx.TransportError as e:
            last_error = f"{type(e).__name__}: {e}"
        else:
            if response.status_code not in RETRYABLE_STATUS_CODES:
                return response
            last_error = f"HTTP {response.status_code}"

        if attempt < max_retries - 1:
            delay = RETRY_DELAYS[min(attempt, len(RETRY_DELAYS) - 1)]
            logger.warning(
                f"GET {url} failed (attempt {attempt + 1}/{max_retries}), "
                f"retrying in {delay}s: {last_error}"
            )
            await asyncio.sleep(delay)

    logger.error(f"GET {url} failed after {max_retries} attempts: {last_error}")
    raise NetworkError(f"Network error fetching {url}: {last_error}")
