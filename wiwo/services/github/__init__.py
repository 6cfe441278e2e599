"""
GitHub service package.

Re-exports all public types and classes.
Usage: `from wiwo.services.github import GitHubReadOperations, EventSource`

Module structure:
- event_sources.py: Paginated events endpoints (public, received, private)
- read_operations.py: User, repository listing and visibility lookups
- helpers.py: Rate limit handling, Link parsing, and error utilities
- http_client.py: Shared AsyncClient and bounded-retry GET
- cache.py: TTL caches for repeated lookups
- types.py: Data types
- exceptions.py: Custom exceptions
"""

from wiwo.services.github.cache import clear_all_caches as clear_github_caches
from wiwo.services.github.event_sources import EventSource, select_event_sources
from wiwo.services.github.exceptions import (
    GitHubAPIError,
    NetworkError,
    RateLimitedError,
    UnauthorizedError,
)
from wiwo.services.github.helpers import RateLimitInfo, handle_error_response
from wiwo.services.github.http_client import close_github_client
from wiwo.services.github.read_operations import GitHubReadOperations
from wiwo.services.github.types import (
    EventPage,
    EventSourceKind,
    GitHubRepo,
    RawEvent,
    SourceResult,
)

__all__ = [
    # Operations
    "EventSource",
    "GitHubReadOperations",
    "select_event_sources",
    # HTTP client lifecycle
    "close_github_client",
    # Cache management
    "clear_github_caches",
    # Utilities
    "handle_error_response",
    "RateLimitInfo",
    # Exceptions
    "GitHubAPIError",
    "NetworkError",
    "RateLimitedError",
    "UnauthorizedError",
    # Types
    "EventPage",
    "EventSourceKind",
    "GitHubRepo",
    "RawEvent",
    "SourceResult",
]
