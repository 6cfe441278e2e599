"""
TTL caching for GitHub API responses.

Provides in-memory caching with time-to-live for lookups that repeat within
one run: the same repository shows up in many events, and repository
listings are consulted by every fallback worker.

Cache durations:
- Repo visibility: 10 minutes (private/public flips are rare)
- Repo listings: 5 minutes
"""

import hashlib
import logging
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar

from cachetools import TTLCache  # type: ignore[import-untyped]

logger = logging.getLogger(__name__)

# Type vars for decorator typing
P = ParamSpec("P")
T = TypeVar("T")

_visibility_cache: TTLCache[str, Any] = TTLCache(maxsize=500, ttl=600)  # 10 min
_repo_list_cache: TTLCache[str, Any] = TTLCache(maxsize=50, ttl=300)  # 5 min


def _make_cache_key(func_name: str, args: tuple[Any, ...], kwargs: dict[str, Any]) -> str:
    """
    Generate a cache key from function name and arguments.

    Skips 'self' (first positional arg) since we're caching by repo identity, not instance.
    """
    cache_args = args[1:] if args else ()
    key_data = f"{func_name}:{cache_args}:{sorted(kwargs.items())}"
    return hashlib.md5(key_data.encode()).hexdigest()


def cached_github_call(
    cache: TTLCache[str, Any],
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for caching async GitHub API calls.

    Usage:
        @cached_github_call(visibility_cache)
        async def get_repo_visibility(self, full_name: str) -> bool:
            ...

    The cache key is generated from the function name and arguments (excluding 'self').
    Exceptions are not cached.
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            key = _make_cache_key(func.__name__, args, kwargs)

            if key in cache:
                logger.debug(f"Cache HIT: {func.__name__}")
                cached_result: T = cache[key]
                return cached_result

            logger.debug(f"Cache MISS: {func.__name__}")
            result = await func(*args, **kwargs)
            cache[key] = result
            return result

        return wrapper

    return decorator


def clear_all_caches() -> None:
    """Clear all GitHub caches. Useful for testing or when data is known to be stale."""
    _visibility_cache.clear()
    _repo_list_cache.clear()
    logger.debug("Cleared all GitHub caches")


# Export cache instances for decorator use
visibility_cache = _visibility_cache
repo_list_cache = _repo_list_cache
