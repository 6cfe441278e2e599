"""Git history fallback for activity older than the Events API horizon."""

from wiwo.services.history.exceptions import (
    CloneFailedError,
    FallbackError,
    GitCommandError,
    NoRepositoriesError,
)
from wiwo.services.history.fallback import HistoryFallback
from wiwo.services.history.types import FallbackReport, RepoHistoryResult, SyntheticEvent

__all__ = [
    "HistoryFallback",
    "FallbackReport",
    "RepoHistoryResult",
    "SyntheticEvent",
    "FallbackError",
    "CloneFailedError",
    "NoRepositoriesError",
    "GitCommandError",
]
