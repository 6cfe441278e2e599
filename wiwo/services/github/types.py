"""Data types for GitHub API responses."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EventSourceKind(str, Enum):
    """Which events endpoint produced a record.

    Declaration order doubles as tie-break priority: earlier wins.
    """

    PRIVATE = "private"  # /users/{user}/events (token; includes private repos)
    RECEIVED = "received"  # /users/{user}/received_events (token)
    PUBLIC = "public"  # /users/{user}/events/public

    @property
    def priority(self) -> int:
        """Lower is preferred when two sources report the same event id."""
        return list(EventSourceKind).index(self)


@dataclass(frozen=True)
class RawEvent:
    """Normalized event record from the GitHub Events API."""

    id: str
    type: str  # API type, e.g. "PushEvent"
    repo: str  # owner/name
    created_at: datetime  # timezone-aware UTC
    actor: str
    source: EventSourceKind
    # None when the API payload omitted the flag
    public: bool | None = None
    payload: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def is_private(self) -> bool:
        return self.public is False


@dataclass(frozen=True)
class EventPage:
    """One page of events plus the continuation token for the next page."""

    events: list[RawEvent]
    next_page_token: str | None  # Absolute URL from the Link header
    exhausted: bool = False  # True when the endpoint refuses further paging (422)
    raw_count: int = 0  # Records the API returned, including malformed ones


@dataclass(frozen=True)
class SourceResult:
    """Everything one event source produced for a collection run."""

    kind: EventSourceKind
    events: list[RawEvent]
    pages_fetched: int
    truncated: bool  # Stopped by the page cap rather than running out of data


@dataclass(frozen=True)
class GitHubRepo:
    """Normalized GitHub repository data."""

    github_id: int
    name: str
    full_name: str
    is_private: bool
    is_fork: bool
    size: int  # KB as reported by GitHub; 0 means empty
    pushed_at: datetime | None = None
