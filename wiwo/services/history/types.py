"""Data types for git-history-derived activity."""

import hashlib
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from wiwo.services.history.exceptions import CloneFailedError


@dataclass(frozen=True)
class SyntheticEvent:
    """Activity record mined from a cloned repository rather than the Events API."""

    kind: Literal["Commit", "Tag"]
    repo: str  # owner/name
    created_at: datetime  # author date (commits) or creator date (tags), aware UTC
    summary: str  # commit subject or tag name
    ref: str  # commit SHA or tag name
    is_private: bool = False

    @property
    def dedup_key(self) -> tuple[str, datetime, str]:
        """Synthetic events have no API id; identity is (repo, time, summary hash)."""
        digest = hashlib.sha256(self.summary.encode("utf-8")).hexdigest()[:16]
        return (self.repo, self.created_at, digest)


@dataclass(frozen=True)
class RepoHistoryResult:
    """Events mined from one repository."""

    repo: str
    events: list[SyntheticEvent]
    commits_scanned: int = 0
    tags_scanned: int = 0


@dataclass
class FallbackReport:
    """Outcome of one history fallback run across all repositories."""

    events: list[SyntheticEvent] = field(default_factory=list)
    repositories_scanned: list[str] = field(default_factory=list)
    failures: list[CloneFailedError] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)  # filtered out before cloning
    no_repositories: bool = False
