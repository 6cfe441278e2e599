"""
Timeline assembly.

Normalizes API events and git-history events into TimelineEntry records,
deduplicates each stream with its own identity rule, and orders the result
newest first.
"""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from wiwo.services.github.types import EventSourceKind, RawEvent
from wiwo.services.history.types import FallbackReport, SyntheticEvent

Visibility = Literal["public", "private"]

# Display names that differ from the API type with "Event" stripped
KIND_DISPLAY_NAMES: dict[str, str] = {
    "PullRequest": "PR",
    "PullRequestReview": "PR Review",
    "PullRequestReviewComment": "PR Comment",
    "IssueComment": "Issue Cmt",
}

ISSUE_LIKE_KINDS: frozenset[str] = frozenset(
    {"PullRequest", "Issues", "IssueComment", "PullRequestReview", "PullRequestReviewComment"}
)


@dataclass(frozen=True)
class TimelineEntry:
    """One row of the final activity timeline."""

    timestamp: datetime
    kind: str  # display kind, e.g. "Push", "PR", "Commit"
    repo: str  # owner/name
    summary: str
    visibility: Visibility
    origin: Literal["api", "history"]
    event_id: str | None = None  # API id; None for synthetic entries
    actor: str | None = None

    @property
    def url(self) -> str:
        return f"https://github.com/{self.repo}"


@dataclass(frozen=True)
class Timeline:
    """Sorted, deduplicated activity for one user and window."""

    user: str
    cutoff: datetime
    capped: bool
    entries: tuple[TimelineEntry, ...]
    horizon_boundary: datetime | None = None
    sources_queried: tuple[EventSourceKind, ...] = ()
    sources_skipped: tuple[EventSourceKind, ...] = ()
    fallback: FallbackReport | None = field(default=None, compare=False)

    def __iter__(self) -> Iterator[TimelineEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def display_kind(event_type: str) -> str:
    """Short display name: strip the "Event" suffix and abbreviate PR/issue types."""
    kind = event_type.removesuffix("Event")
    return KIND_DISPLAY_NAMES.get(kind, kind)


def summarize_event(event: RawEvent) -> str:
    """One-line description of an API event derived from its payload."""
    payload = event.payload
    kind = event.type.removesuffix("Event")

    if kind == "Push":
        branch = str(payload.get("ref") or "").removeprefix("refs/heads/")
        if "size" in payload:
            count = payload["size"]
        elif "distinct_size" in payload:
            count = payload["distinct_size"]
        elif "commits" in payload:
            count = len(payload["commits"])
        else:
            # Newer payloads omit the commit count entirely
            return f"pushed to {branch}" if branch else "pushed"
        noun = "commit" if count == 1 else "commits"
        return f"pushed {count} {noun} to {branch}" if branch else f"pushed {count} {noun}"

    if kind in ISSUE_LIKE_KINDS:
        item = payload.get("pull_request") or payload.get("issue") or {}
        number = item.get("number", payload.get("number"))
        title = item.get("title", "")
        action = payload.get("action") or "updated"
        if kind in ("IssueComment", "PullRequestReviewComment"):
            action = "commented on"
        elif kind == "PullRequestReview":
            action = "reviewed"
        elif kind == "PullRequest" and action == "closed" and item.get("merged"):
            action = "merged"
        if number is None:
            return action
        return f"{action} #{number}: {title}" if title else f"{action} #{number}"

    if kind in ("Create", "Delete"):
        verb = "created" if kind == "Create" else "deleted"
        ref_type = payload.get("ref_type", "")
        ref = payload.get("ref")
        return f"{verb} {ref_type} {ref}" if ref else f"{verb} {ref_type}".strip()

    if kind == "Watch":
        return "starred"

    if kind == "Fork":
        forkee = (payload.get("forkee") or {}).get("full_name")
        return f"forked to {forkee}" if forkee else "forked"

    if kind == "Release":
        tag = (payload.get("release") or {}).get("tag_name", "")
        action = payload.get("action") or "published"
        return f"{action} release {tag}".strip()

    return display_kind(event.type)


def _prefer(current: RawEvent, candidate: RawEvent) -> RawEvent:
    """
    Pick the richer of two records sharing an id.

    Private visibility wins, then source priority (private > received >
    public), then the record seen first.
    """
    if candidate.is_private != current.is_private:
        return candidate if candidate.is_private else current
    if candidate.source.priority < current.source.priority:
        return candidate
    return current


def merge_raw_events(streams: Iterable[Iterable[RawEvent]]) -> list[RawEvent]:
    """
    Merge API event streams, keeping one record per event id.

    A replaced record keeps the position of the first occurrence so the
    merge is stable with respect to source order.
    """
    positions: dict[str, int] = {}
    merged: list[RawEvent] = []
    for stream in streams:
        for event in stream:
            index = positions.get(event.id)
            if index is None:
                positions[event.id] = len(merged)
                merged.append(event)
            else:
                merged[index] = _prefer(merged[index], event)
    return merged


def dedupe_synthetic(events: Iterable[SyntheticEvent]) -> list[SyntheticEvent]:
    """Drop synthetic events whose (repo, timestamp, summary hash) was already seen."""
    seen: set[tuple[str, datetime, str]] = set()
    unique: list[SyntheticEvent] = []
    for event in events:
        key = event.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def entry_from_raw(event: RawEvent, private_repos: Mapping[str, bool] | None = None) -> TimelineEntry:
    if event.public is None:
        is_private = bool((private_repos or {}).get(event.repo, False))
    else:
        is_private = not event.public
    return TimelineEntry(
        timestamp=event.created_at,
        kind=display_kind(event.type),
        repo=event.repo,
        summary=summarize_event(event),
        visibility="private" if is_private else "public",
        origin="api",
        event_id=event.id,
        actor=event.actor or None,
    )


def entry_from_synthetic(event: SyntheticEvent) -> TimelineEntry:
    return TimelineEntry(
        timestamp=event.created_at,
        kind=event.kind,
        repo=event.repo,
        summary=event.summary,
        visibility="private" if event.is_private else "public",
        origin="history",
    )


def build_entries(
    api_events: Iterable[RawEvent],
    synthetic_events: Iterable[SyntheticEvent],
    cutoff: datetime,
    horizon_boundary: datetime | None = None,
    private_repos: Mapping[str, bool] | None = None,
) -> tuple[TimelineEntry, ...]:
    """
    Combine both streams into timeline order.

    API events before the cutoff are dropped. Synthetic events are kept
    only inside [cutoff, horizon_boundary); with no boundary none are kept.
    Sorting is stable and newest first, with API entries ahead of
    synthetic ones at equal timestamps.
    """
    entries = [
        entry_from_raw(e, private_repos)
        for e in merge_raw_events([api_events])
        if e.created_at >= cutoff
    ]
    if horizon_boundary is not None:
        entries.extend(
            entry_from_synthetic(e)
            for e in dedupe_synthetic(synthetic_events)
            if cutoff <= e.created_at < horizon_boundary
        )
    entries.sort(key=lambda entry: entry.timestamp, reverse=True)
    return tuple(entries)
