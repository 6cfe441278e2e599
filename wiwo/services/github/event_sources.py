"""
Paginated GitHub events endpoints.

One `EventSource` class covers every endpoint; the variant is a tag
(`EventSourceKind`) that picks the URL template and whether a token is
required. Sources are selected per run from the available credentials.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from wiwo.services.github.helpers import (
    handle_error_response,
    is_rate_limited,
    page_number,
    parse_github_timestamp,
    parse_next_link,
)
from wiwo.services.github.read_operations import GitHubReadOperations
from wiwo.services.github.types import EventPage, EventSourceKind, RawEvent, SourceResult

logger = logging.getLogger(__name__)

ENDPOINT_TEMPLATES: dict[EventSourceKind, str] = {
    EventSourceKind.PUBLIC: "/users/{user}/events/public",
    EventSourceKind.RECEIVED: "/users/{user}/received_events",
    EventSourceKind.PRIVATE: "/users/{user}/events",
}

TOKEN_REQUIRED: frozenset[EventSourceKind] = frozenset(
    {EventSourceKind.RECEIVED, EventSourceKind.PRIVATE}
)


def normalize_event(data: dict[str, Any], source: EventSourceKind) -> RawEvent:
    """Convert an Events API object to a RawEvent.

    Raises KeyError/ValueError on payloads missing required fields.
    """
    return RawEvent(
        id=str(data["id"]),
        type=data["type"],
        repo=data["repo"]["name"],
        created_at=parse_github_timestamp(data["created_at"]),
        actor=(data.get("actor") or {}).get("login", ""),
        source=source,
        public=data.get("public"),
        payload=data.get("payload") or {},
    )


@dataclass(frozen=True)
class EventSource:
    """One paginated events endpoint bound to a set of API credentials."""

    kind: EventSourceKind
    ops: GitHubReadOperations
    per_page: int = 100

    @property
    def requires_token(self) -> bool:
        return self.kind in TOKEN_REQUIRED

    def first_page_url(self, user: str) -> str:
        return self.ops.base_url + ENDPOINT_TEMPLATES[self.kind].format(user=user)

    async def fetch_page(self, user: str, page_token: str | None = None) -> EventPage:
        """
        Fetch one page of events.

        Args:
            user: GitHub login whose events are requested
            page_token: Next-page URL from the previous page, or None for the first page

        Returns:
            EventPage with parsed events (newest first) and the next page token

        Raises:
            RateLimitedError: On any rate-limit response
            UnauthorizedError: On 401/403/404 (endpoint not available with these credentials)
            NetworkError: If retries are exhausted
        """
        if page_token:
            url = page_token
            params = None
        else:
            url = self.first_page_url(user)
            params = {"per_page": self.per_page, "page": 1}

        response = await self.ops.get(url, params=params)

        # GitHub answers 422 once paging goes past what it retains
        if response.status_code == 422 and not is_rate_limited(response):
            logger.debug(f"{self.kind.value} events: pagination limit reached at {url}")
            return EventPage(events=[], next_page_token=None, exhausted=True)

        handle_error_response(response, f"{self.kind.value} events for {user}")

        items = response.json()
        events: list[RawEvent] = []
        for item in items:
            try:
                events.append(normalize_event(item, self.kind))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed {self.kind.value} event: {e!r}")

        return EventPage(
            events=events,
            next_page_token=parse_next_link(response.headers.get("Link")),
            raw_count=len(items),
        )

    async def collect(
        self,
        user: str,
        cutoff: datetime,
        max_pages: int = 30,
    ) -> SourceResult:
        """
        Page through the endpoint until the requested window is covered.

        Stops when a page is short, when its oldest event predates the
        cutoff, when there is no next page, or at `max_pages`. Events older
        than the cutoff are dropped.

        Args:
            user: GitHub login
            cutoff: Earliest instant of interest (aware UTC)
            max_pages: Hard page cap

        Returns:
            SourceResult with in-range events in API order
        """
        collected: list[RawEvent] = []
        page_token: str | None = None
        pages = 0
        truncated = False

        while True:
            page = await self.fetch_page(user, page_token)
            pages += 1
            collected.extend(e for e in page.events if e.created_at >= cutoff)

            if page.exhausted or page.raw_count == 0:
                break
            if page.raw_count < self.per_page:
                break
            if page.events and page.events[-1].created_at < cutoff:
                break
            if page.next_page_token is None:
                break
            if pages >= max_pages:
                truncated = True
                logger.info(
                    f"{self.kind.value} events for {user}: stopped at page cap "
                    f"({max_pages}) before reaching the cutoff"
                )
                break
            page_token = page.next_page_token
            logger.debug(
                f"{self.kind.value} events for {user}: continuing to page "
                f"{page_number(page_token) or pages + 1}"
            )

        logger.debug(
            f"{self.kind.value} events for {user}: {len(collected)} in range "
            f"from {pages} page(s)"
        )
        return SourceResult(
            kind=self.kind,
            events=collected,
            pages_fetched=pages,
            truncated=truncated,
        )


def select_event_sources(
    ops: GitHubReadOperations,
    has_token: bool,
    per_page: int = 100,
) -> list[EventSource]:
    """
    Choose which endpoints to query for the available credentials.

    With a token every endpoint is queried (private first, so ties in
    arrival order already favour the richer record); without one only the
    public endpoint is available.
    """
    kinds = list(EventSourceKind) if has_token else [EventSourceKind.PUBLIC]
    return [EventSource(kind=kind, ops=ops, per_page=per_page) for kind in kinds]
