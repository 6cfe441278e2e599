"""
Time range expressions ("30d", "2w", "3m", "1y") and their resolution to a cutoff.

Units are calendar-approximate: a month is 30 days and a year 365 days.
"""

import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import Enum

DEFAULT_EVENT_HORIZON_DAYS = 90

_EXPRESSION_RE = re.compile(r"([1-9][0-9]*)([dwmy])", re.IGNORECASE)


class TimeRangeError(ValueError):
    """Malformed time range expression."""

    def __init__(self, expression: str):
        self.expression = expression
        super().__init__(
            f"Invalid time format {expression!r}. Use a positive number followed by "
            "'d' (days), 'w' (weeks), 'm' (months) or 'y' (years), e.g. '30d' or '1m'"
        )


class TimeUnit(str, Enum):
    DAY = "d"
    WEEK = "w"
    MONTH = "m"
    YEAR = "y"

    @property
    def days(self) -> int:
        return UNIT_DAYS[self]


UNIT_DAYS: dict[TimeUnit, int] = {
    TimeUnit.DAY: 1,
    TimeUnit.WEEK: 7,
    TimeUnit.MONTH: 30,
    TimeUnit.YEAR: 365,
}


@dataclass(frozen=True)
class TimeRange:
    """A requested look-back window, e.g. 3 weeks."""

    amount: int
    unit: TimeUnit

    def __post_init__(self) -> None:
        if self.amount <= 0:
            raise ValueError("amount must be positive")

    @property
    def days(self) -> int:
        return self.amount * self.unit.days

    @property
    def duration(self) -> timedelta:
        return timedelta(days=self.days)

    def __str__(self) -> str:
        return f"{self.amount}{self.unit.value}"


DEFAULT_TIME_RANGE = TimeRange(amount=30, unit=TimeUnit.DAY)


@dataclass(frozen=True)
class ResolvedRange:
    """A TimeRange pinned to a concrete `now`."""

    time_range: TimeRange
    now: datetime
    cutoff: datetime  # Requested start, never truncated to the horizon
    horizon: datetime  # Oldest instant the Events API still serves
    capped: bool  # cutoff predates the horizon; history fallback is needed


def parse(expression: str | None) -> TimeRange:
    """
    Parse a compact duration expression.

    Args:
        expression: e.g. "30d", "2W", "1y"; None selects the 30-day default

    Returns:
        TimeRange

    Raises:
        TimeRangeError: For empty, zero, negative, unit-less or unknown-unit input,
            and for input with any whitespace
    """
    if expression is None:
        return DEFAULT_TIME_RANGE
    match = _EXPRESSION_RE.fullmatch(expression)
    if not match:
        raise TimeRangeError(expression)
    return TimeRange(amount=int(match.group(1)), unit=TimeUnit(match.group(2).lower()))


def resolve(
    time_range: TimeRange,
    now: datetime | None = None,
    horizon_days: int = DEFAULT_EVENT_HORIZON_DAYS,
) -> ResolvedRange:
    """
    Pin a TimeRange to an absolute cutoff.

    Pure given `now`; pass it explicitly for deterministic results.

    Args:
        time_range: Parsed range
        now: Reference instant (aware); defaults to the current UTC time
        horizon_days: Events API retention window

    Returns:
        ResolvedRange with `capped` set when the range exceeds the horizon
    """
    if now is None:
        now = datetime.now(UTC)
    cutoff = now - time_range.duration
    horizon = now - timedelta(days=horizon_days)
    return ResolvedRange(
        time_range=time_range,
        now=now,
        cutoff=cutoff,
        horizon=horizon,
        capped=time_range.days > horizon_days,
    )
