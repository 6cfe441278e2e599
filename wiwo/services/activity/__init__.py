"""Activity pipeline: time range resolution, aggregation and timeline assembly."""

from wiwo.services.activity.aggregator import EventAggregator, resolve_user
from wiwo.services.activity.time_range import (
    ResolvedRange,
    TimeRange,
    TimeRangeError,
    TimeUnit,
    parse,
    resolve,
)
from wiwo.services.activity.timeline import Timeline, TimelineEntry

__all__ = [
    "EventAggregator",
    "resolve_user",
    "ResolvedRange",
    "TimeRange",
    "TimeRangeError",
    "TimeUnit",
    "parse",
    "resolve",
    "Timeline",
    "TimelineEntry",
]
