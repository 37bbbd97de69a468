"""Time-zone aware bucket planning for windowed aggregation."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, tzinfo

from dateutil.relativedelta import relativedelta

from healthbridge.services.connect.errors import UnrecognizedBucketError
from healthbridge.services.connect.records import TimeRangeFilter, from_millis


@dataclass(frozen=True)
class BucketPlan:
    """
    Anchored window description for a bucketed aggregate.

    ``start`` and ``end`` are local wall-clock times. Exactly one of
    ``duration`` (fixed-length step) or ``period`` (calendar step) is set.
    """

    granularity: str
    start: datetime
    end: datetime
    duration: timedelta | None = None
    period: relativedelta | None = None

    def __post_init__(self) -> None:
        if (self.duration is None) == (self.period is None):
            raise ValueError("BucketPlan needs exactly one of duration or period")

    @property
    def time_range(self) -> TimeRangeFilter:
        return TimeRangeFilter(self.start, self.end)


def _midnight(local: datetime) -> datetime:
    return local.replace(hour=0, minute=0, second=0, microsecond=0)


TRUNCATIONS: dict[str, Callable[[datetime], datetime]] = {
    "hour": lambda local: local.replace(minute=0, second=0, microsecond=0),
    "day": _midnight,
    # Monday is weekday() == 0
    "week": lambda local: _midnight(local) - timedelta(days=local.weekday()),
    "month": lambda local: _midnight(local).replace(day=1),
    "year": lambda local: _midnight(local).replace(month=1, day=1),
}

DURATIONS: dict[str, timedelta] = {
    "hour": timedelta(hours=1),
}

PERIODS: dict[str, relativedelta] = {
    "day": relativedelta(days=1),
    "week": relativedelta(weeks=1),
    "month": relativedelta(months=1),
    "year": relativedelta(years=1),
}


def to_local(millis: int, zone: tzinfo) -> datetime:
    """Epoch milliseconds as naive wall-clock time in ``zone``."""
    return from_millis(millis).astimezone(zone).replace(tzinfo=None)


def plan_buckets(start_millis: int, end_millis: int, zone: tzinfo, granularity: str) -> BucketPlan:
    """
    Compute the anchored window for a bucketed aggregation.

    The start instant is truncated to the granularity in ``zone``; the end
    instant is only converted to local wall-clock time, never truncated.

    Args:
        start_millis: Query start, epoch milliseconds
        end_millis: Query end, epoch milliseconds
        zone: Local time zone for calendar boundaries
        granularity: One of hour, day, week, month, year (case-insensitive)

    Returns:
        BucketPlan with a 1-hour duration for 'hour', a calendar period otherwise

    Raises:
        UnrecognizedBucketError: If the granularity token is unknown
    """
    key = granularity.lower() if isinstance(granularity, str) else ""
    truncate = TRUNCATIONS.get(key)
    if truncate is None:
        raise UnrecognizedBucketError(str(granularity))

    return BucketPlan(
        granularity=key,
        start=truncate(to_local(start_millis, zone)),
        end=to_local(end_millis, zone),
        duration=DURATIONS.get(key),
        period=PERIODS.get(key),
    )
