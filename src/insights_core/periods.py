"""
Analysis windows and period buckets.

- resolve_window: concrete [start, end] from explicit bounds or the data
- iter_buckets: daily / weekly / monthly buckets with labels
- compute_date_range: the span of data available for analysis
"""

import calendar
from dataclasses import dataclass
from datetime import date, timedelta
from typing import TYPE_CHECKING, Iterator

from .config import DEFAULT_WINDOW_DAYS, Granularity
from .log import get_logger
from .results import DateRange

if TYPE_CHECKING:
    from .interfaces import ConsumptionRecordSource

logger = get_logger(__name__)

MONTH_ABBR = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def month_label(year: int, month: int) -> str:
    """Label a calendar month, e.g. 'Jan 2025'."""
    return f"{MONTH_ABBR[month - 1]} {year}"


def month_end(day: date) -> date:
    return date(day.year, day.month, calendar.monthrange(day.year, day.month)[1])


def next_month_start(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start's month to end's month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


@dataclass(frozen=True)
class Bucket:
    start: date
    end: date
    label: str


def _label(granularity: str, start: date) -> str:
    if granularity == "daily":
        return start.isoformat()
    if granularity == "weekly":
        return f"Week of {start.isoformat()}"
    return month_label(start.year, start.month)


def iter_buckets(start: date, end: date, granularity: Granularity) -> Iterator[Bucket]:
    """
    Yield consecutive buckets covering [start, end] in order.

    Each bucket ends at its natural period end or at `end`, whichever comes
    first. Calling again restarts from `start`.

    Raises:
        ValueError: If granularity is not daily, weekly or monthly
    """
    if granularity not in ("daily", "weekly", "monthly"):
        raise ValueError(f"Unknown granularity: {granularity!r}")

    current = start
    while current <= end:
        if granularity == "daily":
            natural_end = current
            next_start = current + timedelta(days=1)
        elif granularity == "weekly":
            natural_end = current + timedelta(days=6)
            next_start = current + timedelta(days=7)
        else:
            natural_end = month_end(current)
            next_start = next_month_start(current)

        yield Bucket(start=current, end=min(natural_end, end), label=_label(granularity, current))
        current = next_start


def buckets(start: date, end: date, granularity: Granularity) -> list[Bucket]:
    return list(iter_buckets(start, end, granularity))


def resolve_window(
    start: date | None,
    end: date | None,
    data_min: date | None,
    data_max: date | None,
    today: date | None = None,
) -> tuple[date, date]:
    """
    Resolve the inclusive analysis window.

    Missing bounds come from the earliest/latest consumption date. Without
    any data the window is the DEFAULT_WINDOW_DAYS days ending today. A
    caller-supplied start earlier than the earliest data is clamped up to
    it, unless that would move it past the end. Reversed explicit bounds
    are swapped; a derived bound that would cross an explicit one collapses
    onto it, leaving a one-day window on the explicit bound. Never raises.

    Args:
        start: Explicit start, optional
        end: Explicit end, optional
        data_min: Earliest consumption date in scope (None if no data)
        data_max: Latest consumption date in scope (None if no data)
        today: Reference date for the default window
    """
    today = today or date.today()

    if data_min is None or data_max is None:
        resolved_end = end or today
        resolved_start = start or resolved_end - timedelta(days=DEFAULT_WINDOW_DAYS - 1)
    else:
        resolved_start = start or data_min
        resolved_end = end or data_max

    if resolved_start > resolved_end:
        if start is not None and end is not None:
            resolved_start, resolved_end = resolved_end, resolved_start
        elif start is not None:
            # Derived end never reaches back before an explicit start
            resolved_end = resolved_start
        else:
            resolved_start = resolved_end

    if data_min is not None and resolved_start < data_min <= resolved_end:
        resolved_start = data_min

    logger.debug("Resolved window %s..%s", resolved_start, resolved_end)
    return resolved_start, resolved_end


def compute_date_range(
    data_min: date | None,
    data_max: date | None,
    today: date | None = None,
) -> DateRange:
    """Span of available data; the default window when there is none."""
    if data_min is None or data_max is None:
        today = today or date.today()
        return DateRange(
            min_date=today - timedelta(days=DEFAULT_WINDOW_DAYS - 1),
            max_date=today,
            available_months=0,
            has_data=False,
        )
    return DateRange(
        min_date=data_min,
        max_date=data_max,
        available_months=months_between(data_min, data_max) + 1,
        has_data=True,
    )


class TimeWindowResolver:
    """Resolves analysis windows against a consumption record source."""

    def __init__(self, records: "ConsumptionRecordSource", today: date | None = None):
        self.records = records
        self.today = today

    def data_bounds(self, category_id: int | None = None) -> tuple[date | None, date | None]:
        return (
            self.records.min_consumption_date(category_id=category_id),
            self.records.max_consumption_date(category_id=category_id),
        )

    def resolve(
        self,
        start: date | None = None,
        end: date | None = None,
        category_id: int | None = None,
    ) -> tuple[date, date]:
        data_min, data_max = self.data_bounds(category_id)
        return resolve_window(start, end, data_min, data_max, today=self.today)

    def date_range(self, category_id: int | None = None) -> DateRange:
        data_min, data_max = self.data_bounds(category_id)
        return compute_date_range(data_min, data_max, today=self.today)
