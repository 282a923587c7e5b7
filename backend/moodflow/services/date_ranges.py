"""Quick date ranges and the start/end adjustment rules of the range picker."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum
from typing import Optional

from moodflow.models.analysis import DateRange

DEFAULT_RANGE_DAYS = 30


class QuickRange(str, Enum):
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_3_MONTHS = "last_3_months"
    LAST_6_MONTHS = "last_6_months"
    LAST_YEAR = "last_year"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    THIS_YEAR = "this_year"


QUICK_RANGE_LABELS = {
    QuickRange.LAST_7_DAYS: "Last 7 days",
    QuickRange.LAST_30_DAYS: "Last 30 days",
    QuickRange.LAST_3_MONTHS: "Last 3 months",
    QuickRange.LAST_6_MONTHS: "Last 6 months",
    QuickRange.LAST_YEAR: "Last year",
    QuickRange.THIS_MONTH: "This month",
    QuickRange.LAST_MONTH: "Last month",
    QuickRange.THIS_YEAR: "This year",
}

_ROLLING_DAYS = {
    QuickRange.LAST_7_DAYS: 7,
    QuickRange.LAST_30_DAYS: 30,
    QuickRange.LAST_3_MONTHS: 90,
    QuickRange.LAST_6_MONTHS: 180,
    QuickRange.LAST_YEAR: 365,
}


def default_range(today: Optional[date] = None) -> DateRange:
    today = today or date.today()
    return DateRange(start=today - timedelta(days=DEFAULT_RANGE_DAYS), end=today)


def quick_range(kind: QuickRange, today: Optional[date] = None) -> DateRange:
    today = today or date.today()

    if kind is QuickRange.THIS_MONTH:
        return DateRange(start=today.replace(day=1), end=today)
    if kind is QuickRange.LAST_MONTH:
        last_day = today.replace(day=1) - timedelta(days=1)
        return DateRange(start=last_day.replace(day=1), end=last_day)
    if kind is QuickRange.THIS_YEAR:
        return DateRange(start=today.replace(month=1, day=1), end=today)
    return DateRange(start=today - timedelta(days=_ROLLING_DAYS[kind]), end=today)


def with_start(current: DateRange, start: date) -> DateRange:
    """Pick a new start; an end before it is pulled forward to match."""
    return DateRange(start=start, end=max(current.end, start))


def with_end(current: DateRange, end: date) -> DateRange:
    """Pick a new end; a start after it is pulled back to match."""
    return DateRange(start=min(current.start, end), end=end)
