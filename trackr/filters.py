"""
Date and period filtering utilities.

All day boundaries are computed in the brand's fixed GMT-3 offset so the
dashboard shows the same numbers regardless of the viewer's timezone.
"""
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple, Union

from trackr.config import config

BRAND_TZ = timezone(timedelta(hours=config.reports.brand_utc_offset_hours))

DateLike = Union[date, datetime, str]


def _as_brand_date(value: DateLike) -> date:
    """Calendar date of value in brand-local terms."""
    if isinstance(value, str):
        return datetime.strptime(value, "%Y-%m-%d").date()
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(BRAND_TZ).date()
        return value.date()
    return value


def brand_local_date(ts: datetime) -> date:
    """
    Calendar day a timestamp falls on at the brand offset.

    Naive timestamps are taken to already be brand-local.
    """
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(BRAND_TZ).date()


def brand_today(now: Optional[datetime] = None) -> date:
    """Today's date on the brand clock."""
    now = now or datetime.now(timezone.utc)
    return brand_local_date(now)


@dataclass(frozen=True)
class DateRange:
    """Inclusive range of brand-local calendar days."""
    start: date
    end: date

    @classmethod
    def of(cls, start: DateLike, end: DateLike) -> "DateRange":
        return cls(_as_brand_date(start), _as_brand_date(end))

    @property
    def start_str(self) -> str:
        """Start date as YYYY-MM-DD string."""
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_str(self) -> str:
        """End date as YYYY-MM-DD string."""
        return self.end.strftime("%Y-%m-%d")

    @property
    def end_exclusive(self) -> date:
        """Day after the end date; the upper bound of every range predicate."""
        return self.end + timedelta(days=1)

    def bounds(self) -> Tuple[datetime, datetime]:
        """Half-open [start 00:00, end+1 00:00) at the brand offset."""
        return (
            datetime.combine(self.start, time.min, tzinfo=BRAND_TZ),
            datetime.combine(self.end_exclusive, time.min, tzinfo=BRAND_TZ),
        )

    def contains(self, ts: Optional[datetime]) -> bool:
        if ts is None:
            return False
        return self.start <= brand_local_date(ts) < self.end_exclusive

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def as_str_tuple(self) -> Tuple[str, str]:
        """Return as (start, end) tuple of strings."""
        return (self.start_str, self.end_str)


def to_query_range(start_date: DateLike, end_date: DateLike) -> Tuple[str, str]:
    """
    Normalize a display range into query bounds.

    Returns (start_str, end_exclusive_str). Predicates use
    `>= start_str AND < end_exclusive_str`, so the end date is inclusive
    in display terms.

    Examples:
        >>> to_query_range(date(2024, 1, 1), date(2024, 1, 31))
        ('2024-01-01', '2024-02-01')
    """
    date_range = DateRange.of(start_date, end_date)
    return date_range.start_str, date_range.end_exclusive.strftime("%Y-%m-%d")


# Period name mappings
PERIOD_ALIASES = {
    "thisweek": "week",
    "thismonth": "month",
}

VALID_PERIODS = {"today", "yesterday", "week", "last_week", "month", "last_month"}


def parse_period(
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    reference_date: Optional[date] = None,
) -> DateRange:
    """
    Parse period shortcut or explicit dates into DateRange.

    Args:
        period: Period shortcut (today, yesterday, week, last_week, month, last_month)
        start_date: Explicit start date (YYYY-MM-DD), used if period is None
        end_date: Explicit end date (YYYY-MM-DD), used if period is None
        reference_date: Reference date for calculations (default: brand today)

    Returns:
        DateRange with start and end dates
    """
    today = reference_date or brand_today()

    if period:
        period = PERIOD_ALIASES.get(period, period)

    if period == "today":
        return DateRange(today, today)

    elif period == "yesterday":
        yesterday = today - timedelta(days=1)
        return DateRange(yesterday, yesterday)

    elif period == "week":
        start_of_week = today - timedelta(days=today.weekday())
        return DateRange(start_of_week, today)

    elif period == "last_week":
        start_of_this_week = today - timedelta(days=today.weekday())
        end_of_last_week = start_of_this_week - timedelta(days=1)
        return DateRange(end_of_last_week - timedelta(days=6), end_of_last_week)

    elif period == "month":
        return DateRange(today.replace(day=1), today)

    elif period == "last_month":
        last_of_last_month = today.replace(day=1) - timedelta(days=1)
        return DateRange(last_of_last_month.replace(day=1), last_of_last_month)

    if start_date and end_date:
        return DateRange.of(start_date, end_date)

    # Dashboard default: current month to date
    return DateRange(today.replace(day=1), today)
