"""
Calendar-day arithmetic.

All whole-day counts are differences between local calendar dates
(midnight to midnight) in a given time zone, never seconds / 86400.
Naive datetimes are treated as UTC.
"""

from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    return datetime.now(UTC)


def ensure_aware(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


def to_local(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    return ensure_aware(dt).astimezone(tz or UTC)


def local_date(dt: datetime, tz: Optional[tzinfo] = None) -> date:
    return to_local(dt, tz).date()


def start_of_day(dt: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Local midnight of the day containing dt, as an aware datetime in tz."""
    zone = tz or UTC
    midnight = datetime.combine(local_date(dt, zone), time.min, tzinfo=zone)
    # Round-trip through UTC so a midnight skipped by DST resolves to a real instant
    return midnight.astimezone(UTC).astimezone(zone)


def add_days(dt: datetime, days: int, tz: Optional[tzinfo] = None) -> datetime:
    """
    Add calendar days keeping the local wall-clock time.

    Across a DST change the result is 23 or 25 hours per day away, which is
    what "same time, N days later" means on a calendar.
    """
    zone = tz or UTC
    local = to_local(dt, zone)
    shifted = datetime.combine(local.date() + timedelta(days=days), local.timetz().replace(tzinfo=None), tzinfo=zone)
    return shifted.astimezone(UTC).astimezone(zone)


def days_between(start: datetime, end: datetime, tz: Optional[tzinfo] = None) -> int:
    """Number of local date boundaries crossed going from start to end (negative if end is earlier)."""
    return (local_date(end, tz) - local_date(start, tz)).days


def is_same_day(a: datetime, b: datetime, tz: Optional[tzinfo] = None) -> bool:
    return local_date(a, tz) == local_date(b, tz)


def short_relative_description(then: datetime, now: datetime, tz: Optional[tzinfo] = None) -> str:
    days = days_between(then, now, tz)

    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days <= 6:
        return f"{days} days ago"
    if days <= 13:
        return "1 week ago"
    if days <= 20:
        return "2 weeks ago"
    if days <= 29:
        return "3 weeks ago"
    if days <= 59:
        return "1 month ago"
    if days <= 89:
        return "2 months ago"
    return f"{days // 30} months ago"
