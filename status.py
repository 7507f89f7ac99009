"""
Status engine: turns a friend's timestamps into what the user should do next.

Pure functions of the friend and "now". Nothing here writes to the friend.
"""

from datetime import datetime, tzinfo
from typing import Optional

from dates import add_days, days_between
from schemas import ContactStatus, Friend

# Days before the due date during which a friend counts as "due soon"
DUE_SOON_DAYS = 3

# Returned by days_until_due when no due date can be computed
UNKNOWN_DAYS_UNTIL_DUE = -999


def next_contact_date(friend: Friend, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """
    When the next contact is due.

    A friend who was never contacted is due one interval after being added.
    Returns None only when the date falls outside the representable range.
    """
    anchor = friend.lastContactedAt or friend.createdAt
    try:
        return add_days(anchor, friend.reminderIntervalDays, tz)
    except OverflowError:
        return None


def days_until_due(friend: Friend, now: datetime, tz: Optional[tzinfo] = None) -> int:
    due = next_contact_date(friend, tz)
    if due is None:
        return UNKNOWN_DAYS_UNTIL_DUE
    return days_between(now, due, tz)


def status(friend: Friend, now: datetime, tz: Optional[tzinfo] = None) -> ContactStatus:
    if next_contact_date(friend, tz) is None:
        return ContactStatus.overdue
    return status_for_days(days_until_due(friend, now, tz))


def status_for_days(days: int) -> ContactStatus:
    if days < 0:
        return ContactStatus.overdue
    if days <= DUE_SOON_DAYS:
        return ContactStatus.dueSoon
    return ContactStatus.onTrack


def days_since_last_contact(friend: Friend, now: datetime, tz: Optional[tzinfo] = None) -> Optional[int]:
    if friend.lastContactedAt is None:
        return None
    return days_between(friend.lastContactedAt, now, tz)


def initials(name: str) -> str:
    parts = name.split()
    if len(parts) >= 2:
        return (parts[0][:1] + parts[1][:1]).upper()
    return name.strip()[:2].upper()
