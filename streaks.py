"""
Streak engine.

A streak counts consecutive on-time check-ins with a friend. A check-in is
on time when it lands no later than one calendar day after the due date
computed from the *previous* contact, so update_streak must run before
friend.lastContactedAt is moved to the new contact.
"""

from datetime import datetime, tzinfo
from typing import Optional

from dates import days_between, local_date
from schemas import Friend, StreakMilestone
from status import DUE_SOON_DAYS, next_contact_date

# Calendar days after the due date that still count as on time
ON_TIME_GRACE_DAYS = 1


def milestone_for(count: int) -> Optional[StreakMilestone]:
    try:
        return StreakMilestone(count)
    except ValueError:
        return None


def was_on_time(friend: Friend, contact_date: datetime, tz: Optional[tzinfo] = None) -> bool:
    due = next_contact_date(friend, tz)
    if due is None:
        return True
    return days_between(due, contact_date, tz) <= ON_TIME_GRACE_DAYS


def update_streak(friend: Friend, contact_date: datetime, tz: Optional[tzinfo] = None) -> Optional[StreakMilestone]:
    """
    Apply a newly logged contact to the friend's streak fields.

    Returns the milestone reached by this contact, if any. A contact on or
    before the calendar day of the last streak day changes nothing, so repeat
    and back-dated logs never move the streak. A late contact restarts the
    streak at 1 and never raises a milestone.
    """
    if friend.lastStreakDate is not None and local_date(contact_date, tz) <= local_date(friend.lastStreakDate, tz):
        return None

    if not was_on_time(friend, contact_date, tz):
        friend.currentStreak = 1
        friend.lastStreakDate = contact_date
        friend.longestStreak = max(friend.longestStreak, 1)
        return None

    friend.currentStreak += 1
    friend.lastStreakDate = contact_date
    if friend.currentStreak > friend.longestStreak:
        friend.longestStreak = friend.currentStreak
    return milestone_for(friend.currentStreak)


def is_streak_active(friend: Friend, now: datetime, tz: Optional[tzinfo] = None) -> bool:
    if friend.currentStreak <= 0 or friend.lastStreakDate is None:
        return False
    return days_between(friend.lastStreakDate, now, tz) <= friend.reminderIntervalDays + DUE_SOON_DAYS
