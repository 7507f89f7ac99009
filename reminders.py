"""
Calendar reminders for friends.

The calendar itself lives outside the app. We only decide *what* event to
ask for (an all-day "Reconnect with ..." event on the due date, alerting an
hour before) and keep the opaque identifier the calendar hands back.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, timedelta, tzinfo
from typing import Dict, Optional
from uuid import uuid4

from dates import local_date, start_of_day
from errors import CalendarError
from schemas import Friend
from status import next_contact_date

logger = logging.getLogger("reconnect.reminders")

ALARM_OFFSET = timedelta(hours=-1)


@dataclass(frozen=True)
class ReminderEvent:
    friend_id: str
    title: str
    notes: str
    day: date
    starts_at: datetime
    alarm_at: datetime
    url: str
    all_day: bool = True


def event_notes(friend: Friend) -> str:
    notes = f"Time to reach out to {friend.name}!"
    if friend.phoneNumber:
        notes += f"\n\nPhone: {friend.phoneNumber}"
    if friend.email:
        notes += f"\nEmail: {friend.email}"
    if friend.notes:
        notes += f"\n\nNotes: {friend.notes}"
    return notes


def build_reminder(friend: Friend, now: datetime, tz: Optional[tzinfo] = None) -> ReminderEvent:
    """Describe the reminder event for a friend, never placing it in the past."""
    due = next_contact_date(friend, tz) or now
    event_date = max(due, now)
    starts_at = start_of_day(event_date, tz)
    return ReminderEvent(
        friend_id=friend.id,
        title=f"Reconnect with {friend.name}",
        notes=event_notes(friend),
        day=local_date(event_date, tz),
        starts_at=starts_at,
        alarm_at=starts_at + ALARM_OFFSET,
        url=f"reconnect://friend/{friend.id}",
    )


class CalendarCollaborator(ABC):
    """Whatever calendar the reminders end up in."""

    @abstractmethod
    def create_reminder(self, event: ReminderEvent) -> str:
        """Save the event and return its identifier. Raises CalendarError."""

    @abstractmethod
    def remove_reminder(self, identifier: str) -> None:
        """Remove a previously created event. Unknown identifiers are ignored."""


def create_or_update_reminder(
    calendar: CalendarCollaborator,
    friend: Friend,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> str:
    """
    Replace the friend's reminder and store the new identifier on it.

    The new event is created before the old one is removed, so a failed
    create leaves both the calendar and the friend as they were. If only the
    removal fails, the stale event is left behind and the new one is kept.
    """
    event = build_reminder(friend, now, tz)
    previous = friend.calendarEventIdentifier
    identifier = calendar.create_reminder(event)
    friend.calendarEventIdentifier = identifier
    if previous:
        try:
            calendar.remove_reminder(previous)
        except CalendarError as e:
            logger.warning("Could not remove old reminder %s for friend %s: %s", previous, friend.id, e.message)
    logger.info("Reminder %s for friend %s on %s", identifier, friend.id, event.day.isoformat())
    return identifier


class LocalCalendar(CalendarCollaborator):
    """In-process calendar. Used when no external calendar is wired in, and in tests."""

    def __init__(self, access_granted: bool = True):
        self.access_granted = access_granted
        self.events: Dict[str, ReminderEvent] = {}

    def _require_access(self) -> None:
        if not self.access_granted:
            raise CalendarError("Calendar access denied")

    def create_reminder(self, event: ReminderEvent) -> str:
        self._require_access()
        identifier = str(uuid4())
        self.events[identifier] = event
        return identifier

    def remove_reminder(self, identifier: str) -> None:
        self._require_access()
        self.events.pop(identifier, None)
