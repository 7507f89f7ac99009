"""
Friend service: where user actions enter the system.

Validates input, runs the status and streak engines, and talks to the
persistence and calendar collaborators it was constructed with.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from config import Config
from database import FriendRepository
from dates import ensure_aware, now_utc
from errors import CalendarError, NotFoundError, ValidationError
from listing import friend_list, status_counts
from reminders import CalendarCollaborator, create_or_update_reminder
from schemas import (
    ContactLog,
    ContactMethod,
    ContactStatus,
    Friend,
    Settings,
    StatusFilter,
    StreakMilestone,
    blank_to_none,
)
from streaks import update_streak

logger = logging.getLogger("reconnect.service")

Clock = Callable[[], datetime]

# Marks an edit argument the caller did not supply
UNCHANGED: Any = object()


@dataclass
class LoggedContact:
    friend: Friend
    log: ContactLog
    milestone: Optional[StreakMilestone]


@dataclass
class ReminderResult:
    friend: Friend
    identifier: Optional[str]
    error: Optional[str] = None


def clean_name(name: Optional[str]) -> str:
    trimmed = (name or "").strip()
    if not trimmed:
        raise ValidationError("Name is required")
    return trimmed


def check_interval(days: int) -> int:
    if days is None or days <= 0:
        raise ValidationError("Reminder interval must be a positive number of days")
    return days


class FriendService:
    def __init__(
        self,
        repository: FriendRepository,
        calendar: CalendarCollaborator,
        config: Config,
        clock: Clock = now_utc,
    ):
        self.repository = repository
        self.calendar = calendar
        self.config = config
        self.tz = config.tz
        self.clock = clock
        self.undo_window = timedelta(seconds=config.undo_window_seconds)
        self._pending_deletions: Dict[str, datetime] = {}

    def now(self) -> datetime:
        return ensure_aware(self.clock())

    # ------------------------- Settings -------------------------

    def get_settings(self) -> Settings:
        settings = self.repository.get_settings()
        if settings is None:
            settings = Settings(defaultReminderIntervalDays=self.config.default_reminder_interval_days)
        return settings

    def update_settings(self, default_reminder_interval_days: int) -> Settings:
        settings = Settings(defaultReminderIntervalDays=check_interval(default_reminder_interval_days))
        return self.repository.save_settings(settings)

    # ------------------------- Friends -------------------------

    def add_friend(
        self,
        name: str,
        phoneNumber: Optional[str] = None,
        email: Optional[str] = None,
        notes: Optional[str] = None,
        photoData: Optional[bytes] = None,
        reminderIntervalDays: Optional[int] = None,
    ) -> Friend:
        self.complete_due_deletions()
        if reminderIntervalDays is None:
            reminderIntervalDays = self.get_settings().defaultReminderIntervalDays

        friend = Friend(
            name=clean_name(name),
            phoneNumber=blank_to_none(phoneNumber),
            email=blank_to_none(email),
            notes=blank_to_none(notes),
            photoData=photoData,
            reminderIntervalDays=check_interval(reminderIntervalDays),
            createdAt=self.now(),
        )
        friend = self.repository.create(friend)
        logger.info("Added friend %s (every %d days)", friend.id, friend.reminderIntervalDays)
        return friend

    def edit_friend(
        self,
        friend_id: str,
        name: str,
        reminderIntervalDays: int,
        phoneNumber: Optional[str] = None,
        email: Optional[str] = None,
        notes: Optional[str] = None,
        photoData: Any = UNCHANGED,
    ) -> Friend:
        """Replace the editable fields. The photo is left alone unless photoData is given."""
        self.complete_due_deletions()
        name = clean_name(name)
        interval = check_interval(reminderIntervalDays)

        friend = self.repository.require(friend_id)
        friend.name = name
        friend.phoneNumber = blank_to_none(phoneNumber)
        friend.email = blank_to_none(email)
        friend.notes = blank_to_none(notes)
        if photoData is not UNCHANGED:
            friend.photoData = photoData
        friend.reminderIntervalDays = interval
        return self.repository.update(friend)

    def get_friend(self, friend_id: str) -> Friend:
        self.complete_due_deletions()
        return self.repository.require(friend_id)

    def list_friends(self, search: Optional[str] = None, status_filter: StatusFilter = StatusFilter.all) -> List[Friend]:
        self.complete_due_deletions()
        return friend_list(self.repository.list_friends(), self.now(), search, status_filter, self.tz)

    def summary(self) -> Dict[ContactStatus, int]:
        self.complete_due_deletions()
        return status_counts(self.repository.list_friends(), self.now(), self.tz)

    # ------------------------- Contacts -------------------------

    def log_contact(
        self,
        friend_id: str,
        contacted_at: Optional[datetime] = None,
        method: ContactMethod = ContactMethod.other,
        notes: Optional[str] = None,
    ) -> LoggedContact:
        self.complete_due_deletions()
        friend = self.repository.require(friend_id)
        contacted_at = ensure_aware(contacted_at) if contacted_at else self.now()

        log = ContactLog(
            friendId=friend.id,
            contactedAt=contacted_at,
            method=method,
            notes=blank_to_none(notes),
        )

        # Streak first: the on-time check needs the due date from the previous contact
        milestone = update_streak(friend, contacted_at, self.tz)
        if friend.lastContactedAt is None or contacted_at > friend.lastContactedAt:
            friend.lastContactedAt = contacted_at

        self.repository.append_log(log)
        friend = self.repository.update(friend)

        logger.info(
            "Logged %s with friend %s, streak %d (best %d)",
            method.value, friend.id, friend.currentStreak, friend.longestStreak,
        )
        if milestone is not None:
            logger.info("Friend %s reached streak milestone %s", friend.id, milestone.name)
        return LoggedContact(friend=friend, log=log, milestone=milestone)

    def quick_log(self, friend_id: str) -> LoggedContact:
        return self.log_contact(friend_id, self.now(), ContactMethod.other, None)

    def contact_history(self, friend_id: str) -> List[ContactLog]:
        self.complete_due_deletions()
        self.repository.require(friend_id)
        return self.repository.list_logs(friend_id)

    def recent_contacts(self, limit: int = 100) -> List[ContactLog]:
        self.complete_due_deletions()
        return self.repository.list_logs(limit=limit)

    # ------------------------- Calendar -------------------------

    def create_reminder(self, friend_id: str) -> ReminderResult:
        """Create or replace the friend's calendar reminder. Calendar failures are reported, not raised."""
        friend = self.get_friend(friend_id)
        try:
            identifier = create_or_update_reminder(self.calendar, friend, self.now(), self.tz)
        except CalendarError as e:
            logger.warning("Could not create reminder for friend %s: %s", friend.id, e.message)
            return ReminderResult(friend=self.repository.require(friend_id), identifier=None, error=e.message)
        friend = self.repository.update(friend)
        return ReminderResult(friend=friend, identifier=identifier)

    # ------------------------- Deletion -------------------------

    def pending_deletion(self, friend_id: str) -> Optional[datetime]:
        return self._pending_deletions.get(friend_id)

    def request_deletion(self, friend_id: str, immediate: bool = False) -> Optional[datetime]:
        """
        Schedule the friend for deletion after the undo window.

        Returns the undo deadline, or None when the friend was deleted right away.
        """
        self.complete_due_deletions()
        friend = self.repository.require(friend_id)
        if immediate or self.undo_window <= timedelta(0):
            self._delete_now(friend)
            return None

        undo_until = self._pending_deletions.get(friend_id)
        if undo_until is None:
            undo_until = self.now() + self.undo_window
            self._pending_deletions[friend_id] = undo_until
            logger.info("Friend %s scheduled for deletion at %s", friend_id, undo_until.isoformat())
        return undo_until

    def cancel_deletion(self, friend_id: str) -> Friend:
        self.complete_due_deletions()
        if self._pending_deletions.pop(friend_id, None) is None:
            # Deadline already passed or never requested
            friend = self.repository.get(friend_id)
            if friend is None:
                raise NotFoundError("Friend not found")
            return friend
        logger.info("Deletion of friend %s cancelled", friend_id)
        return self.repository.require(friend_id)

    def complete_due_deletions(self) -> List[str]:
        now = self.now()
        due = [fid for fid, deadline in self._pending_deletions.items() if deadline <= now]
        for friend_id in due:
            del self._pending_deletions[friend_id]
            friend = self.repository.get(friend_id)
            if friend is not None:
                self._delete_now(friend)
        return due

    def _delete_now(self, friend: Friend) -> None:
        self._pending_deletions.pop(friend.id, None)
        if friend.calendarEventIdentifier:
            try:
                self.calendar.remove_reminder(friend.calendarEventIdentifier)
            except CalendarError as e:
                logger.warning("Could not remove reminder for friend %s: %s", friend.id, e.message)
        self.repository.delete(friend.id)
        logger.info("Deleted friend %s", friend.id)
