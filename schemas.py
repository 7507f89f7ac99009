"""
Database Schemas for Reconnect

Pydantic models for the friends you keep in touch with and the contacts
you log with them. Each stored class maps to a MongoDB collection with the
lowercase class name.

Collections used:
- friend
- contactlog
- settings
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import uuid4

from pydantic import (
    Base64Bytes,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from dates import now_utc


def new_id() -> str:
    return str(uuid4())


def blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# ------------------------- Enumerations -------------------------

class ContactMethod(str, Enum):
    call = "call"
    text = "text"
    inPerson = "inPerson"
    video = "video"
    email = "email"
    social = "social"
    other = "other"


class ContactStatus(str, Enum):
    overdue = "overdue"
    dueSoon = "dueSoon"
    onTrack = "onTrack"

    @property
    def sort_order(self) -> int:
        return _STATUS_SORT_ORDER[self]

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]


_STATUS_SORT_ORDER = {
    ContactStatus.overdue: 0,
    ContactStatus.dueSoon: 1,
    ContactStatus.onTrack: 2,
}

_STATUS_LABELS = {
    ContactStatus.overdue: "Overdue",
    ContactStatus.dueSoon: "Due Soon",
    ContactStatus.onTrack: "On Track",
}


class StatusFilter(str, Enum):
    all = "all"
    overdue = "overdue"
    dueSoon = "dueSoon"
    onTrack = "onTrack"


class StreakMilestone(int, Enum):
    """Streak counts worth celebrating. Raised only right after an increment."""

    first = 1
    weekly = 7
    monthly = 30
    century = 100

    @property
    def message(self) -> str:
        return _MILESTONE_MESSAGES[self]


_MILESTONE_MESSAGES = {
    StreakMilestone.first: "First check-in! The streak begins.",
    StreakMilestone.weekly: "7 in a row. You're building a habit!",
    StreakMilestone.monthly: "30 on-time check-ins. Incredible consistency!",
    StreakMilestone.century: "100! A true friendship legend.",
}


class ReminderInterval(int, Enum):
    weekly = 7
    biweekly = 14
    monthly = 30
    quarterly = 90

    @property
    def label(self) -> str:
        return _INTERVAL_LABELS[self]


_INTERVAL_LABELS = {
    ReminderInterval.weekly: "Weekly",
    ReminderInterval.biweekly: "Every 2 weeks",
    ReminderInterval.monthly: "Monthly",
    ReminderInterval.quarterly: "Quarterly",
}


def interval_label(days: int) -> str:
    try:
        return ReminderInterval(days).label
    except ValueError:
        return f"Every {days} days"


# ------------------------- Stored models -------------------------

class ContactLog(BaseModel):
    """
    One logged interaction with a friend. Never changed after creation.
    Collection name: "contactlog"
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id, description="Unique log id")
    friendId: str = Field(..., description="Owning friend id")
    contactedAt: datetime = Field(default_factory=now_utc, description="When the contact happened")
    method: ContactMethod = Field(ContactMethod.other, description="How you got in touch")
    notes: Optional[str] = Field(None, description="Optional notes about the conversation")


class Friend(BaseModel):
    """
    Someone you want to keep in touch with.
    Collection name: "friend"
    """
    id: str = Field(default_factory=new_id, description="Stable friend id")
    name: str = Field(..., description="Display name, never blank")
    phoneNumber: Optional[str] = Field(None, description="Phone number (optional)")
    email: Optional[str] = Field(None, description="Email address (optional)")
    notes: Optional[str] = Field(None, description="Free-text notes (optional)")
    photoData: Optional[bytes] = Field(None, description="Opaque photo payload")

    reminderIntervalDays: int = Field(14, ge=1, description="How often to reach out in days")
    lastContactedAt: Optional[datetime] = Field(None, description="Most recent contact, null if never")
    createdAt: datetime = Field(default_factory=now_utc, description="When the friend was added")
    calendarEventIdentifier: Optional[str] = Field(
        None, description="Handle of the external calendar reminder, if one was created"
    )

    currentStreak: int = Field(0, ge=0, description="Consecutive on-time check-ins")
    longestStreak: int = Field(0, ge=0, description="Best streak ever reached")
    lastStreakDate: Optional[datetime] = Field(None, description="Most recent streak-qualifying contact")

    contactLogs: List[ContactLog] = Field(default_factory=list, description="Logged contacts, oldest first")

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name cannot be empty")
        return value

    @model_validator(mode="after")
    def longest_covers_current(self) -> "Friend":
        if self.longestStreak < self.currentStreak:
            raise ValueError("longestStreak cannot be lower than currentStreak")
        return self


class Settings(BaseModel):
    """
    App-wide settings.
    Collection name: "settings"
    A single document is used; _id = "default".
    """
    defaultReminderIntervalDays: int = Field(14, ge=1, description="Interval preselected for new friends")


# ------------------------- Request bodies -------------------------

class FriendIn(BaseModel):
    name: str
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    photoData: Optional[Base64Bytes] = None
    reminderIntervalDays: Optional[int] = Field(None, ge=1)


class FriendUpdate(BaseModel):
    """
    Full edit of the user-editable fields, like the edit form submits.
    Leaving photoData out keeps the stored photo; sending null removes it.
    """
    name: str
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    photoData: Optional[Base64Bytes] = None
    reminderIntervalDays: int = Field(..., ge=1)


class ContactLogIn(BaseModel):
    contactedAt: Optional[datetime] = None
    method: ContactMethod = ContactMethod.other
    notes: Optional[str] = None


class SettingsIn(BaseModel):
    defaultReminderIntervalDays: int = Field(..., ge=1)


# ------------------------- Responses -------------------------

class ContactLogOut(BaseModel):
    id: str
    friendId: str
    contactedAt: datetime
    method: ContactMethod
    notes: Optional[str] = None


class FriendOut(BaseModel):
    id: str
    name: str
    initials: str
    phoneNumber: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    photoData: Optional[str] = Field(None, description="Base64-encoded photo")
    reminderIntervalDays: int
    reminderIntervalLabel: str
    lastContactedAt: Optional[datetime] = None
    lastContactedLabel: Optional[str] = None
    createdAt: datetime
    calendarEventIdentifier: Optional[str] = None

    status: ContactStatus
    statusLabel: str
    nextContactDate: datetime
    daysUntilDue: int
    daysSinceLastContact: Optional[int] = None

    currentStreak: int
    longestStreak: int
    lastStreakDate: Optional[datetime] = None
    isStreakActive: bool

    pendingDeletion: bool = False
    undoUntil: Optional[datetime] = None


class FriendDetailOut(FriendOut):
    contactLogs: List[ContactLogOut] = []


class LogContactOut(BaseModel):
    friend: FriendOut
    contactLog: ContactLogOut
    milestone: Optional[StreakMilestone] = None
    milestoneMessage: Optional[str] = None


class ReminderOut(BaseModel):
    friend: FriendOut
    calendarEventIdentifier: Optional[str] = None
    reminderError: Optional[str] = None


class StatusCountsOut(BaseModel):
    total: int
    overdue: int
    dueSoon: int
    onTrack: int
