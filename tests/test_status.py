from datetime import datetime, timedelta, timezone

from schemas import ContactStatus, Friend
from status import (
    UNKNOWN_DAYS_UNTIL_DUE,
    days_since_last_contact,
    days_until_due,
    initials,
    next_contact_date,
    status,
)

D = datetime(2024, 1, 10, 9, 0, tzinfo=timezone.utc)


def make_friend(**overrides) -> Friend:
    fields = {"name": "Alex", "reminderIntervalDays": 14, "createdAt": D}
    fields.update(overrides)
    return Friend(**fields)


def test_never_contacted_friend_becomes_overdue_after_interval():
    friend = make_friend()
    now = D + timedelta(days=15)

    assert status(friend, now) == ContactStatus.overdue
    assert days_until_due(friend, now) == -1


def test_never_contacted_friend_due_soon_in_last_three_days():
    friend = make_friend()

    assert status(friend, D + timedelta(days=10)) == ContactStatus.onTrack
    assert status(friend, D + timedelta(days=11)) == ContactStatus.dueSoon
    assert status(friend, D + timedelta(days=14)) == ContactStatus.dueSoon
    assert status(friend, D) == ContactStatus.onTrack


def test_next_contact_date_counts_from_last_contact():
    last = D + timedelta(days=3)
    friend = make_friend(lastContactedAt=last, reminderIntervalDays=7)

    assert next_contact_date(friend) == last + timedelta(days=7)
    assert days_until_due(friend, last) == 7


def test_time_of_day_does_not_change_whole_day_counts():
    late = make_friend(lastContactedAt=datetime(2024, 2, 1, 23, 0, tzinfo=timezone.utc), reminderIntervalDays=7)
    early = make_friend(lastContactedAt=datetime(2024, 2, 1, 1, 0, tzinfo=timezone.utc), reminderIntervalDays=7)
    now = datetime(2024, 2, 5, 12, 0, tzinfo=timezone.utc)

    assert days_until_due(late, now) == days_until_due(early, now) == 3
    assert status(late, now) == status(early, now) == ContactStatus.dueSoon


def test_unrepresentable_due_date_fails_safe_to_overdue():
    friend = make_friend(createdAt=datetime(9999, 12, 25, tzinfo=timezone.utc))

    assert next_contact_date(friend) is None
    assert status(friend, D) == ContactStatus.overdue
    assert days_until_due(friend, D) == UNKNOWN_DAYS_UNTIL_DUE


def test_days_since_last_contact():
    assert days_since_last_contact(make_friend(), D) is None

    friend = make_friend(lastContactedAt=D)
    assert days_since_last_contact(friend, D + timedelta(days=5, hours=20)) == 6


def test_status_sort_order_puts_overdue_first():
    assert ContactStatus.overdue.sort_order < ContactStatus.dueSoon.sort_order < ContactStatus.onTrack.sort_order


def test_initials():
    assert initials("Alex Smith") == "AS"
    assert initials("mary jane watson") == "MJ"
    assert initials("alex") == "AL"
    assert initials("Bo") == "BO"
    assert initials("J") == "J"
