from datetime import datetime, timedelta, timezone

from schemas import Friend, StreakMilestone
from streaks import is_streak_active, milestone_for, update_streak, was_on_time

DAY0 = datetime(2024, 4, 1, 10, 0, tzinfo=timezone.utc)


def day(n: int, hour: int = 10) -> datetime:
    return DAY0.replace(hour=hour) + timedelta(days=n)


def log(friend: Friend, when: datetime):
    """Log the way the service does: streak first, then move lastContactedAt."""
    milestone = update_streak(friend, when)
    friend.lastContactedAt = when
    return milestone


def test_on_time_chain_then_break():
    friend = Friend(name="Sam", reminderIntervalDays=7, createdAt=DAY0)

    assert log(friend, day(0)) == StreakMilestone.first
    assert friend.currentStreak == 1

    assert log(friend, day(6)) is None
    assert friend.currentStreak == 2

    assert log(friend, day(20)) is None
    assert friend.currentStreak == 1
    assert friend.longestStreak == 2


def test_daily_contacts_hit_first_and_weekly_milestones():
    friend = Friend(name="Sam", reminderIntervalDays=7, createdAt=DAY0)

    milestones = [log(friend, day(n)) for n in range(7)]

    assert milestones[0] == StreakMilestone.first
    assert milestones[1:6] == [None] * 5
    assert milestones[6] == StreakMilestone.weekly
    assert friend.currentStreak == friend.longestStreak == 7


def test_same_day_contact_is_a_no_op():
    friend = Friend(name="Sam", reminderIntervalDays=7, createdAt=DAY0)
    log(friend, day(0, hour=9))
    before = (friend.currentStreak, friend.longestStreak, friend.lastStreakDate)

    assert update_streak(friend, day(0, hour=21)) is None
    assert (friend.currentStreak, friend.longestStreak, friend.lastStreakDate) == before


def test_grace_boundary_is_one_calendar_day_after_due():
    # Contacted on day 0 with a weekly cadence: due on day 7
    on_boundary = Friend(name="A", reminderIntervalDays=7, createdAt=DAY0, lastContactedAt=day(0))
    too_late = Friend(name="B", reminderIntervalDays=7, createdAt=DAY0, lastContactedAt=day(0))

    assert was_on_time(on_boundary, day(8, hour=23))
    assert not was_on_time(too_late, day(9, hour=0))


def test_late_contact_resets_streak_without_milestone():
    friend = Friend(
        name="Sam",
        reminderIntervalDays=7,
        createdAt=DAY0,
        lastContactedAt=day(0),
        currentStreak=5,
        longestStreak=5,
        lastStreakDate=day(0),
    )

    # Due on day 7, grace ends on day 8
    assert update_streak(friend, day(16)) is None
    assert friend.currentStreak == 1
    assert friend.longestStreak == 5
    assert friend.lastStreakDate == day(16)


def test_reset_to_one_never_fires_first_milestone():
    friend = Friend(name="Late", reminderIntervalDays=7, createdAt=DAY0)

    # First contact well after the creation-based due date
    assert update_streak(friend, day(30)) is None
    assert friend.currentStreak == 1
    assert friend.longestStreak >= friend.currentStreak


def test_longest_never_below_current_across_a_history():
    friend = Friend(name="Sam", reminderIntervalDays=3, createdAt=DAY0)

    for n in [0, 1, 2, 3, 10, 11, 11, 30, 31, 33, 34]:
        log(friend, day(n))
        assert friend.longestStreak >= friend.currentStreak >= 0


def test_streak_activity_window_is_interval_plus_three_days():
    friend = Friend(name="Sam", reminderIntervalDays=7, createdAt=DAY0)
    assert not is_streak_active(friend, day(0))

    log(friend, day(0))
    assert is_streak_active(friend, day(10))
    assert not is_streak_active(friend, day(11))


def test_milestone_for():
    assert milestone_for(1) == StreakMilestone.first
    assert milestone_for(30) == StreakMilestone.monthly
    assert milestone_for(100) == StreakMilestone.century
    assert milestone_for(2) is None
    assert StreakMilestone.century.message


def test_backdated_contact_leaves_streak_untouched():
    friend = Friend(name="Sam", reminderIntervalDays=7, createdAt=DAY0)
    log(friend, day(3))
    before = (friend.currentStreak, friend.longestStreak, friend.lastStreakDate)

    assert update_streak(friend, day(1)) is None
    assert (friend.currentStreak, friend.longestStreak, friend.lastStreakDate) == before
