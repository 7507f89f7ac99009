"""Filtering, sorting and counting over a collection of friends."""

from datetime import datetime, tzinfo
from typing import Dict, Iterable, List, Optional

from schemas import ContactStatus, Friend, StatusFilter
from status import days_until_due, status


def matches_search(friend: Friend, search: Optional[str]) -> bool:
    if not search:
        return True
    return search.casefold() in friend.name.casefold()


def filter_friends(
    friends: Iterable[Friend],
    now: datetime,
    search: Optional[str] = None,
    status_filter: StatusFilter = StatusFilter.all,
    tz: Optional[tzinfo] = None,
) -> List[Friend]:
    result = [f for f in friends if matches_search(f, search)]
    if status_filter != StatusFilter.all:
        wanted = ContactStatus(status_filter.value)
        result = [f for f in result if status(f, now, tz) == wanted]
    return result


def sort_friends(friends: Iterable[Friend], now: datetime, tz: Optional[tzinfo] = None) -> List[Friend]:
    """Most urgent first: overdue, due soon, on track; soonest due within each group."""
    return sorted(
        friends,
        key=lambda f: (status(f, now, tz).sort_order, days_until_due(f, now, tz)),
    )


def friend_list(
    friends: Iterable[Friend],
    now: datetime,
    search: Optional[str] = None,
    status_filter: StatusFilter = StatusFilter.all,
    tz: Optional[tzinfo] = None,
) -> List[Friend]:
    return sort_friends(filter_friends(friends, now, search, status_filter, tz), now, tz)


def status_counts(friends: Iterable[Friend], now: datetime, tz: Optional[tzinfo] = None) -> Dict[ContactStatus, int]:
    counts = {s: 0 for s in ContactStatus}
    for friend in friends:
        counts[status(friend, now, tz)] += 1
    return counts
