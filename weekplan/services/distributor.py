"""
distributor.py: Spread a task pool over the rest of the working week
Due-dated tasks are pushed as late as their deadline allows; undated tasks are
dealt out round-robin. Each day's bucket ends up sorted by priority tier.
"""

from datetime import date, datetime, timedelta

from weekplan.config import WORKDAY_CUTOFF
from weekplan.services.time_utils import to_minutes

PRIORITY_TIER = {"high": 0, "medium": 1, "low": 2}


class NoDaysToScheduleError(Exception):
    """Nothing is left of the current Monday-Friday week."""

    def __init__(self, message: str = "No days to schedule"):
        super().__init__(message)


def _tier(task) -> int:
    return PRIORITY_TIER.get(task.priority, len(PRIORITY_TIER))


def by_priority(tasks: list) -> list:
    """Stable sort by priority tier (high, medium, low)."""
    return sorted(tasks, key=_tier)


def week_dates(anchor: date) -> list[date]:
    """Monday through Friday of *anchor*'s week."""
    monday = anchor - timedelta(days=anchor.weekday())
    return [monday + timedelta(days=i) for i in range(5)]


def remaining_weekdays(now: datetime, cutoff: str = WORKDAY_CUTOFF) -> list[date]:
    """Weekdays from today through Friday; today is skipped once past *cutoff*."""
    today = now.date()
    after_hours = now.hour * 60 + now.minute >= to_minutes(cutoff)
    return [d for d in week_dates(today) if d > today or (d == today and not after_hours)]


def distribute(tasks: list, days: list[date], today: date) -> dict[date, list]:
    """Assign every task in *tasks* to one of *days* (which must be ascending)."""
    if not days:
        raise NoDaysToScheduleError()

    buckets: dict[date, list] = {d: [] for d in days}

    dated = by_priority([t for t in tasks if t.due_date is not None])
    undated = by_priority([t for t in tasks if t.due_date is None])

    for task in dated:
        if task.due_date <= today:
            target = days[0]
        else:
            fitting = [d for d in days if d <= task.due_date]
            # Latest day that still meets the deadline; earliest day if none does
            target = fitting[-1] if fitting else days[0]
        buckets[target].append(task)

    for index, task in enumerate(undated):
        buckets[days[index % len(days)]].append(task)

    return {d: by_priority(bucket) for d, bucket in buckets.items()}
