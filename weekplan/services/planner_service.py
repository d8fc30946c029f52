"""
planner_service.py: Multi-day schedule generation
Distributes the active task pool over the remaining weekdays and asks the LLM
for each day's layout; also regenerates a single day when its hour budget
changes. Both runs are guarded by a per-user busy flag against double clicks.
"""

import logging
from contextlib import contextmanager
from datetime import date, datetime

from sqlalchemy.orm import Session

from weekplan.config import DEFAULT_WORK_HOURS, MIN_WORK_HOURS, MAX_WORK_HOURS
from weekplan.services.distributor import distribute, remaining_weekdays
from weekplan.services.llm_json import LLMError
from weekplan.services.schedule_service import ScheduleService
from weekplan.services.task_service import TaskService

logger = logging.getLogger(__name__)

_busy_users: set[str] = set()


class PlannerBusyError(Exception):
    """A generation run for this user is already in flight."""


@contextmanager
def busy_guard(user_id: str):
    if user_id in _busy_users:
        raise PlannerBusyError("Schedule generation already in progress")
    _busy_users.add(user_id)
    try:
        yield
    finally:
        _busy_users.discard(user_id)


def is_busy(user_id: str) -> bool:
    return user_id in _busy_users


def validate_hours(hours: int) -> int:
    if not MIN_WORK_HOURS <= hours <= MAX_WORK_HOURS:
        raise ValueError(f"Work hours must be between {MIN_WORK_HOURS} and {MAX_WORK_HOURS}")
    return hours


class PlannerService:
    @staticmethod
    async def generate_week(
        db: Session,
        user_id: str,
        llm_router,
        work_hours: dict[date, int] | None = None,
        now: datetime | None = None,
    ) -> list[dict]:
        """Generate schedules from today through Friday.

        Hour budgets are all checked before anything is written. Days are
        generated one after another and independently: a day the LLM fails
        on is reported with an ``error`` entry and the run moves on. Raises
        ``LLMError`` only when every day failed.
        """
        now = now or datetime.now()
        work_hours = {day: validate_hours(hours) for day, hours in (work_hours or {}).items()}
        with busy_guard(user_id):
            days = remaining_weekdays(now)
            tasks = TaskService.list_active(db, user_id)
            plan = distribute(tasks, days, now.date())

            results = []
            last_error = None
            for day, day_tasks in plan.items():
                if not day_tasks:
                    continue
                hours = work_hours.get(day, DEFAULT_WORK_HOURS)
                entry = {"date": day.isoformat(), "task_count": len(day_tasks), "work_hours": hours}
                try:
                    schedule = await ScheduleService.generate_for_day(
                        db, user_id, day, day_tasks, hours, llm_router, today=now.date()
                    )
                except LLMError as e:
                    logger.error(f"Failed to generate schedule for {day.isoformat()}: {e}")
                    last_error = e
                    results.append({**entry, "error": str(e)})
                    continue
                results.append({**entry, "schedule_id": schedule.id})

            generated = sum(1 for r in results if "error" not in r)
            if results and not generated:
                raise LLMError(f"Failed to generate any day: {last_error}")
            logger.info(f"Generated {generated} of {len(results)} day(s) for user {user_id}")
            return results

    @staticmethod
    async def change_day_hours(db: Session, user_id: str, day: date, hours: int, llm_router, today: date | None = None):
        """Regenerate *day* with the tasks it already holds and a new hour budget."""
        hours = validate_hours(hours)
        with busy_guard(user_id):
            schedule = ScheduleService.get_for_date(db, user_id, day)
            if schedule is None:
                raise LookupError(f"No schedule for {day.isoformat()}")

            task_ids = []
            for item in schedule.items:
                if item.task_id and item.task_id not in task_ids and not item.completed:
                    task_ids.append(item.task_id)
            tasks = [t for t in TaskService.get_many(db, user_id, task_ids) if t.status != "completed"]
            tasks.sort(key=lambda t: task_ids.index(t.id))
            if not tasks:
                raise LookupError(f"No open tasks scheduled on {day.isoformat()}")

            return await ScheduleService.generate_for_day(
                db, user_id, day, tasks, hours, llm_router, today=today
            )
