"""
schedule_service.py: Daily schedules
Asks the LLM to lay a day's tasks out into timed blocks, maps the blocks back
to task records, and persists schedules and their items, both for generated
days and for manual edits coming from the drag-and-drop board.
"""

import logging
from datetime import date

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.orm import Session

from weekplan.config import DAY_START
from weekplan.models.schedule import Schedule
from weekplan.models.schedule_item import ScheduleItem, ITEM_TYPES
from weekplan.models.task import Task
from weekplan.services.llm_json import LLMResponseError, ask_for_json
from weekplan.services.pattern_service import PatternService
from weekplan.services.time_utils import to_minutes, to_time_string, duration_between

logger = logging.getLogger(__name__)


class ScheduleBlock(BaseModel):
    """A time-boxed unit of work, break or lunch as produced by the LLM."""

    start_time: str
    end_time: str
    type: str = "task"
    title: str = ""
    description: str | None = None
    estimated_duration: int | None = None
    task_id: int | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalise_time(cls, value: str) -> str:
        return to_time_string(to_minutes(value))

    @field_validator("type", mode="before")
    @classmethod
    def _normalise_type(cls, value):
        value = str(value or "task").lower().strip()
        return value if value in ITEM_TYPES else "break"

    @field_validator("task_id", mode="before")
    @classmethod
    def _lenient_task_id(cls, value):
        try:
            return int(value) if value is not None else None
        except (TypeError, ValueError):
            return None


class GeneratedSchedule(BaseModel):
    blocks: list[ScheduleBlock] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


def match_task(block: ScheduleBlock, day_tasks: list[Task]) -> Task | None:
    """Find the task a generated block stands for.

    The id echoed back by the model wins; otherwise the first task whose title
    contains, or is contained in, the block title (case-insensitive).
    """
    if block.type != "task":
        return None
    if block.task_id is not None:
        by_id = next((t for t in day_tasks if t.id == block.task_id), None)
        if by_id is not None:
            return by_id
    title = block.title.lower()
    if not title:
        return None
    return next(
        (t for t in day_tasks if t.title.lower() in title or title in t.title.lower()),
        None,
    )


def assemble(schedule_id: int | None, day_tasks: list[Task], blocks: list[ScheduleBlock]) -> list[ScheduleItem]:
    """Turn generated blocks into (unsaved) schedule items linked to their tasks."""
    items = []
    for block in blocks:
        task = match_task(block, day_tasks)
        items.append(ScheduleItem(
            schedule_id=schedule_id,
            task_id=task.id if task else None,
            start_time=block.start_time,
            end_time=block.end_time,
            item_type=block.type,
            title=block.title,
            completed=False,
        ))
    return items


def summarize(items: list[ScheduleItem], total_hours: float | None = None, suggestions: list[str] | None = None) -> dict:
    """Aggregate metadata stored on the schedule row."""
    if total_hours is None:
        minutes = sum(max(0, duration_between(i.start_time, i.end_time)) for i in items)
        total_hours = round(minutes / 60, 2)
    return {
        "total_hours": total_hours,
        "work_blocks": sum(1 for i in items if i.item_type == "task"),
        "break_blocks": sum(1 for i in items if i.item_type != "task"),
        "suggestions": suggestions or [],
    }


def build_schedule_prompt(day: date, tasks: list[Task], work_hours: int, pattern_context: str = "") -> str:
    start = to_minutes(DAY_START)
    end = start + work_hours * 60
    task_lines = []
    for i, t in enumerate(tasks, start=1):
        line = f"{i}. [task_id={t.id}] {t.title}"
        if t.description:
            line += f" - {t.description}"
        details = [f"{t.priority} priority"]
        if t.estimated_duration:
            details.append(f"estimated {t.estimated_duration} min")
        if t.due_date:
            details.append(f"due {t.due_date.isoformat()}")
        task_lines.append(f"{line} ({', '.join(details)})")

    return (
        f"You are a productivity scheduling assistant. Generate an optimal {work_hours}-hour work "
        f"schedule for {day.strftime('%A')}, {day.isoformat()}.\n\n"
        "TASKS TO SCHEDULE:\n" + "\n".join(task_lines) + pattern_context + "\n\n"
        "REQUIREMENTS:\n"
        f"- Total time: {work_hours} hours ({work_hours * 60} minutes)\n"
        f"- Start time: {to_time_string(start)}\n"
        f"- End time: {to_time_string(end)} (breaks included)\n"
        "- Short breaks: 5-10 minutes every 60-90 minutes\n"
        "- Lunch break: 30 minutes around midday\n"
        "- Schedule high-priority/complex tasks in the morning, lighter tasks after lunch\n"
        "- Consider the historical patterns when estimating durations\n\n"
        "CRITICAL RULES:\n"
        "- Each task gets its own separate block; never combine tasks\n"
        "- Use the EXACT task title and copy its task_id into the block\n"
        '- Use type "lunch" (not "break") for the lunch break\n\n'
        "Respond with a JSON object:\n"
        '{"blocks": [{"start_time": "09:00", "end_time": "10:30", "type": "task", "task_id": 1, '
        '"title": "Task name", "description": "Brief description", "estimated_duration": 90}, '
        '{"start_time": "10:30", "end_time": "10:40", "type": "break", "title": "Short break", '
        '"estimated_duration": 10}], "suggestions": ["Tip about the schedule"]}\n\n'
        "IMPORTANT: Return ONLY valid JSON, no explanatory text before or after."
    )


class ScheduleService:
    @staticmethod
    def get_for_date(db: Session, user_id: str, day: date) -> Schedule | None:
        return db.query(Schedule).filter_by(user_id=user_id, schedule_date=day).first()

    @staticmethod
    def get_or_create(db: Session, user_id: str, day: date) -> Schedule:
        schedule = ScheduleService.get_for_date(db, user_id, day)
        if schedule is None:
            schedule = Schedule(user_id=user_id, schedule_date=day, schedule_data=summarize([]))
            db.add(schedule)
            db.flush()
        return schedule

    @staticmethod
    def _detach_tasks(db: Session, user_id: str, task_ids: set[int], keep_ids: set[int], since: date | None = None):
        """Delete other schedule items of this user that reference *task_ids*."""
        if not task_ids:
            return
        query = (
            db.query(ScheduleItem)
            .join(Schedule, ScheduleItem.schedule_id == Schedule.id)
            .filter(Schedule.user_id == user_id, ScheduleItem.task_id.in_(task_ids))
        )
        if since is not None:
            query = query.filter(Schedule.schedule_date >= since, ScheduleItem.completed == False)  # noqa: E712
        for item in query.all():
            if item.id not in keep_ids:
                db.delete(item)

    @staticmethod
    def _mark_scheduled(db: Session, user_id: str, task_ids: set[int]):
        if not task_ids:
            return
        db.query(Task).filter(
            Task.user_id == user_id,
            Task.id.in_(task_ids),
            Task.status != "completed",
        ).update({"status": "scheduled"}, synchronize_session=False)

    @staticmethod
    def save_generated(
        db: Session,
        user_id: str,
        day: date,
        day_tasks: list[Task],
        generated: GeneratedSchedule,
        work_hours: int,
        today: date | None = None,
    ) -> Schedule:
        """Upsert the day's schedule and replace its items with the generated blocks."""
        try:
            schedule = ScheduleService.get_or_create(db, user_id, day)
            schedule.items.clear()
            db.flush()

            items = assemble(schedule.id, day_tasks, generated.blocks)
            schedule.items.extend(items)
            schedule.schedule_data = summarize(items, total_hours=work_hours, suggestions=generated.suggestions)
            db.flush()

            task_ids = {i.task_id for i in items if i.task_id}
            ScheduleService._detach_tasks(
                db, user_id, task_ids, {i.id for i in items}, since=today or date.today()
            )
            ScheduleService._mark_scheduled(db, user_id, task_ids)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(schedule)
        return schedule

    @staticmethod
    async def generate_for_day(
        db: Session,
        user_id: str,
        day: date,
        tasks: list[Task],
        work_hours: int,
        llm_router,
        today: date | None = None,
    ) -> Schedule:
        """Ask the LLM for the day's block layout and persist it."""
        patterns = PatternService.get_patterns(db, user_id)
        prompt = build_schedule_prompt(day, tasks, work_hours, PatternService.pattern_context(patterns))
        raw = await ask_for_json(llm_router, prompt, expect=dict, max_tokens=2000)
        try:
            generated = GeneratedSchedule.model_validate(raw)
        except ValidationError as e:
            logger.error(f"Invalid schedule blocks for {day.isoformat()}: {e}")
            raise LLMResponseError(f"Language model returned invalid schedule blocks: {e.error_count()} error(s)") from e
        logger.info(f"Generated {len(generated.blocks)} block(s) for {day.isoformat()}")
        return ScheduleService.save_generated(db, user_id, day, tasks, generated, work_hours, today=today)

    @staticmethod
    def replace_items(db: Session, user_id: str, day: date, items: list[dict]) -> Schedule:
        """Persist the board's ordered item list for *day*.

        Items carrying an ``id`` are updated (and re-parented when they come
        from another day); items without one are created. Items of the day not
        in *items* are deleted, and a task placed here loses any assignment it
        had elsewhere.
        """
        try:
            schedule = ScheduleService.get_or_create(db, user_id, day)
            existing = list(schedule.items)

            task_ids = {data["task_id"] for data in items if data.get("task_id")}
            owned = {t.id for t in db.query(Task.id).filter(Task.user_id == user_id, Task.id.in_(task_ids))}
            if task_ids - owned:
                raise LookupError(f"Unknown task id(s): {sorted(task_ids - owned)}")

            kept: list[ScheduleItem] = []
            for data in items:
                item = None
                if data.get("id"):
                    item = (
                        db.query(ScheduleItem)
                        .join(Schedule, ScheduleItem.schedule_id == Schedule.id)
                        .filter(ScheduleItem.id == data["id"], Schedule.user_id == user_id)
                        .first()
                    )
                    if item is None:
                        raise LookupError(f"Unknown schedule item: {data['id']}")
                    if item.schedule_id != schedule.id:
                        item.schedule = schedule
                else:
                    item = ScheduleItem()
                    schedule.items.append(item)

                item.task_id = data.get("task_id")
                item.item_type = data.get("item_type", "task")
                item.title = data.get("title", "")
                item.start_time = to_time_string(to_minutes(data["start_time"]))
                item.end_time = to_time_string(to_minutes(data["end_time"]))
                item.completed = bool(data.get("completed", False))
                kept.append(item)

            kept_set = set(map(id, kept))
            for item in existing:
                if id(item) not in kept_set:
                    db.delete(item)
            db.flush()

            ScheduleService._detach_tasks(db, user_id, task_ids, {i.id for i in kept})
            ScheduleService._mark_scheduled(db, user_id, task_ids)
            previous = schedule.schedule_data or {}
            schedule.schedule_data = summarize(kept, suggestions=previous.get("suggestions"))
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(schedule)
        return schedule
