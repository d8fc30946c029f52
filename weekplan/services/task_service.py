"""
task_service.py: Task management
Handles CRUD for Tasks, natural-language parsing via LLM, duplicate detection,
completion (which feeds the pattern learner) and end-of-day rollover.
"""

import logging
from datetime import date, datetime, timezone

from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy import case
from sqlalchemy.orm import Session

from weekplan.models.task import Task, ACTIVE_STATUSES, PRIORITIES
from weekplan.models.schedule import Schedule
from weekplan.models.schedule_item import ScheduleItem
from weekplan.services.llm_json import LLMResponseError, ask_for_json
from weekplan.services.pattern_service import PatternService, extract_keywords

logger = logging.getLogger(__name__)

PRIORITY_RANK = {"high": 0, "medium": 1, "low": 2}
EDITABLE_FIELDS = ("title", "description", "priority", "estimated_duration", "due_date", "tags")


class ParsedTask(BaseModel):
    """One task as extracted from natural-language input."""

    title: str = Field(..., min_length=1)
    description: str | None = None
    estimated_duration: int | None = Field(default=None, gt=0)
    priority: str = "medium"
    due_date: date | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("priority", mode="before")
    @classmethod
    def _normalise_priority(cls, value):
        value = str(value or "medium").lower().strip()
        return value if value in PRIORITIES else "medium"


def _coerce_date(value) -> date | None:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _normalise_title(title: str) -> str:
    return title.lower().strip()


def titles_overlap(a: str, b: str) -> bool:
    a, b = _normalise_title(a), _normalise_title(b)
    return a == b or a in b or b in a


class TaskService:
    @staticmethod
    def create(db: Session, user_id: str, data: dict) -> Task:
        """Create a pending task from a data dict."""
        task = Task(
            user_id=user_id,
            title=data["title"],
            description=data.get("description"),
            priority=data.get("priority") or "medium",
            status="pending",
            estimated_duration=data.get("estimated_duration"),
            due_date=_coerce_date(data.get("due_date")),
            tags=list(data.get("tags") or []),
        )
        db.add(task)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(task)
        return task

    @staticmethod
    def create_many(db: Session, user_id: str, tasks: list[dict]) -> list[Task]:
        """Insert several tasks in one transaction."""
        created = [
            Task(
                user_id=user_id,
                title=data["title"],
                description=data.get("description"),
                priority=data.get("priority") or "medium",
                status="pending",
                estimated_duration=data.get("estimated_duration"),
                due_date=_coerce_date(data.get("due_date")),
                tags=list(data.get("tags") or []),
            )
            for data in tasks
        ]
        db.add_all(created)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        for task in created:
            db.refresh(task)
        return created

    @staticmethod
    def list_active(db: Session, user_id: str) -> list[Task]:
        """Pending, rolled-over and scheduled tasks; high priority first, then oldest first."""
        rank = case(
            (Task.priority == "high", 0),
            (Task.priority == "medium", 1),
            else_=2,
        )
        return (
            db.query(Task)
            .filter(Task.user_id == user_id, Task.status.in_(ACTIVE_STATUSES))
            .order_by(rank, Task.created_at.asc(), Task.id.asc())
            .all()
        )

    @staticmethod
    def get_by_id(db: Session, user_id: str, task_id: int) -> Task | None:
        return db.query(Task).filter_by(id=task_id, user_id=user_id).first()

    @staticmethod
    def get_many(db: Session, user_id: str, task_ids: list[int]) -> list[Task]:
        if not task_ids:
            return []
        return db.query(Task).filter(Task.user_id == user_id, Task.id.in_(task_ids)).all()

    @staticmethod
    def update(db: Session, user_id: str, task_id: int, data: dict) -> Task | None:
        """Apply a partial edit (title, description, priority, duration, due date, tags)."""
        task = TaskService.get_by_id(db, user_id, task_id)
        if not task:
            return None

        for key, value in data.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "due_date":
                value = _coerce_date(value)
            setattr(task, key, value)

        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(task)
        return task

    @staticmethod
    def update_priority(db: Session, user_id: str, task_id: int, priority: str) -> Task | None:
        if priority not in PRIORITIES:
            raise ValueError(f"Unknown priority: {priority}")
        return TaskService.update(db, user_id, task_id, {"priority": priority})

    @staticmethod
    def delete(db: Session, user_id: str, task_id: int) -> bool:
        """Delete a task together with every schedule item that points at it."""
        task = TaskService.get_by_id(db, user_id, task_id)
        if not task:
            return False
        try:
            removed = (
                db.query(ScheduleItem)
                .filter(ScheduleItem.task_id == task_id)
                .delete(synchronize_session=False)
            )
            db.delete(task)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Deleted task {task_id} and {removed} schedule item(s)")
        return True

    @staticmethod
    def mark_completed(db: Session, user_id: str, task_id: int, actual_duration: int) -> Task | None:
        """Check a task off and feed its real duration into the pattern learner."""
        task = TaskService.get_by_id(db, user_id, task_id)
        if not task:
            return None
        try:
            task.status = "completed"
            task.completed_at = datetime.now(timezone.utc)
            task.actual_duration = actual_duration
            db.query(ScheduleItem).filter(ScheduleItem.task_id == task_id).update(
                {"completed": True}, synchronize_session=False
            )

            keywords = extract_keywords(task.title, task.description)
            PatternService.record_completion(db, user_id, keywords, actual_duration)
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(task)
        return task

    @staticmethod
    def find_duplicates(existing: list[Task], parsed: list[dict]) -> tuple[list[dict], list[dict]]:
        """Split *parsed* into (unique, duplicates).

        A parsed task is a duplicate when its title matches (case-insensitive
        equality or containment) an existing task or an earlier task of the
        same batch. Each duplicate is ``{"new_task": ..., "existing_task": ...}``.
        """
        unique: list[dict] = []
        duplicates: list[dict] = []
        for new_task in parsed:
            match = next((t for t in existing if titles_overlap(new_task["title"], t.title)), None)
            if match is not None:
                duplicates.append({
                    "new_task": new_task,
                    "existing_task": {"id": match.id, "title": match.title, "description": match.description},
                })
                continue
            earlier = next((t for t in unique if titles_overlap(new_task["title"], t["title"])), None)
            if earlier is not None:
                duplicates.append({
                    "new_task": new_task,
                    "existing_task": {"id": None, "title": earlier["title"], "description": earlier.get("description")},
                })
                continue
            unique.append(new_task)
        return unique, duplicates

    @staticmethod
    async def ai_parse(text: str, llm_router, today: date | None = None) -> list[dict]:
        """Parse natural language into task dicts via LLM."""
        today = today or date.today()
        prompt = (
            "Parse the following task input into structured task objects.\n\n"
            f"Today is {today.strftime('%A')}, {today.isoformat()}.\n\n"
            f"INPUT:\n{text}\n\n"
            "CRITICAL: Keep the EXACT original wording for task titles. "
            "Do NOT shorten, summarize, or rewrite them.\n\n"
            "Extract individual tasks and for each one, determine:\n"
            "- title: the EXACT original task wording\n"
            "- description: any additional context if separate from the title (optional)\n"
            '- estimated_duration: time in minutes (if mentioned like "30 minutes", "2 hours", or inferable)\n'
            '- priority: high, medium, or low (based on labels like "Priority", "urgent", "ASAP", "Low Tier")\n'
            '- due_date: YYYY-MM-DD if a deadline is mentioned ("by Friday", "due tomorrow"), else null\n'
            "- tags: relevant keywords/categories\n\n"
            "Respond with JSON array only:\n"
            '[{"title": "...", "description": "...", "estimated_duration": 60, '
            '"priority": "high", "due_date": null, "tags": ["..."]}]\n\n'
            "Return ONLY the JSON array, no other text."
        )
        raw_tasks = await ask_for_json(llm_router, prompt, expect=list, max_tokens=4000)
        try:
            parsed = [ParsedTask.model_validate(item).model_dump(mode="json") for item in raw_tasks]
        except ValidationError as e:
            logger.error(f"Invalid parsed tasks: {e}")
            raise LLMResponseError(f"Language model returned invalid tasks: {e.error_count()} error(s)") from e
        logger.info(f"Parsed {len(parsed)} task(s) from natural language input")
        return parsed

    @staticmethod
    def rollover(db: Session, user_id: str, day: date) -> list[Task]:
        """Move unfinished tasks from *day*'s schedule back into the pending pool."""
        schedule = db.query(Schedule).filter_by(user_id=user_id, schedule_date=day).first()
        if not schedule:
            return []

        task_ids = {
            item.task_id
            for item in schedule.items
            if item.item_type == "task" and not item.completed and item.task_id
        }
        if not task_ids:
            return []

        tasks = (
            db.query(Task)
            .filter(Task.user_id == user_id, Task.id.in_(task_ids), Task.status != "completed")
            .all()
        )
        try:
            for task in tasks:
                task.status = "rolled_over"
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Rolled over {len(tasks)} task(s) from {day.isoformat()}")
        return tasks
