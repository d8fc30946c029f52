"""
state.py: Local board model behind the drag-and-drop UI
Holds each weekday's ordered schedule items plus the task list, and applies
the board gestures to it. Every touched day is re-laid end-to-end from the
day start, so times stay contiguous after each gesture.
"""

import copy
from dataclasses import dataclass, field
from datetime import date

from weekplan.config import DAY_START, DEFAULT_TASK_MINUTES
from weekplan.services.time_utils import recalculate_contiguous, to_minutes, to_time_string


@dataclass
class BoardTask:
    id: int
    title: str
    priority: str = "medium"
    status: str = "pending"
    estimated_duration: int | None = None

    @classmethod
    def from_dict(cls, data: dict) -> "BoardTask":
        return cls(
            id=data["id"],
            title=data["title"],
            priority=data.get("priority", "medium"),
            status=data.get("status", "pending"),
            estimated_duration=data.get("estimated_duration"),
        )


@dataclass
class BoardItem:
    id: int | None  # None until the server has stored it
    task_id: int | None
    item_type: str
    title: str
    start_time: str
    end_time: str
    completed: bool = False

    @property
    def duration(self) -> int:
        return to_minutes(self.end_time) - to_minutes(self.start_time)

    @classmethod
    def from_dict(cls, data: dict) -> "BoardItem":
        return cls(
            id=data.get("id"),
            task_id=data.get("task_id"),
            item_type=data.get("item_type", "task"),
            title=data.get("title", ""),
            start_time=data["start_time"],
            end_time=data["end_time"],
            completed=bool(data.get("completed", False)),
        )

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "task_id": self.task_id,
            "item_type": self.item_type,
            "title": self.title,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "completed": self.completed,
        }


@dataclass
class BoardState:
    days: dict[date, list[BoardItem]] = field(default_factory=dict)
    tasks: dict[int, BoardTask] = field(default_factory=dict)
    day_start: str = DAY_START

    def find_item(self, item_id: int) -> tuple[date, int] | None:
        for day, items in self.days.items():
            for index, item in enumerate(items):
                if item.id == item_id:
                    return day, index
        return None

    def snapshot(self) -> tuple[dict, dict]:
        return copy.deepcopy(self.days), copy.deepcopy(self.tasks)

    def restore(self, snapshot: tuple[dict, dict]):
        self.days, self.tasks = snapshot


def recompute_day(state: BoardState, day: date):
    """Lay *day*'s items back-to-back from the day start, keeping each duration."""
    items = state.days.get(day, [])
    timed = recalculate_contiguous([{"duration": max(0, i.duration)} for i in items], state.day_start)
    for item, slot in zip(items, timed):
        item.start_time = slot["start_time"]
        item.end_time = slot["end_time"]


def _position(items: list[BoardItem], before_item_id: int | None) -> int:
    if before_item_id is None:
        return len(items)
    return next((n for n, i in enumerate(items) if i.id == before_item_id), len(items))


def _touch(state: BoardState, days: list[date]) -> list[date]:
    ordered = list(dict.fromkeys(days))
    for day in ordered:
        recompute_day(state, day)
    return ordered


def place_task(state: BoardState, task_id: int, day: date, before_item_id: int | None = None) -> list[date]:
    """Put a task from the task list onto *day*.

    Any item already holding the task is removed first. The new item goes in
    front of *before_item_id* when given (and present), otherwise at the end.
    Returns the touched days, *day* first.
    """
    task = state.tasks[task_id]
    touched = [day]
    for other_day, items in state.days.items():
        remaining = [i for i in items if i.task_id != task_id]
        if len(remaining) != len(items):
            state.days[other_day] = remaining
            touched.append(other_day)

    start = to_minutes(state.day_start)
    item = BoardItem(
        id=None,
        task_id=task.id,
        item_type="task",
        title=task.title,
        start_time=to_time_string(start),
        end_time=to_time_string(start + (task.estimated_duration or DEFAULT_TASK_MINUTES)),
    )
    items = state.days.setdefault(day, [])
    items.insert(_position(items, before_item_id), item)
    task.status = "scheduled"
    return _touch(state, touched)


def move_item_to_day(state: BoardState, item_id: int, day: date, before_item_id: int | None = None) -> list[date]:
    """Move a schedule item to another day (appended unless *before_item_id* is given).

    Returns ``[target, source]``, or ``[]`` when the item is already on *day*.
    """
    found = state.find_item(item_id)
    if found is None:
        raise KeyError(f"Unknown schedule item {item_id}")
    source, index = found
    if source == day:
        return []

    item = state.days[source].pop(index)
    items = state.days.setdefault(day, [])
    items.insert(_position(items, before_item_id), item)
    return _touch(state, [day, source])


def reorder_item(state: BoardState, item_id: int, over_item_id: int) -> list[date]:
    """Move an item to the slot of another item on the same day."""
    if item_id == over_item_id:
        return []
    found, over = state.find_item(item_id), state.find_item(over_item_id)
    if found is None or over is None:
        raise KeyError(f"Unknown schedule item {item_id if found is None else over_item_id}")
    (day, old_index), (over_day, new_index) = found, over
    if day != over_day:
        raise ValueError("Items are on different days")

    items = state.days[day]
    items.insert(new_index, items.pop(old_index))
    return _touch(state, [day])
