# Import all models so they register with SQLAlchemy Base.metadata
# This ensures Base.metadata.create_all() creates all tables

from weekplan.models.task import Task
from weekplan.models.schedule import Schedule
from weekplan.models.schedule_item import ScheduleItem
from weekplan.models.task_pattern import TaskPattern

__all__ = [
    "Task",
    "Schedule",
    "ScheduleItem",
    "TaskPattern",
]
