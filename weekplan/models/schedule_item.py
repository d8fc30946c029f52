from sqlalchemy import Column, Integer, String, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from weekplan.database import Base


ITEM_TYPES = ("task", "break", "lunch")


class ScheduleItem(Base):
    __tablename__ = "schedule_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    schedule_id = Column(Integer, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=True, index=True)
    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)
    item_type = Column(String(10), default="task")  # task/break/lunch
    title = Column(String(500), default="")
    completed = Column(Boolean, default=False)

    schedule = relationship("Schedule", back_populates="items")
    task = relationship("Task")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "schedule_id": self.schedule_id,
            "task_id": self.task_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "item_type": self.item_type,
            "title": self.title,
            "completed": bool(self.completed),
            "task": self.task.to_dict() if self.task else None,
        }
