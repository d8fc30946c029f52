from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, JSON

from weekplan.database import Base


PRIORITIES = ("high", "medium", "low")
STATUSES = ("pending", "scheduled", "completed", "rolled_over")
ACTIVE_STATUSES = ("pending", "rolled_over", "scheduled")


class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    title = Column(String(500), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(String(20), default="medium")  # high/medium/low
    status = Column(String(20), default="pending")  # pending/scheduled/completed/rolled_over
    estimated_duration = Column(Integer, nullable=True)  # minutes
    actual_duration = Column(Integer, nullable=True)  # minutes
    due_date = Column(Date, nullable=True)
    tags = Column(JSON, default=list)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    completed_at = Column(DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "estimated_duration": self.estimated_duration,
            "actual_duration": self.actual_duration,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "tags": self.tags or [],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
