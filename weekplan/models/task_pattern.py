from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Float, DateTime, JSON

from weekplan.database import Base


class TaskPattern(Base):
    __tablename__ = "task_patterns"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    task_keywords = Column(JSON, default=list)
    average_duration = Column(Integer, nullable=False)  # minutes
    times_scheduled = Column(Integer, default=0)
    times_completed = Column(Integer, default=0)
    completion_rate = Column(Float, default=0.0)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "task_keywords": self.task_keywords or [],
            "average_duration": self.average_duration,
            "times_scheduled": self.times_scheduled,
            "times_completed": self.times_completed,
            "completion_rate": self.completion_rate,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
