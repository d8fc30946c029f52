from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Date, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import relationship

from weekplan.database import Base


class Schedule(Base):
    __tablename__ = "schedules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), nullable=False, index=True)
    schedule_date = Column(Date, nullable=False)
    # {total_hours, work_blocks, break_blocks, suggestions}
    schedule_data = Column(JSON, default=dict)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    items = relationship(
        "ScheduleItem",
        back_populates="schedule",
        order_by="ScheduleItem.start_time",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        UniqueConstraint("user_id", "schedule_date", name="uq_schedule_user_date"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "schedule_date": self.schedule_date.isoformat(),
            "schedule_data": self.schedule_data or {},
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "items": [item.to_dict() for item in self.items],
        }
