from datetime import date
from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from weekplan.auth import get_current_user
from weekplan.config import DEFAULT_WORK_HOURS, MIN_WORK_HOURS, MAX_WORK_HOURS
from weekplan.database import get_db
from weekplan.services.distributor import NoDaysToScheduleError
from weekplan.services.llm_json import LLMError
from weekplan.services.llm_router import get_llm_router
from weekplan.services.planner_service import PlannerService, PlannerBusyError
from weekplan.services.schedule_service import ScheduleService
from weekplan.services.task_service import TaskService

router = APIRouter(prefix="/api/v1/schedules", tags=["Schedules"])


class GenerateDay(BaseModel):
    date: date
    task_ids: list[int] = Field(..., min_length=1)
    work_hours: int = Field(default=DEFAULT_WORK_HOURS, ge=MIN_WORK_HOURS, le=MAX_WORK_HOURS)


class GenerateWeek(BaseModel):
    work_hours: dict[date, int] = Field(default_factory=dict)


class HoursUpdate(BaseModel):
    hours: int = Field(..., ge=MIN_WORK_HOURS, le=MAX_WORK_HOURS)


class RolloverRequest(BaseModel):
    date: date


class ItemPayload(BaseModel):
    id: Optional[int] = None
    task_id: Optional[int] = None
    item_type: Literal["task", "break", "lunch"] = "task"
    title: str = ""
    start_time: str
    end_time: str
    completed: bool = False


class ItemsUpdate(BaseModel):
    items: list[ItemPayload]


@router.post("/generate")
async def generate_day(
    body: GenerateDay,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_router=Depends(get_llm_router),
):
    """Lay out one day from an explicit list of task ids."""
    try:
        tasks = TaskService.get_many(db, user_id, body.task_ids)
        if not tasks:
            raise HTTPException(status_code=404, detail="No matching tasks")
        schedule = await ScheduleService.generate_for_day(db, user_id, body.date, tasks, body.work_hours, llm_router)
        return {"status": "success", "schedule": schedule.to_dict()}
    except HTTPException:
        raise
    except LLMError as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate schedule: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate schedule: {e}")


@router.post("/generate-week")
async def generate_week(
    body: GenerateWeek,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_router=Depends(get_llm_router),
):
    """Distribute active tasks from today through Friday and generate each day.

    Days the LLM failed on carry an ``error`` and are listed under ``failed``;
    the request only fails (502) when no day could be generated.
    """
    try:
        days = await PlannerService.generate_week(db, user_id, llm_router, work_hours=body.work_hours)
        failed = [d["date"] for d in days if "error" in d]
        return {"status": "partial" if failed else "success", "days": days, "failed": failed}
    except PlannerBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except NoDaysToScheduleError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except LLMError as e:
        raise HTTPException(status_code=502, detail=f"Failed to generate schedules: {e}")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to generate schedules: {e}")


@router.post("/rollover")
async def rollover(body: RolloverRequest, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        tasks = TaskService.rollover(db, user_id, body.date)
        return {"status": "success", "rolled_over": len(tasks), "tasks": [t.to_dict() for t in tasks]}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to rollover tasks: {e}")


@router.get("/{day}")
async def get_schedule(day: date, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    schedule = ScheduleService.get_for_date(db, user_id, day)
    if not schedule:
        raise HTTPException(status_code=404, detail="No schedule for this date")
    return schedule.to_dict()


@router.put("/{day}/items")
async def save_items(
    day: date,
    body: ItemsUpdate,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Persist the board's ordered items for one day."""
    try:
        schedule = ScheduleService.replace_items(db, user_id, day, [i.model_dump() for i in body.items])
        return schedule.to_dict()
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.put("/{day}/hours")
async def change_hours(
    day: date,
    body: HoursUpdate,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_router=Depends(get_llm_router),
):
    """Regenerate one day with a new hour budget."""
    try:
        schedule = await PlannerService.change_day_hours(db, user_id, day, body.hours, llm_router)
        return {"status": "success", "schedule": schedule.to_dict()}
    except PlannerBusyError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except LLMError as e:
        raise HTTPException(status_code=502, detail=f"Failed to regenerate schedule: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))
