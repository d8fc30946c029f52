from datetime import date
from typing import Optional, Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from weekplan.auth import get_current_user
from weekplan.database import get_db
from weekplan.services.llm_json import LLMError
from weekplan.services.llm_router import get_llm_router
from weekplan.services.pattern_service import PatternService
from weekplan.services.task_service import TaskService, ParsedTask

router = APIRouter(prefix="/api/v1/tasks", tags=["Tasks"])

Priority = Literal["high", "medium", "low"]


class TaskInput(BaseModel):
    input: str = Field(..., min_length=1)


class ConfirmTasks(BaseModel):
    tasks_to_add: list[ParsedTask]


class TaskUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    estimated_duration: Optional[int] = Field(default=None, gt=0)
    due_date: Optional[date] = None
    tags: Optional[list[str]] = None


class PriorityUpdate(BaseModel):
    priority: Priority


class CompleteTask(BaseModel):
    actual_duration: int = Field(..., gt=0)


@router.get("")
async def list_tasks(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return {"tasks": [t.to_dict() for t in TaskService.list_active(db, user_id)]}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("")
async def create_tasks(
    body: TaskInput,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
    llm_router=Depends(get_llm_router),
):
    """Parse natural language into tasks; hold everything back if any look like duplicates."""
    try:
        parsed = await TaskService.ai_parse(body.input, llm_router)
        existing = TaskService.list_active(db, user_id)
        unique, duplicates = TaskService.find_duplicates(existing, parsed)

        if duplicates:
            return {
                "has_duplicates": True,
                "duplicates": duplicates,
                "unique_tasks": unique,
                "message": f"Found {len(duplicates)} potential duplicate(s). Please review.",
            }

        created = TaskService.create_many(db, user_id, unique)
        return {"status": "success", "has_duplicates": False, "tasks": [t.to_dict() for t in created]}
    except LLMError as e:
        raise HTTPException(status_code=502, detail=f"Failed to parse tasks: {e}")
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to create tasks: {e}")


@router.put("")
async def add_confirmed_tasks(body: ConfirmTasks, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    """Insert tasks the user confirmed after duplicate review."""
    try:
        created = TaskService.create_many(db, user_id, [t.model_dump() for t in body.tasks_to_add])
        return {"status": "success", "tasks": [t.to_dict() for t in created]}
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to add tasks: {e}")


@router.get("/patterns")
async def list_patterns(user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        return {"patterns": [p.to_dict() for p in PatternService.get_patterns(db, user_id)]}
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/{task_id}")
async def get_task(task_id: int, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    task = TaskService.get_by_id(db, user_id, task_id)
    if not task:
        raise HTTPException(status_code=404, detail="Task not found")
    return task.to_dict()


@router.patch("/{task_id}")
async def update_task(
    task_id: int,
    body: TaskUpdate,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        task = TaskService.update(db, user_id, task_id, body.model_dump(exclude_unset=True))
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return {"status": "success", "data": task.to_dict()}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/{task_id}/priority")
async def update_priority(
    task_id: int,
    body: PriorityUpdate,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        task = TaskService.update_priority(db, user_id, task_id, body.priority)
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to update priority: {e}")


@router.patch("/{task_id}/complete")
async def complete_task(
    task_id: int,
    body: CompleteTask,
    user_id: str = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        task = TaskService.mark_completed(db, user_id, task_id, body.actual_duration)
        if not task:
            raise HTTPException(status_code=404, detail="Task not found")
        return {"status": "success", "data": task.to_dict()}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to complete task: {e}")


@router.delete("/{task_id}")
async def delete_task(task_id: int, user_id: str = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        if not TaskService.delete(db, user_id, task_id):
            raise HTTPException(status_code=404, detail="Task not found")
        return {"status": "success"}
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to delete task: {e}")
