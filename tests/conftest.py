"""Test fixtures for the week planner."""

import json
import os
from datetime import date

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from weekplan.config import SUPABASE_JWT_SECRET, JWT_ALGORITHM
from weekplan.database import get_db, init_db
from weekplan.models import Task, Schedule, ScheduleItem
from weekplan.services import planner_service
from weekplan.services.llm_router import get_llm_router

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeLLMRouter:
    """Stands in for LLMRouter; replies are handed out in order."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.prompts: list[str] = []

    def queue(self, reply):
        self.replies.append(reply)

    async def route(self, messages, preferred_provider=None, model=None, max_tokens=2000):
        self.prompts.append(messages[-1]["content"])
        if not self.replies:
            return {"text": None, "provider": None, "model": None, "status": "error",
                    "error": "No language model provider is configured", "response_time": 0}
        reply = self.replies.pop(0)
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return {"text": reply, "provider": "fake", "model": "fake-1", "status": "success",
                "error": None, "response_time": 0.01}


def make_token(sub: str = USER_ID, **claims) -> str:
    payload = {"sub": sub, "aud": "authenticated", **claims}
    return jwt.encode(payload, SUPABASE_JWT_SECRET, algorithm=JWT_ALGORITHM)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def llm() -> FakeLLMRouter:
    return FakeLLMRouter()


@pytest.fixture(autouse=True)
def reset_busy_flags():
    planner_service._busy_users.clear()
    yield
    planner_service._busy_users.clear()


@pytest.fixture
def add_task(db):
    """Insert a task directly; keyword arguments override the defaults."""

    def _add(title: str, user_id: str = USER_ID, **fields) -> Task:
        task = Task(user_id=user_id, title=title, priority=fields.pop("priority", "medium"),
                    status=fields.pop("status", "pending"), **fields)
        db.add(task)
        db.commit()
        db.refresh(task)
        return task

    return _add


@pytest.fixture
def add_schedule(db):
    """Insert a schedule for *day* with ``(task, start, end, type)`` item tuples."""

    def _add(day: date, items, user_id: str = USER_ID) -> Schedule:
        schedule = Schedule(user_id=user_id, schedule_date=day, schedule_data={"suggestions": ["keep going"]})
        for task, start, end, item_type in items:
            schedule.items.append(ScheduleItem(
                task_id=task.id if task else None,
                start_time=start,
                end_time=end,
                item_type=item_type,
                title=task.title if task else item_type.title(),
                completed=False,
            ))
        db.add(schedule)
        db.commit()
        db.refresh(schedule)
        return schedule

    return _add


@pytest.fixture
def client(engine, llm) -> TestClient:
    from weekplan.main import app

    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _get_db():
        session = Session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_llm_router] = lambda: llm
    yield TestClient(app, headers={"Authorization": f"Bearer {make_token()}"})
    app.dependency_overrides.clear()
