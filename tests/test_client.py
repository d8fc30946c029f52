"""Tests for the HTTP client the board persists through."""

import json
from datetime import date

import httpx
import pytest

from weekplan.board import BoardItem
from weekplan.client import SchedulerClient

MON = date(2026, 10, 12)
TUE = date(2026, 10, 13)


def item_json(item_id, task_id, start, end, title="x") -> dict:
    return {"id": item_id, "schedule_id": 1, "task_id": task_id, "item_type": "task", "title": title,
            "start_time": start, "end_time": end, "completed": False, "task": None}


class FakeServer:
    def __init__(self):
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/v1/tasks":
            return httpx.Response(200, json={"tasks": [{"id": 4, "title": "Book flights", "priority": "high",
                                                        "status": "pending", "estimated_duration": 45}]})
        if path == f"/api/v1/schedules/{MON.isoformat()}":
            return httpx.Response(200, json={"id": 1, "items": [item_json(1, 1, "09:00", "10:00")]})
        if path.startswith("/api/v1/schedules/") and request.method == "GET":
            return httpx.Response(404, json={"detail": "No schedule for this date"})
        if path.endswith("/items") and request.method == "PUT":
            items = json.loads(request.content)["items"]
            saved = [item_json(i["id"] or 50 + n, i["task_id"], i["start_time"], i["end_time"], i["title"])
                     for n, i in enumerate(items)]
            return httpx.Response(200, json={"id": 2, "items": saved})
        return httpx.Response(500, json={"detail": "boom"})


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.mark.asyncio
async def test_load_board(server: FakeServer) -> None:
    async with SchedulerClient("http://test/", "tok", transport=httpx.MockTransport(server)) as client:
        state = await client.load_board([MON, TUE])

    assert state.tasks[4].title == "Book flights"
    assert [i.id for i in state.days[MON]] == [1]
    assert state.days[TUE] == []
    assert server.requests[0].headers["Authorization"] == "Bearer tok"


@pytest.mark.asyncio
async def test_persist_days_saves_in_order_and_returns_server_items(server: FakeServer) -> None:
    changes = {
        TUE: [BoardItem(None, 4, "task", "Book flights", "09:00", "09:45")],
        MON: [BoardItem(1, 1, "task", "Write report", "09:00", "10:00")],
    }
    async with SchedulerClient("http://test", "tok", transport=httpx.MockTransport(server)) as client:
        saved = await client.persist_days(changes)

    assert [r.url.path for r in server.requests] == [
        f"/api/v1/schedules/{TUE.isoformat()}/items",
        f"/api/v1/schedules/{MON.isoformat()}/items",
    ]
    assert saved[TUE][0].id == 50
    assert saved[MON][0].id == 1


@pytest.mark.asyncio
async def test_server_error_raises() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500, json={"detail": "boom"}))
    async with SchedulerClient("http://test", "tok", transport=transport) as client:
        with pytest.raises(httpx.HTTPStatusError):
            await client.save_day(MON, [])
