"""
client.py: Async HTTP client for the scheduler API
Used by the board to load the week and to persist the days a drop touched.
"""

import logging
from datetime import date

import httpx

from weekplan.board.state import BoardItem, BoardState, BoardTask

logger = logging.getLogger(__name__)


class SchedulerClient:
    def __init__(self, base_url: str, token: str, transport: httpx.AsyncBaseTransport | None = None, timeout: float = 30.0):
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
            timeout=timeout,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def close(self):
        await self._client.aclose()

    async def list_tasks(self) -> list[BoardTask]:
        resp = await self._client.get("/api/v1/tasks")
        resp.raise_for_status()
        return [BoardTask.from_dict(t) for t in resp.json()["tasks"]]

    async def get_schedule(self, day: date) -> list[BoardItem]:
        """Items of *day* in order; an empty list when the day has no schedule yet."""
        resp = await self._client.get(f"/api/v1/schedules/{day.isoformat()}")
        if resp.status_code == 404:
            return []
        resp.raise_for_status()
        return [BoardItem.from_dict(i) for i in resp.json().get("items", [])]

    async def save_day(self, day: date, items: list[BoardItem]) -> list[BoardItem]:
        resp = await self._client.put(
            f"/api/v1/schedules/{day.isoformat()}/items",
            json={"items": [i.to_payload() for i in items]},
        )
        resp.raise_for_status()
        return [BoardItem.from_dict(i) for i in resp.json().get("items", [])]

    async def persist_days(self, changes: dict[date, list[BoardItem]]) -> dict[date, list[BoardItem]]:
        """Save each changed day in turn, target day first.

        A moved item is re-parented by the target day's save, so that save
        must finish before the source day is written.
        """
        saved = {}
        for day, items in changes.items():
            saved[day] = await self.save_day(day, items)
            logger.debug(f"Saved {len(items)} item(s) for {day.isoformat()}")
        return saved

    async def load_board(self, days: list[date]) -> BoardState:
        state = BoardState()
        state.tasks = {t.id: t for t in await self.list_tasks()}
        for day in days:
            state.days[day] = await self.get_schedule(day)
        return state
