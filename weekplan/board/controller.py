"""
controller.py: Drag-and-drop gesture handling for the weekly board
One drag at a time: pointer-down arms it, moving past the activation distance
starts it, and the drop applies the matching board mutation. The local state
is updated first, then the touched days are persisted; a failed save rolls
the board back to how it looked before the drop.
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Awaitable, Callable, Literal

from weekplan.board.state import (
    BoardItem,
    BoardState,
    move_item_to_day,
    place_task,
    reorder_item,
)

logger = logging.getLogger(__name__)

ACTIVATION_DISTANCE = 8  # px

PersistFn = Callable[[dict[date, list[BoardItem]]], Awaitable[dict[date, list[BoardItem]]]]


class DragPhase(Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


@dataclass
class DragSource:
    kind: Literal["task", "item"]  # task-list entry or schedule item
    id: int


@dataclass
class DropTarget:
    kind: Literal["day", "item"]
    day: date
    item_id: int | None = None


@dataclass
class DropResult:
    applied: bool
    days: list[date] = field(default_factory=list)
    error: Exception | None = None


class DragController:
    """State machine over a single in-flight drag."""

    def __init__(
        self,
        state: BoardState,
        persist: PersistFn,
        on_error: Callable[[Exception], None] | None = None,
        activation_distance: float = ACTIVATION_DISTANCE,
    ):
        self.state = state
        self.persist = persist
        self.on_error = on_error
        self.activation_distance = activation_distance
        self.phase = DragPhase.IDLE
        self.source: DragSource | None = None
        self._origin: tuple[float, float] | None = None

    def pointer_down(self, source: DragSource, x: float, y: float):
        if self.phase is DragPhase.DRAGGING:
            return
        self.source = source
        self._origin = (x, y)

    def pointer_move(self, x: float, y: float) -> DragPhase:
        if self.phase is DragPhase.IDLE and self._origin is not None:
            if math.dist(self._origin, (x, y)) >= self.activation_distance:
                self.phase = DragPhase.DRAGGING
        return self.phase

    def cancel(self):
        self.phase = DragPhase.IDLE
        self.source = None
        self._origin = None

    async def drop(self, target: DropTarget | None) -> DropResult:
        """Finish the drag on *target* (None = released outside any drop zone)."""
        source = self.source if self.phase is DragPhase.DRAGGING else None
        self.cancel()
        if source is None or target is None:
            return DropResult(applied=False)

        snapshot = self.state.snapshot()
        try:
            touched = self._apply(source, target)
        except (KeyError, ValueError) as e:
            logger.warning(f"Ignoring drop of {source} on {target}: {e}")
            self.state.restore(snapshot)
            return DropResult(applied=False)
        if not touched:
            return DropResult(applied=False)

        try:
            saved = await self.persist({day: self.state.days[day] for day in touched})
        except Exception as e:
            logger.error(f"Failed to save board changes for {touched}: {e}")
            self.state.restore(snapshot)
            if self.on_error:
                self.on_error(e)
            return DropResult(applied=False, days=touched, error=e)

        # Reconcile with what the server stored (fresh ids for new items)
        for day, items in saved.items():
            self.state.days[day] = items
        return DropResult(applied=True, days=touched)

    def _apply(self, source: DragSource, target: DropTarget) -> list[date]:
        if source.kind == "task":
            if target.kind == "day":
                return place_task(self.state, source.id, target.day)
            over = self.state.find_item(target.item_id)
            if over is None:
                return []
            over_day, index = over
            if self.state.days[over_day][index].task_id == source.id:
                return []
            return place_task(self.state, source.id, over_day, before_item_id=target.item_id)

        found = self.state.find_item(source.id)
        if found is None:
            return []
        source_day, _ = found
        if target.kind == "day":
            return move_item_to_day(self.state, source.id, target.day)

        over = self.state.find_item(target.item_id)
        if over is None:
            return []
        if over[0] == source_day:
            return reorder_item(self.state, source.id, target.item_id)
        return move_item_to_day(self.state, source.id, over[0], before_item_id=target.item_id)
