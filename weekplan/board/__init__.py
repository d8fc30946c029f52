from weekplan.board.state import BoardItem, BoardTask, BoardState
from weekplan.board.controller import DragController, DragPhase, DragSource, DropTarget, DropResult

__all__ = [
    "BoardItem",
    "BoardTask",
    "BoardState",
    "DragController",
    "DragPhase",
    "DragSource",
    "DropTarget",
    "DropResult",
]
