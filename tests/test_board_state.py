"""Tests for the local board model."""

from datetime import date

import pytest

from weekplan.board.state import (
    BoardItem,
    BoardState,
    BoardTask,
    move_item_to_day,
    place_task,
    recompute_day,
    reorder_item,
)

MON = date(2026, 10, 12)
TUE = date(2026, 10, 13)


@pytest.fixture
def state() -> BoardState:
    return BoardState(
        days={
            MON: [
                BoardItem(1, 1, "task", "Write report", "09:00", "10:00"),
                BoardItem(2, None, "break", "Short break", "10:00", "10:15"),
                BoardItem(3, 2, "task", "Call bank", "10:15", "10:45"),
            ],
            TUE: [BoardItem(4, 3, "task", "Plan sprint", "09:00", "09:30")],
        },
        tasks={
            1: BoardTask(1, "Write report", status="scheduled", estimated_duration=60),
            2: BoardTask(2, "Call bank", status="scheduled", estimated_duration=30),
            3: BoardTask(3, "Plan sprint", status="scheduled", estimated_duration=30),
            4: BoardTask(4, "Book flights", estimated_duration=45),
            5: BoardTask(5, "Gym"),
        },
        day_start="09:00",
    )


def slots(state: BoardState, day: date) -> list[tuple]:
    return [(i.title, i.start_time, i.end_time) for i in state.days[day]]


def test_item_round_trips_through_payload() -> None:
    item = BoardItem.from_dict({"id": 7, "task_id": 2, "title": "x", "start_time": "09:00", "end_time": "09:45", "extra": 1})
    assert item.item_type == "task"
    assert item.duration == 45
    assert item.to_payload()["id"] == 7


def test_place_task_appends_with_estimate(state) -> None:
    assert place_task(state, 4, TUE) == [TUE]
    assert slots(state, TUE) == [("Plan sprint", "09:00", "09:30"), ("Book flights", "09:30", "10:15")]
    assert state.days[TUE][-1].id is None
    assert state.tasks[4].status == "scheduled"


def test_place_task_without_estimate_uses_default(state) -> None:
    place_task(state, 5, TUE)
    assert slots(state, TUE)[-1] == ("Gym", "09:30", "10:30")


def test_place_task_before_item_removes_it_elsewhere(state) -> None:
    assert place_task(state, 1, TUE, before_item_id=4) == [TUE, MON]
    assert slots(state, TUE) == [("Write report", "09:00", "10:00"), ("Plan sprint", "10:00", "10:30")]
    assert slots(state, MON) == [("Short break", "09:00", "09:15"), ("Call bank", "09:15", "09:45")]


def test_place_task_on_new_day(state) -> None:
    wed = date(2026, 10, 14)
    assert place_task(state, 4, wed) == [wed]
    assert slots(state, wed) == [("Book flights", "09:00", "09:45")]


def test_move_item_to_other_day(state) -> None:
    assert move_item_to_day(state, 3, TUE) == [TUE, MON]
    assert slots(state, TUE) == [("Plan sprint", "09:00", "09:30"), ("Call bank", "09:30", "10:00")]
    assert slots(state, MON) == [("Write report", "09:00", "10:00"), ("Short break", "10:00", "10:15")]


def test_move_item_before_target_item(state) -> None:
    move_item_to_day(state, 2, TUE, before_item_id=4)
    assert slots(state, TUE) == [("Short break", "09:00", "09:15"), ("Plan sprint", "09:15", "09:45")]


def test_move_item_to_same_day_is_noop(state) -> None:
    before = slots(state, MON)
    assert move_item_to_day(state, 3, MON) == []
    assert slots(state, MON) == before


def test_move_unknown_item(state) -> None:
    with pytest.raises(KeyError):
        move_item_to_day(state, 99, TUE)


def test_reorder_up_and_down(state) -> None:
    assert reorder_item(state, 3, 1) == [MON]
    assert slots(state, MON) == [
        ("Call bank", "09:00", "09:30"),
        ("Write report", "09:30", "10:30"),
        ("Short break", "10:30", "10:45"),
    ]
    reorder_item(state, 1, 2)
    assert [i.id for i in state.days[MON]] == [3, 2, 1]


def test_reorder_edge_cases(state) -> None:
    assert reorder_item(state, 3, 3) == []
    with pytest.raises(ValueError):
        reorder_item(state, 3, 4)
    with pytest.raises(KeyError):
        reorder_item(state, 3, 99)


def test_recompute_day_closes_gaps(state) -> None:
    state.days[MON][2].start_time, state.days[MON][2].end_time = "13:00", "13:30"
    recompute_day(state, MON)
    assert slots(state, MON)[-1] == ("Call bank", "10:15", "10:45")


def test_snapshot_restore(state) -> None:
    snapshot = state.snapshot()
    move_item_to_day(state, 3, TUE)
    place_task(state, 4, MON)
    state.restore(snapshot)

    assert [i.id for i in state.days[MON]] == [1, 2, 3]
    assert [i.id for i in state.days[TUE]] == [4]
    assert state.tasks[4].status == "pending"
