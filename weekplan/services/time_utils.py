"""
time_utils.py: "HH:MM" arithmetic for schedule blocks
Converts between clock strings and minute offsets and lays a sequence of
blocks end-to-end from a fixed day start.
"""

from weekplan.config import DAY_START


def to_minutes(time_str: str) -> int:
    """"HH:MM" (or "HH:MM:SS") -> minutes since midnight."""
    parts = time_str.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time: {time_str!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if hour < 0 or not 0 <= minute < 60:
        raise ValueError(f"Invalid time: {time_str!r}")
    return hour * 60 + minute


def to_time_string(minutes: int) -> str:
    """Minutes -> zero-padded "HH:MM". Values past midnight are not wrapped."""
    if minutes < 0:
        raise ValueError(f"Negative minute offset: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def duration_between(start: str, end: str) -> int:
    return to_minutes(end) - to_minutes(start)


def recalculate_contiguous(items: list[dict], day_start: str = DAY_START) -> list[dict]:
    """Assign back-to-back start/end times to *items* in order.

    Each item needs a ``duration`` (minutes). Returns new dicts with
    ``start_time``/``end_time`` set; the input list is left untouched.
    """
    cursor = to_minutes(day_start)
    result = []
    for item in items:
        end = cursor + item["duration"]
        result.append({**item, "start_time": to_time_string(cursor), "end_time": to_time_string(end)})
        cursor = end
    return result


def format_display_time(time_str: str) -> str:
    """Convert "HH:MM" or "HH:MM:SS" to "h:mm AM/PM"."""
    total = to_minutes(time_str)
    hour, minute = (total // 60) % 24, total % 60
    ampm = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}:{minute:02d} {ampm}"
