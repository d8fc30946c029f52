"""
pattern_service.py: Learned task durations
Keeps a per-user table of keyword sets with a running average duration and
completion rate, updated whenever a task is checked off. The patterns are fed
back to the schedule prompt as advisory context.
"""

import logging
import math
import re

from sqlalchemy.orm import Session

from weekplan.models.task_pattern import TaskPattern

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
})
MAX_KEYWORDS = 5

_NON_WORD_RE = re.compile(r"[^\w]")


def extract_keywords(title: str, description: str | None = None) -> list[str]:
    """Up to five distinct lowercase keywords, in order of first appearance."""
    text = f"{title} {description or ''}".lower()
    keywords: list[str] = []
    for raw in text.split():
        word = _NON_WORD_RE.sub("", raw)
        if len(word) <= 3 or word in STOP_WORDS or word in keywords:
            continue
        keywords.append(word)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class PatternService:
    @staticmethod
    def get_patterns(db: Session, user_id: str) -> list[TaskPattern]:
        return (
            db.query(TaskPattern)
            .filter(TaskPattern.user_id == user_id)
            .order_by(TaskPattern.id)
            .all()
        )

    @staticmethod
    def record_completion(db: Session, user_id: str, keywords: list[str], actual_minutes: int) -> TaskPattern:
        """Fold one completion into the first pattern sharing a keyword, or start a new one.

        Does not commit; the caller owns the transaction.
        """
        wanted = set(keywords)
        match = next(
            (p for p in PatternService.get_patterns(db, user_id) if wanted & set(p.task_keywords or [])),
            None,
        )

        if match is None:
            pattern = TaskPattern(
                user_id=user_id,
                task_keywords=list(keywords),
                average_duration=actual_minutes,
                times_scheduled=1,
                times_completed=1,
                completion_rate=1.0,
            )
            db.add(pattern)
            logger.info(f"New pattern for {keywords} ({actual_minutes} min)")
            return pattern

        count = match.times_scheduled or 0
        match.average_duration = _round_half_up(
            (match.average_duration * count + actual_minutes) / (count + 1)
        )
        match.times_scheduled = count + 1
        match.times_completed = (match.times_completed or 0) + 1
        match.completion_rate = match.times_completed / match.times_scheduled
        return match

    @staticmethod
    def pattern_context(patterns: list[TaskPattern]) -> str:
        """Prompt fragment describing historical durations; empty when nothing is learned yet."""
        if not patterns:
            return ""
        lines = [
            f'- Tasks matching "{", ".join(p.task_keywords or [])}" typically take '
            f"{p.average_duration} minutes ({p.completion_rate * 100:.0f}% completion rate)"
            for p in patterns
        ]
        return "\n\nHistorical patterns from previous tasks:\n" + "\n".join(lines)
