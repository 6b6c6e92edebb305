"""Exam session lifecycle as an explicit transition table.

    CREATED --START--> IN_PROGRESS --ANSWER--> IN_PROGRESS
                           |--COMPLETE--> COMPLETED
                           |--ABANDON---> ABANDONED
                           |--EXPIRE----> EXPIRED

Terminal states accept nothing. Every (status, event) pair is covered: either
a target state, SessionTerminalError, or InvalidTransitionError.
"""

from datetime import datetime
from enum import Enum as PyEnum

from studyhub.learning_engine.errors import InvalidTransitionError, SessionTerminalError
from studyhub.learning_engine.utils import ensure_utc


class ExamStatus(str, PyEnum):
    CREATED = "CREATED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    ABANDONED = "ABANDONED"
    EXPIRED = "EXPIRED"


class ExamEvent(str, PyEnum):
    START = "START"
    ANSWER = "ANSWER"
    COMPLETE = "COMPLETE"
    ABANDON = "ABANDON"
    EXPIRE = "EXPIRE"


TERMINAL_STATUSES = frozenset({ExamStatus.COMPLETED, ExamStatus.ABANDONED, ExamStatus.EXPIRED})

TRANSITIONS: dict[tuple[ExamStatus, ExamEvent], ExamStatus] = {
    (ExamStatus.CREATED, ExamEvent.START): ExamStatus.IN_PROGRESS,
    (ExamStatus.IN_PROGRESS, ExamEvent.ANSWER): ExamStatus.IN_PROGRESS,
    (ExamStatus.IN_PROGRESS, ExamEvent.COMPLETE): ExamStatus.COMPLETED,
    (ExamStatus.IN_PROGRESS, ExamEvent.ABANDON): ExamStatus.ABANDONED,
    (ExamStatus.IN_PROGRESS, ExamEvent.EXPIRE): ExamStatus.EXPIRED,
}


def is_terminal(status: ExamStatus) -> bool:
    return ExamStatus(status) in TERMINAL_STATUSES


def transition(status: ExamStatus, event: ExamEvent, session_id=None) -> ExamStatus:
    """
    Next status for ``event`` applied in ``status``.

    Raises:
        SessionTerminalError: the session already ended
        InvalidTransitionError: the event is not valid in this status
    """
    status = ExamStatus(status)
    event = ExamEvent(event)

    if status in TERMINAL_STATUSES:
        raise SessionTerminalError(session_id, status.value)

    target = TRANSITIONS.get((status, event))
    if target is None:
        raise InvalidTransitionError(status.value, event.value)
    return target


def elapsed_seconds(started_at: datetime, now: datetime) -> float:
    return (ensure_utc(now) - ensure_utc(started_at)).total_seconds()


def is_timed_out(started_at: datetime | None, time_limit_seconds: int, now: datetime) -> bool:
    """True once ``now - started_at >= time_limit_seconds``. Untimed (0) never times out."""
    if not time_limit_seconds or started_at is None:
        return False
    return elapsed_seconds(started_at, now) >= time_limit_seconds


def time_remaining(started_at: datetime | None, time_limit_seconds: int, now: datetime) -> int | None:
    """Whole seconds left, clamped at 0; None for untimed sessions."""
    if not time_limit_seconds:
        return None
    if started_at is None:
        return time_limit_seconds
    remaining = time_limit_seconds - elapsed_seconds(started_at, now)
    return max(0, int(remaining))
