"""Task status derivation.

Status is never stored. It is a pure function of today's date, the task's
dates and whether the work is complete, and is recomputed on every read:

    completed                        -> COMPLETED (whatever the dates say)
    dates missing / unparseable      -> PENDING
    today < start_date               -> OPEN
    start_date <= today <= deadline  -> ON_GOING
    today > deadline                 -> PENDING

Comparisons are made on calendar dates, not timestamps. ``deadline`` falls
back to ``end_date`` for rows that predate the deadline column.
"""
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union

from app.models.user_task import UserTaskStatus
from app.utils.dates import as_date, utcnow

DateLike = Union[None, str, date, datetime]


class TaskStatus(str, Enum):
    OPEN = "OPEN"
    ON_GOING = "ON_GOING"
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


def derive_task_status(
    start_date: DateLike,
    end_date: DateLike,
    deadline: DateLike,
    is_completed: bool,
    now: Optional[datetime] = None,
) -> TaskStatus:
    if is_completed:
        return TaskStatus.COMPLETED

    start = as_date(start_date)
    due = as_date(deadline) or as_date(end_date)
    if start is None or due is None:
        return TaskStatus.PENDING

    today = as_date(now) if now is not None else utcnow().date()

    if today < start:
        return TaskStatus.OPEN
    if today <= due:
        return TaskStatus.ON_GOING
    return TaskStatus.PENDING


def status_for_task(task, now: Optional[datetime] = None) -> TaskStatus:
    """Status of a Task row on its own (task-level completion)."""
    return derive_task_status(
        task.start_date or task.created_at,
        task.end_date,
        task.deadline,
        task.completed_at is not None,
        now=now,
    )


def status_for_assignment(user_task, task, now: Optional[datetime] = None) -> TaskStatus:
    """Status of one user's assignment: the task's dates, the user's completion."""
    return derive_task_status(
        task.start_date or task.deadline,
        task.end_date,
        task.deadline,
        user_task.status == UserTaskStatus.COMPLETED,
        now=now,
    )
