"""Task assignments: who has which task, and how far they got."""
import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.task import Task
from app.models.task_document import ReportData, TaskDocument
from app.models.user import User
from app.models.user_task import UserTask, UserTaskStatus
from app.schemas.user_task_schemas import (
    AssignmentFailure,
    BulkAssignResponse,
    UserTaskResponse,
    UserTaskStatsResponse,
)
from app.services.task_service import get_task, to_task_response
from app.utils.dates import to_naive_utc, utcnow
from app.utils.file_storage import delete_uploaded_file
from app.utils.logger import log_assignment_operation
from app.utils.task_status import TaskStatus, status_for_assignment

logger = logging.getLogger(__name__)


class AlreadyAssignedError(ValueError):
    def __init__(self, user_id: int, task_id: int):
        super().__init__(f"Task {task_id} is already assigned to user {user_id}")
        self.user_id = user_id
        self.task_id = task_id


def to_user_task_response(
    user_task: UserTask,
    task: Task,
    user: Optional[User] = None,
    now: Optional[datetime] = None,
) -> UserTaskResponse:
    data = {c.name: getattr(user_task, c.name) for c in user_task.__table__.columns}
    data["task_status"] = status_for_assignment(user_task, task, now=now)
    data["task"] = to_task_response(task, now=now)
    if user is not None:
        data["user_name"] = user.name
        data["user_email"] = user.email
    return UserTaskResponse(**data)


def _assignment_rows(db: Session):
    return (
        db.query(UserTask, Task, User)
        .join(Task, Task.id == UserTask.task_id)
        .join(User, User.id == UserTask.user_id)
    )


def _responses(rows: Iterable, now: Optional[datetime] = None) -> List[UserTaskResponse]:
    return [to_user_task_response(ut, task, user, now=now) for ut, task, user in rows]


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def get_user_task(db: Session, user_task_id: int) -> Optional[UserTask]:
    return db.query(UserTask).filter(UserTask.id == user_task_id).first()


def get_user_task_response(db: Session, user_task: UserTask) -> UserTaskResponse:
    task = get_task(db, user_task.task_id)
    user = db.query(User).filter(User.id == user_task.user_id).first()
    return to_user_task_response(user_task, task, user)


def list_user_tasks(db: Session, user_id: int, now: Optional[datetime] = None) -> List[UserTaskResponse]:
    """A user's assignments, nearest deadline first."""
    rows = (
        _assignment_rows(db)
        .filter(UserTask.user_id == user_id)
        .order_by(Task.deadline.asc(), UserTask.id.asc())
        .all()
    )
    return _responses(rows, now)


def list_all_user_tasks(db: Session, user_ids: Optional[List[int]] = None) -> List[UserTaskResponse]:
    """Every assignment, or only those belonging to *user_ids* when given."""
    query = _assignment_rows(db)
    if user_ids is not None:
        query = query.filter(UserTask.user_id.in_(user_ids))
    rows = query.order_by(UserTask.created_at.desc(), UserTask.id.desc()).all()
    return _responses(rows)


def get_user_task_stats(db: Session, user_id: int, now: Optional[datetime] = None) -> UserTaskStatsResponse:
    rows = (
        db.query(UserTask, Task)
        .join(Task, Task.id == UserTask.task_id)
        .filter(UserTask.user_id == user_id)
        .all()
    )
    statuses = [status_for_assignment(ut, task, now=now) for ut, task in rows]
    total = len(rows)
    completed = sum(1 for ut, _ in rows if ut.status == UserTaskStatus.COMPLETED)

    return UserTaskStatsResponse(
        user_id=user_id,
        total=total,
        completed=completed,
        incomplete=total - completed,
        open=statuses.count(TaskStatus.OPEN),
        on_going=statuses.count(TaskStatus.ON_GOING),
        pending=statuses.count(TaskStatus.PENDING),
        completion_rate=round(completed * 100 / total, 1) if total else 0.0,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Assignment
# ─────────────────────────────────────────────────────────────────────────────

def _find_assignment(db: Session, user_id: int, task_id: int) -> Optional[UserTask]:
    return (
        db.query(UserTask)
        .filter(UserTask.user_id == user_id, UserTask.task_id == task_id)
        .first()
    )


def assign_task(db: Session, user_id: int, task_id: int) -> UserTask:
    """
    Give one user one task.
    Raises LookupError for an unknown user or task and AlreadyAssignedError
    when the pair exists.
    """
    if not db.query(User.id).filter(User.id == user_id).first():
        raise LookupError("User not found")
    if not get_task(db, task_id):
        raise LookupError("Task not found")
    if _find_assignment(db, user_id, task_id):
        raise AlreadyAssignedError(user_id, task_id)

    user_task = UserTask(user_id=user_id, task_id=task_id, status=UserTaskStatus.INCOMPLETE)
    db.add(user_task)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyAssignedError(user_id, task_id)
    db.refresh(user_task)

    log_assignment_operation("assign task", f"task={task_id} user={user_id}", succeeded=1)
    return user_task


def bulk_assign_task(
    db: Session,
    task_id: int,
    user_ids: List[int],
    actor: Optional[User] = None,
) -> BulkAssignResponse:
    """
    Assign one task to many users.

    Running it again with the same ids creates nothing new: existing pairs
    are reported under ``already_assigned`` and left untouched. Each insert
    runs in its own savepoint, so an unknown user or a lost race only
    affects that user. Raises LookupError for an unknown task.
    """
    task = get_task(db, task_id)
    if not task:
        raise LookupError("Task not found")

    created: List[UserTask] = []
    already_assigned: List[int] = []
    failed: List[AssignmentFailure] = []

    for user_id in dict.fromkeys(user_ids):
        if not db.query(User.id).filter(User.id == user_id).first():
            failed.append(AssignmentFailure(user_id=user_id, error="User not found"))
            continue

        if _find_assignment(db, user_id, task_id):
            already_assigned.append(user_id)
            continue

        try:
            with db.begin_nested():
                user_task = UserTask(user_id=user_id, task_id=task_id, status=UserTaskStatus.INCOMPLETE)
                db.add(user_task)
                db.flush()
        except IntegrityError:
            # a concurrent request inserted the same pair
            already_assigned.append(user_id)
            continue

        created.append(user_task)

    db.commit()

    users = {
        user.id: user
        for user in db.query(User).filter(User.id.in_([ut.user_id for ut in created])).all()
    }
    assigned = []
    for user_task in created:
        db.refresh(user_task)
        assigned.append(to_user_task_response(user_task, task, users.get(user_task.user_id)))

    log_assignment_operation(
        "bulk assign task",
        f"task={task_id}",
        succeeded=len(created),
        skipped=len(already_assigned),
        failed=len(failed),
        user_id=actor.id if actor else None,
        user_email=actor.email if actor else None,
    )

    message = f"Assigned task to {len(created)} user(s)"
    if already_assigned:
        message += f", {len(already_assigned)} already assigned"
    if failed:
        message += f", {len(failed)} failed"

    return BulkAssignResponse(
        message=message,
        assigned=assigned,
        succeeded=[ut.user_id for ut in created],
        already_assigned=already_assigned,
        failed=failed,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Progress
# ─────────────────────────────────────────────────────────────────────────────

def update_user_task_status(
    db: Session,
    user_task: UserTask,
    status: UserTaskStatus,
    remarks: Optional[str] = None,
    done_date: Optional[datetime] = None,
) -> UserTask:
    """
    COMPLETED stamps ``completed_at``, ``done_date`` (now unless given) and
    ``remarks``; INCOMPLETE clears all three.
    """
    user_task.status = status
    if status == UserTaskStatus.COMPLETED:
        now = utcnow()
        user_task.completed_at = now
        user_task.done_date = to_naive_utc(done_date) or now
        user_task.remarks = remarks
    else:
        user_task.completed_at = None
        user_task.done_date = None
        user_task.remarks = None

    db.commit()
    db.refresh(user_task)
    logger.info(f"[UserTask] id={user_task.id} marked {status.value}")
    return user_task


def remove_user_task(db: Session, user_task: UserTask) -> None:
    """Delete an assignment together with the documents and report data filed against it."""
    user_task_id = user_task.id
    documents = db.query(TaskDocument.id, TaskDocument.file_path).filter(TaskDocument.user_task_id == user_task_id).all()
    document_ids = [row.id for row in documents]
    file_paths = [row.file_path for row in documents]

    db.query(ReportData).filter(
        or_(ReportData.user_task_id == user_task_id, ReportData.document_id.in_(document_ids))
    ).delete(synchronize_session=False)
    db.query(TaskDocument).filter(TaskDocument.id.in_(document_ids)).delete(synchronize_session=False)
    db.delete(user_task)
    db.commit()

    for path in file_paths:
        delete_uploaded_file(path)
    logger.info(f"[UserTask] Removed id={user_task_id}")
