"""Task CRUD, completion and per-coach reporting."""
import logging
from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.task import Task
from app.models.task_document import ReportData, TaskDocument
from app.models.user import User
from app.models.user_task import UserTask, UserTaskStatus
from app.schemas.document_schemas import ReportDataResponse, TaskDocumentResponse
from app.schemas.task_schemas import (
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from app.services.coach_service import get_coach, get_coach_for_user
from app.utils.dates import to_naive_utc, utcnow
from app.utils.file_storage import delete_uploaded_file
from app.utils.task_status import TaskStatus, status_for_task

logger = logging.getLogger(__name__)


def _task_data(task: Task, now: Optional[datetime] = None) -> dict:
    data = {c.name: getattr(task, c.name) for c in task.__table__.columns}
    data["status"] = status_for_task(task, now=now)
    return data


def to_task_response(task: Task, now: Optional[datetime] = None) -> TaskResponse:
    return TaskResponse(**_task_data(task, now))


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def list_tasks(db: Session, coach_id: Optional[int] = None) -> List[Task]:
    query = db.query(Task)
    if coach_id is not None:
        query = query.filter(Task.coach_id == coach_id)
    return query.order_by(Task.start_date.asc(), Task.created_at.desc()).all()


def get_task(db: Session, task_id: int) -> Optional[Task]:
    return db.query(Task).filter(Task.id == task_id).first()


def get_task_detail(db: Session, task: Task) -> TaskDetailResponse:
    documents = (
        db.query(TaskDocument)
        .filter(TaskDocument.task_id == task.id)
        .order_by(TaskDocument.created_at.desc(), TaskDocument.id.desc())
        .all()
    )
    report = (
        db.query(ReportData)
        .filter(ReportData.task_id == task.id, ReportData.user_task_id.is_(None))
        .first()
    )
    return TaskDetailResponse(
        **_task_data(task),
        documents=[TaskDocumentResponse.model_validate(doc) for doc in documents],
        report_data=ReportDataResponse.model_validate(report) if report else None,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Writes
# ─────────────────────────────────────────────────────────────────────────────

def create_task(db: Session, payload: TaskCreate, created_by: User) -> Task:
    """
    Create a task. A coach creating a task without ``coach_id`` owns it.
    Raises LookupError for an unknown coach.
    """
    coach_id = payload.coach_id
    if coach_id is None:
        own = get_coach_for_user(db, created_by)
        coach_id = own.id if own else None
    elif not get_coach(db, coach_id):
        raise LookupError(f"Coach with ID {coach_id} not found")

    end_date = to_naive_utc(payload.end_date)
    task = Task(
        title=payload.title,
        description=payload.description,
        coach_id=coach_id,
        assigned_by=created_by.id,
        start_date=to_naive_utc(payload.start_date),
        end_date=end_date,
        deadline=to_naive_utc(payload.deadline) or end_date,
        allow_document_upload=payload.allow_document_upload,
        report_type=payload.report_type.value if payload.report_type else None,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    logger.info(f"[Task] Created id={task.id} '{task.title}' coach={coach_id} by user_id={created_by.id}")
    return task


def update_task(db: Session, task: Task, payload: TaskUpdate) -> Task:
    """
    Apply the provided fields. Raises ValueError when nothing is given or
    the resulting dates are out of order, LookupError for an unknown coach.
    """
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise ValueError("No fields to update")

    if data.get("coach_id") is not None and not get_coach(db, data["coach_id"]):
        raise LookupError(f"Coach with ID {data['coach_id']} not found")

    for field in ("start_date", "end_date", "deadline"):
        if field in data:
            if data[field] is None:
                raise ValueError(f"{field} cannot be cleared")
            data[field] = to_naive_utc(data[field])

    # a deadline that was defaulted from end_date keeps following it
    if "end_date" in data and "deadline" not in data and task.deadline == task.end_date:
        data["deadline"] = data["end_date"]

    start = data.get("start_date", task.start_date)
    end = data.get("end_date", task.end_date)
    deadline = data.get("deadline", task.deadline)
    if start.date() > end.date():
        raise ValueError("start_date must be on or before end_date")
    if start.date() > deadline.date():
        raise ValueError("deadline must be on or after start_date")

    if "report_type" in data and data["report_type"] is not None:
        data["report_type"] = data["report_type"].value
    if data.get("allow_document_upload") is None:
        data.pop("allow_document_upload", None)

    for field, value in data.items():
        setattr(task, field, value)

    db.commit()
    db.refresh(task)
    logger.info(f"[Task] Updated id={task.id} fields={sorted(data)}")
    return task


def set_task_completion(db: Session, task: Task, completed: bool) -> Task:
    task.completed_at = utcnow() if completed else None
    db.commit()
    db.refresh(task)
    return task


def delete_task(db: Session, task: Task) -> None:
    """Remove a task with its assignments, documents (and their files) and report data."""
    task_id = task.id
    file_paths = [
        row.file_path
        for row in db.query(TaskDocument.file_path).filter(TaskDocument.task_id == task_id).all()
    ]

    db.query(ReportData).filter(ReportData.task_id == task_id).delete(synchronize_session=False)
    db.query(TaskDocument).filter(TaskDocument.task_id == task_id).delete(synchronize_session=False)
    removed = db.query(UserTask).filter(UserTask.task_id == task_id).delete(synchronize_session=False)
    db.delete(task)
    db.commit()

    for path in file_paths:
        delete_uploaded_file(path)
    logger.info(f"[Task] Deleted id={task_id} with {removed} assignment(s) and {len(file_paths)} document(s)")


# ─────────────────────────────────────────────────────────────────────────────
# Per-coach reporting
# ─────────────────────────────────────────────────────────────────────────────

def get_task_stats(db: Session, coach_id: int, now: Optional[datetime] = None) -> TaskStatsResponse:
    tasks = list_tasks(db, coach_id)
    counts = Counter(status_for_task(task, now=now) for task in tasks)

    assignment_rows = (
        db.query(UserTask.status)
        .join(Task, Task.id == UserTask.task_id)
        .filter(Task.coach_id == coach_id)
        .all()
    )
    assignments_total = len(assignment_rows)
    assignments_completed = sum(1 for row in assignment_rows if row.status == UserTaskStatus.COMPLETED)

    return TaskStatsResponse(
        coach_id=coach_id,
        total=len(tasks),
        by_status={status.value: counts.get(status, 0) for status in TaskStatus},
        assignments_total=assignments_total,
        assignments_completed=assignments_completed,
        completion_rate=round(assignments_completed * 100 / assignments_total, 1) if assignments_total else 0.0,
    )


def get_tasks_by_date(db: Session, coach_id: int, now: Optional[datetime] = None) -> Dict[str, List[TaskResponse]]:
    """A coach's tasks grouped by deadline date (``YYYY-MM-DD``), earliest first."""
    tasks = (
        db.query(Task)
        .filter(Task.coach_id == coach_id)
        .order_by(Task.deadline.asc(), Task.created_at.desc())
        .all()
    )
    grouped: Dict[str, List[TaskResponse]] = {}
    for task in tasks:
        grouped.setdefault(task.deadline.date().isoformat(), []).append(to_task_response(task, now))
    return grouped
