"""Task documents and report data, with per-assignment access control."""
import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.models.task import Task
from app.models.task_document import ReportData, TaskDocument
from app.models.user import User, UserRole
from app.models.user_task import UserTask
from app.schemas.document_schemas import ReportDataUpsert
from app.services.coach_service import coach_manages_user
from app.services.task_service import get_task
from app.utils.file_storage import delete_uploaded_file, save_uploaded_file

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Access
# ─────────────────────────────────────────────────────────────────────────────

def can_access_user(db: Session, actor: User, user_id: Optional[int]) -> bool:
    """ADMIN sees everyone, a COACH their mapped users, a USER only themselves."""
    if actor.role == UserRole.ADMIN:
        return True
    if user_id is None:
        return False
    if actor.role == UserRole.USER:
        return actor.id == user_id
    return coach_manages_user(db, actor, user_id)


def assert_can_access_user_task(db: Session, actor: User, user_task_id: int) -> UserTask:
    """
    Return the assignment when *actor* may see it.
    Raises LookupError when it does not exist and PermissionError otherwise.
    """
    user_task = db.query(UserTask).filter(UserTask.id == user_task_id).first()
    if not user_task:
        raise LookupError("User task not found")
    if not can_access_user(db, actor, user_task.user_id):
        raise PermissionError("You do not have access to this task assignment")
    return user_task


def assert_can_access_document(db: Session, actor: User, document: TaskDocument) -> None:
    """Task-level documents are visible to every role; assignment documents follow the assignment."""
    if document.user_task_id is not None:
        assert_can_access_user_task(db, actor, document.user_task_id)
    elif document.user_id is not None and not can_access_user(db, actor, document.user_id):
        raise PermissionError("You do not have access to this document")


# ─────────────────────────────────────────────────────────────────────────────
# Documents
# ─────────────────────────────────────────────────────────────────────────────

def upload_document(
    db: Session,
    actor: User,
    content: bytes,
    file_name: str,
    content_type: str,
    task_id: Optional[int] = None,
    user_task_id: Optional[int] = None,
) -> TaskDocument:
    """
    Store an uploaded file against a task, or against one assignment when
    *user_task_id* is given (the task is then taken from the assignment).
    Raises ValueError when neither id is given, LookupError for unknown
    ids and PermissionError when *actor* cannot reach the assignment.
    """
    if task_id is None and user_task_id is None:
        raise ValueError("Task ID or User Task ID is required")

    user_id = None
    if user_task_id is not None:
        user_task = assert_can_access_user_task(db, actor, user_task_id)
        if task_id is not None and task_id != user_task.task_id:
            raise ValueError("user_task_id does not belong to this task")
        task_id = user_task.task_id
        user_id = user_task.user_id

    if not get_task(db, task_id):
        raise LookupError("Task not found")

    file_path = save_uploaded_file(content, file_name, subdir=f"task_{task_id}")
    document = TaskDocument(
        task_id=task_id,
        user_task_id=user_task_id,
        user_id=user_id,
        file_name=file_name,
        file_path=file_path,
        file_type=content_type,
        file_size=len(content),
        uploaded_by=actor.id,
    )
    db.add(document)
    try:
        db.commit()
    except Exception:
        db.rollback()
        delete_uploaded_file(file_path)
        raise
    db.refresh(document)

    logger.info(
        f"[Document] Uploaded id={document.id} task={task_id} user_task={user_task_id} ({len(content)} bytes)",
        extra={"user_id": actor.id, "user_email": actor.email},
    )
    return document


def get_document(db: Session, document_id: int) -> Optional[TaskDocument]:
    return db.query(TaskDocument).filter(TaskDocument.id == document_id).first()


def list_task_documents(db: Session, actor: User, task_id: int) -> List[TaskDocument]:
    """Documents of a task; a USER only gets task-level ones and their own."""
    query = db.query(TaskDocument).filter(TaskDocument.task_id == task_id)
    if actor.role == UserRole.USER:
        query = query.filter(or_(TaskDocument.user_id.is_(None), TaskDocument.user_id == actor.id))
    return query.order_by(TaskDocument.created_at.desc(), TaskDocument.id.desc()).all()


def list_user_task_documents(db: Session, user_task_id: int) -> List[TaskDocument]:
    return (
        db.query(TaskDocument)
        .filter(TaskDocument.user_task_id == user_task_id)
        .order_by(TaskDocument.created_at.desc(), TaskDocument.id.desc())
        .all()
    )


def delete_document(db: Session, document: TaskDocument) -> None:
    """Remove the record, the report data pointing at it, then the file."""
    document_id, file_path = document.id, document.file_path
    db.query(ReportData).filter(ReportData.document_id == document_id).delete(synchronize_session=False)
    db.delete(document)
    db.commit()

    if not delete_uploaded_file(file_path):
        logger.warning(f"[Document] File for id={document_id} was already missing: {file_path}")
    logger.info(f"[Document] Deleted id={document_id}")


# ─────────────────────────────────────────────────────────────────────────────
# Report data
# ─────────────────────────────────────────────────────────────────────────────

_REPORT_FIELDS = (
    "document_id", "report_type", "patient_name", "age", "gender", "lab_name",
    "doctor_name", "blood_sugar_fasting", "blood_sugar_pp", "hba1c_value",
    "total_cholesterol", "extracted_data",
)


def upsert_report_data(db: Session, actor: User, task: Task, payload: ReportDataUpsert) -> tuple[ReportData, bool]:
    """
    Create or replace the report data of one assignment (``user_task_id``
    given) or of the task itself. Returns (row, created).
    """
    user_id = None
    if payload.user_task_id is not None:
        user_task = assert_can_access_user_task(db, actor, payload.user_task_id)
        if user_task.task_id != task.id:
            raise ValueError("user_task_id does not belong to this task")
        user_id = user_task.user_id

    if payload.document_id is not None:
        document = get_document(db, payload.document_id)
        if not document or document.task_id != task.id:
            raise LookupError("Document not found for this task")

    query = db.query(ReportData).filter(ReportData.task_id == task.id)
    if payload.user_task_id is None:
        query = query.filter(ReportData.user_task_id.is_(None))
    else:
        query = query.filter(ReportData.user_task_id == payload.user_task_id)
    report = query.first()
    created = report is None
    if created:
        report = ReportData(task_id=task.id, user_task_id=payload.user_task_id)
        db.add(report)

    report.user_id = user_id
    for field in _REPORT_FIELDS:
        setattr(report, field, getattr(payload, field))

    db.commit()
    db.refresh(report)
    logger.info(
        f"[ReportData] {'Created' if created else 'Updated'} id={report.id} task={task.id} "
        f"user_task={payload.user_task_id}",
        extra={"user_id": actor.id, "user_email": actor.email},
    )
    return report, created


def get_task_report_data(db: Session, task_id: int) -> Optional[ReportData]:
    return (
        db.query(ReportData)
        .filter(ReportData.task_id == task_id, ReportData.user_task_id.is_(None))
        .first()
    )


def get_user_task_report_data(db: Session, user_task_id: int) -> Optional[ReportData]:
    return db.query(ReportData).filter(ReportData.user_task_id == user_task_id).first()
