"""User listing, analytics and account removal."""
import logging
from typing import List, Optional

from sqlalchemy import case, distinct, func, or_
from sqlalchemy.orm import Session

from app.models.coach import Coach, UserCoachMapping
from app.models.otp import OTPVerification
from app.models.task import Task
from app.models.task_document import ReportData, TaskDocument
from app.models.user import User, UserRole
from app.models.user_task import UserTask, UserTaskStatus
from app.services.coach_service import get_coach_of_user
from app.schemas.user_schemas import (
    CoachAnalyticsRow,
    TaskCounts,
    UserAnalyticsResponse,
    UserAnalyticsRow,
)

logger = logging.getLogger(__name__)


def _completed_sum():
    return func.coalesce(func.sum(case((UserTask.status == UserTaskStatus.COMPLETED, 1), else_=0)), 0)


def _incomplete_sum():
    return func.coalesce(func.sum(case((UserTask.status == UserTaskStatus.INCOMPLETE, 1), else_=0)), 0)


def list_users(db: Session, role: Optional[UserRole] = None, user_ids: Optional[List[int]] = None) -> List[User]:
    """All users, optionally narrowed to one role and/or a set of ids."""
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if user_ids is not None:
        query = query.filter(User.id.in_(user_ids))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def task_counts_for_user(db: Session, user_id: int) -> TaskCounts:
    total, completed, incomplete = (
        db.query(func.count(UserTask.id), _completed_sum(), _incomplete_sum())
        .filter(UserTask.user_id == user_id)
        .one()
    )
    percentage = round(completed * 100 / total) if total else 0
    return TaskCounts(
        total=total,
        completed=completed,
        incomplete=incomplete,
        completion_percentage=percentage,
    )


def get_user_analytics(db: Session, user: User) -> UserAnalyticsResponse:
    return UserAnalyticsResponse(
        user=user,
        coach=get_coach_of_user(db, user.id),
        tasks=task_counts_for_user(db, user.id),
    )


def _users_analytics_query(db: Session):
    return (
        db.query(
            User.id,
            User.name,
            User.email,
            User.role,
            User.created_at,
            Coach.name.label("coach_name"),
            func.count(distinct(UserTask.id)).label("total_tasks"),
            _completed_sum().label("completed_tasks"),
            _incomplete_sum().label("incomplete_tasks"),
        )
        .outerjoin(UserCoachMapping, UserCoachMapping.user_id == User.id)
        .outerjoin(Coach, Coach.id == UserCoachMapping.coach_id)
        .outerjoin(UserTask, UserTask.user_id == User.id)
        .filter(User.role == UserRole.USER)
        .group_by(User.id, User.name, User.email, User.role, User.created_at, Coach.name)
        .order_by(User.created_at.desc())
    )


def get_all_users_analytics(db: Session) -> List[UserAnalyticsRow]:
    rows = _users_analytics_query(db).all()
    return [UserAnalyticsRow(**dict(row._mapping)) for row in rows]


def get_coach_users_analytics(db: Session, coach_id: int) -> List[UserAnalyticsRow]:
    rows = _users_analytics_query(db).filter(UserCoachMapping.coach_id == coach_id).all()
    return [UserAnalyticsRow(**dict(row._mapping)) for row in rows]


def get_coaches_analytics(db: Session) -> List[CoachAnalyticsRow]:
    rows = (
        db.query(
            Coach.id,
            Coach.name,
            Coach.email,
            Coach.created_at,
            func.count(distinct(UserCoachMapping.user_id)).label("total_users"),
            func.count(distinct(UserTask.id)).label("total_tasks"),
            _completed_sum().label("completed_tasks"),
            _incomplete_sum().label("incomplete_tasks"),
        )
        .outerjoin(UserCoachMapping, UserCoachMapping.coach_id == Coach.id)
        .outerjoin(UserTask, UserTask.user_id == UserCoachMapping.user_id)
        .group_by(Coach.id, Coach.name, Coach.email, Coach.created_at)
        .order_by(Coach.created_at.desc())
        .all()
    )
    return [CoachAnalyticsRow(**dict(row._mapping)) for row in rows]


def purge_user(db: Session, user: User) -> List[str]:
    """
    Delete a user account and every row that references it: report data,
    documents, assignments, coach mapping and OTP records. Tasks and
    documents the user created elsewhere keep existing with the reference
    cleared.

    Does not commit. Returns the stored file paths of deleted documents so
    the caller can remove them once the transaction is committed.
    """
    user_task_ids = [row.id for row in db.query(UserTask.id).filter(UserTask.user_id == user.id).all()]

    owned_reports = or_(ReportData.user_id == user.id, ReportData.user_task_id.in_(user_task_ids))
    owned_documents = or_(TaskDocument.user_id == user.id, TaskDocument.user_task_id.in_(user_task_ids))

    documents = db.query(TaskDocument).filter(owned_documents).all()
    file_paths = [doc.file_path for doc in documents]
    document_ids = [doc.id for doc in documents]

    db.query(ReportData).filter(
        or_(owned_reports, ReportData.document_id.in_(document_ids))
    ).delete(synchronize_session=False)
    db.query(TaskDocument).filter(TaskDocument.id.in_(document_ids)).delete(synchronize_session=False)

    db.query(TaskDocument).filter(TaskDocument.uploaded_by == user.id).update(
        {TaskDocument.uploaded_by: None}, synchronize_session=False
    )
    db.query(Task).filter(Task.assigned_by == user.id).update(
        {Task.assigned_by: None}, synchronize_session=False
    )

    db.query(UserTask).filter(UserTask.user_id == user.id).delete(synchronize_session=False)
    db.query(UserCoachMapping).filter(UserCoachMapping.user_id == user.id).delete(synchronize_session=False)
    db.query(OTPVerification).filter(OTPVerification.email == user.email).delete(synchronize_session=False)

    db.delete(user)
    db.flush()

    logger.info(f"[User] Purged id={user.id} email={user.email} ({len(user_task_ids)} assignment(s))")
    return file_paths
