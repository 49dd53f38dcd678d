"""Lead listing, coach assignment and removal."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.coach import Coach
from app.models.lead import Lead
from app.models.user import UserRole
from app.schemas.lead_schemas import LeadAssignFailure, LeadResponse
from app.services.auth_service import get_or_create_lead_user, get_user_by_email
from app.services.coach_service import get_coach, set_user_coach
from app.services.user_service import purge_user
from app.utils.file_storage import delete_uploaded_file
from app.utils.logger import log_assignment_operation

logger = logging.getLogger(__name__)


def to_lead_response(lead: Lead, coach: Optional[Coach]) -> LeadResponse:
    data = {c.name: getattr(lead, c.name) for c in lead.__table__.columns}
    data["coach_name"] = coach.name if coach else None
    data["coach_email"] = coach.email if coach else None
    return LeadResponse(**data)


def _with_coaches(db: Session, query) -> List[LeadResponse]:
    rows = query.outerjoin(Coach, Coach.id == Lead.assigned_coach_id).add_entity(Coach).all()
    return [to_lead_response(lead, coach) for lead, coach in rows]


def list_leads(db: Session, coach_id: Optional[int] = None) -> List[LeadResponse]:
    query = db.query(Lead)
    if coach_id is not None:
        query = query.filter(Lead.assigned_coach_id == coach_id)
    return _with_coaches(db, query.order_by(Lead.created_at.desc(), Lead.id.desc()))


def get_lead(db: Session, lead_id: int) -> Optional[Lead]:
    return db.query(Lead).filter(Lead.id == lead_id).first()


def get_lead_response(db: Session, lead: Lead) -> LeadResponse:
    coach = get_coach(db, lead.assigned_coach_id) if lead.assigned_coach_id else None
    return to_lead_response(lead, coach)


def _apply_assignment(db: Session, lead: Lead, coach_id: Optional[int]) -> bool:
    """
    Point *lead* at *coach_id* and keep the lead's USER account in step:
    assigning creates the account when missing and maps it to the coach;
    unassigning drops the mapping but keeps the account. A COACH or ADMIN
    account sharing the lead's email is never mapped.
    Returns True when a user account was created. Does not commit.
    """
    lead.assigned_coach_id = coach_id

    if coach_id is not None:
        user, created = get_or_create_lead_user(db, lead.name, lead.email, lead.phone_number)
        if user.role == UserRole.USER:
            set_user_coach(db, user.id, coach_id, commit=False)
        else:
            logger.warning(f"[Lead] id={lead.id} shares its email with a {user.role.value} account; not mapped")
        db.flush()
        if created:
            logger.info(f"[Lead] Created user account id={user.id} for lead id={lead.id}")
        return created

    user = get_user_by_email(db, lead.email)
    if user and user.role == UserRole.USER:
        set_user_coach(db, user.id, None, commit=False)
    db.flush()
    return False


def assign_lead(db: Session, lead: Lead, coach_id: Optional[int]) -> LeadResponse:
    """Raises LookupError for an unknown coach."""
    if coach_id is not None and not get_coach(db, coach_id):
        raise LookupError("Coach not found")

    created = _apply_assignment(db, lead, coach_id)
    db.commit()
    db.refresh(lead)

    log_assignment_operation(
        "assign lead" if coach_id else "unassign lead",
        f"lead={lead.id} coach={coach_id}",
        succeeded=1,
    )
    logger.info(f"[Lead] id={lead.id} assigned to coach={coach_id} (user created: {created})")
    return get_lead_response(db, lead)


def bulk_assign_leads(
    db: Session,
    lead_ids: List[int],
    coach_id: Optional[int],
) -> Tuple[List[LeadResponse], int, List[int], List[LeadAssignFailure]]:
    """
    Assign many leads to one coach (or unassign them).

    Each lead runs in its own savepoint: a conflicting account or mapping
    only fails that lead and the rest are committed. Unknown lead ids are
    skipped. Returns (leads, users_created, missing_ids, failed).
    Raises LookupError for an unknown coach.
    """
    if coach_id is not None and not get_coach(db, coach_id):
        raise LookupError("Coach not found")

    users_created = 0
    missing: List[int] = []
    found: List[int] = []
    failed: List[LeadAssignFailure] = []

    for lead_id in dict.fromkeys(lead_ids):
        lead = get_lead(db, lead_id)
        if not lead:
            missing.append(lead_id)
            continue

        try:
            with db.begin_nested():
                created = _apply_assignment(db, lead, coach_id)
        except IntegrityError as exc:
            failed.append(LeadAssignFailure(lead_id=lead_id, error="Conflicting user account or coach mapping"))
            logger.warning(f"[Lead] Bulk assign skipped id={lead_id}: {exc.orig}")
            continue

        users_created += int(created)
        found.append(lead_id)

    db.commit()

    log_assignment_operation(
        "bulk assign leads",
        f"coach={coach_id}",
        succeeded=len(found),
        skipped=len(missing),
        failed=len(failed),
    )
    leads = _with_coaches(db, db.query(Lead).filter(Lead.id.in_(found)).order_by(Lead.id.asc()))
    return leads, users_created, missing, failed


def _remove_lead(db: Session, lead: Lead) -> Tuple[bool, List[str]]:
    """
    Delete a lead and the USER account provisioned for it.
    Accounts with another role sharing the email are left alone.
    Returns (user_deleted, file_paths). Does not commit.
    """
    file_paths: List[str] = []
    user_deleted = False

    user = get_user_by_email(db, lead.email)
    if user and user.role == UserRole.USER:
        file_paths = purge_user(db, user)
        user_deleted = True

    db.delete(lead)
    return user_deleted, file_paths


def _remove_files(file_paths: List[str]) -> None:
    for path in file_paths:
        delete_uploaded_file(path)


def delete_lead(db: Session, lead: Lead) -> bool:
    """Returns True when the lead's user account was deleted as well."""
    lead_id = lead.id
    user_deleted, file_paths = _remove_lead(db, lead)
    db.commit()
    _remove_files(file_paths)
    logger.info(f"[Lead] Deleted id={lead_id} (user deleted: {user_deleted})")
    return user_deleted


def bulk_delete_leads(db: Session, lead_ids: List[int]) -> Tuple[int, int]:
    """Delete many leads in one transaction. Returns (deleted_count, users_deleted_count)."""
    deleted = 0
    users_deleted = 0
    file_paths: List[str] = []

    for lead_id in dict.fromkeys(lead_ids):
        lead = get_lead(db, lead_id)
        if not lead:
            continue
        user_deleted, paths = _remove_lead(db, lead)
        file_paths.extend(paths)
        deleted += 1
        users_deleted += int(user_deleted)

    db.commit()
    _remove_files(file_paths)
    logger.info(f"[Lead] Bulk deleted {deleted} lead(s), {users_deleted} user account(s)")
    return deleted, users_deleted
