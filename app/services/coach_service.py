"""Coach profiles, user -> coach mapping and coach-scoped lookups."""
import logging
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.coach import Coach, UserCoachMapping
from app.models.user import User, UserRole
from app.schemas.coach_schemas import CoachCreate, CoachUpdate

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Lookups
# ─────────────────────────────────────────────────────────────────────────────

def list_coaches(db: Session) -> List[Coach]:
    return db.query(Coach).order_by(Coach.name.asc()).all()


def get_coach(db: Session, coach_id: int) -> Optional[Coach]:
    return db.query(Coach).filter(Coach.id == coach_id).first()


def get_coach_by_email(db: Session, email: str) -> Optional[Coach]:
    return db.query(Coach).filter(func.lower(Coach.email) == email.strip().lower()).first()


def get_coach_for_user(db: Session, user: User) -> Optional[Coach]:
    """Coach profile of a COACH account (linked by email). None for other roles."""
    if user.role != UserRole.COACH:
        return None
    return get_coach_by_email(db, user.email)


def get_mapping(db: Session, user_id: int) -> Optional[UserCoachMapping]:
    return db.query(UserCoachMapping).filter(UserCoachMapping.user_id == user_id).first()


def get_coach_of_user(db: Session, user_id: int) -> Optional[Coach]:
    """The coach a user is mapped to, if any."""
    mapping = get_mapping(db, user_id)
    if not mapping:
        return None
    return get_coach(db, mapping.coach_id)


def get_coach_user_ids(db: Session, coach_id: int) -> List[int]:
    rows = db.query(UserCoachMapping.user_id).filter(UserCoachMapping.coach_id == coach_id).all()
    return [row.user_id for row in rows]


def get_coach_users(db: Session, coach_id: int) -> List[User]:
    return (
        db.query(User)
        .join(UserCoachMapping, UserCoachMapping.user_id == User.id)
        .filter(UserCoachMapping.coach_id == coach_id)
        .order_by(User.name.asc())
        .all()
    )


def coach_manages_user(db: Session, coach_user: User, user_id: int) -> bool:
    """True when *coach_user* is a COACH and *user_id* is mapped to their profile."""
    coach = get_coach_for_user(db, coach_user)
    if not coach:
        return False
    mapping = get_mapping(db, user_id)
    return mapping is not None and mapping.coach_id == coach.id


# ─────────────────────────────────────────────────────────────────────────────
# Mutations
# ─────────────────────────────────────────────────────────────────────────────

def create_coach(db: Session, payload: CoachCreate) -> Coach:
    """Raises ValueError when the email is already taken."""
    if get_coach_by_email(db, payload.email):
        raise ValueError("A coach with this email already exists")

    coach = Coach(name=payload.name, email=payload.email)
    db.add(coach)
    db.commit()
    db.refresh(coach)
    logger.info(f"[Coach] Created id={coach.id} email={coach.email}")
    return coach


def update_coach(db: Session, coach: Coach, payload: CoachUpdate) -> Coach:
    """Raises ValueError when the new email belongs to another coach."""
    data = payload.model_dump(exclude_unset=True)

    new_email = data.get("email")
    if new_email and new_email != coach.email:
        other = get_coach_by_email(db, new_email)
        if other and other.id != coach.id:
            raise ValueError("A coach with this email already exists")

    for field, value in data.items():
        if value is not None:
            setattr(coach, field, value)

    db.commit()
    db.refresh(coach)
    logger.info(f"[Coach] Updated id={coach.id}")
    return coach


def set_user_coach(db: Session, user_id: int, coach_id: Optional[int], commit: bool = True) -> Optional[UserCoachMapping]:
    """
    Map a user to a coach, replacing any earlier mapping.
    ``coach_id=None`` removes the mapping and returns None.
    """
    mapping = get_mapping(db, user_id)

    if coach_id is None:
        if mapping:
            db.delete(mapping)
    elif mapping:
        mapping.coach_id = coach_id
    else:
        mapping = UserCoachMapping(user_id=user_id, coach_id=coach_id)
        db.add(mapping)

    if commit:
        db.commit()
        if coach_id is not None:
            db.refresh(mapping)
    else:
        db.flush()

    return mapping if coach_id is not None else None
