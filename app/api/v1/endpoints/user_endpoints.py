"""User endpoints: listing, coach mapping and analytics"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import get_db
from app.errors.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.middleware.auth import get_current_user, require_admin, require_coach_or_admin
from app.models.user import User, UserRole
from app.schemas.auth_schemas import UserResponse
from app.schemas.coach_schemas import (
    AssignCoachRequest,
    CoachUsersResponse,
    UserCoachMappingResponse,
    UserCoachResponse,
)
from app.schemas.user_schemas import UserAnalyticsResponse, UserAnalyticsRow
from app.services.auth_service import get_user_by_id
from app.services.coach_service import (
    coach_manages_user,
    get_coach,
    get_coach_for_user,
    get_coach_of_user,
    get_coach_user_ids,
    get_coach_users,
    set_user_coach,
)
from app.services.user_service import (
    get_all_users_analytics,
    get_coach_users_analytics,
    get_user_analytics,
    list_users,
)
from app.utils.logger import log_assignment_operation

router = APIRouter()
logger = logging.getLogger(__name__)


def _visible_user(db: Session, current_user: User, user_id: int) -> User:
    """Load a user the caller may look at: ADMIN anyone, COACH mapped users, USER themselves."""
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundException(detail="User not found")

    if current_user.role == UserRole.ADMIN or current_user.id == user_id:
        return user
    if current_user.role == UserRole.COACH and coach_manages_user(db, current_user, user_id):
        return user
    raise ForbiddenException(detail="You do not have access to this user")


def _check_coach_scope(db: Session, current_user: User, coach_id: int) -> None:
    if not get_coach(db, coach_id):
        raise NotFoundException(detail="Coach not found")
    if current_user.role == UserRole.COACH:
        own = get_coach_for_user(db, current_user)
        if not own or own.id != coach_id:
            raise ForbiddenException(detail="Coaches can only view their own users")


@router.get("/", response_model=List[UserResponse])
async def get_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## List users

    **Role:** ADMIN (everyone) or COACH (only users mapped to them)

    ### Query parameters
    | Param | Type   | Description                    |
    |-------|--------|--------------------------------|
    | role  | string | `ADMIN`, `COACH` or `USER`     |
    """
    user_ids = None
    if current_user.role == UserRole.COACH:
        coach = get_coach_for_user(db, current_user)
        user_ids = get_coach_user_ids(db, coach.id) if coach else []
    return list_users(db, role=role, user_ids=user_ids)


@router.get("/analytics", response_model=List[UserAnalyticsRow])
async def users_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Task analytics for every USER

    **Role:** ADMIN

    One row per USER account with its coach and assignment counts.
    """
    return get_all_users_analytics(db)


@router.post("/assign-coach", response_model=UserCoachMappingResponse)
async def assign_coach(
    body: AssignCoachRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Map a user to a coach

    **Role:** ADMIN

    A user has at most one coach; assigning again replaces the earlier coach.

    ### Request
    `{ "user_id": 12, "coach_id": 3 }`
    """
    user = get_user_by_id(db, body.user_id)
    if not user:
        raise NotFoundException(detail="User not found")
    if user.role != UserRole.USER:
        raise BadRequestException(detail="Only USER accounts can be assigned to a coach")
    if not get_coach(db, body.coach_id):
        raise NotFoundException(detail="Coach not found")

    mapping = set_user_coach(db, user.id, body.coach_id)
    log_assignment_operation(
        "assign coach",
        f"user={user.id} coach={body.coach_id}",
        succeeded=1,
        user_id=current_user.id,
        user_email=current_user.email,
    )
    return mapping


@router.get("/coach/{coach_id}/users", response_model=CoachUsersResponse)
async def coach_users(
    coach_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Users mapped to a coach. **Role:** COACH (own profile) or ADMIN."""
    _check_coach_scope(db, current_user, coach_id)
    users = get_coach_users(db, coach_id)
    return CoachUsersResponse(coach=get_coach(db, coach_id), users=users, total=len(users))


@router.get("/coach/{coach_id}/analytics", response_model=List[UserAnalyticsRow])
async def coach_users_analytics(
    coach_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Per-user task analytics for one coach's users. **Role:** COACH (own profile) or ADMIN."""
    _check_coach_scope(db, current_user, coach_id)
    return get_coach_users_analytics(db, coach_id)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _visible_user(db, current_user, user_id)


@router.get("/{user_id}/analytics", response_model=UserAnalyticsResponse)
async def user_analytics(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## Task analytics for one user

    **Role:** ADMIN, the user's COACH, or the user themselves

    ### Response
    `{ "user": {...}, "coach": {...} | null, "tasks": { total, completed, incomplete, completion_percentage } }`
    """
    user = _visible_user(db, current_user, user_id)
    return get_user_analytics(db, user)


@router.get("/{user_id}/coach", response_model=UserCoachResponse)
async def user_coach(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """The coach a user is mapped to (`coach` is null when unassigned)."""
    user = _visible_user(db, current_user, user_id)
    return UserCoachResponse(user=user, coach=get_coach_of_user(db, user_id))
