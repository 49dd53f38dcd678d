"""Coach endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.errors.exceptions import ConflictException, ForbiddenException, NotFoundException
from app.middleware.auth import require_admin, require_coach_or_admin
from app.models.user import User, UserRole
from app.schemas.coach_schemas import CoachCreate, CoachResponse, CoachUpdate
from app.schemas.lead_schemas import LeadResponse
from app.schemas.user_schemas import CoachAnalyticsRow
from app.services.coach_service import (
    create_coach,
    get_coach,
    get_coach_for_user,
    list_coaches,
    update_coach,
)
from app.services.lead_service import list_leads
from app.services.user_service import get_coaches_analytics

router = APIRouter()


@router.get("/", response_model=List[CoachResponse])
async def get_coaches(db: Session = Depends(get_db)):
    """
    ## List coaches

    **Role:** Public.

    Alphabetical by name. Used to fill coach pickers on signup and admin screens.
    """
    return list_coaches(db)


@router.get("/analytics/all", response_model=List[CoachAnalyticsRow])
async def coaches_analytics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Analytics for every coach

    **Role:** ADMIN

    ### Response (per coach)
    | Field            | Description                         |
    |------------------|-------------------------------------|
    | total_users      | Users mapped to the coach           |
    | total_tasks      | Assignments held by those users     |
    | completed_tasks  | Of which COMPLETED                  |
    | incomplete_tasks | Of which INCOMPLETE                 |
    """
    return get_coaches_analytics(db)


@router.get("/{coach_id}", response_model=CoachResponse)
async def get_coach_by_id(coach_id: int, db: Session = Depends(get_db)):
    """Fetch one coach profile. **Role:** Public."""
    coach = get_coach(db, coach_id)
    if not coach:
        raise NotFoundException(detail="Coach not found")
    return coach


@router.post("/", response_model=CoachResponse, status_code=status.HTTP_201_CREATED)
async def create(
    payload: CoachCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Create a coach profile

    **Role:** ADMIN

    ### Required fields (JSON body)
    | Field | Type   | Description       |
    |-------|--------|-------------------|
    | name  | string | Coach name        |
    | email | string | Unique coach email |

    ### Frontend integration
    - HTTP 409 → a coach with this email already exists.
    """
    try:
        return create_coach(db, payload)
    except ValueError as exc:
        raise ConflictException(detail=str(exc))


@router.put("/{coach_id}", response_model=CoachResponse)
async def update(
    coach_id: int,
    payload: CoachUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Update a coach profile

    **Role:** ADMIN. Only the fields sent are changed; an email already used
    by another coach → 409.
    """
    coach = get_coach(db, coach_id)
    if not coach:
        raise NotFoundException(detail="Coach not found")
    try:
        return update_coach(db, coach, payload)
    except ValueError as exc:
        raise ConflictException(detail=str(exc))


@router.get("/{coach_id}/leads", response_model=List[LeadResponse])
async def coach_leads(
    coach_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Leads assigned to a coach

    **Role:** COACH (own profile only) or ADMIN
    """
    if not get_coach(db, coach_id):
        raise NotFoundException(detail="Coach not found")

    if current_user.role == UserRole.COACH:
        own = get_coach_for_user(db, current_user)
        if not own or own.id != coach_id:
            raise ForbiddenException(detail="Coaches can only view their own leads")

    return list_leads(db, coach_id=coach_id)
