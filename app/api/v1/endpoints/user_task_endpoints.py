"""Task assignment endpoints"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.errors.exceptions import ConflictException, ForbiddenException, NotFoundException
from app.middleware.auth import get_current_user, require_coach_or_admin
from app.models.user import User, UserRole
from app.schemas.auth_schemas import MessageResponse
from app.schemas.user_task_schemas import (
    AssignTaskRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    UpdateUserTaskStatusRequest,
    UserTaskResponse,
    UserTaskStatsResponse,
)
from app.services.auth_service import get_user_by_email, get_user_by_id
from app.services.coach_service import get_coach_for_user, get_coach_user_ids
from app.services.document_service import can_access_user
from app.services.user_task_service import (
    AlreadyAssignedError,
    assign_task,
    bulk_assign_task,
    get_user_task,
    get_user_task_response,
    get_user_task_stats,
    list_all_user_tasks,
    list_user_tasks,
    remove_user_task,
    update_user_task_status,
)

router = APIRouter()


def _check_user_access(db: Session, current_user: User, user: User) -> None:
    if not can_access_user(db, current_user, user.id):
        raise ForbiddenException(detail="You do not have access to this user's tasks")


def _load_user(db: Session, current_user: User, user_id: int) -> User:
    user = get_user_by_id(db, user_id)
    if not user:
        raise NotFoundException(detail="User not found")
    _check_user_access(db, current_user, user)
    return user


@router.get("/my-tasks", response_model=List[UserTaskResponse])
async def my_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## My assigned tasks

    **Role:** Any authenticated user

    Nearest deadline first. Each item carries the assignment `status`
    (`COMPLETED` / `INCOMPLETE`), the computed `task_status`
    (`OPEN` / `ON_GOING` / `PENDING` / `COMPLETED`) and the embedded `task`.
    """
    return list_user_tasks(db, current_user.id)


@router.get("/my-stats", response_model=UserTaskStatsResponse)
async def my_stats(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_user_task_stats(db, current_user.id)


@router.get("/all", response_model=List[UserTaskResponse])
async def all_user_tasks(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## All assignments

    **Role:** Any authenticated user, scoped by role

    | Role  | Sees                               |
    |-------|------------------------------------|
    | ADMIN | every assignment                   |
    | COACH | assignments of users mapped to them |
    | USER  | their own assignments              |
    """
    if current_user.role == UserRole.ADMIN:
        return list_all_user_tasks(db)
    if current_user.role == UserRole.COACH:
        coach = get_coach_for_user(db, current_user)
        return list_all_user_tasks(db, get_coach_user_ids(db, coach.id) if coach else [])
    return list_all_user_tasks(db, [current_user.id])


@router.get("/user/{user_id}", response_model=List[UserTaskResponse])
async def tasks_of_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """A user's assignments. **Role:** COACH (mapped users) or ADMIN."""
    user = _load_user(db, current_user, user_id)
    return list_user_tasks(db, user.id)


@router.get("/stats/{user_id}", response_model=UserTaskStatsResponse)
async def stats_of_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    user = _load_user(db, current_user, user_id)
    return get_user_task_stats(db, user.id)


@router.get("/email/{email}", response_model=List[UserTaskResponse])
async def tasks_by_email(
    email: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Assignments by email

    **Role:** COACH (mapped users) or ADMIN

    Lets lead screens show the tasks of the account created for a lead.
    """
    user = get_user_by_email(db, email)
    if not user:
        raise NotFoundException(detail="User not found")
    _check_user_access(db, current_user, user)
    return list_user_tasks(db, user.id)


@router.post("/assign", response_model=UserTaskResponse, status_code=status.HTTP_201_CREATED)
async def assign(
    body: AssignTaskRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Assign a task to one user

    **Role:** COACH or ADMIN

    ### Required fields (JSON body)
    | Field   | Type | Description |
    |---------|------|-------------|
    | user_id | int  | Assignee    |
    | task_id | int  | Task        |

    ### Frontend integration
    - HTTP 409 → the user already has this task.
    """
    try:
        user_task = assign_task(db, body.user_id, body.task_id)
    except AlreadyAssignedError as exc:
        raise ConflictException(detail=str(exc))
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    return get_user_task_response(db, user_task)


@router.post("/bulk-assign", response_model=BulkAssignResponse)
async def bulk_assign(
    body: BulkAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Assign a task to many users

    **Role:** COACH or ADMIN

    Safe to retry: users who already have the task are reported under
    `already_assigned` and nothing is duplicated.

    ### Response
    | Field            | Description                                   |
    |------------------|-----------------------------------------------|
    | assigned         | Assignments created by this call              |
    | succeeded        | User ids that got the task now                |
    | already_assigned | User ids that had it before                   |
    | failed           | `[{user_id, error}]`, e.g. unknown user       |
    """
    try:
        return bulk_assign_task(db, body.task_id, body.user_ids, actor=current_user)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))


@router.patch("/{user_task_id}/status", response_model=UserTaskResponse)
async def update_status(
    user_task_id: int,
    body: UpdateUserTaskStatusRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## Update an assignment's status

    **Role:** USER (own assignments), COACH (mapped users) or ADMIN

    ### Required fields (JSON body)
    | Field     | Type     | Description                                  |
    |-----------|----------|----------------------------------------------|
    | status    | string   | `COMPLETED` or `INCOMPLETE`                  |
    | remarks   | string   | Optional note, kept only when COMPLETED      |
    | done_date | datetime | Optional, defaults to now when COMPLETED     |

    Setting `INCOMPLETE` clears `completed_at`, `done_date` and `remarks`.
    """
    user_task = get_user_task(db, user_task_id)
    if not user_task:
        raise NotFoundException(detail="User task not found")
    if not can_access_user(db, current_user, user_task.user_id):
        raise ForbiddenException(detail="You can only update your own tasks")

    user_task = update_user_task_status(db, user_task, body.status, body.remarks, body.done_date)
    return get_user_task_response(db, user_task)


@router.delete("/{user_task_id}", response_model=MessageResponse)
async def remove(
    user_task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Remove an assignment with its documents and report data. **Role:** COACH or ADMIN."""
    user_task = get_user_task(db, user_task_id)
    if not user_task:
        raise NotFoundException(detail="User task not found")
    remove_user_task(db, user_task)
    return MessageResponse(message="Task assignment removed successfully")
