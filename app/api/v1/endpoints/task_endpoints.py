"""Task endpoints"""
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.errors.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.middleware.auth import get_current_user, require_coach_or_admin
from app.models.task import Task
from app.models.user import User, UserRole
from app.schemas.auth_schemas import MessageResponse
from app.schemas.task_schemas import (
    TaskCompletionRequest,
    TaskCreate,
    TaskDetailResponse,
    TaskResponse,
    TaskStatsResponse,
    TaskUpdate,
)
from app.services.coach_service import get_coach, get_coach_for_user
from app.services.task_service import (
    create_task,
    delete_task,
    get_task,
    get_task_detail,
    get_task_stats,
    get_tasks_by_date,
    list_tasks,
    set_task_completion,
    to_task_response,
    update_task,
)

router = APIRouter()


def _get_task_or_404(db: Session, task_id: int) -> Task:
    task = get_task(db, task_id)
    if not task:
        raise NotFoundException(detail="Task not found")
    return task


def _check_can_manage(db: Session, current_user: User, task: Task) -> None:
    """A COACH may change tasks they created or that belong to their coach profile."""
    if current_user.role == UserRole.ADMIN or task.assigned_by == current_user.id:
        return
    own = get_coach_for_user(db, current_user)
    if own is None or task.coach_id != own.id:
        raise ForbiddenException(detail="You can only modify your own tasks")


@router.get("/", response_model=List[TaskResponse])
async def get_tasks(
    coach_id: Optional[int] = Query(None, description="Only tasks of this coach"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## List tasks

    **Role:** Any authenticated user

    Sorted by start date. `status` is computed on every read:

    | Status      | When                                         |
    |-------------|----------------------------------------------|
    | `OPEN`      | today is before `start_date`                 |
    | `ON_GOING`  | between `start_date` and `deadline`          |
    | `PENDING`   | past the deadline and not completed          |
    | `COMPLETED` | the task was marked complete                 |
    """
    return [to_task_response(task) for task in list_tasks(db, coach_id=coach_id)]


@router.get("/stats/{coach_id}", response_model=TaskStatsResponse)
async def task_stats(
    coach_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## Task statistics for a coach

    **Role:** Any authenticated user

    ### Response
    `{ "coach_id", "total", "by_status": {OPEN, ON_GOING, PENDING, COMPLETED},
    "assignments_total", "assignments_completed", "completion_rate" }`
    """
    if not get_coach(db, coach_id):
        raise NotFoundException(detail="Coach not found")
    return get_task_stats(db, coach_id)


@router.get("/by-date/{coach_id}", response_model=Dict[str, List[TaskResponse]])
async def tasks_by_date(
    coach_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """A coach's tasks keyed by deadline date (`YYYY-MM-DD`), for calendar views."""
    if not get_coach(db, coach_id):
        raise NotFoundException(detail="Coach not found")
    return get_tasks_by_date(db, coach_id)


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task_by_id(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """One task with its documents and task-level report data."""
    return get_task_detail(db, _get_task_or_404(db, task_id))


@router.post("/", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create(
    payload: TaskCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Create a task

    **Role:** COACH or ADMIN

    ### Required fields (JSON body)
    | Field                 | Type     | Description                             |
    |-----------------------|----------|-----------------------------------------|
    | title                 | string   | Task title                              |
    | start_date            | datetime | First day of the task                   |
    | end_date              | datetime | Last day, not before `start_date`       |
    | deadline              | datetime | Optional, defaults to `end_date`        |
    | coach_id              | int      | Optional; a coach's own profile by default |
    | allow_document_upload | bool     | Default `false`                         |
    | report_type           | string   | Optional `SUGAR_REPORT` or `OTHER`        |

    ### Frontend integration
    - HTTP 422 → invalid body (e.g. `start_date` after `end_date`).
    - HTTP 404 → unknown `coach_id`.
    """
    try:
        task = create_task(db, payload, current_user)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    return to_task_response(task)


@router.put("/{task_id}", response_model=TaskResponse)
async def update(
    task_id: int,
    payload: TaskUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Update the fields sent. **Role:** COACH (own tasks) or ADMIN."""
    task = _get_task_or_404(db, task_id)
    _check_can_manage(db, current_user, task)
    try:
        task = update_task(db, task, payload)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    except ValueError as exc:
        raise BadRequestException(detail=str(exc))
    return to_task_response(task)


@router.patch("/{task_id}/status", response_model=TaskResponse)
async def update_status(
    task_id: int,
    body: TaskCompletionRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Mark a task complete or reopen it

    **Role:** COACH (own tasks) or ADMIN

    `{ "completed": true }` → status `COMPLETED` regardless of dates;
    `{ "completed": false }` → status follows the dates again.
    """
    task = _get_task_or_404(db, task_id)
    _check_can_manage(db, current_user, task)
    return to_task_response(set_task_completion(db, task, body.completed))


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Delete a task with all its assignments, documents and report data. **Role:** COACH (own tasks) or ADMIN."""
    task = _get_task_or_404(db, task_id)
    _check_can_manage(db, current_user, task)
    delete_task(db, task)
    return MessageResponse(message="Task deleted successfully")
