"""User task (assignment) schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from app.models.user_task import UserTaskStatus
from app.schemas.task_schemas import TaskResponse
from app.utils.task_status import TaskStatus


class AssignTaskRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    task_id: int = Field(..., ge=1)


class BulkAssignRequest(BaseModel):
    task_id: int = Field(..., ge=1)
    user_ids: List[int] = Field(..., min_length=1)


class UpdateUserTaskStatusRequest(BaseModel):
    status: UserTaskStatus
    remarks: Optional[str] = Field(None, max_length=2000)
    done_date: Optional[datetime] = None


class UserTaskResponse(BaseModel):
    id: int
    user_id: int
    task_id: int
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    status: UserTaskStatus
    task_status: TaskStatus
    completed_at: Optional[datetime] = None
    remarks: Optional[str] = None
    done_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    task: Optional[TaskResponse] = None


class AssignmentFailure(BaseModel):
    user_id: int
    error: str


class BulkAssignResponse(BaseModel):
    message: str
    assigned: List[UserTaskResponse]
    succeeded: List[int]
    already_assigned: List[int]
    failed: List[AssignmentFailure]


class UserTaskStatsResponse(BaseModel):
    user_id: int
    total: int
    completed: int
    incomplete: int
    open: int
    on_going: int
    pending: int
    completion_rate: float
