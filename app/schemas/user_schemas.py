"""User listing and analytics schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from app.models.user import UserRole
from app.schemas.auth_schemas import UserResponse
from app.schemas.coach_schemas import CoachResponse


class TaskCounts(BaseModel):
    total: int
    completed: int
    incomplete: int
    completion_percentage: int


class UserAnalyticsResponse(BaseModel):
    user: UserResponse
    coach: Optional[CoachResponse] = None
    tasks: TaskCounts


class UserAnalyticsRow(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    created_at: datetime
    coach_name: Optional[str] = None
    total_tasks: int
    completed_tasks: int
    incomplete_tasks: int


class CoachAnalyticsRow(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime
    total_users: int
    total_tasks: int
    completed_tasks: int
    incomplete_tasks: int
