"""Task schemas"""
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, model_validator

from app.models.task_document import ReportType
from app.schemas.document_schemas import ReportDataResponse, TaskDocumentResponse
from app.utils.dates import to_naive_utc
from app.utils.task_status import TaskStatus


class TaskBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    coach_id: Optional[int] = Field(None, ge=1)
    start_date: datetime
    end_date: datetime
    deadline: Optional[datetime] = Field(None, description="Defaults to end_date")
    allow_document_upload: bool = False
    report_type: Optional[ReportType] = None

    @model_validator(mode="after")
    def validate_dates(self):
        start = to_naive_utc(self.start_date).date()
        if start > to_naive_utc(self.end_date).date():
            raise ValueError("start_date must be on or before end_date")
        if self.deadline is not None and start > to_naive_utc(self.deadline).date():
            raise ValueError("deadline must be on or after start_date")
        return self


class TaskCreate(TaskBase):
    pass


class TaskUpdate(BaseModel):
    """Only provided fields are updated; date order is checked against the stored row."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    coach_id: Optional[int] = Field(None, ge=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    deadline: Optional[datetime] = None
    allow_document_upload: Optional[bool] = None
    report_type: Optional[ReportType] = None


class TaskCompletionRequest(BaseModel):
    completed: bool = True


class TaskResponse(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    coach_id: Optional[int] = None
    assigned_by: Optional[int] = None
    start_date: datetime
    end_date: datetime
    deadline: datetime
    allow_document_upload: bool
    report_type: Optional[str] = None
    completed_at: Optional[datetime] = None
    status: TaskStatus
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TaskStatsResponse(BaseModel):
    coach_id: int
    total: int
    by_status: Dict[str, int]
    assignments_total: int
    assignments_completed: int
    completion_rate: float


class TaskDetailResponse(TaskResponse):
    """A task with its uploaded documents and task-level report data"""
    documents: List[TaskDocumentResponse] = []
    report_data: Optional[ReportDataResponse] = None
