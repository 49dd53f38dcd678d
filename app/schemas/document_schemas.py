"""Task document and report data schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.task_document import ReportType


class TaskDocumentResponse(BaseModel):
    id: int
    task_id: int
    user_task_id: Optional[int] = None
    user_id: Optional[int] = None
    file_name: str
    file_type: str
    file_size: int
    uploaded_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ReportDataBase(BaseModel):
    report_type: ReportType = ReportType.SUGAR_REPORT
    document_id: Optional[int] = None
    patient_name: Optional[str] = Field(None, max_length=255)
    age: Optional[str] = Field(None, max_length=50)
    gender: Optional[str] = Field(None, max_length=50)
    lab_name: Optional[str] = Field(None, max_length=255)
    doctor_name: Optional[str] = Field(None, max_length=255)
    blood_sugar_fasting: Optional[str] = Field(None, max_length=50)
    blood_sugar_pp: Optional[str] = Field(None, max_length=50)
    hba1c_value: Optional[str] = Field(None, max_length=50)
    total_cholesterol: Optional[str] = Field(None, max_length=50)
    extracted_data: Optional[str] = None


class ReportDataUpsert(ReportDataBase):
    """Without `user_task_id` the row is the task-level report"""
    user_task_id: Optional[int] = Field(None, ge=1)


class ReportDataResponse(ReportDataBase):
    id: int
    task_id: int
    user_task_id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
