"""Task documents and the report data extracted from them"""
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from sqlalchemy.sql import func
from enum import Enum

from app.db.base import Base


class ReportType(str, Enum):
    SUGAR_REPORT = "SUGAR_REPORT"
    OTHER = "OTHER"


class TaskDocument(Base):
    """
    File uploaded against a task, optionally scoped to one user's assignment.
    """
    __tablename__ = "task_documents"

    id          = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_id     = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_task_id = Column(Integer, ForeignKey("user_tasks.id"), nullable=True, index=True)
    user_id     = Column(Integer, ForeignKey("users.id"), nullable=True)

    file_name   = Column(String(255), nullable=False)
    file_path   = Column(String(512), nullable=False)
    file_type   = Column(String(100), nullable=False)   # MIME type
    file_size   = Column(Integer, nullable=False)       # bytes
    uploaded_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    created_at  = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at  = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<TaskDocument(id={self.id}, task_id={self.task_id}, file_name='{self.file_name}')>"


class ReportData(Base):
    """
    Structured fields pulled out of a lab report. One row per assignment, or
    one task-level row when ``user_task_id`` is NULL.
    """
    __tablename__ = "report_data"

    id           = Column(Integer, primary_key=True, index=True, autoincrement=True)
    task_id      = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    user_task_id = Column(Integer, ForeignKey("user_tasks.id"), nullable=True, index=True)
    user_id      = Column(Integer, ForeignKey("users.id"), nullable=True)
    document_id  = Column(Integer, ForeignKey("task_documents.id"), nullable=True)

    report_type  = Column(
        SQLEnum(ReportType, name="reporttype"),
        nullable=False,
        default=ReportType.SUGAR_REPORT,
    )

    # ── Extracted fields (kept as text, labs format them inconsistently) ──
    patient_name        = Column(String(255), nullable=True)
    age                 = Column(String(50),  nullable=True)
    gender              = Column(String(50),  nullable=True)
    lab_name            = Column(String(255), nullable=True)
    doctor_name         = Column(String(255), nullable=True)
    blood_sugar_fasting = Column(String(50),  nullable=True)
    blood_sugar_pp      = Column(String(50),  nullable=True)
    hba1c_value         = Column(String(50),  nullable=True)
    total_cholesterol   = Column(String(50),  nullable=True)
    extracted_data      = Column(Text,        nullable=True)  # raw JSON/text from the extractor

    created_at   = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at   = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)
