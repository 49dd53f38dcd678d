"""Database models"""
from app.models.user import User, UserRole
from app.models.coach import Coach, UserCoachMapping
from app.models.lead import Lead
from app.models.task import Task
from app.models.user_task import UserTask, UserTaskStatus
from app.models.otp import OTPVerification
from app.models.task_document import TaskDocument, ReportData, ReportType

__all__ = [
    "User", "UserRole", "Coach", "UserCoachMapping", "Lead", "Task",
    "UserTask", "UserTaskStatus", "OTPVerification",
    "TaskDocument", "ReportData", "ReportType",
]
