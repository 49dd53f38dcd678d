"""Pydantic schemas for request/response validation"""
from app.schemas.auth_schemas import (
    UserCreate,
    UserResponse,
    Token,
    TokenData,
    LoginRequest,
    MessageResponse,
)
from app.schemas.otp_schemas import (
    OTPGenerateRequest,
    OTPGenerateResponse,
    OTPVerifyRequest,
    OTPVerifyResponse,
)
from app.schemas.task_schemas import TaskCreate, TaskUpdate, TaskResponse
from app.schemas.user_task_schemas import (
    AssignTaskRequest,
    BulkAssignRequest,
    BulkAssignResponse,
    UserTaskResponse,
)

__all__ = [
    "UserCreate",
    "UserResponse",
    "Token",
    "TokenData",
    "LoginRequest",
    "MessageResponse",
    "OTPGenerateRequest",
    "OTPGenerateResponse",
    "OTPVerifyRequest",
    "OTPVerifyResponse",
    "TaskCreate",
    "TaskUpdate",
    "TaskResponse",
    "AssignTaskRequest",
    "BulkAssignRequest",
    "BulkAssignResponse",
    "UserTaskResponse",
]
