"""Coach and user-coach mapping schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.auth_schemas import UserResponse


class CoachCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class CoachUpdate(BaseModel):
    """Only provided fields are updated."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v


class CoachResponse(BaseModel):
    id: int
    name: str
    email: str
    created_at: datetime

    class Config:
        from_attributes = True


class AssignCoachRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    coach_id: int = Field(..., ge=1)


class UserCoachMappingResponse(BaseModel):
    id: int
    user_id: int
    coach_id: int
    created_at: datetime

    class Config:
        from_attributes = True


class UserCoachResponse(BaseModel):
    user: UserResponse
    coach: Optional[CoachResponse] = None


class CoachUsersResponse(BaseModel):
    coach: CoachResponse
    users: List[UserResponse]
    total: int
