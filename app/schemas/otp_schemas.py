"""OTP login schemas"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.auth_schemas import UserResponse


class OTPGenerateRequest(BaseModel):
    email: EmailStr

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class OTPGenerateResponse(BaseModel):
    """`otp` is only filled in outside production"""
    message: str
    email: str
    expires_at: datetime
    resend_available_at: datetime
    otp: Optional[str] = None


class OTPVerifyRequest(BaseModel):
    email: EmailStr
    otp: str = Field(..., min_length=1, max_length=12)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class OTPVerifyResponse(BaseModel):
    message: str
    token: str
    token_type: str = "bearer"
    user: UserResponse
