"""Lead schemas"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class LeadResponse(BaseModel):
    id: int
    name: str
    phone_number: str
    email: str
    assigned_coach_id: Optional[int] = None
    coach_name: Optional[str] = None
    coach_email: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class LeadAssignRequest(BaseModel):
    """`coach_id = null` unassigns the lead"""
    coach_id: Optional[int] = Field(None, ge=1)


class LeadBulkAssignRequest(BaseModel):
    lead_ids: List[int] = Field(..., min_length=1)
    coach_id: Optional[int] = Field(None, ge=1)


class LeadAssignFailure(BaseModel):
    lead_id: int
    error: str


class LeadBulkAssignResponse(BaseModel):
    message: str
    leads: List[LeadResponse]
    users_created: int
    missing_lead_ids: List[int] = []
    failed: List[LeadAssignFailure] = []


class LeadBulkDeleteRequest(BaseModel):
    lead_ids: List[int] = Field(..., min_length=1)


class LeadBulkDeleteResponse(BaseModel):
    message: str
    deleted_count: int
    users_deleted_count: int


class LeadImportRowError(BaseModel):
    row: int
    error: str


class LeadImportResult(BaseModel):
    message: str
    total_rows: int
    created: int
    updated: int
    skipped: int
    users_created: int
    errors: List[LeadImportRowError] = []
