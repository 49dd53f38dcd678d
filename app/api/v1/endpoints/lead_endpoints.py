"""Lead endpoints"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.errors.exceptions import ForbiddenException, NotFoundException
from app.middleware.auth import require_admin, require_coach_or_admin
from app.models.user import User, UserRole
from app.schemas.auth_schemas import MessageResponse
from app.schemas.lead_schemas import (
    LeadAssignRequest,
    LeadBulkAssignRequest,
    LeadBulkAssignResponse,
    LeadBulkDeleteRequest,
    LeadBulkDeleteResponse,
    LeadResponse,
)
from app.services.coach_service import get_coach_for_user
from app.services.lead_service import (
    assign_lead,
    bulk_assign_leads,
    bulk_delete_leads,
    delete_lead,
    get_lead,
    get_lead_response,
    list_leads,
)

router = APIRouter()


@router.get("/", response_model=List[LeadResponse])
async def get_leads(
    coach_id: Optional[int] = Query(None, description="Only leads assigned to this coach"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## List leads

    **Role:** ADMIN (all leads) or COACH (always narrowed to their own leads)

    Newest first. Each lead carries `coach_name` / `coach_email` when assigned.
    """
    if current_user.role == UserRole.COACH:
        own = get_coach_for_user(db, current_user)
        if not own:
            return []
        coach_id = own.id
    return list_leads(db, coach_id=coach_id)


@router.put("/bulk-assign", response_model=LeadBulkAssignResponse)
async def bulk_assign(
    body: LeadBulkAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Assign many leads to one coach

    **Role:** ADMIN

    ### Required fields (JSON body)
    | Field    | Type        | Description                               |
    |----------|-------------|-------------------------------------------|
    | lead_ids | int[]       | Leads to (re)assign                       |
    | coach_id | int \\| null | Target coach, `null` unassigns every lead |

    Every assigned lead gets a USER account (created if missing) mapped to
    the coach. Unknown lead ids are listed in `missing_lead_ids`; a lead whose
    account or mapping conflicts is listed in `failed` and the others still
    go through.
    """
    try:
        leads, users_created, missing, failed = bulk_assign_leads(db, body.lead_ids, body.coach_id)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))

    action = "assigned" if body.coach_id else "unassigned"
    return LeadBulkAssignResponse(
        message=f"Successfully {action} {len(leads)} leads",
        leads=leads,
        users_created=users_created,
        missing_lead_ids=missing,
        failed=failed,
    )


@router.post("/bulk/delete", response_model=LeadBulkDeleteResponse)
async def bulk_delete(
    body: LeadBulkDeleteRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Delete many leads

    **Role:** ADMIN

    Removes the leads together with the USER accounts created for them and
    everything those accounts own (assignments, documents, report data).
    Unknown ids are ignored.
    """
    deleted, users_deleted = bulk_delete_leads(db, body.lead_ids)
    return LeadBulkDeleteResponse(
        message=f"Successfully deleted {deleted} lead(s)",
        deleted_count=deleted,
        users_deleted_count=users_deleted,
    )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead_by_id(
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    lead = get_lead(db, lead_id)
    if not lead:
        raise NotFoundException(detail="Lead not found")

    if current_user.role == UserRole.COACH:
        own = get_coach_for_user(db, current_user)
        if not own or lead.assigned_coach_id != own.id:
            raise ForbiddenException(detail="This lead is not assigned to you")

    return get_lead_response(db, lead)


@router.put("/{lead_id}/assign", response_model=LeadResponse)
async def assign(
    lead_id: int,
    body: LeadAssignRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Assign a lead to a coach

    **Role:** ADMIN

    `{ "coach_id": 3 }` assigns; `{ "coach_id": null }` unassigns and drops
    the coach mapping of the lead's user account (the account itself stays).
    """
    lead = get_lead(db, lead_id)
    if not lead:
        raise NotFoundException(detail="Lead not found")
    try:
        return assign_lead(db, lead, body.coach_id)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))


@router.delete("/{lead_id}", response_model=MessageResponse)
async def delete(
    lead_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Delete a lead and the USER account created for it. **Role:** ADMIN"""
    lead = get_lead(db, lead_id)
    if not lead:
        raise NotFoundException(detail="Lead not found")

    user_deleted = delete_lead(db, lead)
    suffix = " and its user account" if user_deleted else ""
    return MessageResponse(message=f"Lead{suffix} deleted successfully")
