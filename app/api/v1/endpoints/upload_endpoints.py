"""Spreadsheet upload endpoints"""
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import get_db
from app.errors.exceptions import BadRequestException, NotFoundException
from app.middleware.auth import require_admin
from app.middleware.upload import read_spreadsheet_upload
from app.models.user import User
from app.schemas.lead_schemas import LeadImportResult
from app.services.coach_service import get_coach
from app.services.lead_import_service import MissingColumnsError, import_leads

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/leads", response_model=LeadImportResult)
async def upload_leads(
    file: UploadFile = File(..., description="Excel workbook (.xlsx)"),
    coach_id: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """
    ## Import leads from Excel

    **Role:** ADMIN

    ### Required fields (multipart/form-data)
    | Field    | Type | Description                                      |
    |----------|------|--------------------------------------------------|
    | file     | File | `.xlsx`, first sheet, header row first           |
    | coach_id | int  | Optional, maps every imported lead to this coach |

    ### Columns
    Header names are matched loosely: anything containing `name`,
    `phone`/`mobile` or `email`/`mail`. All three are required.

    ### Behaviour
    - Leads are upserted by email; rows with a blank name, phone or email
      are skipped.
    - New emails get a USER account whose initial password is the email
      followed by the last 4 digits of the phone number.

    ### Response
    `{ "message", "total_rows", "created", "updated", "skipped", "users_created", "errors": [{row, error}] }`

    ### Frontend integration
    - HTTP 400 with `foundColumns` → show which headers were found so the
      admin can fix the sheet.
    """
    if coach_id is not None and not get_coach(db, coach_id):
        raise NotFoundException(detail="Coach not found")

    content = await read_spreadsheet_upload(file)

    try:
        result = import_leads(db, content, coach_id=coach_id)
    except MissingColumnsError as exc:
        raise BadRequestException(
            detail={
                "error": str(exc),
                "missingColumns": exc.missing,
                "foundColumns": exc.found,
            }
        )
    except ValueError as exc:
        raise BadRequestException(detail=str(exc))

    logger.info(
        f"[LeadImport] {file.filename}: {result.created} created, {result.updated} updated, "
        f"{result.skipped} skipped",
        extra={"user_id": current_user.id, "user_email": current_user.email},
    )
    return result
