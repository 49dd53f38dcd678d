"""Task document and report data endpoints"""
from typing import List, Optional
import os

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from app.core.dependencies import get_db
from app.errors.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
)
from app.middleware.auth import get_current_user, require_coach_or_admin
from app.middleware.upload import read_document_upload
from app.models.task_document import TaskDocument
from app.models.user import User
from app.models.user_task import UserTask
from app.schemas.auth_schemas import MessageResponse
from app.schemas.document_schemas import ReportDataResponse, ReportDataUpsert, TaskDocumentResponse
from app.services.document_service import (
    assert_can_access_document,
    assert_can_access_user_task,
    delete_document,
    get_document,
    get_task_report_data,
    get_user_task_report_data,
    list_task_documents,
    list_user_task_documents,
    upload_document,
    upsert_report_data,
)
from app.services.task_service import get_task

router = APIRouter()


def _user_task_or_error(db: Session, current_user: User, user_task_id: int) -> UserTask:
    try:
        return assert_can_access_user_task(db, current_user, user_task_id)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    except PermissionError as exc:
        raise ForbiddenException(detail=str(exc))


def _document_or_error(db: Session, current_user: User, document_id: int) -> TaskDocument:
    document = get_document(db, document_id)
    if not document:
        raise NotFoundException(detail="Document not found")
    try:
        assert_can_access_document(db, current_user, document)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    except PermissionError as exc:
        raise ForbiddenException(detail=str(exc))
    return document


@router.post("/upload", response_model=TaskDocumentResponse, status_code=status.HTTP_201_CREATED)
async def upload(
    document: UploadFile = File(..., description="PDF, PNG or JPEG, up to 10MB"),
    task_id: Optional[int] = Form(None),
    user_task_id: Optional[int] = Form(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Upload a document for a task

    **Role:** ADMIN or COACH

    ### Required fields (multipart/form-data)
    | Field        | Type | Description                                           |
    |--------------|------|-------------------------------------------------------|
    | document     | File | `.pdf`, `.png`, `.jpg` or `.jpeg`, max 10MB           |
    | task_id      | int  | Task the document belongs to                          |
    | user_task_id | int  | Optional; files the document against one assignment   |

    At least one of `task_id` / `user_task_id` is required. The declared
    content type must match the extension.

    ### Frontend integration
    - HTTP 400 → wrong type, type/extension mismatch, empty or too large file.
    - HTTP 403 → a COACH uploading for a user not mapped to them.
    """
    if task_id is None and user_task_id is None:
        raise BadRequestException(detail="Task ID or User Task ID is required")

    content = await read_document_upload(document)

    try:
        return upload_document(
            db,
            current_user,
            content,
            document.filename,
            document.content_type,
            task_id=task_id,
            user_task_id=user_task_id,
        )
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    except PermissionError as exc:
        raise ForbiddenException(detail=str(exc))
    except ValueError as exc:
        raise BadRequestException(detail=str(exc))


@router.get("/task/{task_id}", response_model=List[TaskDocumentResponse])
async def task_documents(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## Documents of a task

    **Role:** Any authenticated user. A USER only sees task-level documents
    and those filed against their own assignment.
    """
    if not get_task(db, task_id):
        raise NotFoundException(detail="Task not found")
    return list_task_documents(db, current_user, task_id)


@router.get("/user-task/{user_task_id}", response_model=List[TaskDocumentResponse])
async def user_task_documents(
    user_task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _user_task_or_error(db, current_user, user_task_id)
    return list_user_task_documents(db, user_task_id)


@router.get("/{document_id}/file")
async def download(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    ## Download a document

    **Role:** Anyone who can see the document. Streams the stored file with
    its original name and content type.
    """
    document = _document_or_error(db, current_user, document_id)
    if not os.path.exists(document.file_path):
        raise NotFoundException(detail="File not found on server")
    return FileResponse(
        document.file_path,
        media_type=document.file_type,
        filename=document.file_name,
    )


@router.delete("/{document_id}", response_model=MessageResponse)
async def delete(
    document_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """Delete a document, its stored file and any report data pointing at it. **Role:** ADMIN or COACH"""
    document = _document_or_error(db, current_user, document_id)
    delete_document(db, document)
    return MessageResponse(message="Document deleted successfully")


@router.post("/task/{task_id}/report-data", response_model=ReportDataResponse)
async def save_report_data(
    task_id: int,
    payload: ReportDataUpsert,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_coach_or_admin),
):
    """
    ## Create or update report data

    **Role:** ADMIN or COACH

    With `user_task_id` the values belong to that assignment; without it they
    are the task-level report. Sending again overwrites the previous values.

    ### Fields (JSON body, all optional)
    | Field               | Description                         |
    |---------------------|-------------------------------------|
    | report_type         | `SUGAR_REPORT` (default) or `OTHER` |
    | document_id         | Source document of this task        |
    | patient_name, age, gender, lab_name, doctor_name | Report header |
    | blood_sugar_fasting, blood_sugar_pp, hba1c_value, total_cholesterol | Readings |
    | extracted_data      | Free-form text / JSON string        |
    """
    task = get_task(db, task_id)
    if not task:
        raise NotFoundException(detail="Task not found")

    try:
        report, _created = upsert_report_data(db, current_user, task, payload)
    except LookupError as exc:
        raise NotFoundException(detail=str(exc))
    except PermissionError as exc:
        raise ForbiddenException(detail=str(exc))
    except ValueError as exc:
        raise BadRequestException(detail=str(exc))
    return report


@router.get("/task/{task_id}/report-data", response_model=Optional[ReportDataResponse])
async def task_report_data(
    task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Task-level report data, or `null` when none was saved."""
    if not get_task(db, task_id):
        raise NotFoundException(detail="Task not found")
    return get_task_report_data(db, task_id)


@router.get("/user-task/{user_task_id}/report-data", response_model=Optional[ReportDataResponse])
async def user_task_report_data(
    user_task_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    _user_task_or_error(db, current_user, user_task_id)
    return get_user_task_report_data(db, user_task_id)
