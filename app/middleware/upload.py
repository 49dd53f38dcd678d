"""Upload validation dependencies: extension/MIME agreement and size ceiling"""
from pathlib import Path
from typing import Dict, FrozenSet
import logging

from fastapi import UploadFile

from app.core.config import settings
from app.errors.exceptions import FileUploadException

logger = logging.getLogger(__name__)

_JPEG = frozenset({"image/jpeg", "image/jpg", "image/pjpeg"})

DOCUMENT_TYPES: Dict[str, FrozenSet[str]] = {
    ".pdf": frozenset({"application/pdf"}),
    ".png": frozenset({"image/png"}),
    ".jpg": _JPEG,
    ".jpeg": _JPEG,
}

SPREADSHEET_TYPES: Dict[str, FrozenSet[str]] = {
    ".xlsx": frozenset({"application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"}),
}

_CHUNK_SIZE = 1024 * 1024


def file_extension(filename: str) -> str:
    return Path(filename or "").suffix.lower()


def validate_file_type(file: UploadFile, allowed: Dict[str, FrozenSet[str]]) -> str:
    """
    Return the lower-cased extension when both it and the declared
    content type are acceptable and agree with each other.
    """
    ext = file_extension(file.filename)
    allowed_list = ", ".join(sorted(e.lstrip(".") for e in allowed))

    if ext not in allowed:
        logger.warning(f"UNSUPPORTED FILE TYPE: {file.filename} - Content-Type: {file.content_type}")
        raise FileUploadException(detail=f"Invalid file type. Allowed types: {allowed_list}")

    content_type = (file.content_type or "").split(";")[0].strip().lower()
    if content_type not in allowed[ext]:
        logger.warning(f"MIME MISMATCH: {file.filename} declared as {file.content_type}")
        raise FileUploadException(
            detail=f"File content type '{file.content_type}' does not match extension '{ext}'"
        )
    return ext


async def read_upload(file: UploadFile, max_bytes: int) -> bytes:
    """Read the upload, refusing empty bodies and bodies above *max_bytes*."""
    chunks = []
    size = 0
    while True:
        chunk = await file.read(_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > max_bytes:
            logger.warning(f"FILE TOO LARGE: {file.filename} (> {max_bytes} bytes)")
            raise FileUploadException(
                detail=f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB"
            )
        chunks.append(chunk)

    if size == 0:
        raise FileUploadException(detail="Empty file uploaded")
    return b"".join(chunks)


async def read_document_upload(file: UploadFile) -> bytes:
    validate_file_type(file, DOCUMENT_TYPES)
    return await read_upload(file, settings.MAX_UPLOAD_SIZE_BYTES)


async def read_spreadsheet_upload(file: UploadFile) -> bytes:
    validate_file_type(file, SPREADSHEET_TYPES)
    return await read_upload(file, settings.MAX_UPLOAD_SIZE_BYTES)
