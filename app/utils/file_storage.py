"""File storage utilities"""
import logging
import os
import uuid
from datetime import datetime
from pathlib import Path

from app.core.config import settings

logger = logging.getLogger(__name__)


def generate_unique_filename(original_filename: str) -> str:
    """
    Build a collision-free name that keeps the original extension.
    Format: YYYYMMDD_HHMMSS_<8 hex>_<sanitised stem>.<ext>
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_id = uuid.uuid4().hex[:8]

    stem, dot, ext = original_filename.rpartition(".")
    if not dot:
        stem, ext = original_filename, ""
    safe_stem = "".join(c for c in stem if c.isalnum() or c in ("-", "_"))[:50] or "file"

    name = f"{timestamp}_{unique_id}_{safe_stem}"
    return f"{name}.{ext.lower()}" if ext else name


def save_uploaded_file(file_content: bytes, original_filename: str, subdir: str = "") -> str:
    """
    Write *file_content* under ``UPLOAD_DIR`` (optionally inside *subdir*)
    and return the stored path as a string.
    """
    upload_dir = Path(settings.UPLOAD_DIR) / subdir if subdir else Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    file_path = upload_dir / generate_unique_filename(original_filename)
    with open(file_path, "wb") as f:
        f.write(file_content)

    return str(file_path)


def delete_uploaded_file(file_path: str) -> bool:
    """Remove a stored file. Returns False when it was already gone or could not be removed."""
    if not file_path or not os.path.exists(file_path):
        return False
    try:
        os.remove(file_path)
        return True
    except OSError as e:
        logger.error(f"Failed to delete file {file_path}: {str(e)}")
        return False
