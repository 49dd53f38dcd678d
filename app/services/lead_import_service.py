"""Import leads from an Excel workbook (first sheet, header row first)."""
import logging
from io import BytesIO
from typing import Any, Dict, Iterator, List, Optional, Tuple
from zipfile import BadZipFile

from email_validator import EmailNotValidError, validate_email
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.models.lead import Lead
from app.models.user import UserRole
from app.schemas.lead_schemas import LeadImportResult, LeadImportRowError
from app.services.auth_service import get_or_create_lead_user, normalize_email
from app.services.coach_service import set_user_coach
from app.utils.logger import log_assignment_operation

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("name", "phone_number", "email")


class MissingColumnsError(ValueError):
    def __init__(self, missing: List[str], found: List[str]):
        super().__init__(f"Missing required columns: {', '.join(missing)}")
        self.missing = missing
        self.found = found


def normalize_header(header: Any) -> Optional[str]:
    """Map a spreadsheet header onto name / phone_number / email."""
    if header is None:
        return None
    lower = str(header).strip().lower()
    if "phone" in lower or "mobile" in lower:
        return "phone_number"
    if "email" in lower or "mail" in lower:
        return "email"
    if "name" in lower:
        return "name"
    return None


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def read_lead_rows(content: bytes) -> Iterator[Tuple[int, Dict[str, str]]]:
    """
    Yield ``(row_number, {"name", "phone_number", "email"})`` for each data
    row of the first sheet. Raises ValueError for unreadable or empty
    workbooks and MissingColumnsError when a required column is absent.
    """
    try:
        wb = load_workbook(BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError) as exc:
        raise ValueError("Excel file is empty or invalid") from exc

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if not header or all(cell is None for cell in header):
            raise ValueError("Excel file is empty or invalid")

        columns: Dict[str, int] = {}
        for idx, title in enumerate(header):
            key = normalize_header(title)
            if key and key not in columns:
                columns[key] = idx

        missing = [col for col in REQUIRED_COLUMNS if col not in columns]
        if missing:
            found = [_cell_text(title) for title in header if title is not None]
            raise MissingColumnsError(missing, found)

        for row_number, row in enumerate(rows, start=2):
            values = {
                key: _cell_text(row[idx]) if idx < len(row) else ""
                for key, idx in columns.items()
            }
            yield row_number, values
    finally:
        wb.close()


def import_leads(db: Session, content: bytes, coach_id: Optional[int] = None) -> LeadImportResult:
    """
    Upsert leads by email from an .xlsx upload.

    Rows with a blank name, phone or email are skipped. New emails get a
    USER account; with *coach_id* every imported lead and its account are
    mapped to that coach. Each row runs in its own savepoint so one bad
    row does not undo the rest.
    """
    total = created = updated = skipped = users_created = 0
    errors: List[LeadImportRowError] = []

    for row_number, values in read_lead_rows(content):
        if not any(values.values()):
            continue
        total += 1
        name, phone, raw_email = values["name"], values["phone_number"], values["email"]

        if not (name and phone and raw_email):
            skipped += 1
            continue

        try:
            email = validate_email(raw_email, check_deliverability=False).normalized.lower()
        except EmailNotValidError as exc:
            skipped += 1
            errors.append(LeadImportRowError(row=row_number, error=f"Invalid email '{raw_email}': {exc}"))
            continue

        try:
            with db.begin_nested():
                lead = db.query(Lead).filter(Lead.email == normalize_email(email)).first()
                is_new = lead is None
                if is_new:
                    db.add(Lead(name=name, phone_number=phone, email=email, assigned_coach_id=coach_id))
                else:
                    lead.name = name
                    lead.phone_number = phone
                    if coach_id is not None:
                        lead.assigned_coach_id = coach_id
                db.flush()

                user, user_created = get_or_create_lead_user(db, name, email, phone)
                if coach_id is not None and user.role == UserRole.USER:
                    set_user_coach(db, user.id, coach_id, commit=False)
        except IntegrityError as exc:
            skipped += 1
            errors.append(LeadImportRowError(row=row_number, error="Duplicate or conflicting record"))
            logger.warning(f"[LeadImport] Row {row_number} ({email}) skipped: {exc.orig}")
            continue

        created += int(is_new)
        updated += int(not is_new)
        users_created += int(user_created)

    db.commit()

    imported = created + updated
    log_assignment_operation(
        "import leads",
        f"coach={coach_id}",
        succeeded=imported,
        skipped=skipped,
        failed=len(errors),
    )
    return LeadImportResult(
        message=f"Successfully imported {imported} leads and created {users_created} user accounts",
        total_rows=total,
        created=created,
        updated=updated,
        skipped=skipped,
        users_created=users_created,
        errors=errors,
    )
