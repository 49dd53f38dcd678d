"""OTP login service: code generation, resend limits and verification.

Every function takes the request's ``Session`` explicitly. Attempt counting
and consumption are single conditional UPDATEs so two concurrent
verifications of the same code cannot both succeed.
"""
from datetime import datetime, timedelta
from typing import Optional
import logging
import math
import secrets

from sqlalchemy.orm import Session

from app.core.config import settings
from app.models.otp import OTPVerification
from app.services.auth_service import (
    get_password_hash,
    get_user_by_email,
    normalize_email,
    verify_password,
)
from app.utils.dates import utcnow
from app.utils.logger import log_otp_event

logger = logging.getLogger(__name__)


# ── Errors ────────────────────────────────────────────────────────────────────

class OTPError(ValueError):
    """Base class for OTP failures; the message is safe to show to clients."""


class UnknownEmailError(OTPError):
    def __init__(self):
        super().__init__("Email not found. Please contact admin.")


class OTPRateLimited(OTPError):
    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class OTPNotFound(OTPError):
    def __init__(self, message: str = "No valid OTP found. Please request a new OTP."):
        super().__init__(message)


class OTPExpired(OTPError):
    def __init__(self):
        super().__init__("OTP has expired. Please request a new OTP.")


class OTPMismatch(OTPError):
    def __init__(self, remaining_attempts: int):
        super().__init__(f"Invalid OTP. {remaining_attempts} attempt(s) remaining.")
        self.remaining_attempts = remaining_attempts


class OTPAttemptsExceeded(OTPError):
    def __init__(self):
        super().__init__("Maximum verification attempts exceeded. Please request a new OTP.")


class OTPAlreadyUsed(OTPError):
    def __init__(self):
        super().__init__("OTP already used. Please request a new OTP.")


# ── Helpers ───────────────────────────────────────────────────────────────────

def generate_otp_code() -> str:
    """Return a zero-padded numeric code; the fixed dev code only in development."""
    if settings.is_development:
        return settings.OTP_DEV_CODE
    length = settings.OTP_LENGTH
    return f"{secrets.randbelow(10 ** length):0{length}d}"


def resend_available_at(record: OTPVerification) -> datetime:
    return record.created_at + timedelta(seconds=settings.OTP_RESEND_COOLDOWN_SECONDS)


def get_active_otp(db: Session, email: str) -> Optional[OTPVerification]:
    """Newest unused record for *email*, if any."""
    return (
        db.query(OTPVerification)
        .filter(
            OTPVerification.email == normalize_email(email),
            OTPVerification.is_used == False,  # noqa: E712
        )
        .order_by(OTPVerification.created_at.desc(), OTPVerification.id.desc())
        .first()
    )


def _mark_used(db: Session, otp_id: int) -> None:
    db.query(OTPVerification).filter(OTPVerification.id == otp_id).update(
        {OTPVerification.is_used: True}, synchronize_session=False
    )
    db.commit()


def check_request_limits(db: Session, email: str, now: datetime) -> None:
    """
    Raise OTPRateLimited while the resend cooldown is running or the hourly
    request cap for *email* is used up.
    """
    latest = (
        db.query(OTPVerification)
        .filter(OTPVerification.email == email)
        .order_by(OTPVerification.created_at.desc(), OTPVerification.id.desc())
        .first()
    )
    if latest is not None:
        cooldown_ends = resend_available_at(latest)
        if now < cooldown_ends:
            retry_after = max(1, math.ceil((cooldown_ends - now).total_seconds()))
            raise OTPRateLimited(
                f"Please wait {retry_after} second(s) before requesting a new OTP.",
                retry_after=retry_after,
            )

    window_start = now - timedelta(hours=1)
    recent = (
        db.query(OTPVerification)
        .filter(
            OTPVerification.email == email,
            OTPVerification.created_at > window_start,
        )
        .order_by(OTPVerification.created_at.asc())
    )
    if recent.count() >= settings.OTP_MAX_REQUESTS_PER_HOUR:
        oldest = recent.first()
        frees_at = oldest.created_at + timedelta(hours=1)
        retry_after = max(1, math.ceil((frees_at - now).total_seconds()))
        retry_minutes = max(1, math.ceil(retry_after / 60))
        raise OTPRateLimited(
            f"Too many OTP requests. Please try again in {retry_minutes} minutes.",
            retry_after=retry_after,
        )


# ── Lifecycle ─────────────────────────────────────────────────────────────────

def generate_otp(db: Session, email: str, now: Optional[datetime] = None) -> tuple[OTPVerification, str]:
    """
    Issue a new code for *email*.

    Earlier unused codes for the email are invalidated so only the newest one
    can verify. Returns the persisted record and the plain-text code (only
    its bcrypt hash is stored).
    """
    email = normalize_email(email)
    now = now or utcnow()

    if get_user_by_email(db, email) is None:
        raise UnknownEmailError()

    check_request_limits(db, email, now)

    code = generate_otp_code()

    db.query(OTPVerification).filter(
        OTPVerification.email == email,
        OTPVerification.is_used == False,  # noqa: E712
    ).update({OTPVerification.is_used: True}, synchronize_session=False)

    record = OTPVerification(
        email=email,
        otp_hash=get_password_hash(code),
        expires_at=now + timedelta(minutes=settings.OTP_EXPIRE_MINUTES),
        is_used=False,
        verification_attempts=0,
        created_at=now,
    )
    db.add(record)
    db.commit()
    db.refresh(record)

    log_otp_event("generated", email)
    return record, code


def verify_otp(db: Session, email: str, code: str, now: Optional[datetime] = None) -> OTPVerification:
    """
    Check *code* against the active record for *email* and consume it.

    Raises OTPNotFound, OTPExpired, OTPAttemptsExceeded, OTPMismatch or
    OTPAlreadyUsed (the code was consumed by a concurrent request).
    Each call spends one attempt before the code is compared; once the
    ceiling is reached the record fails even for the right code.
    """
    email = normalize_email(email)
    now = now or utcnow()
    max_attempts = settings.OTP_MAX_ATTEMPTS

    record = get_active_otp(db, email)
    if record is None:
        raise OTPNotFound()

    if now > record.expires_at:
        _mark_used(db, record.id)
        log_otp_event("expired", email)
        raise OTPExpired()

    claimed = (
        db.query(OTPVerification)
        .filter(
            OTPVerification.id == record.id,
            OTPVerification.is_used == False,  # noqa: E712
            OTPVerification.verification_attempts < max_attempts,
        )
        .update(
            {OTPVerification.verification_attempts: OTPVerification.verification_attempts + 1},
            synchronize_session=False,
        )
    )
    db.commit()

    if claimed == 0:
        db.refresh(record)
        if record.is_used and record.verification_attempts < max_attempts:
            # consumed by a concurrent request between the lookup and the claim
            log_otp_event("already used", email)
            raise OTPAlreadyUsed()
        _mark_used(db, record.id)
        log_otp_event("attempts exceeded", email)
        raise OTPAttemptsExceeded()

    db.refresh(record)

    supplied = (code or "").strip()
    if not (supplied.isdigit() and verify_password(supplied, record.otp_hash)):
        remaining = max_attempts - record.verification_attempts
        log_otp_event("mismatch", email, remaining=remaining)
        if remaining <= 0:
            raise OTPAttemptsExceeded()
        raise OTPMismatch(remaining)

    consumed = (
        db.query(OTPVerification)
        .filter(
            OTPVerification.id == record.id,
            OTPVerification.is_used == False,  # noqa: E712
        )
        .update({OTPVerification.is_used: True}, synchronize_session=False)
    )
    db.commit()

    if consumed == 0:
        # another request consumed the code first
        log_otp_event("already used", email)
        raise OTPAlreadyUsed()

    db.refresh(record)
    log_otp_event("verified", email)
    return record
