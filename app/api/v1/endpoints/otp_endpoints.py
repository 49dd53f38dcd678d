"""OTP login endpoints"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from app.core.config import settings
from app.core.dependencies import get_db
from app.errors.exceptions import (
    BadRequestException,
    NotFoundException,
    ServiceUnavailableException,
    TooManyRequestsException,
)
from app.schemas.otp_schemas import (
    OTPGenerateRequest,
    OTPGenerateResponse,
    OTPVerifyRequest,
    OTPVerifyResponse,
)
from app.services.auth_service import create_token_for_user, get_user_by_email
from app.services.otp_service import (
    OTPAttemptsExceeded,
    OTPError,
    OTPRateLimited,
    UnknownEmailError,
    generate_otp,
    resend_available_at,
    verify_otp,
)
from app.utils.email import send_otp_email

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/generate", response_model=OTPGenerateResponse, response_model_exclude_none=True)
async def generate(body: OTPGenerateRequest, db: Session = Depends(get_db)):
    """
    ## Request a login code

    **Role:** Public. The email must belong to an existing account.

    Issues a fresh 6-digit code valid for 5 minutes and emails it. Any
    earlier code for the same email stops working.

    ### Limits
    | Rule              | Value             | Error |
    |-------------------|-------------------|-------|
    | Resend cooldown   | 60 s after the last code | 429 + `Retry-After` |
    | Hourly cap        | 5 codes per email | 429 + `Retry-After` |

    ### Response
    `{ "message", "email", "expires_at", "resend_available_at" }`, plus
    `"otp"` when the server is not running in production.

    ### Frontend integration
    1. POST `{ email }` from the login screen.
    2. HTTP 200 → show the code entry screen; disable "Resend" until
       `resend_available_at`.
    3. HTTP 404 → "Email not found. Please contact admin."
    4. HTTP 429 → wait `retry_after` seconds.
    """
    try:
        record, code = generate_otp(db, body.email)
    except UnknownEmailError as exc:
        raise NotFoundException(detail=str(exc))
    except OTPRateLimited as exc:
        raise TooManyRequestsException(
            detail={"error": str(exc), "retry_after": exc.retry_after},
            retry_after=exc.retry_after,
        )

    user = get_user_by_email(db, record.email)
    sent = send_otp_email(record.email, code, user.name if user else "")
    if not sent:
        logger.error(f"[OTP] Email delivery failed", extra={"user_email": record.email})
        if settings.is_production and settings.EMAIL_SERVICE_ENABLED:
            raise ServiceUnavailableException(detail="Failed to send OTP email. Please try again later.")

    return OTPGenerateResponse(
        message="OTP sent to your email",
        email=record.email,
        expires_at=record.expires_at,
        resend_available_at=resend_available_at(record),
        otp=None if settings.is_production else code,
    )


@router.post("/verify", response_model=OTPVerifyResponse)
async def verify(body: OTPVerifyRequest, db: Session = Depends(get_db)):
    """
    ## Exchange a login code for a token

    **Role:** Public.

    Each code allows 3 attempts. A correct code is consumed and cannot be
    used again.

    ### Required fields (JSON body)
    | Field | Type   | Description              |
    |-------|--------|--------------------------|
    | email | string | Email the code was sent to |
    | otp   | string | The 6-digit code         |

    ### Response
    `{ "message": "...", "token": "<JWT>", "token_type": "bearer", "user": {...} }`

    ### Frontend integration
    - HTTP 400 → wrong or expired code; the message says how many attempts are left.
    - HTTP 429 → attempts used up; request a new code.
    """
    try:
        verify_otp(db, body.email, body.otp)
    except OTPAttemptsExceeded as exc:
        raise TooManyRequestsException(detail=str(exc))
    except OTPError as exc:
        raise BadRequestException(detail=str(exc))

    user = get_user_by_email(db, body.email)
    if not user:
        raise NotFoundException(detail="User not found")

    logger.info(f"OTP login", extra={"user_id": user.id, "user_email": user.email})
    return OTPVerifyResponse(
        message="OTP verified successfully",
        token=create_token_for_user(user),
        user=user,
    )
