"""Authentication endpoints: password signup/login and the current user"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
import logging

from app.core.dependencies import get_db
from app.services.auth_service import (
    authenticate_user,
    create_token_for_user,
    create_user,
    get_user_by_email,
)
from app.schemas.auth_schemas import (
    ForgotPasswordRequest,
    LoginRequest,
    MessageResponse,
    Token,
    UserCreate,
    UserResponse,
)
from app.middleware.auth import get_current_user
from app.models.user import User, UserRole
from app.errors.exceptions import ConflictException, ForbiddenException, UnauthorizedException
from app.utils.email import send_password_reset_email

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/signup", response_model=Token, status_code=status.HTTP_201_CREATED)
async def signup(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    ## Create an account

    **Role:** Public. No authentication required.

    Creates a USER or COACH account and logs it in straight away. Signing up
    as a COACH also creates the matching coach profile. ADMIN accounts cannot
    be self-registered.

    ### Required fields (JSON body)
    | Field    | Type   | Description                      |
    |----------|--------|----------------------------------|
    | name     | string | Display name                     |
    | email    | string | Unique, compared case-insensitively |
    | password | string | Minimum 6 characters             |
    | role     | string | `USER` (default) or `COACH`      |

    ### Response
    `{ "token": "<JWT>", "token_type": "bearer", "user": {...}, "message": "..." }`

    ### Frontend integration
    - HTTP 201 → store `token`, route by `user.role`.
    - HTTP 409 → "Email already registered".
    """
    if user_data.role == UserRole.ADMIN:
        raise ForbiddenException(detail="ADMIN accounts cannot be self-registered")

    if get_user_by_email(db, user_data.email):
        raise ConflictException(detail="Email already registered")

    user = create_user(db, user_data)
    logger.info(f"New {user.role.value} account registered", extra={"user_id": user.id, "user_email": user.email})

    return Token(
        token=create_token_for_user(user),
        user=user,
        message="Account created successfully",
    )


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    ## Log in with email and password

    **Role:** Public. No authentication required.

    ### Required fields (JSON body)
    | Field    | Type   | Description |
    |----------|--------|-------------|
    | email    | string | Account email |
    | password | string | Account password |

    ### Response
    `{ "token": "<JWT>", "token_type": "bearer", "user": {...} }`

    ### Frontend integration
    - Send the token as `Authorization: Bearer <token>` on every protected call.
    - HTTP 401 → "Invalid credentials" (the same message whether the email
      or the password was wrong).
    """
    user = authenticate_user(db, credentials.email, credentials.password)
    if not user:
        logger.warning(f"Failed login attempt", extra={"user_email": credentials.email})
        raise UnauthorizedException(detail="Invalid credentials")

    return Token(token=create_token_for_user(user), user=user, message="Login successful")


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    ## Request a password reset

    **Role:** Public.

    Always answers with the same message so the endpoint cannot be used to
    find out which emails have accounts. Known addresses get an email.
    """
    user = get_user_by_email(db, body.email)
    if user:
        if not send_password_reset_email(user.email, user.name):
            logger.warning(f"Password reset email could not be delivered", extra={"user_email": user.email})

    return MessageResponse(
        message="If an account exists for this email, password reset instructions have been sent."
    )


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """
    ## Current user

    **Role:** Any authenticated user.

    Returns the profile behind the bearer token.
    """
    return current_user
