"""Authentication service with password hashing and JWT"""
from datetime import datetime, timedelta, timezone
from typing import Optional
import logging

from passlib.context import CryptContext
from jose import JWTError, jwt
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.coach import Coach
from app.models.user import User, UserRole
from app.schemas.auth_schemas import UserCreate, TokenData
from app.core.config import settings

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__rounds=settings.BCRYPT_ROUNDS
)


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify a plain password against a hashed password"""
    if not hashed_password:
        return False
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password using bcrypt"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


def create_token_for_user(user: User) -> str:
    """Issue a bearer token carrying the user's id, email and role"""
    return create_access_token(
        data={"sub": str(user.id), "email": user.email, "role": user.role.value},
        expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def decode_access_token(token: Optional[str]) -> Optional[TokenData]:
    """
    Decode and validate a JWT access token
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        user_id_str: str = payload.get("sub")
        email: str = payload.get("email")
        role: str = payload.get("role")

        if user_id_str is None:
            return None

        try:
            user_id = int(user_id_str)
        except (ValueError, TypeError):
            return None

        return TokenData(user_id=user_id, email=email, role=UserRole(role) if role else None)
    except JWTError as e:
        logger.warning(f"JWT decode error: {str(e)}")
        return None
    except ValueError as e:
        logger.warning(f"Malformed token payload: {str(e)}")
        return None


def normalize_email(email: str) -> str:
    return email.strip().lower()


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Get user by email (case-insensitive)
    """
    return db.query(User).filter(func.lower(User.email) == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
    """
    Get user by ID
    """
    return db.query(User).filter(User.id == user_id).first()


def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
    """
    Authenticate a user with email and password
    """
    user = get_user_by_email(db, email)
    if not user:
        return None
    if not verify_password(password, user.hashed_password):
        return None
    return user


def create_user(db: Session, user_data: UserCreate, commit: bool = True) -> User:
    """
    Create a new user with hashed password.

    Signing up as a COACH also creates the matching coach profile when one
    does not exist yet.
    """
    db_user = User(
        name=user_data.name,
        email=normalize_email(user_data.email),
        hashed_password=get_password_hash(user_data.password),
        role=user_data.role,
    )
    db.add(db_user)

    if user_data.role == UserRole.COACH:
        existing_coach = (
            db.query(Coach)
            .filter(func.lower(Coach.email) == db_user.email)
            .first()
        )
        if not existing_coach:
            db.add(Coach(name=db_user.name, email=db_user.email))
            logger.info(f"Coach profile created for {db_user.email}")

    if commit:
        db.commit()
        db.refresh(db_user)
    else:
        db.flush()

    return db_user


def default_lead_password(email: str, phone_number: Optional[str]) -> str:
    """Initial password for accounts provisioned from leads: email + last 4 phone digits"""
    return normalize_email(email) + (phone_number or "")[-4:]


def get_or_create_lead_user(db: Session, name: str, email: str, phone_number: Optional[str]) -> tuple[User, bool]:
    """
    Find the USER account for a lead's email or create it.
    Returns (user, created). Does not commit.
    """
    user = get_user_by_email(db, email)
    if user:
        return user, False

    user = User(
        name=name,
        email=normalize_email(email),
        hashed_password=get_password_hash(default_lead_password(email, phone_number)),
        role=UserRole.USER,
    )
    db.add(user)
    db.flush()
    return user, True
