"""User model with role-based access control"""
from sqlalchemy import Column, Integer, String, DateTime, Enum as SQLEnum
from sqlalchemy.sql import func
from enum import Enum
from app.db.base import Base


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "ADMIN"
    COACH = "COACH"
    USER = "USER"


class User(Base):
    """
    Account record. Emails are stored lower-cased so lookups stay
    case-insensitive.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole, name="userrole"), nullable=False, default=UserRole.USER)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

    def has_role(self, *roles: UserRole) -> bool:
        return self.role in roles
