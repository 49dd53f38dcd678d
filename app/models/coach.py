"""Coach profiles and the user -> coach mapping"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base


class Coach(Base):
    """
    Coach profile. A COACH user account is linked to its profile by email.
    """
    __tablename__ = "coaches"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Coach(id={self.id}, email='{self.email}')>"


class UserCoachMapping(Base):
    """Which coach a user is assigned to. One coach per user."""
    __tablename__ = "user_coach_mapping"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False, index=True)
    coach_id = Column(Integer, ForeignKey("coaches.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
