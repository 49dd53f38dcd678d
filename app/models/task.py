"""Task model"""
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey
from sqlalchemy.sql import func
from app.db.base import Base


class Task(Base):
    """
    A unit of work a coach hands out. There is no status column: status is
    derived from the dates and ``completed_at`` on every read
    (see ``app.utils.task_status``).
    """
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    coach_id = Column(Integer, ForeignKey("coaches.id"), nullable=True, index=True)
    assigned_by = Column(Integer, ForeignKey("users.id"), nullable=True)

    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    deadline = Column(DateTime, nullable=False)

    allow_document_upload = Column(Boolean, default=False, nullable=False)
    report_type = Column(String(50), nullable=True)

    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self):
        return f"<Task(id={self.id}, title='{self.title}')>"
