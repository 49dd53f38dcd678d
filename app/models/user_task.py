"""UserTask: one user's completion record for one task."""
from enum import Enum

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, UniqueConstraint, Enum as SQLEnum
from sqlalchemy.sql import func

from app.db.base import Base


class UserTaskStatus(str, Enum):
    COMPLETED = "COMPLETED"
    INCOMPLETE = "INCOMPLETE"


class UserTask(Base):
    __tablename__ = "user_tasks"
    __table_args__ = (
        UniqueConstraint("user_id", "task_id", name="uq_user_tasks_user_task"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    status = Column(
        SQLEnum(UserTaskStatus, name="usertaskstatus"),
        nullable=False,
        default=UserTaskStatus.INCOMPLETE,
    )
    completed_at = Column(DateTime, nullable=True)
    remarks = Column(Text, nullable=True)
    done_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self) -> str:
        return f"<UserTask(id={self.id}, user_id={self.user_id}, task_id={self.task_id}, status={self.status})>"
