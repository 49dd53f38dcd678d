"""FastAPI dependencies shared by the routers"""
from typing import Iterator

from sqlalchemy.orm import Session

from app.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """
    One session per request, handed explicitly to every service call.
    Work left uncommitted when the handler raises is rolled back.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
