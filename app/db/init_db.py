"""Initialize database tables and create initial data if needed"""
import logging
from app.db.base import Base
from app.db.session import engine, SessionLocal
import app.models  # noqa: F401  registers every table on Base.metadata
from app.models.user import User, UserRole
from app.services.auth_service import get_password_hash, normalize_email
from app.core.config import settings

logger = logging.getLogger(__name__)


def init_db() -> None:
    """Create all database tables"""
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error creating database tables: {str(e)}")
        raise


def create_initial_data() -> None:
    """Create the first ADMIN account from .env configuration when there are no users yet"""
    db = SessionLocal()
    try:
        if db.query(User).count() == 0:
            admin = User(
                name=settings.INITIAL_ADMIN_NAME,
                email=normalize_email(settings.INITIAL_ADMIN_EMAIL),
                hashed_password=get_password_hash(settings.INITIAL_ADMIN_PASSWORD),
                role=UserRole.ADMIN,
            )
            db.add(admin)
            db.commit()
            logger.info(f"Initial admin created: {admin.email}")
            logger.warning("Change the INITIAL_ADMIN_PASSWORD default in .env!")
    except Exception as e:
        logger.error(f"Error creating initial data: {str(e)}")
        db.rollback()
    finally:
        db.close()
