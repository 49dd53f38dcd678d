"""Main FastAPI application"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from app.core.config import settings
from app.utils.logger import setup_file_logging
from app.utils.dates import utcnow
from app.api.v1.api import api_router
from app.db.init_db import init_db, create_initial_data
from app.errors.handlers import (
    http_exception_handler,
    validation_exception_handler,
    sqlalchemy_exception_handler,
    general_exception_handler
)

setup_file_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Coaching portal: OTP login, leads, coaches, task assignment and report documents",
    version=settings.PROJECT_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_PREFIX}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(api_router, prefix=settings.API_PREFIX)


@app.get("/health", tags=["Service"])
async def health():
    return {"status": "OK", "timestamp": utcnow().isoformat()}


@app.get(settings.API_PREFIX, tags=["Service"])
async def api_index():
    """List the mounted resource groups."""
    prefix = settings.API_PREFIX
    return {
        "message": f"{settings.PROJECT_NAME} is running",
        "version": settings.PROJECT_VERSION,
        "endpoints": {
            "health": "/health",
            "auth": f"{prefix}/auth",
            "otp": f"{prefix}/otp",
            "users": f"{prefix}/users",
            "userTasks": f"{prefix}/user-tasks",
            "leads": f"{prefix}/leads",
            "coaches": f"{prefix}/coaches",
            "upload": f"{prefix}/upload",
            "tasks": f"{prefix}/tasks",
            "documents": f"{prefix}/documents",
        },
    }


@app.on_event("startup")
async def startup_event():
    """Initialize database and log application startup"""
    try:
        init_db()
        create_initial_data()
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize database: {str(e)}")
        logger.warning(f"{settings.PROJECT_NAME} STARTED - Database initialization failed, but API is running")


@app.on_event("shutdown")
async def shutdown_event():
    """Log application shutdown"""
    logger.warning(f"{settings.PROJECT_NAME} SHUTDOWN")
