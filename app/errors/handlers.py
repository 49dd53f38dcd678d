"""Error handlers for the application"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """
    Render HTTP exceptions as JSON.

    String details become ``{"detail": ..., "error": ...}``; dict details
    (e.g. the role-mismatch payload) are returned as-is with ``detail``
    mirroring their ``error`` message.
    """
    if isinstance(exc.detail, dict):
        content = dict(exc.detail)
        content.setdefault("detail", content.get("error"))
    else:
        content = {"detail": exc.detail, "error": exc.detail}

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code} on {request.url}: {exc.detail}")
    elif exc.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN):
        logger.warning(f"HTTP {exc.status_code} on {request.url.path}: {content.get('detail')}")

    return JSONResponse(
        status_code=exc.status_code,
        content=content,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle validation errors
    """
    errors = []
    for error in exc.errors():
        errors.append({
            "field": " -> ".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    logger.warning(f"Validation error on {request.url}: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Validation error",
            "error": "Validation error",
            "errors": errors
        }
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError):
    """
    Handle SQLAlchemy database errors.

    A unique-constraint violation that slipped past the service checks (two
    requests registering the same email, say) is a 409, not a 500.
    """
    if isinstance(exc, IntegrityError):
        logger.warning(f"Integrity error on {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": "Resource already exists",
                "error": "Resource already exists",
            },
        )

    logger.error(f"Database error on {request.url}: {str(exc)}")

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Database error occurred",
            "error": "An internal database error occurred. Please try again later."
        }
    )


async def general_exception_handler(request: Request, exc: Exception):
    """
    Handle general exceptions
    """
    logger.error(f"Unhandled exception on {request.url}: {str(exc)}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error": "An unexpected error occurred. Please try again later."
        }
    )
