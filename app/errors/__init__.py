"""Error handling module"""
from app.errors.exceptions import (
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    TooManyRequestsException,
    ServiceUnavailableException,
    FileUploadException,
)

__all__ = [
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "TooManyRequestsException",
    "ServiceUnavailableException",
    "FileUploadException",
]
