"""Authentication middleware and dependencies"""
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from typing import Optional
import logging

from app.core.dependencies import get_db
from app.services.auth_service import decode_access_token, get_user_by_id
from app.models.user import User, UserRole
from app.errors.exceptions import UnauthorizedException, ForbiddenException

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from the bearer token"""
    if not token:
        raise UnauthorizedException(detail="No token provided")

    token_data = decode_access_token(token)

    if token_data is None or token_data.user_id is None:
        raise UnauthorizedException(detail="Invalid or expired token")

    user = get_user_by_id(db, user_id=token_data.user_id)

    if user is None:
        raise UnauthorizedException(detail="User not found")

    return user


def require_roles(*roles: UserRole):
    """Dependency allowing only the listed roles"""
    allowed = [role.value for role in roles]

    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(
                f"Authorization failed: role '{current_user.role.value}' not in {allowed}",
                extra={"user_id": current_user.id, "user_email": current_user.email},
            )
            raise ForbiddenException(
                detail={
                    "error": "Insufficient permissions",
                    "requiredRoles": allowed,
                    "userRole": current_user.role.value,
                }
            )
        return current_user
    return role_checker


require_admin = require_roles(UserRole.ADMIN)
require_coach_or_admin = require_roles(UserRole.COACH, UserRole.ADMIN)
