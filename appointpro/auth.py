import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import ADMIN_ROLES, User
from .security_utils import decode_access_token
from .shared.errors import AuthenticationError, PermissionDenied

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token into a User or reject the request with 401"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Access token required", error_code="NO_TOKEN")

    payload = decode_access_token(credentials.credentials)
    if not payload or not payload.get("sub"):
        logger.warning("🚫 Rejected invalid or expired access token")
        raise AuthenticationError("Invalid or expired token", error_code="INVALID_TOKEN")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid or expired token", error_code="INVALID_TOKEN") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        logger.warning(f"🚫 Token subject {user_id} no longer exists")
        raise AuthenticationError("Invalid or expired token", error_code="INVALID_TOKEN")

    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role not in ADMIN_ROLES:
        logger.warning(f"🚫 User {current_user.id} denied admin access (role={current_user.role})")
        raise PermissionDenied("Admin access required", error_code="ADMIN_REQUIRED")
    return current_user


def require_super_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != "super_admin":
        raise PermissionDenied("Super admin access required", error_code="SUPER_ADMIN_REQUIRED")
    return current_user
