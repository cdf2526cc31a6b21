"""
Request dependencies for authenticated routes.
"""
from typing import Optional
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from stockroom.core.errors import AuthError, PermissionDeniedError
from stockroom.core.security import decode_token
from stockroom.db.session import get_db
from stockroom.models.user import User, UserRole

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an existing user, else 401."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Not authorized, no token")

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise AuthError("Invalid or expired token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthError("Invalid token payload")

    user = db.get(User, user_id)
    if user is None:
        raise AuthError("User not found")
    return user


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRole.ADMIN:
        raise PermissionDeniedError("Access denied")
    return current_user
