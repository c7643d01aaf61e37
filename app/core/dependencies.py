from typing import Annotated, Optional

from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, PermissionDenied
from app.core.security import jwt_manager
from app.models.user import User

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency that requires a valid Bearer token and returns the active user.
    Raises AuthenticationError (401) if the token is missing, invalid, or the user is not found.
    """
    if not credentials:
        raise AuthenticationError("Not authenticated")

    payload = jwt_manager.verify_token(credentials.credentials, "access")

    if "user_id" not in payload:
        raise AuthenticationError("Invalid token: Not a valid user token")

    user = db.query(User).filter(User.id == payload.get("user_id")).first()

    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise PermissionDenied("Inactive user")

    return user


async def get_current_mentor(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """
    Dependency for test owners. Admins pass as well.
    """
    if current_user.status not in ("mentor", "admin"):
        raise PermissionDenied("Mentor access required")
    return current_user
