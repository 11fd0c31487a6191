# pyright: reportMissingTypeStubs=false
"""
Authentication dependencies for FastAPI.

Provides dependency injection functions that resolve the bearer token of a
request into an active admin session.
"""

import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from api.dependencies import get_store
from core.database import RecordStore
from services.auth_service import AuthService

logger = logging.getLogger(__name__)


class UserContext:
    """Authenticated admin context extracted from the session token."""

    def __init__(self, email: str, session_id: str):
        self.email = email
        self.session_id = session_id

    def __repr__(self) -> str:
        return f"UserContext(email='{self.email}', session_id='{self.session_id}')"


# HTTP Bearer token security scheme
security = HTTPBearer(auto_error=False)


def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[str]:
    """Raw bearer token of the request, if any."""
    if not credentials:
        return None
    return credentials.credentials


def get_current_user(
    token: Optional[str] = Depends(get_bearer_token),
    store: RecordStore = Depends(get_store)
) -> UserContext:
    """Get authenticated admin context from the bearer token."""
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    session = AuthService.get_session(store, token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sesión inválida o expirada"
        )

    return UserContext(email=session.email, session_id=session.id)


def require_admin(user: UserContext = Depends(get_current_user)) -> UserContext:
    """Require a signed-in admin."""
    return user
