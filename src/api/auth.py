# pyright: reportMissingTypeStubs=false
"""
Authentication API endpoints.

Handles password login, session lookup and logout for clinic admins.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from api.dependencies import get_store
from api.responses import LoginResponse, MessageResponse, SessionResponse
from auth.dependencies import get_bearer_token
from core.database import RecordStore
from services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    """Request model for admin login."""
    email: str
    password: str


@router.post("/login", summary="Sign in with email and password", response_model=LoginResponse)
async def login(request: LoginRequest, store: RecordStore = Depends(get_store)) -> LoginResponse:
    result = AuthService.sign_in_with_password(store, request.email, request.password)
    return LoginResponse(
        access_token=result.access_token,
        token_type=result.token_type,
        expires_at=result.expires_at,
        email=result.session.email,
    )


@router.get("/session", summary="Get the current admin session", response_model=SessionResponse)
async def get_session(
    token: Optional[str] = Depends(get_bearer_token),
    store: RecordStore = Depends(get_store)
) -> SessionResponse:
    session = AuthService.get_session(store, token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sesión inválida o expirada"
        )
    return SessionResponse.from_session(session)


@router.post("/logout", summary="Logout current admin", response_model=MessageResponse)
async def logout(
    token: Optional[str] = Depends(get_bearer_token),
    store: RecordStore = Depends(get_store)
) -> MessageResponse:
    """
    Revoke the current session. Logging out without a valid session succeeds too.
    """
    revoked = AuthService.sign_out(store, token)
    return MessageResponse(message="Sesión cerrada" if revoked else "No había sesión activa")
